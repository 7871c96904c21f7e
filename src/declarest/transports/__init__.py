"""Transport adapters implementing declarest.core.Transport."""

from .httpx_backend import IDEMPOTENT_VERBS, HttpxTransport, RetryConfig
from .mock import MockTransport

__all__ = ["HttpxTransport", "RetryConfig", "IDEMPOTENT_VERBS", "MockTransport"]
