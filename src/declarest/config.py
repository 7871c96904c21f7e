from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Any, Optional

from dotenv import load_dotenv

from .core.errors import ConfigurationError
from .core.factory import (
    ClientHandle,
    DescriptorSource,
    create_client,
    _descriptor_table,
    normalize_base_url,
)
from .core.observability import setup_logging
from .transports.httpx_backend import HttpxTransport, RetryConfig


def _get_bool_env(name: str, default: bool) -> bool:
    """Parse a boolean environment variable with a safe default."""
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _read_number_env(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip().replace("_", ""))
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class ClientConfig:
    """Settings for an environment-configured client."""

    base_url: str
    timeout_seconds: float = 10.0
    max_retries: int = 2
    retry_on_429: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not math.isfinite(self.timeout_seconds) or self.timeout_seconds <= 0:
            raise ConfigurationError(
                "DECLAREST_TIMEOUT_SECONDS must be a finite number greater than zero"
            )
        if self.max_retries < 0:
            raise ConfigurationError("DECLAREST_MAX_RETRIES must not be negative")

    @classmethod
    def from_env(cls, *, use_dotenv: bool = True) -> "ClientConfig":
        if use_dotenv:
            load_dotenv()
        base_url = os.getenv("DECLAREST_BASE_URL", "").strip()
        if not base_url:
            raise ConfigurationError("Missing DECLAREST_BASE_URL in environment.")

        timeout_seconds = _read_number_env(
            "DECLAREST_TIMEOUT_SECONDS", cls.timeout_seconds
        )
        max_retries = _read_number_env("DECLAREST_MAX_RETRIES", cls.max_retries, int)
        return cls(
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            retry_on_429=_get_bool_env("DECLAREST_RETRY_ON_429", cls.retry_on_429),
            log_level=os.getenv("DECLAREST_LOG_LEVEL", cls.log_level).strip() or "INFO",
        )

    def retry_config(self) -> RetryConfig:
        return RetryConfig(max_retries=self.max_retries, retry_on_429=self.retry_on_429)


def create_client_from_env(
    descriptors: DescriptorSource,
    *,
    config: Optional[ClientConfig] = None,
    configure_logging: bool = False,
    **kwargs: Any,
) -> ClientHandle:
    """Create a ClientHandle backed by an owned HttpxTransport from environment."""
    config = config or ClientConfig.from_env()
    base_url = normalize_base_url(config.base_url)
    table = _descriptor_table(descriptors)
    if configure_logging:
        setup_logging(config.log_level)
    transport = HttpxTransport(
        timeout_seconds=config.timeout_seconds, retry=config.retry_config()
    )
    return create_client(
        base_url, transport, table, owns_transport=True, **kwargs
    )


__all__ = ["ClientConfig", "create_client_from_env"]
