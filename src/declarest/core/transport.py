from __future__ import annotations

from typing import Protocol, runtime_checkable

from .messages import Request, Response


@runtime_checkable
class Transport(Protocol):
    """
    Minimal capability a pluggable HTTP backend must provide.
    - execute must be safe to call concurrently on one instance
    - it must not mutate or retain the request after returning
    - failures are raised as TransportError
    - cancelling the awaiting task must release the underlying connection
    """

    async def execute(self, request: Request) -> Response: ...


__all__ = ["Transport"]
