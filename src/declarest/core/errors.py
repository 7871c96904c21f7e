from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .messages import Response


class ClientError(Exception):
    """Base error for every declarest failure."""

    def __init__(self, message: str, *, method_name: Optional[str] = None):
        super().__init__(message)
        self.method_name = method_name


class ConfigurationError(ClientError):
    """Malformed descriptor or base address, raised while creating a client."""


class BuildError(ClientError):
    """A request could not be built from the call arguments."""


class MissingParameterError(BuildError):
    def __init__(self, name: str, *, method_name: Optional[str] = None):
        super().__init__(
            f"missing required parameter {name!r}", method_name=method_name
        )
        self.name = name


class SerializationError(BuildError):
    """The codec could not serialize a request body."""


class TransportError(ClientError):
    """Connection, timeout or protocol failure reported by a transport."""


class UnsuccessfulStatusError(ClientError):
    def __init__(
        self,
        *,
        status_code: int,
        body: bytes,
        method: str,
        url: str,
        response: Optional["Response"] = None,
        method_name: Optional[str] = None,
    ):
        snippet = body[:200].decode("utf-8", errors="replace")
        super().__init__(
            f"{status_code} {method} {url}: {snippet or 'request failed'}",
            method_name=method_name,
        )
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url
        self.response = response


class DecodeError(ClientError):
    """A response body could not be decoded."""


class ShapeError(DecodeError):
    """A response body does not match the declared return shape."""


__all__ = [
    "ClientError",
    "ConfigurationError",
    "BuildError",
    "MissingParameterError",
    "SerializationError",
    "TransportError",
    "UnsuccessfulStatusError",
    "DecodeError",
    "ShapeError",
]
