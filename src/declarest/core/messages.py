"""Wire-level request and response values exchanged with transports."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .descriptors import MethodVerb


@dataclass(frozen=True)
class Request:
    method: MethodVerb
    url: str
    headers: Tuple[Tuple[str, str], ...] = ()
    body: Optional[bytes] = None
    content_type: Optional[str] = None

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


@dataclass(frozen=True)
class Response:
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self) -> None:
        # Header lookups are case-insensitive; keys are stored lowercased.
        normalized = {str(k).lower(): str(v) for k, v in dict(self.headers).items()}
        object.__setattr__(self, "headers", MappingProxyType(normalized))

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


__all__ = ["Request", "Response"]
