"""Binds a base address, transport and codec to a table of descriptors."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

from .codec import Codec, JsonCodec
from .decoder import StatusPolicy, is_success_status
from .descriptors import MethodDescriptor
from .dispatcher import Dispatcher
from .errors import ConfigurationError
from .transport import Transport

DescriptorSource = Union[Iterable[MethodDescriptor], Mapping[str, MethodDescriptor]]


def normalize_base_url(base_url: str) -> str:
    """Validate an http(s) base address and strip its trailing slash."""
    raw = (base_url or "").strip()
    if not raw:
        raise ConfigurationError("base_url must be provided.")

    try:
        parts = urlsplit(raw)
        hostname = parts.hostname
        parts.port  # raises for a non-numeric port
    except ValueError as exc:
        raise ConfigurationError(f"Invalid base_url {base_url!r}: {exc}") from exc
    if parts.scheme.lower() not in {"http", "https"}:
        raise ConfigurationError(
            f"Invalid base_url {base_url!r}: scheme must be http or https"
        )
    if not hostname:
        raise ConfigurationError(f"Invalid base_url {base_url!r}: host missing")
    if parts.query or parts.fragment:
        raise ConfigurationError(
            f"Invalid base_url {base_url!r}: must not include query or fragment"
        )
    return raw.rstrip("/")


def _descriptor_table(descriptors: DescriptorSource) -> Dict[str, MethodDescriptor]:
    if isinstance(descriptors, Mapping):
        items = []
        for key, descriptor in descriptors.items():
            if isinstance(descriptor, MethodDescriptor) and descriptor.name != key:
                descriptor = dataclasses.replace(descriptor, name=key)
            items.append(descriptor)
    else:
        items = list(descriptors)

    table: Dict[str, MethodDescriptor] = {}
    for descriptor in items:
        if not isinstance(descriptor, MethodDescriptor):
            raise ConfigurationError(
                f"Expected MethodDescriptor, got {type(descriptor).__name__}"
            )
        descriptor.validate()
        if descriptor.name.startswith("_") or descriptor.name in _reserved_names():
            raise ConfigurationError(
                f"Method identity {descriptor.name!r} collides with a ClientHandle "
                "attribute",
                method_name=descriptor.name,
            )
        if descriptor.name in table:
            raise ConfigurationError(
                f"Duplicate method identity detected: {descriptor.name}",
                method_name=descriptor.name,
            )
        table[descriptor.name] = descriptor
    return table


class BoundMethod:
    """One callable entry point of a client, bound to a single descriptor."""

    __slots__ = ("descriptor", "_dispatcher")

    def __init__(self, descriptor: MethodDescriptor, dispatcher: Dispatcher):
        self.descriptor = descriptor
        self._dispatcher = dispatcher

    @property
    def name(self) -> str:
        return self.descriptor.name

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return await self._dispatcher.invoke(self.descriptor, args, kwargs)

    def __repr__(self) -> str:
        d = self.descriptor
        return f"<BoundMethod {d.name} {d.verb.value} {d.path_template}>"


@dataclass(frozen=True, eq=False)
class ClientHandle:
    """
    Long-lived client: immutable after creation and shared by concurrent calls.
    Methods are reachable as attributes, by item, or through invoke().
    """

    base_url: str
    transport: Transport
    codec: Codec
    descriptors: Mapping[str, MethodDescriptor]
    status_policy: StatusPolicy = is_success_status
    default_headers: Tuple[Tuple[str, str], ...] = ()
    owns_transport: bool = False
    logger: Optional[logging.Logger] = field(default=None, compare=False, repr=False)
    _methods: Mapping[str, BoundMethod] = field(
        init=False, repr=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "descriptors", MappingProxyType(dict(self.descriptors))
        )
        dispatcher = Dispatcher(
            base_url=self.base_url,
            transport=self.transport,
            codec=self.codec,
            status_policy=self.status_policy,
            default_headers=self.default_headers,
            logger=self.logger,
        )
        methods = {
            name: BoundMethod(descriptor, dispatcher)
            for name, descriptor in self.descriptors.items()
        }
        object.__setattr__(self, "_methods", MappingProxyType(methods))

    def __getattr__(self, name: str) -> BoundMethod:
        # Only reached for names that are not regular attributes.
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._methods[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} has no method {name!r}"
            ) from None

    def __getitem__(self, name: str) -> BoundMethod:
        return self._methods[name]

    def __contains__(self, name: object) -> bool:
        return name in self._methods

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    async def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        return await self[name](*args, **kwargs)

    async def aclose(self) -> None:
        if not self.owns_transport:
            return
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "ClientHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _reserved_names() -> frozenset:
    names = {n for n in dir(ClientHandle) if not n.startswith("_")}
    names.update(f.name for f in dataclasses.fields(ClientHandle))
    return frozenset(names)


def create_client(
    base_url: str,
    transport: Transport,
    descriptors: DescriptorSource,
    codec: Optional[Codec] = None,
    *,
    default_headers: Optional[Mapping[str, str]] = None,
    status_policy: Optional[StatusPolicy] = None,
    owns_transport: bool = False,
    logger: Optional[logging.Logger] = None,
) -> ClientHandle:
    """
    Validate everything up front and return a ready ClientHandle.
    Any ConfigurationError aborts creation; no partial client is returned.
    """
    url = normalize_base_url(base_url)
    if not isinstance(transport, Transport):
        raise ConfigurationError(
            f"transport {type(transport).__name__} does not implement execute()"
        )
    codec = codec if codec is not None else JsonCodec()
    if not isinstance(codec, Codec):
        raise ConfigurationError(
            f"codec {type(codec).__name__} must provide content_type, serialize "
            "and deserialize"
        )
    table = _descriptor_table(descriptors)

    return ClientHandle(
        base_url=url,
        transport=transport,
        codec=codec,
        descriptors=table,
        status_policy=status_policy or is_success_status,
        default_headers=tuple((default_headers or {}).items()),
        owns_transport=owns_transport,
        logger=logger,
    )


__all__ = [
    "BoundMethod",
    "ClientHandle",
    "DescriptorSource",
    "create_client",
    "normalize_base_url",
]
