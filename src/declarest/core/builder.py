"""Turns a descriptor plus call arguments into a wire-ready Request."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

from .codec import Codec
from .descriptors import (
    BodyParam,
    HeaderParam,
    MethodDescriptor,
    PathParam,
    QueryParam,
    binding_label,
    template_placeholders,
)
from .errors import BuildError, ClientError, MissingParameterError, SerializationError
from .messages import Request


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe="")


def _set_header(headers: List[Tuple[str, str]], name: str, value: str) -> None:
    """Overwrite any earlier header with the same (case-insensitive) name."""
    wanted = name.lower()
    headers[:] = [(k, v) for k, v in headers if k.lower() != wanted]
    headers.append((name, value))


def bind_arguments(
    descriptor: MethodDescriptor,
    args: Sequence[Any] = (),
    kwargs: Optional[Mapping[str, Any]] = None,
) -> Tuple[Any, ...]:
    """
    Align positional and keyword arguments to the descriptor's slots.
    Slots not supplied are filled with None (the absent value).
    """
    slots = descriptor.arg_count
    if len(args) > slots:
        raise BuildError(
            f"{descriptor.name} takes {slots} arguments but {len(args)} were given",
            method_name=descriptor.name,
        )
    values: List[Any] = list(args) + [None] * (slots - len(args))
    if not kwargs:
        return tuple(values)

    if not descriptor.arg_names:
        raise BuildError(
            f"{descriptor.name} does not accept keyword arguments",
            method_name=descriptor.name,
        )
    positions = {name: i for i, name in enumerate(descriptor.arg_names)}
    for key, value in kwargs.items():
        index = positions.get(key)
        if index is None:
            raise BuildError(
                f"{descriptor.name} got an unexpected keyword argument {key!r}",
                method_name=descriptor.name,
            )
        if index < len(args):
            raise BuildError(
                f"{descriptor.name} got multiple values for argument {key!r}",
                method_name=descriptor.name,
            )
        values[index] = value
    return tuple(values)


def build_request(
    descriptor: MethodDescriptor,
    base_url: str,
    args: Sequence[Any],
    codec: Codec,
    *,
    default_headers: Iterable[Tuple[str, str]] = (),
) -> Request:
    """Build the request for one call. Raises BuildError subclasses."""
    values = bind_arguments(descriptor, args)
    name = descriptor.name

    path = descriptor.path_template
    query: List[str] = []
    headers: List[Tuple[str, str]] = []
    for key, value in default_headers:
        _set_header(headers, key, value)
    body: Optional[bytes] = None
    content_type: Optional[str] = None

    for binding, value in zip(descriptor.bindings, values):
        if value is None:
            if isinstance(binding, QueryParam) and binding.optional:
                continue
            raise MissingParameterError(binding_label(binding), method_name=name)

        if isinstance(binding, PathParam):
            if isinstance(value, str) and not value:
                raise MissingParameterError(binding.name, method_name=name)
            path = path.replace("{" + binding.name + "}", _encode(value))
        elif isinstance(binding, QueryParam):
            key = quote(binding.name, safe="")
            items = value if isinstance(value, (list, tuple)) else (value,)
            query.extend(f"{key}={_encode(item)}" for item in items)
        elif isinstance(binding, HeaderParam):
            _set_header(headers, binding.name, str(value))
        elif isinstance(binding, BodyParam):
            try:
                body = codec.serialize(value)
            except ClientError as exc:
                if exc.method_name is None:
                    exc.method_name = name
                raise
            except Exception as exc:
                raise SerializationError(
                    f"{name}: cannot serialize request body: {exc}", method_name=name
                ) from exc
            content_type = codec.content_type

    unresolved = template_placeholders(path)
    if unresolved:
        # Descriptor validation guarantees every placeholder has a binding.
        raise RuntimeError(f"{name}: unresolved placeholders {list(unresolved)}")

    url = base_url.rstrip("/") + path
    if query:
        url = f"{url}?{'&'.join(query)}"

    if descriptor.has_body and content_type is not None:
        if not any(k.lower() == "content-type" for k, _ in headers):
            headers.append(("Content-Type", content_type))

    return Request(
        method=descriptor.verb,
        url=url,
        headers=tuple(headers),
        body=body,
        content_type=content_type,
    )


__all__ = ["build_request", "bind_arguments"]
