"""
Declaration source: turns decorated stub functions into MethodDescriptors.

    api = ApiDeclaration()

    @api.post("/repos/{owner}/{repo}/issues")
    def create_issue(owner: str, repo: str, issue: Annotated[Issue, Body()]) -> Issue:
        ...

Unannotated parameters bind to the path when their name is a placeholder and
to the query string otherwise. A default of None marks a query parameter as
optional. The return annotation picks the return kind: None means no body,
Response means the raw response, anything else is decoded into that type.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    Optional,
    Tuple,
    TypeVar,
    get_args,
    get_origin,
    get_type_hints,
)

from .core.codec import Codec
from .core.descriptors import (
    BodyParam,
    HeaderParam,
    MethodDescriptor,
    ParamBinding,
    PathParam,
    QueryParam,
    ReturnKind,
    template_placeholders,
)
from .core.errors import ConfigurationError
from .core.factory import ClientHandle, create_client
from .core.messages import Response
from .core.transport import Transport

F = TypeVar("F", bound=Callable[..., Any])

log = logging.getLogger("declarest.declaration")


@dataclass(frozen=True)
class Path:
    name: Optional[str] = None


@dataclass(frozen=True)
class Query:
    name: Optional[str] = None


@dataclass(frozen=True)
class Header:
    name: Optional[str] = None


@dataclass(frozen=True)
class Body:
    pass


_MARKERS = (Path, Query, Header, Body)


def _marker_of(hint: Any) -> Any:
    if get_origin(hint) is not Annotated:
        return None
    markers = [arg for arg in get_args(hint)[1:] if isinstance(arg, _MARKERS)]
    if len(markers) > 1:
        names = [type(m).__name__ for m in markers]
        raise ValueError(f"Can only add one parameter marker, got {names}")
    return markers[0] if markers else None


def _strip_annotated(hint: Any) -> Any:
    if get_origin(hint) is Annotated:
        return get_args(hint)[0]
    return hint


def _return_shape(hint: Any) -> Tuple[ReturnKind, Any]:
    if hint is inspect.Signature.empty:
        return ReturnKind.TYPED_BODY, None
    hint = _strip_annotated(hint)
    if hint is None or hint is type(None):
        return ReturnKind.NO_BODY, None
    if hint is Response:
        return ReturnKind.RAW_RESPONSE, None
    return ReturnKind.TYPED_BODY, hint


def describe(
    func: Callable[..., Any], verb: str, path: str, *, name: Optional[str] = None
) -> MethodDescriptor:
    """Build a MethodDescriptor from a stub function's signature."""
    method_name = name or func.__name__

    def fail(message: str) -> ConfigurationError:
        return ConfigurationError(f"{method_name}: {message}", method_name=method_name)

    try:
        hints = get_type_hints(func, include_extras=True)
    except (NameError, TypeError) as exc:
        raise fail(f"cannot resolve annotations: {exc}") from exc

    placeholders = set(template_placeholders(path))
    bindings: list[ParamBinding] = []
    arg_names: list[str] = []

    for param in inspect.signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise fail("*args and **kwargs are not supported")

        hint = hints.get(param.name, param.annotation)
        try:
            marker = _marker_of(hint)
        except ValueError as exc:
            raise fail(f"parameter {param.name!r}: {exc}") from exc
        if marker is None:
            marker = Path() if param.name in placeholders else Query()

        has_default = param.default is not inspect.Parameter.empty
        if has_default and param.default is not None:
            raise fail(f"parameter {param.name!r}: only None defaults are supported")
        if has_default and not isinstance(marker, Query):
            raise fail(
                f"parameter {param.name!r}: only query parameters may be optional"
            )

        if isinstance(marker, Path):
            bindings.append(PathParam(marker.name or param.name))
        elif isinstance(marker, Query):
            bindings.append(QueryParam(marker.name or param.name, optional=has_default))
        elif isinstance(marker, Header):
            bindings.append(HeaderParam(marker.name or param.name))
        else:
            bindings.append(BodyParam())
        arg_names.append(param.name)

    return_kind, return_type = _return_shape(
        hints.get("return", inspect.signature(func).return_annotation)
    )
    return MethodDescriptor(
        name=method_name,
        verb=verb,
        path_template=path,
        bindings=tuple(bindings),
        return_kind=return_kind,
        return_type=return_type,
        arg_names=tuple(arg_names),
    )


class ApiDeclaration:
    """Collects descriptors from decorated stubs and binds them to a client."""

    def __init__(self) -> None:
        self._descriptors: Dict[str, MethodDescriptor] = {}

    @property
    def descriptors(self) -> Tuple[MethodDescriptor, ...]:
        return tuple(self._descriptors.values())

    def route(
        self, verb: str, path: str, *, name: Optional[str] = None
    ) -> Callable[[F], F]:
        def decorator(func: F) -> F:
            descriptor = describe(func, verb, path, name=name)
            if descriptor.name in self._descriptors:
                raise ConfigurationError(
                    f"Duplicate method identity detected: {descriptor.name}",
                    method_name=descriptor.name,
                )
            self._descriptors[descriptor.name] = descriptor
            log.debug(
                "Declared %s %s %s", descriptor.name, descriptor.verb.value, path
            )
            return func

        return decorator

    def get(self, path: str, **kwargs: Any) -> Callable[[F], F]:
        return self.route("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Callable[[F], F]:
        return self.route("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Callable[[F], F]:
        return self.route("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Callable[[F], F]:
        return self.route("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Callable[[F], F]:
        return self.route("DELETE", path, **kwargs)

    def head(self, path: str, **kwargs: Any) -> Callable[[F], F]:
        return self.route("HEAD", path, **kwargs)

    def options(self, path: str, **kwargs: Any) -> Callable[[F], F]:
        return self.route("OPTIONS", path, **kwargs)

    def bind(
        self,
        base_url: str,
        transport: Transport,
        codec: Optional[Codec] = None,
        **kwargs: Any,
    ) -> ClientHandle:
        return create_client(base_url, transport, self._descriptors, codec, **kwargs)


__all__ = ["ApiDeclaration", "Path", "Query", "Header", "Body", "describe"]
