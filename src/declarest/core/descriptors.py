"""Immutable descriptions of API methods, independent of any transport."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Optional, Tuple, Union

from .errors import ConfigurationError

_PLACEHOLDER_RE = re.compile(r"\{([^{}]*)\}")


class MethodVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ReturnKind(str, Enum):
    NO_BODY = "no_body"
    RAW_RESPONSE = "raw_response"
    TYPED_BODY = "typed_body"


@dataclass(frozen=True)
class PathParam:
    name: str


@dataclass(frozen=True)
class QueryParam:
    name: str
    optional: bool = False


@dataclass(frozen=True)
class HeaderParam:
    name: str


@dataclass(frozen=True)
class BodyParam:
    pass


ParamBinding = Union[PathParam, QueryParam, HeaderParam, BodyParam]


def binding_label(binding: ParamBinding) -> str:
    """Human readable name of an argument slot, used in error messages."""
    if isinstance(binding, BodyParam):
        return "body"
    return binding.name


def template_placeholders(path_template: str) -> Tuple[str, ...]:
    return tuple(_PLACEHOLDER_RE.findall(path_template))


@dataclass(frozen=True)
class MethodDescriptor:
    """
    What one API method means: verb, path template and argument roles.
    - bindings are positional: slot i of the call arguments feeds bindings[i]
    - has_body is derived from the bindings when omitted
    - arg_names, when given, names each slot and enables keyword calls
    Construction validates the descriptor and raises ConfigurationError.
    """

    name: str
    verb: MethodVerb
    path_template: str
    bindings: Tuple[ParamBinding, ...] = ()
    has_body: Optional[bool] = None
    return_kind: ReturnKind = ReturnKind.TYPED_BODY
    return_type: Any = None
    arg_names: Tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        verb = self.verb
        try:
            if not isinstance(verb, MethodVerb):
                verb = MethodVerb(str(verb).upper())
        except ValueError as exc:
            raise ConfigurationError(
                f"{self.name}: unsupported HTTP verb {self.verb!r}",
                method_name=self.name,
            ) from exc
        try:
            return_kind = ReturnKind(self.return_kind)
        except ValueError as exc:
            raise ConfigurationError(
                f"{self.name}: unsupported return kind {self.return_kind!r}",
                method_name=self.name,
            ) from exc

        object.__setattr__(self, "verb", verb)
        object.__setattr__(self, "return_kind", return_kind)
        object.__setattr__(self, "bindings", tuple(self.bindings))
        object.__setattr__(self, "arg_names", tuple(self.arg_names))

        body_count = sum(1 for b in self.bindings if isinstance(b, BodyParam))
        if self.has_body is None:
            object.__setattr__(self, "has_body", body_count > 0)

        self.validate()

    @property
    def placeholders(self) -> FrozenSet[str]:
        return frozenset(template_placeholders(self.path_template))

    @property
    def arg_count(self) -> int:
        return len(self.bindings)

    def validate(self) -> None:
        """Raise ConfigurationError if the descriptor is malformed."""

        def fail(message: str) -> ConfigurationError:
            return ConfigurationError(f"{self.name}: {message}", method_name=self.name)

        if not isinstance(self.name, str) or not self.name:
            raise ConfigurationError("descriptor name must be a non-empty string")
        if not isinstance(self.path_template, str):
            raise fail("path_template must be a string")
        if self.path_template and not self.path_template.startswith("/"):
            raise fail(f"path template {self.path_template!r} must start with '/'")

        for binding in self.bindings:
            if not isinstance(binding, (PathParam, QueryParam, HeaderParam, BodyParam)):
                raise fail(f"unknown parameter binding {binding!r}")
            if not isinstance(binding, BodyParam) and not binding.name:
                raise fail(f"{type(binding).__name__} requires a name")

        path_names = [b.name for b in self.bindings if isinstance(b, PathParam)]
        if len(path_names) != len(set(path_names)):
            raise fail(f"duplicate path parameters in {path_names}")

        placeholders = self.placeholders
        if "" in placeholders:
            raise fail(f"empty placeholder in {self.path_template!r}")
        stray = _PLACEHOLDER_RE.sub("", self.path_template)
        if "{" in stray or "}" in stray:
            raise fail(f"unbalanced brace in {self.path_template!r}")
        missing = placeholders - set(path_names)
        if missing:
            raise fail(f"placeholders {sorted(missing)} have no PathParam binding")
        unused = set(path_names) - placeholders
        if unused:
            raise fail(f"PathParam bindings {sorted(unused)} are not in the path")

        body_count = sum(1 for b in self.bindings if isinstance(b, BodyParam))
        if body_count > 1:
            raise fail("at most one BodyParam binding is allowed")
        if bool(self.has_body) != (body_count == 1):
            raise fail(
                f"has_body={self.has_body} disagrees with "
                f"{body_count} BodyParam bindings"
            )

        if self.arg_names:
            if len(self.arg_names) != len(self.bindings):
                raise fail(
                    f"{len(self.bindings)} bindings declared for "
                    f"{len(self.arg_names)} arguments"
                )
            if len(set(self.arg_names)) != len(self.arg_names):
                raise fail(f"duplicate argument names in {self.arg_names}")


__all__ = [
    "MethodVerb",
    "ReturnKind",
    "PathParam",
    "QueryParam",
    "HeaderParam",
    "BodyParam",
    "ParamBinding",
    "MethodDescriptor",
    "binding_label",
    "template_placeholders",
]
