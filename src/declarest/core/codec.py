from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable

import pydantic_core
from pydantic import TypeAdapter, ValidationError

from .errors import SerializationError, ShapeError


@runtime_checkable
class Codec(Protocol):
    """Body codec shared by every method of one client."""

    content_type: str

    def serialize(self, value: Any) -> bytes: ...

    def deserialize(self, data: bytes, shape: Any) -> Any: ...


class JsonCodec:
    """
    JSON codec backed by pydantic.
    - serialize accepts models, dataclasses and plain JSON-able values
    - deserialize validates against the shape hint via TypeAdapter
    - a shape of None or Any returns the parsed JSON value unvalidated
    """

    content_type = "application/json"

    def __init__(self, *, by_alias: bool = True, exclude_none: bool = False):
        self.by_alias = by_alias
        self.exclude_none = exclude_none
        self._adapters: Dict[Any, TypeAdapter] = {}

    def serialize(self, value: Any) -> bytes:
        try:
            return pydantic_core.to_json(
                value, by_alias=self.by_alias, exclude_none=self.exclude_none
            )
        except pydantic_core.PydanticSerializationError as exc:
            raise SerializationError(
                f"Cannot encode {type(value).__name__} as JSON: {exc}"
            ) from exc

    def deserialize(self, data: bytes, shape: Any) -> Any:
        if shape is None or shape is Any:
            if not data:
                return None
            try:
                return pydantic_core.from_json(data)
            except ValueError as exc:
                snippet = data[:200].decode("utf-8", errors="replace")
                raise ShapeError(
                    f"Expected JSON body, got non-JSON body snippet: {snippet!r}"
                ) from exc

        try:
            return self._adapter(shape).validate_json(data)
        except ValidationError as exc:
            raise ShapeError(
                f"Response did not match {getattr(shape, '__name__', shape)}: {exc}"
            ) from exc

    def _adapter(self, shape: Any) -> TypeAdapter:
        try:
            adapter = self._adapters.get(shape)
        except TypeError:
            # unhashable shape hints are not cached
            return TypeAdapter(shape)
        if adapter is None:
            adapter = TypeAdapter(shape)
            self._adapters[shape] = adapter
        return adapter


__all__ = ["Codec", "JsonCodec"]
