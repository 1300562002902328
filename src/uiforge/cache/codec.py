"""Value codecs for the remote cache tier.

Redis stores bytes; the in-process tier stores the structured value. A codec
converts between the two so that a value read back from either tier is the
same.
"""

from __future__ import annotations

import json
from typing import Any, Generic, Protocol, TypeVar

import orjson
from pydantic import TypeAdapter, ValidationError

from uiforge.cache.exceptions import CacheSerializationError

T = TypeVar("T")

# orjson handles integers in [-2**63, 2**64); wider ones go through the json module
_ORJSON_INT_MIN = -(2**63)
_ORJSON_INT_MAX = 2**64 - 1

# Leading whitespace is valid JSON but never produced by orjson, so it marks
# payloads that have to be decoded by the json module to keep wide integers exact
_WIDE_INT_MARKER = b" "


def _has_wide_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return not _ORJSON_INT_MIN <= value <= _ORJSON_INT_MAX
    if isinstance(value, dict):
        return any(_has_wide_int(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(_has_wide_int(v) for v in value)
    return False


class Codec(Protocol[T]):
    """Encodes values to bytes for Redis and decodes them back."""

    def encode(self, value: T) -> bytes: ...

    def decode(self, data: bytes) -> T: ...


class JsonCodec:
    """JSON codec for arbitrary JSON-representable payloads.

    Integers of any size round-trip exactly.
    """

    def encode(self, value: Any) -> bytes:
        try:
            return orjson.dumps(value)
        except TypeError as e:
            if not _has_wide_int(value):
                raise CacheSerializationError(
                    "Value is not JSON serializable", {"type": type(value).__name__}
                ) from e
        try:
            return _WIDE_INT_MARKER + json.dumps(value, separators=(",", ":")).encode()
        except (TypeError, ValueError) as e:
            raise CacheSerializationError(
                "Value is not JSON serializable", {"type": type(value).__name__}
            ) from e

    def decode(self, data: bytes) -> Any:
        if data.startswith(_WIDE_INT_MARKER):
            try:
                return json.loads(data)
            except ValueError as e:
                raise CacheSerializationError("Cached value is not valid JSON") from e
        try:
            return orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise CacheSerializationError("Cached value is not valid JSON") from e


class ModelCodec(Generic[T]):
    """Codec for a concrete pydantic-compatible type.

    Example:
        codec = ModelCodec(list[SessionSummary])
        await cache.set(key, sessions, codec=codec)
        sessions = await cache.get(key, codec=codec)
    """

    def __init__(self, type_: type[T] | Any):
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)

    def encode(self, value: T) -> bytes:
        try:
            return self._adapter.dump_json(value)
        except ValueError as e:
            raise CacheSerializationError("Value does not match codec type") from e

    def decode(self, data: bytes) -> T:
        try:
            return self._adapter.validate_json(data)
        except ValidationError as e:
            raise CacheSerializationError("Cached value does not match codec type") from e


json_codec = JsonCodec()
