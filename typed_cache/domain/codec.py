"""Conversions between caller-visible values and the string payloads drivers store.

Primitives use canonical text: ``"true"``/``"false"`` for booleans and plain
decimal for integers. Structured objects are packed with msgpack, which keeps
bytes, tuples-as-arrays and non-string map keys as they are; only values
msgpack cannot pack itself (pydantic models, dataclasses, dates, enums...) are
reduced through pydantic first. The packed bytes travel in a latin-1 string
so that every byte maps to exactly one character and back.
"""

from __future__ import annotations

import dataclasses
import re
from functools import lru_cache
from typing import Any, Optional

import msgpack
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .constraints import INT64_MAX, INT64_MIN, INT_MAX, INT_MIN
from .errors import DecodeError, EncodeError

PAYLOAD_ENCODING = "latin-1"

_TRUE_TOKENS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_TOKENS = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_DECIMAL = re.compile(r"[+-]?[0-9]+")


def encode_bool(value: bool) -> str:
    if not isinstance(value, bool):
        raise TypeError(f"Expected bool, got {type(value).__name__}")
    return "true" if value else "false"


def decode_bool(payload: str) -> bool:
    if payload in _TRUE_TOKENS:
        return True
    if payload in _FALSE_TOKENS:
        return False
    raise DecodeError(f"Invalid bool payload: {payload!r}")


def _encode_integer(value: int, low: int, high: int, kind: str) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int, got {type(value).__name__}")
    if not low <= value <= high:
        raise EncodeError(f"{kind} out of range: {value}")
    return str(value)


def _decode_integer(payload: str, low: int, high: int, kind: str) -> int:
    # int() alone would also accept whitespace and underscores
    if not isinstance(payload, str) or _DECIMAL.fullmatch(payload) is None:
        raise DecodeError(f"Invalid {kind} payload: {payload!r}")
    value = int(payload)
    if not low <= value <= high:
        raise DecodeError(f"{kind} payload out of range: {payload!r}")
    return value


def encode_int(value: int) -> str:
    return _encode_integer(value, INT_MIN, INT_MAX, "int")


def decode_int(payload: str) -> int:
    return _decode_integer(payload, INT_MIN, INT_MAX, "int")


def encode_int64(value: int) -> str:
    return _encode_integer(value, INT64_MIN, INT64_MAX, "int64")


def decode_int64(payload: str) -> int:
    return _decode_integer(payload, INT64_MIN, INT64_MAX, "int64")


def encode_string(value: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected str, got {type(value).__name__}")
    return value


def decode_string(payload: str) -> str:
    return payload


@lru_cache(maxsize=256)
def _type_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _pack_default(obj: Any) -> Any:
    # msgpack packs whatever this returns, calling back here for nested values
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _type_adapter(type(obj)).dump_python(obj)
    return to_jsonable_python(obj)


def encode_object(obj: Any) -> str:
    if obj is None:
        raise EncodeError("None cannot be stored as an object")
    try:
        packed = msgpack.packb(obj, default=_pack_default, use_bin_type=True)
    except (PydanticSerializationError, TypeError, ValueError, OverflowError) as exc:
        raise EncodeError(f"Cannot encode {type(obj).__name__}: {exc}") from exc
    return packed.decode(PAYLOAD_ENCODING)


def decode_object(payload: str, target: Optional[Any] = None) -> Any:
    """Unpack ``payload`` and, when ``target`` is given, validate it into that type.

    ``target`` may be anything pydantic can build a ``TypeAdapter`` for:
    a ``BaseModel`` subclass, a dataclass, a ``TypedDict`` or a container
    type such as ``dict[int, bytes]``. Without a target the plain unpacked
    data is returned: dicts, lists (msgpack arrays, so tuples come back as
    lists), bytes and scalars.
    """
    try:
        raw = payload.encode(PAYLOAD_ENCODING)
    except (AttributeError, UnicodeEncodeError) as exc:
        raise DecodeError("Object payload is not a latin-1 string") from exc

    try:
        data = msgpack.unpackb(raw, raw=False, strict_map_key=False)
    except (msgpack.UnpackException, ValueError, TypeError) as exc:
        raise DecodeError(f"Malformed object payload: {exc}") from exc

    if target is None:
        return data
    try:
        return _type_adapter(target).validate_python(data)
    except ValidationError as exc:
        raise DecodeError(f"Payload does not match {target!r}: {exc}") from exc
