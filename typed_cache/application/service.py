from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Mapping, Optional, TypeVar

from typed_cache.domain import codec
from typed_cache.domain.constraints import DEFAULT_EXPIRATION
from typed_cache.domain.validation import to_duration, validate_key

from .options import CacheOptions
from .ports import Driver

T = TypeVar("T")


@dataclass(frozen=True, init=False)
class Cache:
    """Typed facade over a ``Driver``.

    Values go through ``typed_cache.domain.codec`` on the way in and out, so
    the driver only ever sees strings. A missing key reads as ``None`` (or
    is left out of a multi-get result); malformed payloads raise
    ``DecodeError``; driver failures propagate unchanged.
    """

    driver: Driver
    default_expiration: timedelta

    def __init__(self, driver: Driver, options: Optional[CacheOptions] = None) -> None:
        expiration: Any = DEFAULT_EXPIRATION
        if options is not None and options.expiration is not None:
            expiration = options.expiration
        object.__setattr__(self, "driver", driver)
        object.__setattr__(self, "default_expiration", to_duration(expiration))

    # reads

    def get_string(self, key: str) -> Optional[str]:
        return self._get(key, codec.decode_string)

    def get_bool(self, key: str) -> Optional[bool]:
        return self._get(key, codec.decode_bool)

    def get_int(self, key: str) -> Optional[int]:
        return self._get(key, codec.decode_int)

    def get_int64(self, key: str) -> Optional[int]:
        return self._get(key, codec.decode_int64)

    def get_object(self, key: str, target: Optional[type[T]] = None) -> Optional[T]:
        """Return the object stored under ``key`` as ``target``, or ``None`` on a miss."""
        return self._get(key, lambda payload: codec.decode_object(payload, target))

    def get_multi_string(self, *keys: str) -> dict[str, str]:
        return self._get_multi(keys, codec.decode_string)

    def get_multi_int(self, *keys: str) -> dict[str, int]:
        return self._get_multi(keys, codec.decode_int)

    def get_multi_int64(self, *keys: str) -> dict[str, int]:
        return self._get_multi(keys, codec.decode_int64)

    def get_multi_object(self, *keys: str, target: Optional[type[T]] = None) -> dict[str, T]:
        """Decode every present key into a fresh ``target``; absent keys are omitted."""
        return self._get_multi(keys, lambda payload: codec.decode_object(payload, target))

    # writes

    def set_string(self, key: str, value: str, options: Optional[CacheOptions] = None) -> None:
        self._set(key, codec.encode_string(value), options)

    def set_bool(self, key: str, value: bool, options: Optional[CacheOptions] = None) -> None:
        self._set(key, codec.encode_bool(value), options)

    def set_int(self, key: str, value: int, options: Optional[CacheOptions] = None) -> None:
        self._set(key, codec.encode_int(value), options)

    def set_int64(self, key: str, value: int, options: Optional[CacheOptions] = None) -> None:
        self._set(key, codec.encode_int64(value), options)

    def set_object(self, key: str, value: Any, options: Optional[CacheOptions] = None) -> None:
        self._set(key, codec.encode_object(value), options)

    def set_multi_string(
        self, mapping: Mapping[str, str], options: Optional[CacheOptions] = None
    ) -> None:
        self._set_multi(mapping, codec.encode_string, options)

    def set_multi_int(
        self, mapping: Mapping[str, int], options: Optional[CacheOptions] = None
    ) -> None:
        self._set_multi(mapping, codec.encode_int, options)

    def set_multi_int64(
        self, mapping: Mapping[str, int], options: Optional[CacheOptions] = None
    ) -> None:
        self._set_multi(mapping, codec.encode_int64, options)

    def set_multi_object(
        self, mapping: Mapping[str, Any], options: Optional[CacheOptions] = None
    ) -> None:
        self._set_multi(mapping, codec.encode_object, options)

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        for key in keys:
            validate_key(key)
        if len(keys) == 1:
            self.driver.delete(keys[0])
        else:
            self.driver.multi_delete(list(keys))

    # plumbing

    def _resolve_expiration(self, options: Optional[CacheOptions]) -> timedelta:
        if options is None or options.expiration is None:
            return self.default_expiration
        return to_duration(options.expiration)

    def _get(self, key: str, decode: Callable[[str], T]) -> Optional[T]:
        validate_key(key)
        payload = self.driver.get(key)
        if payload is None:
            return None
        return decode(payload)

    def _get_multi(self, keys: tuple[str, ...], decode: Callable[[str], T]) -> dict[str, T]:
        if not keys:
            return {}
        for key in keys:
            validate_key(key)
        payloads = self.driver.multi_get(list(keys))
        return {key: decode(payload) for key, payload in payloads.items()}

    def _set(self, key: str, payload: str, options: Optional[CacheOptions]) -> None:
        validate_key(key)
        ttl = self._resolve_expiration(options)
        self.driver.set(key, payload, ttl)

    def _set_multi(
        self,
        mapping: Mapping[str, Any],
        encode: Callable[[Any], str],
        options: Optional[CacheOptions],
    ) -> None:
        ttl = self._resolve_expiration(options)
        payloads: dict[str, str] = {}
        for key, value in mapping.items():
            validate_key(key)
            payloads[key] = encode(value)
        if not payloads:
            return
        self.driver.multi_set(payloads, ttl)
