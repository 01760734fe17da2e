"""Typed cache facade over pluggable string key/value drivers."""

from typed_cache.application.options import CacheOptions, with_expiration
from typed_cache.application.ports import Driver
from typed_cache.application.service import Cache
from typed_cache.domain.errors import (
    CacheError,
    DecodeError,
    DriverError,
    EncodeError,
    InvalidDurationError,
)
from typed_cache.infrastructure.memory_driver import MemoryDriver
from typed_cache.infrastructure.memory_store import CacheStore
from typed_cache.infrastructure.redis_driver import RedisDriver
from typed_cache.main import build_cache, build_driver

__all__ = [
    "Cache",
    "CacheError",
    "CacheOptions",
    "CacheStore",
    "DecodeError",
    "Driver",
    "DriverError",
    "EncodeError",
    "InvalidDurationError",
    "MemoryDriver",
    "RedisDriver",
    "build_cache",
    "build_driver",
    "with_expiration",
]
