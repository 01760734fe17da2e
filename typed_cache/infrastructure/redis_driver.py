from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Any, Mapping, Optional, Sequence

import redis

from typed_cache.domain.errors import DriverError

logger = logging.getLogger(__name__)


def _ttl_millis(ttl: timedelta) -> int:
    # PX rejects 0, so sub-millisecond TTLs round up
    return max(1, math.ceil(ttl.total_seconds() * 1000))


def _as_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


class RedisDriver:
    """Driver over a synchronous redis-py client.

    Batched writes go through one non-transactional pipeline, batched reads
    use ``MGET``. Any ``redis.RedisError`` surfaces as ``DriverError``.
    Timeouts and pooling are whatever the client was built with.
    """

    def __init__(self, client: "redis.Redis") -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisDriver":
        kwargs.setdefault("decode_responses", True)
        logger.debug("Creating redis client for %s", url)
        return cls(redis.Redis.from_url(url, **kwargs))

    def set(self, key: str, value: str, ttl: timedelta) -> None:
        try:
            self.client.set(key, value, px=_ttl_millis(ttl))
        except redis.RedisError as exc:
            raise DriverError(f"redis SET failed for key {key!r}: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except redis.RedisError as exc:
            raise DriverError(f"redis GET failed for key {key!r}: {exc}") from exc
        if value is None:
            return None
        return _as_str(value)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as exc:
            raise DriverError(f"redis DEL failed for key {key!r}: {exc}") from exc

    def multi_set(self, mapping: Mapping[str, str], ttl: timedelta) -> None:
        if not mapping:
            return
        millis = _ttl_millis(ttl)
        try:
            pipe = self.client.pipeline(transaction=False)
            for key, value in mapping.items():
                pipe.set(key, value, px=millis)
            pipe.execute()
        except redis.RedisError as exc:
            raise DriverError(f"redis pipelined SET failed for {len(mapping)} keys: {exc}") from exc

    def multi_get(self, keys: Sequence[str]) -> dict[str, str]:
        if not keys:
            return {}
        keys = list(keys)
        try:
            values = self.client.mget(keys)
        except redis.RedisError as exc:
            raise DriverError(f"redis MGET failed for {len(keys)} keys: {exc}") from exc
        return {key: _as_str(value) for key, value in zip(keys, values) if value is not None}

    def multi_delete(self, keys: Sequence[str]) -> None:
        if not keys:
            return
        try:
            self.client.delete(*keys)
        except redis.RedisError as exc:
            raise DriverError(f"redis DEL failed for {len(keys)} keys: {exc}") from exc

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RedisDriver":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
