from __future__ import annotations

import logging
from datetime import timedelta
from typing import Mapping, Optional, Sequence

from .memory_store import CacheStore

logger = logging.getLogger(__name__)


class MemoryDriver:
    """Driver over an in-process ``CacheStore``.

    The store may decline a write (value too large, no room after
    eviction); that is not an error, so a read straight after a write can
    miss.
    """

    def __init__(self, store: Optional[CacheStore] = None) -> None:
        self.store = store if store is not None else CacheStore()

    def set(self, key: str, value: str, ttl: timedelta) -> None:
        accepted = self.store.set(key, value, ttl=ttl.total_seconds(), cost=len(value))
        if not accepted:
            logger.debug("Store declined write for key %r (%d bytes)", key, len(value))

    def get(self, key: str) -> Optional[str]:
        value, found = self.store.get(key)
        if not found:
            return None
        return value

    def delete(self, key: str) -> None:
        self.store.delete(key)

    def multi_set(self, mapping: Mapping[str, str], ttl: timedelta) -> None:
        for key, value in mapping.items():
            self.set(key, value, ttl)

    def multi_get(self, keys: Sequence[str]) -> dict[str, str]:
        found: dict[str, str] = {}
        for key in keys:
            value = self.get(key)
            if value is not None:
                found[key] = value
        return found

    def multi_delete(self, keys: Sequence[str]) -> None:
        for key in keys:
            self.store.delete(key)

    def close(self) -> None:
        self.store.stop()

    def __enter__(self) -> "MemoryDriver":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
