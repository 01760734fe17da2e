from __future__ import annotations

import logging
import time
from collections import OrderedDict
from threading import Event, Lock, Thread
from typing import Any, Callable, Dict, Optional, Tuple

from typed_cache.domain.validation import validate_key

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 1000
DEFAULT_MAX_MEMORY_MB = 100
DEFAULT_CLEANUP_INTERVAL = 10


class CacheEntry:
    def __init__(
        self,
        value: Any,
        cost: int,
        ttl: Optional[float] = None,
        created_at: Optional[float] = None,
    ):
        self.value = value
        self.cost = cost
        self.ttl = None if ttl is not None and ttl <= 0 else ttl
        self.created_at = created_at if created_at is not None else time.monotonic()


def default_cost(value: Any) -> int:
    """Cost of a value is its length, or 1 for values without one."""
    try:
        return max(len(value), 1)
    except TypeError:
        return 1


class CacheStore:
    """Bounded, thread-safe in-process store with LRU eviction and per-entry TTL.

    Writes may be declined when a single value exceeds ``max_value_bytes``
    or when eviction cannot make room; ``set`` then returns False and any
    previous value for the key is dropped.
    """

    def __init__(
        self,
        max_items: Optional[int] = None,
        max_memory_mb: Optional[int] = None,
        cleanup_interval: Optional[float] = None,
        max_value_bytes: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        start_cleaner: bool = True,
    ):
        resolved_max_items = DEFAULT_MAX_ITEMS if max_items is None else max_items
        if resolved_max_items < 1:
            raise ValueError(f"max_items must be >= 1, got {resolved_max_items}")

        resolved_max_memory_mb = DEFAULT_MAX_MEMORY_MB if max_memory_mb is None else max_memory_mb
        if resolved_max_memory_mb < 1:
            raise ValueError(f"max_memory_mb must be >= 1, got {resolved_max_memory_mb}")

        resolved_cleanup_interval = (
            DEFAULT_CLEANUP_INTERVAL if cleanup_interval is None else cleanup_interval
        )
        if resolved_cleanup_interval <= 0:
            raise ValueError(f"cleanup_interval must be > 0, got {resolved_cleanup_interval}")

        self.max_items = resolved_max_items
        self.max_memory_bytes = resolved_max_memory_mb * 1024 * 1024

        resolved_max_value_bytes = self.max_memory_bytes if max_value_bytes is None else max_value_bytes
        if resolved_max_value_bytes < 1:
            raise ValueError(f"max_value_bytes must be >= 1, got {resolved_max_value_bytes}")
        self.max_value_bytes = min(resolved_max_value_bytes, self.max_memory_bytes)

        self.cleanup_interval = resolved_cleanup_interval

        self.store: OrderedDict[str, CacheEntry] = OrderedDict()
        self.current_memory_bytes = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.rejections = 0
        self.lock = Lock()
        self._clock = clock or time.monotonic

        self._stop_event = Event()
        self.cleaner_thread: Optional[Thread] = None
        if start_cleaner:
            self.cleaner_thread = Thread(
                target=self._background_cleanup, name="typed-cache-cleaner", daemon=True
            )
            self.cleaner_thread.start()

    def _is_expired(self, entry: CacheEntry) -> bool:
        if entry.ttl is None:
            return False
        return (self._clock() - entry.created_at) >= entry.ttl

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        """Return ``(value, True)`` for a live entry, ``(None, False)`` otherwise."""
        validate_key(key)
        with self.lock:
            entry = self.store.get(key)
            if entry is None:
                self.misses += 1
                return None, False

            if self._is_expired(entry):
                self.misses += 1
                self._remove_entry(key)
                return None, False

            self.store.move_to_end(key)
            self.hits += 1
            return entry.value, True

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        cost: Optional[int] = None,
    ) -> bool:
        validate_key(key)
        entry_cost = default_cost(value) if cost is None else cost
        with self.lock:
            old_entry = self.store.pop(key, None)
            if old_entry is not None:
                self.current_memory_bytes -= old_entry.cost

            entry = CacheEntry(value, entry_cost, ttl, created_at=self._clock())

            # a declined overwrite leaves the key absent, never at its previous value
            if entry.cost > self.max_value_bytes:
                self.rejections += 1
                return False

            if self.current_memory_bytes + entry.cost > self.max_memory_bytes:
                if not self._evict_to_fit(entry.cost):
                    self.rejections += 1
                    return False

            if old_entry is None:
                while len(self.store) >= self.max_items:
                    if not self._evict_lru():
                        self.rejections += 1
                        return False

            self.store[key] = entry
            self.current_memory_bytes += entry.cost
            self.store.move_to_end(key)
            return True

    def delete(self, key: str) -> bool:
        validate_key(key)
        with self.lock:
            if key in self.store:
                self._remove_entry(key)
                return True
            return False

    def _remove_entry(self, key: str) -> None:
        """Remove entry and update memory tracking"""
        entry = self.store.pop(key, None)
        if entry is not None:
            self.current_memory_bytes -= entry.cost

    def _evict_lru(self) -> bool:
        """Evict least recently used item (O(1) operation)"""
        if not self.store:
            return False

        lru_key = next(iter(self.store))
        self._remove_entry(lru_key)
        self.evictions += 1
        return True

    def _evict_to_fit(self, required_bytes: int) -> bool:
        while self.current_memory_bytes + required_bytes > self.max_memory_bytes and self.store:
            if not self._evict_lru():
                return False
        return self.current_memory_bytes + required_bytes <= self.max_memory_bytes

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self.lock:
            items = list(self.store.items())

        expired_keys = [k for k, v in items if self._is_expired(v)]
        if not expired_keys:
            return 0

        removed = 0
        with self.lock:
            for k in expired_keys:
                entry = self.store.get(k)
                if entry is not None and self._is_expired(entry):
                    self._remove_entry(k)
                    removed += 1
        return removed

    def stats(self) -> Dict[str, Any]:
        """
        Return cache stats.

        Memory usage is the sum of entry costs, which for string payloads is
        their length; key and container overhead are not counted.
        """
        with self.lock:
            lookups = self.hits + self.misses
            return {
                "size": len(self.store),
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "rejections": self.rejections,
                "hit_rate": self.hits / lookups if lookups > 0 else 0,
                "memory_usage_bytes": self.current_memory_bytes,
                "memory_usage_mb": round(self.current_memory_bytes / (1024 * 1024), 2),
                "max_memory_mb": round(self.max_memory_bytes / (1024 * 1024), 2),
                "max_items": self.max_items,
            }

    def _background_cleanup(self) -> None:
        while not self._stop_event.wait(self.cleanup_interval):
            try:
                removed = self.purge_expired()
                if removed:
                    logger.debug("Purged %d expired entries", removed)
            except Exception:
                logger.exception("Error in background cleanup")

    def clear(self) -> None:
        """Clear all cache entries"""
        with self.lock:
            self.store.clear()
            self.current_memory_bytes = 0
            self.hits = 0
            self.misses = 0
            self.evictions = 0
            self.rejections = 0

    def stop(self) -> None:
        """Stop the background cleanup thread"""
        self._stop_event.set()
        if self.cleaner_thread is not None and self.cleaner_thread.is_alive():
            self.cleaner_thread.join(timeout=5)
