from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from typed_cache.application.options import with_expiration
from typed_cache.application.ports import Driver
from typed_cache.application.service import Cache
from typed_cache.infrastructure.config import Settings, load_settings
from typed_cache.infrastructure.logging import configure_logging
from typed_cache.infrastructure.memory_driver import MemoryDriver
from typed_cache.infrastructure.memory_store import CacheStore
from typed_cache.infrastructure.redis_driver import RedisDriver

logger = logging.getLogger(__name__)


def build_driver(settings: Settings) -> Driver:
    if settings.driver == "redis":
        logger.info("Using redis driver at %s", settings.redis_url)
        return RedisDriver.from_url(
            settings.redis_url,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
        )

    logger.info(
        "Using in-process driver (max_items=%d, max_memory_mb=%d)",
        settings.max_items,
        settings.max_memory_mb,
    )
    store = CacheStore(
        max_items=settings.max_items,
        max_memory_mb=settings.max_memory_mb,
        max_value_bytes=settings.max_value_bytes,
        cleanup_interval=settings.cleanup_interval,
    )
    return MemoryDriver(store)


def build_cache(settings: Optional[Settings] = None, configure_logs: bool = False) -> Cache:
    """Build a ``Cache`` from settings, loading them from the environment if omitted.

    With ``configure_logs`` the root logger is set up from ``CACHE_LOG_LEVEL``
    and ``CACHE_LOG_FORMAT`` first, for processes that own their logging.
    """
    settings = settings or load_settings()
    if configure_logs:
        configure_logging(settings.log_level, settings.log_format)
    expiration = timedelta(seconds=settings.default_expiration_seconds)
    return Cache(build_driver(settings), with_expiration(expiration))
