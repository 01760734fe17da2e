from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def get_env_int(
    env_name: str,
    default_value: int,
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    raw_value = os.getenv(env_name)
    if raw_value is None:
        value = default_value
    else:
        try:
            value = int(raw_value)
        except ValueError as exc:
            raise ValueError(
                f"{env_name} must be an integer, got {raw_value!r}"
            ) from exc

    if min_value is not None and value < min_value:
        raise ValueError(f"{env_name} must be >= {min_value}, got {value}")
    if max_value is not None and value > max_value:
        raise ValueError(f"{env_name} must be <= {max_value}, got {value}")
    return value


def get_env_choice(env_name: str, default_value: str, choices: tuple[str, ...]) -> str:
    value = os.getenv(env_name, default_value).strip().lower()
    if value not in choices:
        raise ValueError(f"{env_name} must be one of {', '.join(choices)}, got {value!r}")
    return value


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    driver: Literal["memory", "redis"] = "memory"
    default_expiration_seconds: int = Field(default=86400, ge=1)
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: int = Field(default=5, ge=1)
    max_items: int = Field(default=1000, ge=1)
    max_memory_mb: int = Field(default=100, ge=1)
    max_value_bytes: Optional[int] = Field(default=None, ge=1)
    cleanup_interval: int = Field(default=10, ge=1)
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"


def load_settings() -> Settings:
    max_memory_mb = get_env_int("CACHE_MAX_MEMORY_MB", 100, min_value=1)
    max_memory_bytes = max_memory_mb * 1024 * 1024

    return Settings(
        driver=get_env_choice("CACHE_DRIVER", "memory", ("memory", "redis")),
        default_expiration_seconds=get_env_int(
            "CACHE_DEFAULT_EXPIRATION_SECONDS", 86400, min_value=1
        ),
        redis_url=os.getenv("CACHE_REDIS_URL", "redis://localhost:6379/0"),
        redis_socket_timeout=get_env_int("CACHE_REDIS_SOCKET_TIMEOUT", 5, min_value=1),
        max_items=get_env_int("CACHE_MAX_ITEMS", 1000, min_value=1),
        max_memory_mb=max_memory_mb,
        max_value_bytes=get_env_int(
            "CACHE_MAX_VALUE_BYTES",
            max_memory_bytes,
            min_value=1,
            max_value=max_memory_bytes,
        ),
        cleanup_interval=get_env_int("CACHE_CLEANUP_INTERVAL", 10, min_value=1),
        log_level=os.getenv("CACHE_LOG_LEVEL", "INFO").upper(),
        log_format=get_env_choice("CACHE_LOG_FORMAT", "text", ("text", "json")),
    )
