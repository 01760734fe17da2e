from __future__ import annotations

from datetime import timedelta
from typing import Union

from .constraints import MAX_KEY_LENGTH
from .errors import InvalidDurationError

DurationLike = Union[timedelta, int, float]


def validate_key(key: str) -> None:
    if not isinstance(key, str):
        raise TypeError("Key must be a string")
    if not key:
        raise ValueError("Key cannot be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise ValueError(f"Key is too long (max {MAX_KEY_LENGTH})")


def to_duration(value: DurationLike) -> timedelta:
    """Coerce a timedelta or a number of seconds into a strictly positive timedelta."""
    if isinstance(value, timedelta):
        duration = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        duration = timedelta(seconds=value)
    else:
        raise InvalidDurationError(f"Expiration must be a timedelta or seconds, got {value!r}")

    if duration <= timedelta(0):
        raise InvalidDurationError(f"Expiration must be positive, got {duration}")
    return duration
