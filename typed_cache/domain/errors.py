from __future__ import annotations


class CacheError(Exception):
    """Base class for every error raised by typed_cache."""


class InvalidDurationError(CacheError, ValueError):
    """An expiration was zero, negative or not a duration at all."""


class EncodeError(CacheError, ValueError):
    """A value could not be turned into a payload."""


class DecodeError(CacheError, ValueError):
    """A stored payload does not parse as the requested type."""


class DriverError(CacheError):
    """The backend failed; the underlying exception is chained as __cause__."""
