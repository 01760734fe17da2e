from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from typed_cache.domain.validation import DurationLike


@dataclass(frozen=True)
class CacheOptions:
    """Options accepted by ``Cache`` and by every write call.

    At construction ``expiration`` is the default TTL; on a write it
    overrides that default for the one call. Validation happens where the
    options are used, so a bad value fails before any driver call.
    """

    expiration: Optional[DurationLike] = None


def with_expiration(expiration: DurationLike) -> CacheOptions:
    return CacheOptions(expiration=expiration)
