from __future__ import annotations

from datetime import timedelta
from typing import Mapping, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class Driver(Protocol):
    """Backend adapter storing string values under string keys with a TTL.

    ``get`` returns ``None`` for an absent key and ``multi_get`` omits absent
    keys; neither is an error. Backend failures raise ``DriverError``.
    Deletes are idempotent and batch operations are not atomic.
    """

    def set(self, key: str, value: str, ttl: timedelta) -> None: ...

    def get(self, key: str) -> Optional[str]: ...

    def delete(self, key: str) -> None: ...

    def multi_set(self, mapping: Mapping[str, str], ttl: timedelta) -> None: ...

    def multi_get(self, keys: Sequence[str]) -> dict[str, str]: ...

    def multi_delete(self, keys: Sequence[str]) -> None: ...
