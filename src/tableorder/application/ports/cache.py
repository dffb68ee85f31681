from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...

    def incr(self, key: str, ttl_seconds: int) -> int: ...

    def lock(self, key: str, timeout_seconds: float) -> AbstractContextManager[None]: ...
