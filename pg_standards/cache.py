"""Small TTL cache for per-table "standards applied" lookups."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable


class StandardsCache:
    """Key/value store whose entries expire after `ttl` seconds.

    Expired entries are dropped lazily on access; there is no sweeper.
    A ttl of 0 or less disables caching.
    """

    def __init__(self, ttl: float = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, Any]] = {}

    @staticmethod
    def key_for(table: str) -> str:
        return f"pg_standards:standards:{table}"

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def set(self, key: str, value: Any) -> None:
        if self.ttl <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl, value)

    def remember(self, key: str, factory: Callable[[], Any]) -> Any:
        """Return the cached value, computing and storing it on a miss."""
        sentinel = object()
        value = self.get(key, sentinel)
        if value is sentinel:
            value = factory()
            self.set(key, value)
        return value

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
