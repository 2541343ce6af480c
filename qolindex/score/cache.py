"""Time-windowed memoization used for statistics, composites and raw series.

Entries are stored as ``(value, stored_at)`` tuples and replaced by a single
dict assignment, so a concurrent reader sees either the old entry or the new
one, never a half-written value. Duplicate concurrent computations of the
same key are allowed: the last write wins.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Generic, Hashable, TypeVar

V = TypeVar("V")


class FreshnessCache(Generic[V]):
    """Key/value cache whose entries expire ``ttl_seconds`` after being stored.

    ``clock`` returns seconds and defaults to ``time.monotonic``; tests pass a
    fake clock to control expiry.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] | None = None) -> None:
        self._ttl = ttl_seconds
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._entries: dict[Hashable, tuple[V, float]] = {}

    def get(self, key: Hashable) -> V | None:
        """Return the cached value, or None when missing or expired.

        Expired entries are dropped on read.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if now - stored_at >= self._ttl:
                del self._entries[key]
                return None
        return value

    def set(self, key: Hashable, value: V) -> None:
        """Store a value and drop any entries that have already expired."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, stored_at) in self._entries.items() if now - stored_at >= self._ttl]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (value, now)

    def invalidate(self, key: Hashable | None = None) -> int:
        """Drop one key, or everything when key is None. Returns entries removed."""
        with self._lock:
            if key is not None:
                return 1 if self._entries.pop(key, None) is not None else 0
            count = len(self._entries)
            self._entries = {}
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def stats(self) -> dict[str, Any]:
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())
        fresh = sum(1 for _, stored_at in entries if now - stored_at < self._ttl)
        return {
            "entries": len(entries),
            "fresh": fresh,
            "ttl_seconds": self._ttl,
        }
