"""In-process TTL store.

The fallback tier behind Redis and the only tier when no remote endpoint is
configured. Values are held as-is (no serialization); expiry is checked
lazily on access, there is no background sweep.
"""

from __future__ import annotations

import fnmatch
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from uiforge.cache.keys import CacheTTL


@dataclass(slots=True)
class CacheEntry:
    """A stored value and the monotonic time at which it expires."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLStore:
    """Key/value map with per-entry expiration.

    Every operation holds a lock, so ``set`` replaces an entry atomically
    with respect to concurrent ``get``/``delete`` from worker threads.
    """

    def __init__(
        self,
        default_ttl: int = CacheTTL.DEFAULT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _live_entry(self, key: str) -> CacheEntry | None:
        # Caller holds the lock.
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Any | None:
        """Return the stored value, or None if absent or expired."""
        with self._lock:
            entry = self._live_entry(key)
            return None if entry is None else entry.value

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store ``value`` under ``key``, overwriting any existing entry."""
        ttl_seconds = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
        return True

    def delete(self, key: str) -> bool:
        """Remove ``key``. Deleting an absent key still succeeds."""
        with self._lock:
            self._entries.pop(key, None)
        return True

    def exists(self, key: str) -> bool:
        """Check presence with the same expiry rule as ``get``."""
        with self._lock:
            return self._live_entry(key) is not None

    def clear(self) -> bool:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
        return True

    def keys(self, pattern: str = "*") -> list[str]:
        """Return live keys matching a Redis-style glob pattern.

        Expired entries found along the way are removed.
        """
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]

    def ttl(self, key: str) -> float | None:
        """Seconds left before ``key`` expires, or None if absent."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return entry.expires_at - self._clock()

    def __len__(self) -> int:
        return len(self.keys())
