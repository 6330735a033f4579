"""In-memory TTL cache for computed weekly availability."""

import threading
import time
from typing import Callable, Generic, Optional, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Key/value map where every entry carries its own expiry timestamp.

    Expiry is checked on read; expired entries are treated as misses and
    dropped. ``purge_expired`` sweeps the rest on demand. All mutations go
    through a lock so the cache can be shared between concurrent requests.

    Usage::

        cache = TTLCache[WeeklyAvailability](default_ttl=300)
        cache.set("weekly_availability_20250421", result)
        cache.get("weekly_availability_20250421")
    """

    def __init__(
        self,
        default_ttl: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, V]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        """Return the live value for *key*, or None."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: V, ttl: Optional[float] = None) -> None:
        """Store *value*, replacing any previous entry (last write wins)."""
        ttl = self.default_ttl if ttl is None else ttl
        expires_at = self._clock() + ttl
        with self._lock:
            self._entries[key] = (expires_at, value)

    def remove(self, key: str) -> bool:
        """Drop *key*. Returns True if an entry was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
