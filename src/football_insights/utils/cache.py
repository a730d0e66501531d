"""In-process TTL cache with an injectable clock."""

import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """Key → (value, expiry) store.

    Expired values are not returned by :meth:`get` but stay available via
    :meth:`get_stale` so callers can fall back to the last good snapshot when
    the upstream source is unavailable.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        """Return a fresh value or None if missing/expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                return None
            return value

    def get_stale(self, key: Hashable) -> Optional[Any]:
        """Return the last stored value regardless of expiry."""
        with self._lock:
            entry = self._entries.get(key)
            return entry[0] if entry else None

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def is_fresh(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
