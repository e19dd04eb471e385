"""Expiring key-value store.

Entries carry their own deadline and are evicted lazily on read, or in bulk
by sweep(). Instances are passed to their users explicitly so the backing
store can be swapped for a persistent or shared one.
"""
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class ExpiringStore:
    """Thread-safe in-memory map with per-entry time-to-live."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key until ttl_seconds from now."""
        if ttl_seconds <= 0:
            self.delete(key)
            return
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for key, evicting it if expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, exp) in self._entries.items() if exp <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
