import threading
import time
from collections.abc import Callable
from typing import Any

from arcade_filemaker.models import CacheEntry, CacheLookup


class TTLCache:
    """In-memory key/value cache with per-entry time to live.

    Expiry is checked lazily on `get`; there is no background sweep, so expired
    entries stay in memory until they are read or the cache is cleared.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        with self._lock:
            self._entries[key] = CacheEntry(
                value=value, ttl_seconds=ttl_seconds, created_at=self._clock()
            )

    def get(self, key: str) -> CacheLookup:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return CacheLookup(found=False)
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return CacheLookup(found=False)
            return CacheLookup(found=True, value=entry.value)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {"size": len(self._entries), "keys": list(self._entries)}
