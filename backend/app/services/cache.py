"""In-memory TTL cache for upstream API responses."""

import asyncio
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple


class CacheEntry:
    """A single cache entry with an absolute expiry timestamp."""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, expires_at: float):
        self.value = value
        self.expires_at = expires_at

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache:
    """Least-recently-used cache whose entries expire after a fixed TTL.

    The clock is injectable so expiry can be tested without sleeping.
    Expired entries are evicted lazily on lookup; when ``max_entries`` is
    set, inserting past the bound evicts the least recently used entry.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = asyncio.Lock()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0}

    async def get(self, key: str) -> Optional[Any]:
        """Get a value from cache, or None if missing or expired."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._stats["misses"] += 1
                return None
            if entry.is_expired(self._clock()):
                del self._cache[key]
                self._stats["misses"] += 1
                return None
            self._cache.move_to_end(key)
            self._stats["hits"] += 1
            return entry.value

    async def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous entry for the key."""
        async with self._lock:
            self._cache[key] = CacheEntry(value, self._clock() + self.ttl_seconds)
            self._cache.move_to_end(key)
            if self.max_entries is not None:
                while len(self._cache) > self.max_entries:
                    self._cache.popitem(last=False)
                    self._stats["evictions"] += 1

    async def get_or_set(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Tuple[Any, bool]:
        """Return ``(value, hit)``; on a miss await ``factory`` and cache its result.

        Exceptions from the factory propagate and nothing is stored. A factory
        result of None is returned but not cached.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached, True
        value = await factory()
        if value is not None:
            await self.set(key, value)
        return value, False

    def stats(self) -> Dict[str, int]:
        return {**self._stats, "size": len(self._cache)}

    def __len__(self) -> int:
        return len(self._cache)

    @staticmethod
    def make_key(*parts) -> str:
        """Create a composite key from normalized request parameters."""
        return ":".join(str(part).strip().lower() for part in parts)
