from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from ttlstate.utils.time import Clock, utc_now_s, is_expired
from ttlstate.utils.types import CacheEntry, CacheStats
from ttlstate.utils.validate import require_key, require_non_negative

log = structlog.get_logger("result_cache")


class KeyedResultCache:
    """
    Memoized computation results with a per-entry TTL.

    get() returns None on a miss (absent or expired); expired entries are
    dropped on read. None is therefore not a cacheable value.
    delete_by_prefix() is the coarse invalidation hook, fed by
    ttlstate.cache.keys.generate_prefix().
    """
    name = "cache"

    def __init__(self, clock: Clock = utc_now_s):
        self._clock = clock
        self._data: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Optional[Any]:
        require_key(key)
        async with self._lock:
            entry = self._data.get(key)
            if entry is not None:
                if not is_expired(entry.stored_at, entry.ttl_s, self._clock()):
                    self._hits += 1
                    return entry.value
                del self._data[key]
            self._misses += 1
            return None

    async def set(self, key: str, value: Any, ttl_s: float) -> None:
        require_key(key)
        require_non_negative(ttl_s, "ttl_s")
        async with self._lock:
            self._data[key] = CacheEntry(value=value, stored_at=self._clock(), ttl_s=ttl_s)

    async def delete(self, key: str) -> None:
        require_key(key)
        async with self._lock:
            self._data.pop(key, None)

    async def delete_by_prefix(self, prefix: str) -> int:
        require_key(prefix, "prefix")
        async with self._lock:
            doomed = [k for k in self._data if k.startswith(prefix)]
            for k in doomed:
                del self._data[k]
        if doomed:
            log.info("cache_invalidated", prefix=prefix, removed=len(doomed))
        return len(doomed)

    async def clear(self) -> None:
        """Drop everything and reset hit/miss counters."""
        async with self._lock:
            self._data.clear()
            self._hits = 0
            self._misses = 0

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        ttl_s: float,
    ) -> Any:
        """
        Return the cached value for `key`, or await compute() and cache it.
        compute() runs outside the lock; concurrent misses may both compute
        and the last write wins. Exceptions from compute() propagate uncached.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        log.debug("cache_miss", key=key)
        value = await compute()
        if value is not None:
            await self.set(key, value, ttl_s)
        return value

    async def sweep_expired(self) -> int:
        async with self._lock:
            now = self._clock()
            expired = [k for k, e in self._data.items() if is_expired(e.stored_at, e.ttl_s, now)]
            for k in expired:
                del self._data[k]
        return len(expired)

    def stats(self) -> CacheStats:
        total = self._hits + self._misses
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            hit_rate=(self._hits / total) if total else 0.0,
            size=len(self._data),
        )

    def size(self) -> int:
        """Entries currently held, including expired ones not yet swept."""
        return len(self._data)
