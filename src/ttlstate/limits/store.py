from __future__ import annotations

import asyncio
from typing import Dict, Protocol

from ttlstate.utils.time import Clock, utc_now_s, ms_to_s
from ttlstate.utils.types import CounterEntry, HitInfo
from ttlstate.utils.validate import require_key, require_positive


class CounterStore(Protocol):
    """
    Backend for fixed-window rate limiting. RateLimiter only ever talks to
    this protocol, so an externally-backed store can replace the in-memory one.
    """
    async def increment(self, key: str, window_ms: int) -> HitInfo: ...

    async def decrement(self, key: str) -> None: ...

    async def reset_key(self, key: str) -> None: ...


class MemoryCounterStore:
    """
    In-process fixed-window counters, one entry per identity.

    - increment() opens a new window when none is live (count=1,
      reset_time=now+window), otherwise bumps the count and keeps reset_time.
      Fixed, not sliding: a burst straddling a boundary may see up to 2x limit.
    - decrement() floors at zero; hitting zero drops the entry so the next
      increment starts a fresh window.
    - Stale entries are evicted lazily here and periodically by sweep_expired().

    All operations hold one store-wide lock, including the sweep.
    """
    name = "counters"

    def __init__(self, clock: Clock = utc_now_s):
        self._clock = clock
        self._hits: Dict[str, CounterEntry] = {}
        self._lock = asyncio.Lock()

    async def increment(self, key: str, window_ms: int) -> HitInfo:
        require_key(key)
        require_positive(window_ms, "window_ms")
        async with self._lock:
            now = self._clock()
            entry = self._hits.get(key)
            if entry is not None and now < entry.window_end:
                entry.count += 1
                return HitInfo(total_hits=entry.count, reset_time=entry.window_end)

            # absent or window elapsed -> fresh window
            reset_time = now + ms_to_s(window_ms)
            self._hits[key] = CounterEntry(count=1, window_end=reset_time)
            return HitInfo(total_hits=1, reset_time=reset_time)

    async def decrement(self, key: str) -> None:
        require_key(key)
        async with self._lock:
            entry = self._hits.get(key)
            if entry is None:
                return
            if self._clock() >= entry.window_end:
                # stale window counts as absent
                del self._hits[key]
                return
            if entry.count > 0:
                entry.count -= 1
            if entry.count == 0:
                del self._hits[key]

    async def reset_key(self, key: str) -> None:
        require_key(key)
        async with self._lock:
            self._hits.pop(key, None)

    async def sweep_expired(self) -> int:
        async with self._lock:
            now = self._clock()
            expired = [k for k, e in self._hits.items() if now >= e.window_end]
            for k in expired:
                del self._hits[k]
        return len(expired)

    def size(self) -> int:
        """Entries currently held, including stale ones not yet swept."""
        return len(self._hits)
