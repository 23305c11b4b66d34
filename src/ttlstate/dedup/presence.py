from __future__ import annotations

import asyncio
from collections import OrderedDict

import structlog

from ttlstate.utils.time import Clock, utc_now_s, is_expired
from ttlstate.utils.validate import require_key, require_positive

log = structlog.get_logger("dedup")

DEFAULT_TTL_S = 24 * 60 * 60


class PresenceCache:
    """
    TTL-based "seen recently" cache for webhook event ids.

    Callers check is_duplicate() before processing and call mark_processed()
    only once processing succeeded, so a failed attempt stays retryable.
    An entry older than ttl_s behaves exactly like an absent one.
    """
    name = "dedup"

    def __init__(self, ttl_s: float = DEFAULT_TTL_S, max_size: int = 100_000,
                 clock: Clock = utc_now_s):
        require_positive(ttl_s, "ttl_s")
        require_positive(max_size, "max_size")
        self.ttl_s = ttl_s
        self.max_size = max_size
        self._clock = clock
        self._store: OrderedDict[str, float] = OrderedDict()  # event_id -> seen_at, oldest first
        self._lock = asyncio.Lock()

    async def is_duplicate(self, event_id: str) -> bool:
        require_key(event_id, "event_id")
        async with self._lock:
            seen_at = self._store.get(event_id)
            if seen_at is None:
                return False
            if is_expired(seen_at, self.ttl_s, self._clock()):
                # expired; cleanup
                del self._store[event_id]
                return False
            return True

    async def mark_processed(self, event_id: str) -> None:
        require_key(event_id, "event_id")
        async with self._lock:
            now = self._clock()
            # re-marks move to the back, so the front is always the oldest seen_at
            self._store.pop(event_id, None)
            if len(self._store) >= self.max_size:
                removed = self._drop_expired_head(now)
                if removed:
                    log.info("dedup_pruned", removed=removed, size=len(self._store))
            self._store[event_id] = now

    async def sweep_expired(self) -> int:
        async with self._lock:
            now = self._clock()
            # full scan off the request path; tolerates out-of-order seen_at
            expired = [k for k, seen_at in self._store.items() if is_expired(seen_at, self.ttl_s, now)]
            for k in expired:
                del self._store[k]
        return len(expired)

    def _drop_expired_head(self, now: float) -> int:
        """Pop expired ids off the oldest end; stops at the first live one."""
        removed = 0
        while self._store:
            seen_at = next(iter(self._store.values()))
            if not is_expired(seen_at, self.ttl_s, now):
                break
            self._store.popitem(last=False)
            removed += 1
        return removed

    def size(self) -> int:
        return len(self._store)
