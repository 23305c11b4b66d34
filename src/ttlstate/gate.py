from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

import structlog

from ttlstate.cache.results import KeyedResultCache
from ttlstate.dedup.presence import PresenceCache
from ttlstate.limits.limiter import RateLimiter
from ttlstate.utils.types import GateOutcome

log = structlog.get_logger("gate")


class RequestGate:
    """
    Runs one inbound request/event through the state layer:

      1) dedup     - already-processed event id -> "duplicate"
      2) admission - identity over its window quota -> "limited"
      3) cache     - result already memoized -> "hit"
      4) compute   - run the expensive step, cache it -> "computed"

    The event id is marked processed only after (3) or a successful (4).
    Exceptions from compute() propagate and leave the id unmarked so a
    redelivery is processed again.
    """
    def __init__(
        self,
        *,
        results: KeyedResultCache,
        result_ttl_s: float,
        dedup: Optional[PresenceCache] = None,
        limiter: Optional[RateLimiter] = None,
    ):
        self.results = results
        self.result_ttl_s = result_ttl_s
        self.dedup = dedup
        self.limiter = limiter

    async def run(
        self,
        compute: Callable[[], Awaitable[Any]],
        cache_key: str,
        *,
        event_id: Optional[str] = None,
        identity: Optional[str] = None,
    ) -> GateOutcome:
        if event_id is not None and self.dedup is not None:
            if await self.dedup.is_duplicate(event_id):
                log.info("duplicate_event_skipped", event_id=event_id)
                return GateOutcome(status="duplicate")

        decision = None
        if identity is not None and self.limiter is not None:
            decision = await self.limiter.check(identity)
            if not decision.allowed:
                return GateOutcome(status="limited", decision=decision)

        cached = await self.results.get(cache_key)
        if cached is not None:
            await self._mark(event_id)
            return GateOutcome(status="hit", value=cached, decision=decision)

        value = await compute()
        if value is not None:
            await self.results.set(cache_key, value, self.result_ttl_s)
        await self._mark(event_id)
        return GateOutcome(status="computed", value=value, decision=decision)

    async def _mark(self, event_id: Optional[str]) -> None:
        if event_id is not None and self.dedup is not None:
            await self.dedup.mark_processed(event_id)
