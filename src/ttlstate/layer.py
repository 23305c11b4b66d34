from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

import structlog

from ttlstate.cache.results import KeyedResultCache
from ttlstate.config import StateConfig
from ttlstate.dedup.presence import PresenceCache
from ttlstate.gate import RequestGate
from ttlstate.limits.limiter import RateLimiter, RateLimitPolicy
from ttlstate.limits.store import MemoryCounterStore
from ttlstate.sweep.scheduler import CleanupScheduler
from ttlstate.utils.time import Clock, utc_now_s

log = structlog.get_logger("state_layer")


@dataclass(slots=True)
class StateLayer:
    """
    Explicit instances handed to request handlers / event ingestion.
    Both limiters share one counter store; their key prefixes keep them apart.
    """
    cfg: StateConfig
    counters: MemoryCounterStore
    api_limiter: RateLimiter
    translation_limiter: RateLimiter
    dedup: PresenceCache
    results: KeyedResultCache
    schedulers: list[CleanupScheduler] = field(default_factory=list)

    def translation_gate(self) -> RequestGate:
        return RequestGate(
            results=self.results,
            result_ttl_s=self.cfg.cache_ttl_s,
            dedup=self.dedup,
            limiter=self.translation_limiter,
        )


def build_state_layer(cfg: Optional[StateConfig] = None, *, clock: Clock = utc_now_s) -> StateLayer:
    """Construct everything; nothing is started."""
    cfg = cfg or StateConfig()
    counters = MemoryCounterStore(clock=clock)
    dedup = PresenceCache(ttl_s=cfg.dedup_ttl_s, max_size=cfg.dedup_max_size, clock=clock)
    results = KeyedResultCache(clock=clock)
    return StateLayer(
        cfg=cfg,
        counters=counters,
        api_limiter=RateLimiter(counters, RateLimitPolicy(
            name="api",
            max_requests=cfg.api_rate_limit,
            window_ms=cfg.rate_limit_window_ms,
        )),
        translation_limiter=RateLimiter(counters, RateLimitPolicy(
            name="translation",
            max_requests=cfg.translation_rate_limit,
            window_ms=cfg.rate_limit_window_ms,
            key_prefix="translation:",
        )),
        dedup=dedup,
        results=results,
        schedulers=[
            CleanupScheduler(counters, cfg.counter_sweep_interval_s),
            CleanupScheduler(dedup, cfg.dedup_sweep_interval_s),
            CleanupScheduler(results, cfg.cache_sweep_interval_s),
        ],
    )


@asynccontextmanager
async def open_state_layer(
    cfg: Optional[StateConfig] = None, *, clock: Clock = utc_now_s
) -> AsyncIterator[StateLayer]:
    """
    Build the layer and run its sweepers for the duration of the block.
    Every scheduler that was started is stopped on exit, whatever the exit path.
    """
    layer = build_state_layer(cfg, clock=clock)
    started: list[CleanupScheduler] = []
    try:
        for sched in layer.schedulers:
            await sched.start()
            started.append(sched)
        log.info("state_layer_started", sweepers=[s.name for s in started])
        yield layer
    finally:
        for sched in reversed(started):
            await sched.stop()
        log.info("state_layer_stopped")
