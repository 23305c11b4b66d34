from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from ttlstate.limits.store import CounterStore
from ttlstate.utils.types import RateLimitDecision
from ttlstate.utils.validate import require_key, require_positive

log = structlog.get_logger("rate_limiter")


@dataclass(slots=True)
class RateLimitPolicy:
    """
    Admit at most max_requests per identity per fixed window.
    key_prefix namespaces identities so several policies can share one store
    (e.g. "translation:" keeps LLM quota apart from the general API quota).
    """
    name: str = "api"
    max_requests: int = 60
    window_ms: int = 60_000
    key_prefix: str = ""


def rate_limit_key(
    *,
    user_id: Optional[str] = None,
    slack_user_id: Optional[str] = None,
    ip: Optional[str] = None,
    prefix: str = "",
) -> str:
    """
    Identity for rate limiting, most specific first:
    authenticated user -> slack user -> client ip ("unknown" when missing).
    """
    if user_id:
        ident = f"user:{user_id}"
    elif slack_user_id:
        ident = f"slack:{slack_user_id}"
    else:
        ident = f"ip:{ip or 'unknown'}"
    return f"{prefix}{ident}"


class RateLimiter:
    def __init__(self, store: CounterStore, policy: Optional[RateLimitPolicy] = None):
        self.store = store
        self.policy = policy or RateLimitPolicy()
        require_positive(self.policy.max_requests, "max_requests")
        require_positive(self.policy.window_ms, "window_ms")

    def _key(self, key: str) -> str:
        return f"{self.policy.key_prefix}{require_key(key)}"

    async def check(self, key: str) -> RateLimitDecision:
        """
        Count one request against `key` and decide admission.
        The hit is counted even when the request is rejected.
        """
        hit = await self.store.increment(self._key(key), self.policy.window_ms)
        limit = self.policy.max_requests
        decision = RateLimitDecision(
            allowed=hit.total_hits <= limit,
            limit=limit,
            remaining=max(0, limit - hit.total_hits),
            total_hits=hit.total_hits,
            reset_time=hit.reset_time,
        )
        if not decision.allowed:
            log.info("rate_limited", policy=self.policy.name, key=key,
                     hits=hit.total_hits, limit=limit, reset_time=hit.reset_time)
        return decision

    async def refund(self, key: str) -> None:
        """Give back one hit (e.g. a request that should not have counted)."""
        await self.store.decrement(self._key(key))

    async def reset(self, key: str) -> None:
        await self.store.reset_key(self._key(key))
