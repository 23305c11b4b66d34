from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

from ttlstate.utils.time import seconds_until

# ---- rate limiting primitives ----

@dataclass(slots=True)
class CounterEntry:
    count: int
    window_end: float  # epoch seconds

@dataclass(slots=True, frozen=True)
class HitInfo:
    """
    Result of one counter increment: hits so far in the current window
    and when that window closes (epoch seconds).
    """
    total_hits: int
    reset_time: float

@dataclass(slots=True, frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    total_hits: int
    reset_time: float  # epoch seconds

    def retry_after_s(self, now: float) -> float:
        return seconds_until(self.reset_time, now)

# ---- memoized results ----

@dataclass(slots=True)
class CacheEntry:
    value: Any
    stored_at: float
    ttl_s: float

@dataclass(slots=True, frozen=True)
class CacheStats:
    hits: int
    misses: int
    hit_rate: float
    size: int

@dataclass(slots=True, frozen=True)
class ConversationItem:
    """One message of the conversation a cached result was computed from."""
    speaker: str
    content: str

# ---- request gate ----

GateStatus = Literal["duplicate", "limited", "hit", "computed"]

@dataclass(slots=True, frozen=True)
class GateOutcome:
    status: GateStatus
    value: Any = None
    decision: Optional[RateLimitDecision] = None
