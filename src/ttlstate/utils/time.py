from __future__ import annotations

import time
from typing import Callable

# Zero-arg callable returning epoch seconds; stores take one so tests can drive time.
Clock = Callable[[], float]

# --- fast, allocation-free time helpers ---

def utc_now_s() -> float:
    """Unix epoch seconds (float)."""
    return time.time()

def ms_to_s(ms: int | float) -> float:
    """Milliseconds -> seconds (float)."""
    return float(ms) / 1000.0

def seconds_until(ts_target: float, now: float) -> float:
    """Non-negative time until target (clamped at 0)."""
    return max(0.0, ts_target - now)

def is_expired(stored_at: float, ttl_s: float, now: float) -> bool:
    """True once an entry of age (now - stored_at) has reached its ttl."""
    return now - stored_at >= ttl_s
