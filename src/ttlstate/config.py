from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass(slots=True)
class StateConfig:
    # rate limiting (fixed window)
    rate_limit_window_ms: int = 60_000
    api_rate_limit: int = 60            # requests / window / identity
    translation_rate_limit: int = 10    # LLM-backed endpoints are tighter
    # webhook dedup
    dedup_ttl_s: float = 24 * 60 * 60
    dedup_max_size: int = 100_000
    # memoized results
    cache_ttl_s: float = 3600
    # sweeps (memory reclamation only)
    counter_sweep_interval_s: float = 60
    dedup_sweep_interval_s: float = 60 * 60
    cache_sweep_interval_s: float = 60

    def __post_init__(self) -> None:
        for name in _POSITIVE_FIELDS:
            _check_range(name, getattr(self, name), positive=True)
        _check_range("cache_ttl_s", self.cache_ttl_s, positive=False)


# everything except cache_ttl_s, where 0 means "store already expired" (caching off)
_POSITIVE_FIELDS = (
    "rate_limit_window_ms",
    "api_rate_limit",
    "translation_rate_limit",
    "dedup_ttl_s",
    "dedup_max_size",
    "counter_sweep_interval_s",
    "dedup_sweep_interval_s",
    "cache_sweep_interval_s",
)


def _env_int(name: str, default: int, *, positive: bool = True) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        v = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    _check_range(name, v, positive)
    return v

def _env_float(name: str, default: float, *, positive: bool = True) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        v = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    _check_range(name, v, positive)
    return v

def _check_range(name: str, v: int | float, positive: bool) -> None:
    if positive and v <= 0:
        raise ValueError(f"{name} must be > 0, got {v}")
    if v < 0:
        raise ValueError(f"{name} must be non-negative, got {v}")


def config_from_env(dotenv_path: Optional[str] = None) -> StateConfig:
    """
    Build StateConfig from environment (after loading .env if present).
    Unset vars fall back to defaults; malformed or out-of-range ones raise
    ValueError naming the variable.
    """
    load_dotenv(dotenv_path)
    d = StateConfig()
    return StateConfig(
        rate_limit_window_ms=_env_int("RATE_LIMIT_WINDOW_MS", d.rate_limit_window_ms),
        api_rate_limit=_env_int("RATE_LIMIT_PER_MINUTE", d.api_rate_limit),
        translation_rate_limit=_env_int("TRANSLATION_RATE_LIMIT_PER_MINUTE", d.translation_rate_limit),
        dedup_ttl_s=_env_float("DEDUP_TTL_S", d.dedup_ttl_s),
        dedup_max_size=_env_int("DEDUP_MAX_SIZE", d.dedup_max_size),
        cache_ttl_s=_env_float("CACHE_TTL_S", d.cache_ttl_s, positive=False),
        counter_sweep_interval_s=_env_float("COUNTER_SWEEP_INTERVAL_S", d.counter_sweep_interval_s),
        dedup_sweep_interval_s=_env_float("DEDUP_SWEEP_INTERVAL_S", d.dedup_sweep_interval_s),
        cache_sweep_interval_s=_env_float("CACHE_SWEEP_INTERVAL_S", d.cache_sweep_interval_s),
    )
