from __future__ import annotations


def require_key(key: object, what: str = "key") -> str:
    """
    Reject empty / non-string keys. These are caller bugs, never a "miss".
    """
    if not isinstance(key, str) or not key:
        raise ValueError(f"{what} must be a non-empty string, got {key!r}")
    return key

def require_positive(value: int | float, what: str) -> None:
    if value <= 0:
        raise ValueError(f"{what} must be > 0, got {value!r}")

def require_non_negative(value: int | float, what: str) -> None:
    if value < 0:
        raise ValueError(f"{what} must be >= 0, got {value!r}")
