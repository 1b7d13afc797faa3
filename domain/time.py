"""
Domain time utilities (pure).

Centralized timestamp validation and lookahead-window helpers.

Behavior and error messages must remain consistent across the domain model.
No function here reads the clock; callers pass `as_of` explicitly.
"""

from __future__ import annotations

from datetime import datetime, timedelta


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the requirement that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def window_end(as_of: datetime, days: int) -> datetime:
    """
    Return the inclusive end of a lookahead window of `days` whole days from `as_of`.

    Raises if `as_of` is not UTC or `days` is negative.
    """

    require_utc_timestamp("as_of", as_of)
    if days < 0:
        raise ValueError("days must be >= 0")
    return as_of + timedelta(days=days)
