"""Time math shared by the lab console and the inventory overdue list.

All functions take an optional ``now`` so callers (and tests) can pin the
clock. Naive datetimes are treated as UTC because SQLite hands them back
without an offset.
"""
import math
from datetime import datetime, timedelta
from typing import Optional

import pytz

MINUTE = timedelta(minutes=1)


def utcnow() -> datetime:
    return datetime.now(pytz.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def _now(now: Optional[datetime]) -> datetime:
    return ensure_utc(now) if now is not None else utcnow()


def _round_half_up(value: float) -> int:
    # Matches the dashboard's Math.round: -10.5 -> -10, 10.5 -> 11
    return int(math.floor(value + 0.5))


def remaining_minutes(completion: datetime, now: Optional[datetime] = None) -> int:
    """Whole minutes until ``completion``. Negative once overdue; never clamped."""
    delta = ensure_utc(completion) - _now(now)
    return _round_half_up(delta / MINUTE)


def progress_percent(
    start: Optional[datetime],
    completion: datetime,
    estimated_duration_minutes: Optional[float] = None,
    now: Optional[datetime] = None,
) -> float:
    """Percent of the job done, clamped to [0, 100].

    The estimate wins when given; otherwise the duration is ``completion - start``.
    """
    completion = ensure_utc(completion)
    if estimated_duration_minutes is not None:
        duration = timedelta(minutes=estimated_duration_minutes)
    elif start is not None:
        duration = completion - ensure_utc(start)
    else:
        raise ValueError("progress_percent needs a start time or an estimated duration")

    if duration <= timedelta(0):
        return 100.0

    left = completion - _now(now)
    percent = (1 - left / duration) * 100
    return max(0.0, min(100.0, percent))


def is_overdue(due: datetime, now: Optional[datetime] = None) -> bool:
    return _now(now) > ensure_utc(due)


def intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Half-open interval overlap: [start1, end1) and [start2, end2)."""
    return ensure_utc(start1) < ensure_utc(end2) and ensure_utc(start2) < ensure_utc(end1)
