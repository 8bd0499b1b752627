"""Calendar-day helpers shared by the snapshot services."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta

Clock = Callable[[], date]


def utc_today() -> date:
    return datetime.now(UTC).date()


def as_day(value: date | datetime) -> date:
    """Truncate a timestamp to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def trailing_start(today: date, days: int) -> date:
    """First day included in a trailing window of ``days`` days ending today."""
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")
    return today - timedelta(days=days)
