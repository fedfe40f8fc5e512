"""Day and week boundary utilities.

All calendar arithmetic uses a single canonical day boundary (UTC).
A week's scoring window is the closed range of wake dates from the
day it started to the day it ended; an active week is open-ended.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from lilo.db.models import Week


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def canonical_today(now: datetime | None = None) -> date:
    """Get today's date on the canonical (UTC) calendar."""
    if now is None:
        now = utc_now()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def _as_date(value: datetime | date) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def week_window(week: Week) -> tuple[date, date | None]:
    """Get (first wake date, last wake date or None) for a week."""
    start = _as_date(week.start_date)
    end = _as_date(week.end_date) if week.end_date is not None else None
    return start, end


def in_window(wake_date: date, window: tuple[date, date | None]) -> bool:
    """Check whether a wake date falls inside a week window."""
    start, end = window
    if wake_date < start:
        return False
    return end is None or wake_date <= end


def day_gap(a: date, b: date) -> int:
    """Absolute number of calendar days between two dates."""
    return abs((a - b).days)
