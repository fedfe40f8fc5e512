"""Sleep streak calculation.

A streak is the number of consecutive wake dates, ending today or
yesterday, on which the user slept at least ``min_hours``. It is a
rolling, cross-week statistic: callers pass a user's whole history.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta
from typing import Protocol

from lilo.weeks.week_utils import canonical_today, day_gap


class NightLike(Protocol):
    wake_date: date
    hours: float


def calculate_streak(
    entries: Iterable[NightLike],
    min_hours: float,
    today: date | None = None,
) -> int:
    """Count the live streak over a user's entries (any order, any range).

    Returns 0 when the most recent entry is older than yesterday, and
    stops at the first calendar gap or the first night under ``min_hours``,
    including the most recent night itself.
    """
    ordered = sorted(entries, key=lambda e: e.wake_date, reverse=True)
    if not ordered:
        return 0

    if today is None:
        today = canonical_today()
    latest = ordered[0].wake_date
    if latest not in (today, today - timedelta(days=1)):
        return 0

    streak = 0
    cursor = latest
    for entry in ordered:
        if day_gap(cursor, entry.wake_date) > 1 and streak > 0:
            break
        if entry.hours < min_hours:
            break
        streak += 1
        cursor = entry.wake_date

    return streak
