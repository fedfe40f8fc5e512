"""Sleep entry store and sleep logging.

One entry per (user, wake date). Logging the same date again overwrites
the hours and the logged-at time, so retrying a log is always safe.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime

import structlog
from sqlalchemy import Select, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.config import get_settings
from lilo.db.models import GroupMember, SleepEntry, Week
from lilo.errors import NotFound, Unauthorized, ValidationError
from lilo.groups.service import get_membership
from lilo.sleep.pledge_service import require_pledge
from lilo.sleep.streaks import calculate_streak
from lilo.weeks.service import get_week
from lilo.weeks.week_utils import canonical_today, utc_now, week_window

logger = structlog.get_logger()


@dataclass
class UserStats:
    """A user's entries for one week plus their cross-week streak."""

    entries: list[SleepEntry] = field(default_factory=list)
    streak: int = 0


# ---------------------------------------------------------------------------
# Entry store
# ---------------------------------------------------------------------------


async def get_entry(db: AsyncSession, user_id: str, wake_date: date) -> SleepEntry | None:
    result = await db.execute(
        select(SleepEntry).where(
            SleepEntry.user_id == user_id,
            SleepEntry.wake_date == wake_date,
        )
    )
    return result.scalar_one_or_none()


async def upsert_entry(
    db: AsyncSession,
    user_id: str,
    wake_date: date,
    hours: float,
    logged_at: datetime | None = None,
) -> SleepEntry:
    """Insert or overwrite the entry for (user, wake date) in one statement."""
    insert = sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert
    stmt = insert(SleepEntry).values(
        user_id=user_id,
        wake_date=wake_date,
        hours=hours,
        logged_at=logged_at or utc_now(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[SleepEntry.user_id, SleepEntry.wake_date],
        set_={
            "hours": stmt.excluded.hours,
            "logged_at": stmt.excluded.logged_at,
        },
    ).returning(SleepEntry)

    result = await db.execute(stmt, execution_options={"populate_existing": True})
    return result.scalar_one()


def _window_filter(stmt: Select, week: Week) -> Select:
    start, end = week_window(week)
    stmt = stmt.where(SleepEntry.wake_date >= start)
    if end is not None:
        stmt = stmt.where(SleepEntry.wake_date <= end)
    return stmt


# ---------------------------------------------------------------------------
# Logging sleep
# ---------------------------------------------------------------------------


def validate_sleep(wake_date: date, hours: float, today: date | None = None) -> None:
    """Reject impossible nights before anything is written."""
    max_hours = get_settings().max_sleep_hours
    if hours is None or math.isnan(hours) or hours < 0 or hours > max_hours:
        raise ValidationError(f"Hours must be between 0 and {max_hours:g}")
    if today is None:
        today = canonical_today()
    if wake_date > today:
        raise ValidationError("You can't log sleep for a day that hasn't happened yet")


async def log_sleep(
    db: AsyncSession,
    user_id: str,
    wake_date: date,
    hours: float,
    week_id: int | None = None,
    today: date | None = None,
) -> SleepEntry:
    """Log a night of sleep.

    With a `week_id` the write is tied to that group week: the week must
    be active, the user must be a member, and the pledge gate must pass.
    Without one the gate is skipped.
    """
    validate_sleep(wake_date, hours, today)

    if week_id is not None:
        week = await get_week(db, week_id)
        if week is None:
            raise NotFound("Week not found")
        if not week.is_active:
            raise ValidationError("This week has already ended")
        if await get_membership(db, week.group_id, user_id) is None:
            raise Unauthorized("You are not a member of this group")
        await require_pledge(db, week, user_id)

    entry = await upsert_entry(db, user_id, wake_date, float(hours))
    logger.info("sleep_logged", user_id=user_id, wake_date=wake_date.isoformat(), hours=entry.hours, week_id=week_id)
    return entry


# ---------------------------------------------------------------------------
# Reads (degrade to empty when the week can't be resolved)
# ---------------------------------------------------------------------------


async def get_entries_for_week(db: AsyncSession, week_id: int) -> list[SleepEntry]:
    """All entries logged by the week's group members inside the week window."""
    week = await get_week(db, week_id)
    if week is None:
        return []

    members = select(GroupMember.user_id).where(GroupMember.group_id == week.group_id)
    stmt = _window_filter(
        select(SleepEntry).where(SleepEntry.user_id.in_(members)),
        week,
    ).order_by(SleepEntry.wake_date.asc(), SleepEntry.id.asc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_my_entries_for_week(db: AsyncSession, user_id: str, week_id: int) -> list[SleepEntry]:
    """A user's entries inside the week window, oldest first."""
    week = await get_week(db, week_id)
    if week is None:
        return []

    stmt = _window_filter(
        select(SleepEntry).where(SleepEntry.user_id == user_id),
        week,
    ).order_by(SleepEntry.wake_date.asc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_user_history(db: AsyncSession, user_id: str) -> list[SleepEntry]:
    """Every entry the user has logged, newest first."""
    result = await db.execute(
        select(SleepEntry)
        .where(SleepEntry.user_id == user_id)
        .order_by(SleepEntry.wake_date.desc())
    )
    return list(result.scalars().all())


async def get_user_stats(
    db: AsyncSession,
    user_id: str,
    week_id: int,
    today: date | None = None,
) -> UserStats:
    """A user's week entries (newest first) and their streak over all history."""
    week = await get_week(db, week_id)
    if week is None:
        return UserStats()

    stmt = _window_filter(
        select(SleepEntry).where(SleepEntry.user_id == user_id),
        week,
    ).order_by(SleepEntry.wake_date.desc())
    result = await db.execute(stmt)
    entries = list(result.scalars().all())

    history = await get_user_history(db, user_id)
    streak = calculate_streak(history, get_settings().min_streak_hours, today=today)
    return UserStats(entries=entries, streak=streak)
