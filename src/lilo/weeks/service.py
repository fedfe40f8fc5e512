"""Week rows: lookup and opening.

Closing a week lives in ``lilo.weeks.rollover``; this module only reads
weeks and opens new ones.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.db.models import Week
from lilo.weeks.week_utils import utc_now


async def get_week(db: AsyncSession, week_id: int) -> Week | None:
    """Get a week by ID."""
    result = await db.execute(select(Week).where(Week.id == week_id))
    return result.scalar_one_or_none()


async def get_active_week(db: AsyncSession, group_id: int) -> Week | None:
    """Get the group's active week without repairing anything."""
    result = await db.execute(
        select(Week)
        .where(Week.group_id == group_id, Week.is_active.is_(True))
        .order_by(Week.week_number.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_last_week_number(db: AsyncSession, group_id: int) -> int:
    """Highest week number the group has used, 0 if none."""
    result = await db.execute(
        select(func.max(Week.week_number)).where(Week.group_id == group_id)
    )
    return result.scalar_one_or_none() or 0


async def open_week(
    db: AsyncSession,
    group_id: int,
    week_number: int,
    now: datetime | None = None,
) -> Week:
    """Insert a new active week for a group."""
    week = Week(
        group_id=group_id,
        week_number=week_number,
        is_active=True,
        start_date=now or utc_now(),
        end_date=None,
    )
    db.add(week)
    await db.flush()
    return week
