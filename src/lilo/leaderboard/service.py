"""Leaderboard service: batch-load a week's rows, rank in memory.

Three reads per request regardless of group size: members (with
profiles), the members' sleep history, and the week's pledges. Nothing
is cached; standings are recomputed on every call.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.config import get_settings
from lilo.db.models import SleepEntry, Week, WeeklyPledge
from lilo.groups.service import get_group_members
from lilo.leaderboard.ranking import LeaderboardEntry, build_leaderboard
from lilo.weeks.week_utils import week_window

logger = logging.getLogger(__name__)


async def get_week_in_group(db: AsyncSession, group_id: int, week_id: int) -> Week | None:
    """Get a week by ID, only if it belongs to the group."""
    result = await db.execute(
        select(Week).where(Week.id == week_id, Week.group_id == group_id)
    )
    return result.scalar_one_or_none()


async def get_leaderboard(
    db: AsyncSession,
    group_id: int,
    week_id: int,
    today: date | None = None,
) -> list[LeaderboardEntry]:
    """Ranked standings for a group's week. Empty if the week can't be resolved."""
    week = await get_week_in_group(db, group_id, week_id)
    if week is None:
        logger.info("Leaderboard requested for unknown week %d in group %d", week_id, group_id)
        return []

    members = [user for _, user in await get_group_members(db, group_id)]
    if not members:
        return []
    member_ids = [m.id for m in members]

    entries_result = await db.execute(
        select(SleepEntry).where(SleepEntry.user_id.in_(member_ids))
    )
    pledges_result = await db.execute(
        select(WeeklyPledge).where(WeeklyPledge.week_id == week.id)
    )

    return build_leaderboard(
        members,
        week_window(week),
        entries_result.scalars().all(),
        pledges_result.scalars().all(),
        min_streak_hours=get_settings().min_streak_hours,
        today=today,
    )
