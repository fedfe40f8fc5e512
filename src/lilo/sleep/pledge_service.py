"""Weekly sleep tax pledges and the pledge gate.

A member must pledge an amount (0..50 dollars) for the active week
before they can log sleep against it. The pledge is a recorded number
only; no money moves.
"""

from __future__ import annotations

import math

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.config import get_settings
from lilo.db.models import Week, WeeklyPledge
from lilo.errors import Conflict, NotFound, PledgeRequired, Unauthorized, ValidationError
from lilo.groups.service import get_membership
from lilo.weeks.service import get_week
from lilo.weeks.week_utils import utc_now

logger = structlog.get_logger()


def validate_pledge_amount(amount: float) -> None:
    """Raise ValidationError unless 0 <= amount <= max pledge."""
    max_amount = get_settings().max_pledge_amount
    if amount is None or math.isnan(amount) or amount < 0 or amount > max_amount:
        raise ValidationError(f"Pledge must be between $0 and ${max_amount:g}")


async def get_pledge(db: AsyncSession, week_id: int, user_id: str) -> WeeklyPledge | None:
    """Get a user's pledge for a week (if any)."""
    result = await db.execute(
        select(WeeklyPledge).where(
            WeeklyPledge.week_id == week_id,
            WeeklyPledge.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def pledge_sleep_tax(
    db: AsyncSession,
    user_id: str,
    week_id: int,
    amount: float,
) -> WeeklyPledge:
    """Record a member's pledge for an active week. One pledge per week."""
    validate_pledge_amount(amount)

    week = await get_week(db, week_id)
    if week is None:
        raise NotFound("Week not found")
    if not week.is_active:
        raise ValidationError("This week has already ended")
    if await get_membership(db, week.group_id, user_id) is None:
        raise Unauthorized("You are not a member of this group")

    if await get_pledge(db, week_id, user_id) is not None:
        raise Conflict("You have already pledged for this week")

    pledge = WeeklyPledge(
        week_id=week_id,
        user_id=user_id,
        amount=float(amount),
        created_at=utc_now(),
    )
    db.add(pledge)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise Conflict("You have already pledged for this week") from e

    logger.info("pledge_recorded", user_id=user_id, week_id=week_id, amount=pledge.amount)
    return pledge


async def require_pledge(db: AsyncSession, week: Week, user_id: str) -> WeeklyPledge:
    """Pledge gate: raise PledgeRequired unless the user pledged for `week`."""
    pledge = await get_pledge(db, week.id, user_id)
    if pledge is None:
        raise PledgeRequired()
    return pledge
