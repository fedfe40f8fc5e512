"""Week rollover: state machine and repair pass.

State progression per group:
    Active(n) -> Closed(n, winner) -> Active(n + 1)

Closing week n and opening week n + 1 commit as one transaction. The
close is a conditional update guarded by the row's current `is_active`
flag, so two concurrent rollovers of the same week cannot both succeed.
A partial unique index on the store refuses a second active week.

If a group is ever found with no active week (a store without
multi-row transactions, a manual edit), the repair pass opens the next
week before the group is read.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.db.models import Group, Week
from lilo.errors import Conflict, NotFound, RolloverError, Unauthorized
from lilo.groups.service import get_group
from lilo.leaderboard.ranking import pick_outcome
from lilo.leaderboard.service import get_leaderboard, get_week_in_group
from lilo.weeks.service import get_active_week, get_last_week_number, open_week
from lilo.weeks.week_utils import utc_now

logger = logging.getLogger(__name__)

ACTIVE = "active"
CLOSED = "closed"

VALID_TRANSITIONS: dict[str, list[str]] = {
    ACTIVE: [CLOSED],
    CLOSED: [],
}


def week_state(week: Week) -> str:
    return ACTIVE if week.is_active else CLOSED


def validate_transition(current_state: str, target_state: str) -> None:
    """Validate a week state transition. Raises Conflict if invalid."""
    valid = VALID_TRANSITIONS.get(current_state, [])
    if target_state not in valid:
        if current_state == CLOSED:
            raise Conflict("This week has already ended")
        raise Conflict(f"Invalid transition: {current_state} -> {target_state}")


async def end_week(
    db: AsyncSession,
    user_id: str,
    group_id: int,
    week_id: int,
    now: datetime | None = None,
) -> Week:
    """Close the group's active week, record its outcome, open the next one.

    Only the group owner may end a week. Returns the newly opened week.
    """
    group = await get_group(db, group_id)
    if group is None:
        raise NotFound("Group not found")
    if group.owner_id != user_id:
        raise Unauthorized("Only the owner can end the week")

    week = await get_week_in_group(db, group_id, week_id)
    if week is None:
        raise NotFound("Week not found")
    validate_transition(week_state(week), CLOSED)

    if now is None:
        now = utc_now()
    winner_id, loser_id = pick_outcome(await get_leaderboard(db, group_id, week_id))
    closing_number = week.week_number

    try:
        result = await db.execute(
            update(Week)
            .where(
                Week.id == week_id,
                Week.group_id == group_id,
                Week.is_active.is_(True),
            )
            .values(is_active=False, end_date=now, winner_id=winner_id, loser_id=loser_id)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise Conflict("This week has already ended")

        new_week = await open_week(db, group_id, closing_number + 1, now=now)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Rollover of week %d in group %d lost a race", week_id, group_id)
        raise Conflict("This week has already ended") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Rollover of week %d in group %d failed", week_id, group_id)
        raise RolloverError() from e

    logger.info(
        "Week %d closed for group %d (winner=%s, loser=%s); week %d opened (id=%d)",
        closing_number, group_id, winner_id, loser_id, new_week.week_number, new_week.id,
    )
    return new_week


# ---------------------------------------------------------------------------
# Repair pass
# ---------------------------------------------------------------------------


async def ensure_active_week(
    db: AsyncSession,
    group_id: int,
    now: datetime | None = None,
) -> Week | None:
    """Get the group's active week, opening the next one if none is active.

    Returns None only when the group itself doesn't exist.
    """
    active = await get_active_week(db, group_id)
    if active is not None:
        return active

    if await get_group(db, group_id) is None:
        return None

    next_number = await get_last_week_number(db, group_id) + 1
    try:
        week = await open_week(db, group_id, next_number, now=now)
        await db.commit()
    except IntegrityError:
        # Someone else repaired (or rolled over) first
        await db.rollback()
        return await get_active_week(db, group_id)

    logger.warning("Group %d had no active week; opened week %d (id=%d)", group_id, next_number, week.id)
    return week


async def get_current_week(db: AsyncSession, group_id: int) -> Week | None:
    """Get the active week for a group, repairing a missing one first."""
    return await ensure_active_week(db, group_id)


async def repair_active_weeks(db: AsyncSession, now: datetime | None = None) -> int:
    """Open the next week for every group without an active one.

    Run once at start-up. Returns the number of groups repaired.
    """
    has_active = exists().where(Week.group_id == Group.id, Week.is_active.is_(True))
    result = await db.execute(select(Group.id).where(~has_active).order_by(Group.id))
    group_ids = list(result.scalars().all())

    repaired = 0
    for group_id in group_ids:
        if await ensure_active_week(db, group_id, now=now) is not None:
            repaired += 1

    if repaired:
        logger.warning("Repair pass opened missing weeks for %d group(s)", repaired)
    return repaired
