"""Sleep endpoints: logging, week entries and pledges."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.auth.dependencies import get_current_user
from lilo.database import get_session
from lilo.db.models import User
from lilo.sleep.entry_service import (
    get_entries_for_week,
    get_my_entries_for_week,
    get_user_stats,
    log_sleep,
)
from lilo.sleep.pledge_service import get_pledge, pledge_sleep_tax
from lilo.sleep.schemas import (
    LogSleepRequest,
    PledgeRequest,
    PledgeResponse,
    SleepEntryListResponse,
    SleepEntryResponse,
    UserStatsResponse,
    build_entry_response,
    build_pledge_response,
)

router = APIRouter(prefix="/api/v1", tags=["Sleep"])


# ── Logging ──


@router.post("/sleep", response_model=SleepEntryResponse, status_code=201)
async def log_sleep_endpoint(
    body: LogSleepRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Log (or overwrite) a night of sleep.

    Returns 428 with code PLEDGE_REQUIRED when the week needs a pledge first.
    """
    entry = await log_sleep(db, user.id, body.wake_date, body.hours, body.week_id)
    await db.commit()
    return build_entry_response(entry)


# ── Week entries ──


@router.get("/weeks/{week_id}/entries", response_model=SleepEntryListResponse)
async def week_entries_endpoint(
    week_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Every group member's entries inside the week window."""
    entries = await get_entries_for_week(db, week_id)
    return SleepEntryListResponse(
        week_id=str(week_id),
        entries=[build_entry_response(e) for e in entries],
    )


@router.get("/weeks/{week_id}/entries/me", response_model=SleepEntryListResponse)
async def my_week_entries_endpoint(
    week_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The caller's entries inside the week window."""
    entries = await get_my_entries_for_week(db, user.id, week_id)
    return SleepEntryListResponse(
        week_id=str(week_id),
        entries=[build_entry_response(e) for e in entries],
    )


@router.get("/weeks/{week_id}/users/{user_id}/stats", response_model=UserStatsResponse)
async def user_stats_endpoint(
    week_id: int,
    user_id: str,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """A member's week entries (newest first) and current streak."""
    stats = await get_user_stats(db, user_id, week_id)
    return UserStatsResponse(
        user_id=user_id,
        week_id=str(week_id),
        entries=[build_entry_response(e) for e in stats.entries],
        total_hours=sum(e.hours for e in stats.entries),
        streak=stats.streak,
    )


# ── Pledges ──


@router.get("/weeks/{week_id}/pledge", response_model=PledgeResponse | None)
async def my_pledge_endpoint(
    week_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """The caller's pledge for the week, or null."""
    pledge = await get_pledge(db, week_id, user.id)
    return build_pledge_response(pledge) if pledge else None


@router.post("/weeks/{week_id}/pledge", response_model=PledgeResponse, status_code=201)
async def pledge_endpoint(
    week_id: int,
    body: PledgeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Pledge this week's sleep tax ($0-$50). One pledge per week."""
    pledge = await pledge_sleep_tax(db, user.id, week_id, body.amount)
    await db.commit()
    return build_pledge_response(pledge)
