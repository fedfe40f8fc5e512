"""Week endpoints: current week, leaderboard, end of week."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.auth.dependencies import get_current_user
from lilo.database import get_session
from lilo.db.models import User
from lilo.leaderboard.service import get_leaderboard
from lilo.users.schemas import build_user_response
from lilo.weeks.rollover import end_week, get_current_week
from lilo.weeks.schemas import (
    LeaderboardEntryResponse,
    LeaderboardResponse,
    WeekResponse,
    build_week_response,
)

router = APIRouter(prefix="/api/v1/groups/{group_id}/weeks", tags=["Weeks"])


@router.get("/current", response_model=WeekResponse | None)
async def current_week_endpoint(
    group_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Get the group's active week (null if the group doesn't exist)."""
    week = await get_current_week(db, group_id)
    return build_week_response(week) if week else None


@router.get("/{week_id}/leaderboard", response_model=LeaderboardResponse)
async def leaderboard_endpoint(
    group_id: int,
    week_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Ranked standings for a week, recomputed on every request."""
    rows = await get_leaderboard(db, group_id, week_id)
    return LeaderboardResponse(
        group_id=str(group_id),
        week_id=str(week_id),
        entries=[
            LeaderboardEntryResponse(
                user_id=row.user_id,
                user=build_user_response(row.user),
                total_hours=row.total_hours,
                streak=row.streak,
                tax_pledged=row.tax_pledged,
                rank=row.rank,
                entries_count=row.entries_count,
            )
            for row in rows
        ],
    )


@router.post("/{week_id}/end", response_model=WeekResponse)
async def end_week_endpoint(
    group_id: int,
    week_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """End the active week (owner only) and return the newly opened week."""
    new_week = await end_week(db, user.id, group_id, week_id)
    return build_week_response(new_week)
