"""Pydantic schemas for week and leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from lilo.db.models import Week
from lilo.users.schemas import UserResponse


class WeekResponse(BaseModel):
    id: str
    group_id: str
    week_number: int
    is_active: bool
    start_date: datetime
    end_date: datetime | None = None
    winner_id: str | None = None
    loser_id: str | None = None


class LeaderboardEntryResponse(BaseModel):
    user_id: str
    user: UserResponse
    total_hours: float
    streak: int
    tax_pledged: float
    rank: int
    entries_count: int


class LeaderboardResponse(BaseModel):
    group_id: str
    week_id: str
    entries: list[LeaderboardEntryResponse]


def build_week_response(week: Week) -> WeekResponse:
    return WeekResponse(
        id=str(week.id),
        group_id=str(week.group_id),
        week_number=week.week_number,
        is_active=week.is_active,
        start_date=week.start_date,
        end_date=week.end_date,
        winner_id=week.winner_id,
        loser_id=week.loser_id,
    )
