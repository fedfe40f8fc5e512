"""Pydantic schemas for sleep logging and pledges."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from lilo.db.models import SleepEntry, WeeklyPledge


class LogSleepRequest(BaseModel):
    wake_date: date
    hours: float = Field(..., ge=0, le=24)
    week_id: int | None = None


class PledgeRequest(BaseModel):
    amount: float = Field(..., ge=0, le=50)


class SleepEntryResponse(BaseModel):
    id: str
    user_id: str
    wake_date: date
    hours: float
    logged_at: datetime


class SleepEntryListResponse(BaseModel):
    week_id: str
    entries: list[SleepEntryResponse]


class UserStatsResponse(BaseModel):
    user_id: str
    week_id: str
    entries: list[SleepEntryResponse]
    total_hours: float
    streak: int


class PledgeResponse(BaseModel):
    id: str
    week_id: str
    user_id: str
    amount: float
    created_at: datetime | None = None


def build_entry_response(entry: SleepEntry) -> SleepEntryResponse:
    return SleepEntryResponse(
        id=str(entry.id),
        user_id=entry.user_id,
        wake_date=entry.wake_date,
        hours=entry.hours,
        logged_at=entry.logged_at,
    )


def build_pledge_response(pledge: WeeklyPledge) -> PledgeResponse:
    return PledgeResponse(
        id=str(pledge.id),
        week_id=str(pledge.week_id),
        user_id=pledge.user_id,
        amount=pledge.amount,
        created_at=pledge.created_at,
    )
