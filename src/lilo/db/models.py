"""ORM models for the lilo schema.

Uniqueness rules that the game depends on live here as store-level
constraints, not application locks:

- one sleep entry per (user, wake date)
- one pledge per (week, user)
- one membership per (group, user)
- one active week per group (partial unique index)
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lilo.db.base import Base


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Profile mirrored from the identity provider; `id` is the provider's subject."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------


class Group(Base):
    """A sleep group. `code` is the join token handed out to friends."""

    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False)
    code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    members: Mapped[list[GroupMember]] = relationship(
        "GroupMember", back_populates="group", cascade="all, delete-orphan"
    )
    owner: Mapped[User] = relationship("User", foreign_keys=[owner_id])


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="group_members_group_user_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    joined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    group: Mapped[Group] = relationship("Group", back_populates="members")
    user: Mapped[User] = relationship("User")


# ---------------------------------------------------------------------------
# Weeks
# ---------------------------------------------------------------------------


class Week(Base):
    """One scoring period of a group.

    `end_date`, `winner_id` and `loser_id` stay NULL while the week is
    active; once closed the row is never written again.
    """

    __tablename__ = "weeks"
    __table_args__ = (
        UniqueConstraint("group_id", "week_number", name="weeks_group_number_key"),
        Index(
            "weeks_one_active_per_group",
            "group_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    winner_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("users.id"), nullable=True)
    loser_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("users.id"), nullable=True)


# ---------------------------------------------------------------------------
# Sleep entries & pledges
# ---------------------------------------------------------------------------


class SleepEntry(Base):
    """One night of sleep, keyed by the date the user woke up."""

    __tablename__ = "sleep_entries"
    __table_args__ = (
        UniqueConstraint("user_id", "wake_date", name="sleep_entries_user_wake_date_key"),
        CheckConstraint("hours >= 0", name="sleep_entries_hours_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    wake_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[float] = mapped_column(Float, nullable=False)
    logged_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class WeeklyPledge(Base):
    """Sleep tax a member commits for one week. Tracked only, never charged."""

    __tablename__ = "weekly_pledges"
    __table_args__ = (
        UniqueConstraint("week_id", "user_id", name="weekly_pledges_week_user_key"),
        CheckConstraint("amount >= 0 AND amount <= 50", name="weekly_pledges_amount_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    week_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("weeks.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
