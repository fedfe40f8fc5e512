"""Group business logic.

Rules:
- The creator owns the group and is enrolled as its first member
- Creating a group opens week #1
- Join codes are server-generated and looked up case-insensitively
- A user may belong to several groups; "my group" is the earliest joined
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.db.models import Group, GroupMember, User
from lilo.errors import Conflict, NotFound, ValidationError
from lilo.groups.invite_codes import generate_unique_invite_code, normalize_invite_code
from lilo.weeks.service import open_week
from lilo.weeks.week_utils import utc_now

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 64


async def get_group(db: AsyncSession, group_id: int) -> Group | None:
    """Get a group by ID."""
    result = await db.execute(select(Group).where(Group.id == group_id))
    return result.scalar_one_or_none()


async def get_membership(db: AsyncSession, group_id: int, user_id: str) -> GroupMember | None:
    result = await db.execute(
        select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def get_group_for_user(db: AsyncSession, user_id: str) -> Group | None:
    """Get the first group the user joined (if any)."""
    result = await db.execute(
        select(Group)
        .join(GroupMember, GroupMember.group_id == Group.id)
        .where(GroupMember.user_id == user_id)
        .order_by(GroupMember.joined_at.asc(), GroupMember.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_group_members(
    db: AsyncSession, group_id: int
) -> list[tuple[GroupMember, User]]:
    """Get all members of a group with their profiles, in join order."""
    result = await db.execute(
        select(GroupMember, User)
        .join(User, GroupMember.user_id == User.id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.joined_at.asc(), GroupMember.id.asc())
    )
    return [(row.GroupMember, row.User) for row in result]


async def create_group(db: AsyncSession, owner_id: str, name: str) -> Group:
    """Create a group owned by `owner_id`, enroll the owner, open week #1."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Group name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Group name must be at most {MAX_NAME_LENGTH} characters")

    now = utc_now()
    group = Group(
        name=name,
        owner_id=owner_id,
        code=await generate_unique_invite_code(db, name),
        created_at=now,
    )
    db.add(group)
    await db.flush()

    db.add(GroupMember(group_id=group.id, user_id=owner_id, joined_at=now))
    await open_week(db, group.id, 1, now=now)

    logger.info("Group created: %s (id=%d, owner=%s, code=%s)", name, group.id, owner_id, group.code)
    return group


async def join_group(db: AsyncSession, user_id: str, code: str) -> Group:
    """Join a group using its join code."""
    result = await db.execute(
        select(Group).where(Group.code == normalize_invite_code(code or ""))
    )
    group = result.scalar_one_or_none()
    if group is None:
        raise NotFound("Invalid group code")

    if await get_membership(db, group.id, user_id) is not None:
        raise Conflict("Already a member of this group")

    db.add(GroupMember(group_id=group.id, user_id=user_id, joined_at=utc_now()))
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent join by the same user
        await db.rollback()
        raise Conflict("Already a member of this group") from e

    logger.info("User %s joined group %d via join code", user_id, group.id)
    return group
