"""Group endpoints: my group, create, join, members."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.auth.dependencies import get_current_user
from lilo.database import get_session
from lilo.db.models import Group, User
from lilo.errors import NotFound
from lilo.groups.schemas import (
    CreateGroupRequest,
    GroupMemberResponse,
    GroupMembersResponse,
    GroupResponse,
    JoinGroupRequest,
)
from lilo.groups.service import (
    create_group,
    get_group,
    get_group_for_user,
    get_group_members,
    join_group,
)
from lilo.users.schemas import build_user_response

router = APIRouter(prefix="/api/v1/groups", tags=["Groups"])


def _build_group_response(group: Group) -> GroupResponse:
    return GroupResponse(
        id=str(group.id),
        name=group.name,
        owner_id=group.owner_id,
        code=group.code,
        created_at=group.created_at,
    )


@router.get("/me", response_model=GroupResponse | None)
async def get_my_group_endpoint(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Get the caller's group, or null if they haven't joined one."""
    group = await get_group_for_user(db, user.id)
    return _build_group_response(group) if group else None


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group_endpoint(
    body: CreateGroupRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Create a group. The creator becomes owner and week #1 opens."""
    group = await create_group(db, user.id, body.name)
    await db.commit()
    return _build_group_response(group)


@router.post("/join", response_model=GroupResponse)
async def join_group_endpoint(
    body: JoinGroupRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Join a group by its join code (case-insensitive)."""
    group = await join_group(db, user.id, body.code)
    await db.commit()
    return _build_group_response(group)


@router.get("/{group_id}/members", response_model=GroupMembersResponse)
async def list_members_endpoint(
    group_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """List a group's members in join order."""
    group = await get_group(db, group_id)
    if group is None:
        raise NotFound("Group not found")

    members = await get_group_members(db, group_id)
    return GroupMembersResponse(
        group_id=str(group_id),
        members=[
            GroupMemberResponse(
                user=build_user_response(member_user),
                is_owner=member_user.id == group.owner_id,
                joined_at=gm.joined_at,
            )
            for gm, member_user in members
        ],
    )
