"""Pydantic schemas for group endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from lilo.users.schemas import UserResponse


class CreateGroupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)


class JoinGroupRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)


class GroupResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    code: str
    created_at: datetime | None = None


class GroupMemberResponse(BaseModel):
    user: UserResponse
    is_owner: bool
    joined_at: datetime | None = None


class GroupMembersResponse(BaseModel):
    group_id: str
    members: list[GroupMemberResponse]
