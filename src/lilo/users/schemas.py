"""Pydantic schemas for user profiles."""

from __future__ import annotations

from urllib.parse import quote

from pydantic import BaseModel

from lilo.db.models import User

DEFAULT_NAME = "User"
AVATAR_FALLBACK_URL = "https://ui-avatars.com/api/?name={name}&background=3B82F6&color=fff"


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    avatar_url: str


def build_user_response(user: User) -> UserResponse:
    """Profile with display fallbacks applied (name "User", generated avatar)."""
    name = user.name or DEFAULT_NAME
    return UserResponse(
        id=user.id,
        email=user.email or "",
        name=name,
        avatar_url=user.avatar_url or AVATAR_FALLBACK_URL.format(name=quote(name)),
    )
