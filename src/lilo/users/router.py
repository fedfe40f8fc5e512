"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lilo.auth.dependencies import get_current_user
from lilo.db.models import User
from lilo.users.schemas import UserResponse, build_user_response

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    """Get the caller's profile, as synced from the identity provider."""
    return build_user_response(user)
