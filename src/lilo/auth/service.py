"""
User profiles mirrored from the identity provider.

A profile is created the first time a subject is seen and its display
fields (email, name, avatar) are re-synced from the token claims on
every later request. Nothing else about a user ever changes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from lilo.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


def claims_to_profile(claims: dict[str, Any]) -> dict[str, str | None]:
    """Pull display fields out of identity-provider claims."""
    email = claims.get("email") or ""
    name = claims.get("name") or claims.get("full_name") or (email.split("@")[0] if email else None)
    avatar = claims.get("picture") or claims.get("avatar_url")
    return {"email": email, "name": name, "avatar_url": avatar}


async def ensure_profile(db: AsyncSession, user_id: str, claims: dict[str, Any]) -> User:
    """
    Get or create the user for a verified token, syncing display fields.

    Flushes only; the caller decides when to commit.
    """
    profile = claims_to_profile(claims)
    now = datetime.now(timezone.utc)

    user = await get_user_by_id(db, user_id)
    if user is None:
        user = User(id=user_id, created_at=now, updated_at=now, **profile)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # First requests for a new subject raced; the other one created it
            await db.rollback()
            existing = await get_user_by_id(db, user_id)
            if existing is None:
                raise
            return existing
        logger.info("user_created", user_id=user_id)
        return user

    changed = False
    for key, value in profile.items():
        if value and getattr(user, key) != value:
            setattr(user, key, value)
            changed = True
    if changed:
        user.updated_at = now
        await db.flush()
    return user
