"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.auth.jwt import verify_token
from lilo.auth.service import ensure_profile
from lilo.database import get_session
from lilo.db.models import User

_bearer = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Verify the identity provider's JWT and return the matching User.

    The profile is created on first sight and its display fields are
    synced from the token. Raises 401 on a bad token.
    """
    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await ensure_profile(db, str(payload["sub"]), payload)
    await db.commit()
    return user
