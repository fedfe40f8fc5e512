"""Liveness, readiness and version endpoints.

Readiness is decided by the store: nothing in lilo can be served
without it, so a failed store check answers 503. Redis only backs rate
limiting, which lets requests through when Redis is down, so losing it
marks the instance degraded but still ready. Groups left without an
active week (the start-up repair pass should have fixed them) are
reported the same way.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy import exists, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.config import get_settings
from lilo.database import get_session
from lilo.db.models import Group, Week
from lilo.redis_client import ping_redis

router = APIRouter()


async def count_groups_without_active_week(db: AsyncSession) -> int:
    has_active = exists().where(Week.group_id == Group.id, Week.is_active.is_(True))
    return await db.scalar(select(func.count()).select_from(Group).where(~has_active)) or 0


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness: the process is up and serving."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness: 503 without the store, "degraded" without Redis or with orphaned groups."""
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        orphaned = await count_groups_without_active_week(db)
    except SQLAlchemyError as exc:
        checks["database"] = f"error: {exc.__class__.__name__}"
        checks["redis"] = "ok" if await ping_redis() else "unavailable"
        response.status_code = 503
        return {"status": "unavailable", "checks": checks}

    checks["database"] = "ok"
    checks["weeks"] = "ok" if orphaned == 0 else f"{orphaned} group(s) without an active week"
    checks["redis"] = "ok" if await ping_redis() else "unavailable"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """API version and deployment environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
