"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from lilo.config import get_settings
from lilo.database import close_db, get_session, init_db
from lilo.groups.router import router as groups_router
from lilo.health.router import router as health_router
from lilo.middleware import setup_middleware
from lilo.redis_client import close_redis, init_redis
from lilo.sleep.router import router as sleep_router
from lilo.users.router import router as users_router
from lilo.weeks.rollover import repair_active_weeks
from lilo.weeks.router import router as weeks_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Every group must have an active week before the first read
    async for db in get_session():
        repaired = await repair_active_weeks(db)
        if repaired:
            logger.warning("startup_week_repair", groups=repaired)
        break

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Lilo API",
        description="Backend API for Lilo: sleep more than your friends or pay the sleep tax",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(groups_router)
    app.include_router(weeks_router)
    app.include_router(sleep_router)

    return app


app = create_app()
