"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from focustrack.competition.router import router as competition_router
from focustrack.config import Settings, get_settings
from focustrack.database import close_db, get_session_factory, init_db
from focustrack.dependencies import build_services
from focustrack.gamification.router import router as gamification_router
from focustrack.health.router import router as health_router
from focustrack.middleware import setup_middleware
from focustrack.redis_client import close_redis, get_redis, init_redis
from focustrack.sessions.router import router as sessions_router
from focustrack.store.base import SessionStore
from focustrack.store.memory import MemorySessionStore
from focustrack.store.sql import SqlSessionStore

logger = structlog.get_logger()


async def open_store(settings: Settings) -> SessionStore:
    """Create the configured session store."""
    if settings.store_backend == "memory":
        return MemorySessionStore()
    await init_db(settings.database_url, create_tables=settings.database_create_tables)
    return SqlSessionStore(get_session_factory())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    store = await open_store(settings)
    if settings.redis_enabled:
        await init_redis(settings.redis_url)

    app.state.services = build_services(settings, store, redis=get_redis())
    logger.info("focustrack_started", store=settings.store_backend, redis=settings.redis_enabled)

    yield

    await app.state.services.shutdown()
    await store.close()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Focustrack API",
        description="Focus-session tracking, progression and leaderboards for chat communities",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(sessions_router)
    app.include_router(gamification_router)
    app.include_router(competition_router)

    return app


app = create_app()
