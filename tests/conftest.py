"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from focustrack.config import Settings
from focustrack.dependencies import FocusServices, build_services
from focustrack.store.memory import MemorySessionStore

# Monday 2026-03-02 10:00 UTC
START = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock injected wherever the code reads the time."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Memory-backed settings with short timers and UTC calendars."""
    return Settings(
        store_backend="memory",
        redis_enabled=False,
        auto_post_delay_seconds=0.01,
        auto_end_delay_seconds=0.01,
        stats_timezone="UTC",
        leaderboard_timezone="UTC",
        log_format="console",
    )


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest_asyncio.fixture
async def services(settings: Settings, store: MemorySessionStore, clock: FakeClock) -> AsyncGenerator[FocusServices, None]:
    """Fully wired services over the in-memory store, without Redis."""
    svc = build_services(settings, store, redis=None, clock=clock)
    yield svc
    await svc.shutdown()


@pytest_asyncio.fixture
async def client(services: FocusServices) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with services injected directly (no lifespan)."""
    from focustrack.main import create_app

    app = create_app()
    app.state.services = services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class YieldingSessionStore(MemorySessionStore):
    """Memory store whose calls suspend, so concurrent tasks interleave like on a real backend."""

    async def get_active_session(self, user_id):
        await asyncio.sleep(0)
        return await super().get_active_session(user_id)

    async def create_active_session(self, session):
        await asyncio.sleep(0)
        return await super().create_active_session(session)

    async def pop_active_session(self, user_id):
        await asyncio.sleep(0)
        return await super().pop_active_session(user_id)

    async def get_user_stats(self, user_id):
        await asyncio.sleep(0)
        return await super().get_user_stats(user_id)

    async def list_user_stats(self):
        await asyncio.sleep(0)
        return await super().list_user_stats()

    async def save_user_stats(self, stats):
        await asyncio.sleep(0)
        await super().save_user_stats(stats)

    async def get_weekly_challenge(self, week_key, *, for_update=False):
        await asyncio.sleep(0)
        return await super().get_weekly_challenge(week_key, for_update=for_update)

    async def create_weekly_challenge(self, challenge):
        await asyncio.sleep(0)
        return await super().create_weekly_challenge(challenge)

    async def save_weekly_challenge(self, challenge):
        await asyncio.sleep(0)
        await super().save_weekly_challenge(challenge)


@pytest.fixture
def yielding_store() -> YieldingSessionStore:
    return YieldingSessionStore()


@pytest_asyncio.fixture
async def yielding_services(
    settings: Settings, yielding_store: YieldingSessionStore, clock: FakeClock
) -> AsyncGenerator[FocusServices, None]:
    """Services over a store that yields on every call."""
    svc = build_services(settings, yielding_store, redis=None, clock=clock)
    yield svc
    await svc.shutdown()
