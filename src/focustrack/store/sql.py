"""SQLAlchemy-backed store.

Calls made inside ``transaction()`` share one ``AsyncSession`` through a
context variable and commit together; calls made outside it each run in
their own short transaction.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from copy import deepcopy
from dataclasses import asdict, fields
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from focustrack.db.base import Base
from focustrack.db.models import (
    ActiveSessionRow,
    CompletedSessionRow,
    DailyGoalRow,
    ServerConfigRow,
    UserStatsRow,
    WeeklyChallengeRow,
    XPLedgerRow,
)
from focustrack.exceptions import PersistenceError
from focustrack.records import (
    ActiveSession,
    CompletedSession,
    DailyGoal,
    ServerConfig,
    UserStats,
    WeeklyChallenge,
    XPLedgerEntry,
)
from focustrack.store.base import SessionStore

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _to_record(cls: type[R], source: Any) -> R:
    """Build a dataclass record from a row or mapping with matching names."""
    get = source.__getitem__ if isinstance(source, dict) else source.__getattribute__
    values = {f.name: deepcopy(get(f.name)) for f in fields(cls)}  # type: ignore[arg-type]
    return cls(**values)


def _stats_to_record(row: UserStatsRow) -> UserStats:
    stats = _to_record(UserStats, row)
    stats.achievements = list(stats.achievements or [])
    stats.achievements_unlocked_at = {
        k: datetime.fromisoformat(v) for k, v in (row.achievements_unlocked_at or {}).items()
    }
    return stats


def _stats_values(stats: UserStats) -> dict[str, Any]:
    values = asdict(stats)
    values["achievements_unlocked_at"] = {k: v.isoformat() for k, v in stats.achievements_unlocked_at.items()}
    return values


class SqlSessionStore(SessionStore):
    """Store backed by an async SQLAlchemy engine (PostgreSQL or SQLite)."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = session_factory
        self._current: ContextVar[AsyncSession | None] = ContextVar(
            f"focustrack_sql_session_{id(self)}", default=None
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._current.get() is not None:
            yield
            return
        try:
            async with self._factory() as session, session.begin():
                token = self._current.set(session)
                try:
                    yield
                finally:
                    self._current.reset(token)
        except SQLAlchemyError as exc:
            logger.error("Transaction failed: %s", exc)
            raise PersistenceError(str(exc), operation="transaction") from exc

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        shared = self._current.get()
        if shared is not None:
            try:
                yield shared
            except SQLAlchemyError as exc:
                raise PersistenceError(str(exc), operation=operation) from exc
            return
        try:
            async with self._factory() as session, session.begin():
                yield session
        except SQLAlchemyError as exc:
            logger.error("Store operation %s failed: %s", operation, exc)
            raise PersistenceError(str(exc), operation=operation) from exc

    @staticmethod
    def _insert(session: AsyncSession, model: type[Base]) -> Any:
        dialect = session.bind.dialect.name if session.bind is not None else ""
        if dialect == "postgresql":
            return postgresql.insert(model)
        return sqlite.insert(model)

    # --- Active sessions ---

    async def get_active_session(self, user_id: str) -> ActiveSession | None:
        async with self._session("get_active_session") as db:
            row = await db.get(ActiveSessionRow, user_id)
            return _to_record(ActiveSession, row) if row else None

    async def list_active_sessions(self, server_id: str | None = None) -> list[ActiveSession]:
        stmt = select(ActiveSessionRow).order_by(ActiveSessionRow.start_time)
        if server_id is not None:
            stmt = stmt.where(ActiveSessionRow.server_id == server_id)
        async with self._session("list_active_sessions") as db:
            result = await db.execute(stmt)
            return [_to_record(ActiveSession, row) for row in result.scalars()]

    async def create_active_session(self, session: ActiveSession) -> bool:
        async with self._session("create_active_session") as db:
            stmt = (
                self._insert(db, ActiveSessionRow)
                .values(**asdict(session))
                .on_conflict_do_nothing(index_elements=["user_id"])
            )
            result = await db.execute(stmt)
            return result.rowcount == 1

    async def save_active_session(self, session: ActiveSession) -> None:
        async with self._session("save_active_session") as db:
            await db.merge(ActiveSessionRow(**asdict(session)))
            await db.flush()

    async def pop_active_session(self, user_id: str) -> ActiveSession | None:
        table = ActiveSessionRow.__table__
        stmt = delete(table).where(table.c.user_id == user_id).returning(*table.c)
        async with self._session("pop_active_session") as db:
            result = await db.execute(stmt)
            row = result.mappings().one_or_none()
            return _to_record(ActiveSession, dict(row)) if row else None

    # --- Completed sessions ---

    async def append_completed_session(self, completed: CompletedSession) -> None:
        async with self._session("append_completed_session") as db:
            db.add(CompletedSessionRow(**asdict(completed)))
            await db.flush()

    async def list_completed_sessions(
        self,
        since: datetime | None = None,
        server_id: str | None = None,
        user_id: str | None = None,
    ) -> list[CompletedSession]:
        stmt = select(CompletedSessionRow).order_by(CompletedSessionRow.seq)
        if since is not None:
            stmt = stmt.where(CompletedSessionRow.end_time >= since)
        if server_id is not None:
            stmt = stmt.where(CompletedSessionRow.server_id == server_id)
        if user_id is not None:
            stmt = stmt.where(CompletedSessionRow.user_id == user_id)
        async with self._session("list_completed_sessions") as db:
            result = await db.execute(stmt)
            return [_to_record(CompletedSession, row) for row in result.scalars()]

    async def set_completed_session_xp(self, completion_id: str, xp: int) -> None:
        stmt = update(CompletedSessionRow).where(CompletedSessionRow.id == completion_id).values(xp_gained=xp)
        async with self._session("set_completed_session_xp") as db:
            await db.execute(stmt)

    # --- Stats ---

    async def get_user_stats(self, user_id: str) -> UserStats | None:
        async with self._session("get_user_stats") as db:
            row = await db.get(UserStatsRow, user_id, populate_existing=True)
            return _stats_to_record(row) if row else None

    async def list_user_stats(self) -> list[UserStats]:
        async with self._session("list_user_stats") as db:
            result = await db.execute(select(UserStatsRow))
            return [_stats_to_record(row) for row in result.scalars()]

    async def save_user_stats(self, stats: UserStats) -> None:
        async with self._session("save_user_stats") as db:
            await db.merge(UserStatsRow(**_stats_values(stats)))
            await db.flush()

    # --- XP ledger ---

    async def append_xp_entry(self, entry: XPLedgerEntry) -> bool:
        async with self._session("append_xp_entry") as db:
            stmt = (
                self._insert(db, XPLedgerRow)
                .values(**asdict(entry))
                .on_conflict_do_nothing(index_elements=["idempotency_key"])
            )
            result = await db.execute(stmt)
            return result.rowcount == 1

    async def list_xp_entries(
        self,
        since: datetime | None = None,
        server_id: str | None = None,
        source: str | None = None,
        user_id: str | None = None,
    ) -> list[XPLedgerEntry]:
        stmt = select(XPLedgerRow).order_by(XPLedgerRow.id)
        if since is not None:
            stmt = stmt.where(XPLedgerRow.created_at >= since)
        if server_id is not None:
            stmt = stmt.where(XPLedgerRow.server_id == server_id)
        if source is not None:
            stmt = stmt.where(XPLedgerRow.source == source)
        if user_id is not None:
            stmt = stmt.where(XPLedgerRow.user_id == user_id)
        async with self._session("list_xp_entries") as db:
            result = await db.execute(stmt)
            return [_to_record(XPLedgerEntry, row) for row in result.scalars()]

    # --- Weekly challenges, goals, server config ---

    async def get_weekly_challenge(self, week_key: str, *, for_update: bool = False) -> WeeklyChallenge | None:
        async with self._session("get_weekly_challenge") as db:
            row = await db.get(WeeklyChallengeRow, week_key, populate_existing=True, with_for_update=for_update)
            return _to_record(WeeklyChallenge, row) if row else None

    async def create_weekly_challenge(self, challenge: WeeklyChallenge) -> bool:
        async with self._session("create_weekly_challenge") as db:
            stmt = (
                self._insert(db, WeeklyChallengeRow)
                .values(**asdict(challenge))
                .on_conflict_do_nothing(index_elements=["week_key"])
            )
            result = await db.execute(stmt)
            return result.rowcount == 1

    async def save_weekly_challenge(self, challenge: WeeklyChallenge) -> None:
        async with self._session("save_weekly_challenge") as db:
            await db.merge(WeeklyChallengeRow(**asdict(challenge)))
            await db.flush()

    async def get_daily_goal(self, user_id: str, day_key: str) -> DailyGoal | None:
        stmt = select(DailyGoalRow).where(DailyGoalRow.user_id == user_id, DailyGoalRow.day_key == day_key)
        async with self._session("get_daily_goal") as db:
            result = await db.execute(stmt)
            row = result.scalar_one_or_none()
            return _to_record(DailyGoal, row) if row else None

    async def save_daily_goal(self, goal: DailyGoal) -> None:
        stmt = select(DailyGoalRow).where(DailyGoalRow.user_id == goal.user_id, DailyGoalRow.day_key == goal.day_key)
        async with self._session("save_daily_goal") as db:
            result = await db.execute(stmt)
            row = result.scalar_one_or_none()
            if row is None:
                db.add(DailyGoalRow(**asdict(goal)))
            else:
                row.goal = goal.goal
                row.username = goal.username
                row.created_at = goal.created_at
            await db.flush()

    async def get_server_config(self, server_id: str) -> ServerConfig | None:
        async with self._session("get_server_config") as db:
            row = await db.get(ServerConfigRow, server_id, populate_existing=True)
            if row is None:
                return None
            config = _to_record(ServerConfig, row)
            config.focus_room_ids = list(config.focus_room_ids or [])
            return config

    async def save_server_config(self, config: ServerConfig) -> None:
        async with self._session("save_server_config") as db:
            await db.merge(ServerConfigRow(**asdict(config)))
            await db.flush()
