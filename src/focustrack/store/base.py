"""Keyed-store contract used by the session and progression layers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from focustrack.records import (
    ActiveSession,
    CompletedSession,
    DailyGoal,
    ServerConfig,
    UserStats,
    WeeklyChallenge,
    XPLedgerEntry,
)


class SessionStore(ABC):
    """Durable storage for session, stats and challenge documents.

    Implementations return copies; callers persist changes with the
    matching ``save_*`` call. Failures surface as ``PersistenceError``.
    """

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Group the calls made inside the block into one unit of work."""
        yield

    # --- Active sessions ---

    @abstractmethod
    async def get_active_session(self, user_id: str) -> ActiveSession | None: ...

    @abstractmethod
    async def list_active_sessions(self, server_id: str | None = None) -> list[ActiveSession]: ...

    @abstractmethod
    async def create_active_session(self, session: ActiveSession) -> bool:
        """Insert a new active session. Returns False if one already exists."""

    @abstractmethod
    async def save_active_session(self, session: ActiveSession) -> None: ...

    @abstractmethod
    async def pop_active_session(self, user_id: str) -> ActiveSession | None:
        """Atomically delete and return the active session, or None if absent."""

    # --- Completed sessions ---

    @abstractmethod
    async def append_completed_session(self, completed: CompletedSession) -> None: ...

    @abstractmethod
    async def list_completed_sessions(
        self,
        since: datetime | None = None,
        server_id: str | None = None,
        user_id: str | None = None,
    ) -> list[CompletedSession]:
        """Completed sessions in insertion order, filtered by end time and scope."""

    @abstractmethod
    async def set_completed_session_xp(self, completion_id: str, xp: int) -> None:
        """Record the XP a completed session earned once progression has run."""

    # --- Stats ---

    @abstractmethod
    async def get_user_stats(self, user_id: str) -> UserStats | None: ...

    @abstractmethod
    async def list_user_stats(self) -> list[UserStats]: ...

    @abstractmethod
    async def save_user_stats(self, stats: UserStats) -> None: ...

    # --- XP ledger ---

    @abstractmethod
    async def append_xp_entry(self, entry: XPLedgerEntry) -> bool:
        """Append a ledger entry. Returns False if the idempotency key exists."""

    @abstractmethod
    async def list_xp_entries(
        self,
        since: datetime | None = None,
        server_id: str | None = None,
        source: str | None = None,
        user_id: str | None = None,
    ) -> list[XPLedgerEntry]: ...

    # --- Weekly challenges, goals, server config ---

    @abstractmethod
    async def get_weekly_challenge(self, week_key: str, *, for_update: bool = False) -> WeeklyChallenge | None:
        """Read a challenge. ``for_update`` row-locks it for the current transaction."""

    @abstractmethod
    async def create_weekly_challenge(self, challenge: WeeklyChallenge) -> bool:
        """Insert the challenge if its week has none yet. Returns False if one exists."""

    @abstractmethod
    async def save_weekly_challenge(self, challenge: WeeklyChallenge) -> None: ...

    @abstractmethod
    async def get_daily_goal(self, user_id: str, day_key: str) -> DailyGoal | None: ...

    @abstractmethod
    async def save_daily_goal(self, goal: DailyGoal) -> None: ...

    @abstractmethod
    async def get_server_config(self, server_id: str) -> ServerConfig | None: ...

    @abstractmethod
    async def save_server_config(self, config: ServerConfig) -> None: ...

    async def close(self) -> None:
        """Release backend resources."""
