"""In-process store used for tests and single-instance development."""

from __future__ import annotations

from copy import deepcopy
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
from focustrack.store.base import SessionStore


class MemorySessionStore(SessionStore):
    """Dict-backed store. Every read and write copies, mirroring a real backend."""

    def __init__(self) -> None:
        self.active: dict[str, ActiveSession] = {}
        self.completed: list[CompletedSession] = []
        self.stats: dict[str, UserStats] = {}
        self.ledger: list[XPLedgerEntry] = []
        self._ledger_keys: set[str] = set()
        self.challenges: dict[str, WeeklyChallenge] = {}
        self.goals: dict[tuple[str, str], DailyGoal] = {}
        self.configs: dict[str, ServerConfig] = {}

    async def get_active_session(self, user_id: str) -> ActiveSession | None:
        return deepcopy(self.active.get(user_id))

    async def list_active_sessions(self, server_id: str | None = None) -> list[ActiveSession]:
        return [
            deepcopy(s) for s in self.active.values()
            if server_id is None or s.server_id == server_id
        ]

    async def create_active_session(self, session: ActiveSession) -> bool:
        if session.user_id in self.active:
            return False
        self.active[session.user_id] = deepcopy(session)
        return True

    async def save_active_session(self, session: ActiveSession) -> None:
        self.active[session.user_id] = deepcopy(session)

    async def pop_active_session(self, user_id: str) -> ActiveSession | None:
        return self.active.pop(user_id, None)

    async def append_completed_session(self, completed: CompletedSession) -> None:
        self.completed.append(deepcopy(completed))

    async def list_completed_sessions(
        self,
        since: datetime | None = None,
        server_id: str | None = None,
        user_id: str | None = None,
    ) -> list[CompletedSession]:
        return [
            deepcopy(c) for c in self.completed
            if (since is None or c.end_time >= since)
            and (server_id is None or c.server_id == server_id)
            and (user_id is None or c.user_id == user_id)
        ]

    async def set_completed_session_xp(self, completion_id: str, xp: int) -> None:
        for completed in self.completed:
            if completed.id == completion_id:
                completed.xp_gained = xp

    async def get_user_stats(self, user_id: str) -> UserStats | None:
        return deepcopy(self.stats.get(user_id))

    async def list_user_stats(self) -> list[UserStats]:
        return [deepcopy(s) for s in self.stats.values()]

    async def save_user_stats(self, stats: UserStats) -> None:
        self.stats[stats.user_id] = deepcopy(stats)

    async def append_xp_entry(self, entry: XPLedgerEntry) -> bool:
        if entry.idempotency_key in self._ledger_keys:
            return False
        self._ledger_keys.add(entry.idempotency_key)
        self.ledger.append(deepcopy(entry))
        return True

    async def list_xp_entries(
        self,
        since: datetime | None = None,
        server_id: str | None = None,
        source: str | None = None,
        user_id: str | None = None,
    ) -> list[XPLedgerEntry]:
        return [
            deepcopy(e) for e in self.ledger
            if (since is None or e.created_at >= since)
            and (server_id is None or e.server_id == server_id)
            and (source is None or e.source == source)
            and (user_id is None or e.user_id == user_id)
        ]

    async def get_weekly_challenge(self, week_key: str, *, for_update: bool = False) -> WeeklyChallenge | None:
        return deepcopy(self.challenges.get(week_key))

    async def create_weekly_challenge(self, challenge: WeeklyChallenge) -> bool:
        if challenge.week_key in self.challenges:
            return False
        self.challenges[challenge.week_key] = deepcopy(challenge)
        return True

    async def save_weekly_challenge(self, challenge: WeeklyChallenge) -> None:
        self.challenges[challenge.week_key] = deepcopy(challenge)

    async def get_daily_goal(self, user_id: str, day_key: str) -> DailyGoal | None:
        return deepcopy(self.goals.get((user_id, day_key)))

    async def save_daily_goal(self, goal: DailyGoal) -> None:
        self.goals[(goal.user_id, goal.day_key)] = deepcopy(goal)

    async def get_server_config(self, server_id: str) -> ServerConfig | None:
        return deepcopy(self.configs.get(server_id))

    async def save_server_config(self, config: ServerConfig) -> None:
        self.configs[config.server_id] = deepcopy(config)
