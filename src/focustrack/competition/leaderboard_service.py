"""Leaderboards computed from the completed-session log and the XP ledger.

Reads are unlocked and may trail in-flight completions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from focustrack.gamification.xp_curve import compute_level
from focustrack.store.base import SessionStore
from focustrack.week_utils import calculate_percentile, start_of_day, start_of_month, start_of_week, utcnow

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    username: str
    total_duration: int = 0
    session_count: int = 0
    xp: int = 0
    level: int | None = None
    achievement_count: int | None = None


@dataclass
class LiveSession:
    user_id: str
    username: str
    activity: str
    start_time: datetime
    elapsed: int
    is_paused: bool
    is_vc_session: bool


class LeaderboardAggregator:
    def __init__(self, store: SessionStore, tz: str = "UTC", clock: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self.tz = tz
        self.clock = clock

    def window_start(self, period: str, now: datetime | None = None) -> datetime:
        """Start of the current day, ISO week or month, as a UTC instant."""
        now = now or self.clock()
        if period == "daily":
            return start_of_day(now, self.tz)
        if period == "weekly":
            return start_of_week(now, self.tz)
        if period == "monthly":
            return start_of_month(now, self.tz)
        raise ValueError(f"Unknown period: {period}")

    async def top_by_duration(
        self,
        since: datetime | None = None,
        limit: int = 20,
        server_id: str | None = None,
    ) -> list[LeaderboardEntry]:
        """Users ranked by summed session duration; ties keep log order."""
        totals: dict[str, LeaderboardEntry] = {}
        for session in await self.store.list_completed_sessions(since=since, server_id=server_id):
            entry = totals.get(session.user_id)
            if entry is None:
                entry = totals[session.user_id] = LeaderboardEntry(0, session.user_id, session.username)
            entry.username = session.username or entry.username
            entry.total_duration += session.duration
            entry.session_count += 1
        # sorted() is stable, so equal durations stay in first-seen order.
        ranked = sorted(totals.values(), key=lambda e: e.total_duration, reverse=True)[:limit]
        for i, entry in enumerate(ranked, start=1):
            entry.rank = i
        return ranked

    async def top_by_window_xp(
        self,
        since: datetime | None = None,
        limit: int = 20,
        server_id: str | None = None,
    ) -> list[LeaderboardEntry]:
        """Users ranked by session XP earned in the window."""
        totals: dict[str, LeaderboardEntry] = {}
        for grant in await self.store.list_xp_entries(since=since, server_id=server_id, source="session"):
            entry = totals.get(grant.user_id)
            if entry is None:
                entry = totals[grant.user_id] = LeaderboardEntry(0, grant.user_id, "")
            entry.xp += grant.amount
            entry.session_count += 1
        if totals:
            names = {s.user_id: s.username for s in await self.store.list_user_stats()}
            for entry in totals.values():
                entry.username = names.get(entry.user_id, "")
        ranked = sorted(totals.values(), key=lambda e: e.xp, reverse=True)[:limit]
        for i, entry in enumerate(ranked, start=1):
            entry.rank = i
        return ranked

    async def top_by_xp(self, limit: int = 20) -> list[LeaderboardEntry]:
        """All-time XP ranking with level and achievement count."""
        stats = sorted(await self.store.list_user_stats(), key=lambda s: s.xp, reverse=True)[:limit]
        return [
            LeaderboardEntry(
                rank=i,
                user_id=s.user_id,
                username=s.username,
                total_duration=s.total_duration,
                session_count=s.total_sessions,
                xp=s.xp,
                level=compute_level(s.xp),
                achievement_count=len(s.achievements),
            )
            for i, s in enumerate(stats, start=1)
        ]

    async def user_ranking(self, user_id: str) -> dict:
        """Rank by all-time focused time among users with stats."""
        stats = sorted(await self.store.list_user_stats(), key=lambda s: s.total_duration, reverse=True)
        total = len(stats)
        rank = next((i for i, s in enumerate(stats, start=1) if s.user_id == user_id), None)
        return {
            "user_id": user_id,
            "rank": rank,
            "total_users": total,
            "percentile": calculate_percentile(rank, total) if rank else 0.0,
        }

    async def live_sessions(self, server_id: str | None = None, limit: int = 10) -> list[LiveSession]:
        """Active sessions, earliest start first."""
        now = self.clock()
        sessions = sorted(await self.store.list_active_sessions(server_id), key=lambda s: s.start_time)
        return [
            LiveSession(
                user_id=s.user_id,
                username=s.username,
                activity=s.activity,
                start_time=s.start_time,
                elapsed=s.elapsed(now),
                is_paused=s.is_paused,
                is_vc_session=s.is_vc_session,
            )
            for s in sessions[:limit]
        ]
