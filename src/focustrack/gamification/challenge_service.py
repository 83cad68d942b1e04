"""Weekly community challenge: reach the XP target within an ISO week.

The challenge document is shared by every user, so updates to one week are
serialised through a per-week lock and, on SQL backends, a row lock held
until the surrounding transaction commits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from focustrack.gamification.xp_service import grant_xp
from focustrack.locks import KeyedLock
from focustrack.records import UserStats, WeeklyChallenge
from focustrack.store.base import SessionStore
from focustrack.week_utils import get_week_boundaries, get_week_iso, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ChallengeUpdate:
    week_key: str
    weekly_xp: int
    target_xp: int
    completed_now: bool = False
    bonus_awarded: int = 0


class WeeklyChallengeTracker:
    def __init__(
        self,
        store: SessionStore,
        *,
        target_xp: int = 1000,
        bonus_xp: int = 200,
        top_size: int = 10,
        tz: str = "UTC",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.target_xp = target_xp
        self.bonus_xp = bonus_xp
        self.top_size = top_size
        self.tz = tz
        self.clock = clock
        self._locks = KeyedLock()

    def week_key(self, now: datetime | None = None) -> str:
        return get_week_iso(now or self.clock(), self.tz)

    async def get_or_create(self, now: datetime | None = None, *, for_update: bool = False) -> WeeklyChallenge:
        """The challenge for the week containing ``now``, created on first touch."""
        week_key = self.week_key(now)
        challenge = await self.store.get_weekly_challenge(week_key, for_update=for_update)
        if challenge is not None:
            return challenge
        start, end = get_week_boundaries(week_key, self.tz)
        created = await self.store.create_weekly_challenge(
            WeeklyChallenge(
                week_key=week_key,
                start_date=start,
                end_date=end,
                target_xp=self.target_xp,
                bonus_xp=self.bonus_xp,
            )
        )
        if created:
            logger.info("Created weekly challenge %s", week_key)
        # Re-read: another writer may have created the week first.
        return await self.store.get_weekly_challenge(week_key, for_update=for_update)

    async def record_xp(
        self,
        stats: UserStats,
        xp: int,
        server_id: str = "",
        now: datetime | None = None,
    ) -> ChallengeUpdate:
        """Add XP to the user's weekly total. Mutates ``stats``; caller saves.

        The completion bonus is granted only when this call moves the user
        from below the target to at or above it.
        """
        now = now or self.clock()
        async with self._locks(self.week_key(now)):
            challenge = await self.get_or_create(now, for_update=True)
            return await self._apply(challenge, stats, xp, server_id, now)

    async def _apply(
        self,
        challenge: WeeklyChallenge,
        stats: UserStats,
        xp: int,
        server_id: str,
        now: datetime,
    ) -> ChallengeUpdate:
        week_key = challenge.week_key
        before = stats.weekly_xp_earned.get(week_key, 0)
        after = before + max(0, xp)
        stats.weekly_xp_earned[week_key] = after
        if stats.user_id not in challenge.participants:
            challenge.participants.append(stats.user_id)

        update = ChallengeUpdate(week_key=week_key, weekly_xp=after, target_xp=challenge.target_xp)
        if before < challenge.target_xp <= after and stats.user_id not in challenge.completed_by:
            challenge.completed_by.append(stats.user_id)
            granted = await grant_xp(
                self.store,
                stats,
                amount=challenge.bonus_xp,
                source="challenge",
                source_id=week_key,
                description=f"Weekly challenge {week_key} completed",
                idempotency_key=f"challenge:{week_key}:{stats.user_id}",
                server_id=server_id,
                now=now,
            )
            if granted:
                stats.weekly_challenges_completed += 1
                update.bonus_awarded = challenge.bonus_xp
            update.completed_now = True
            logger.info("User %s completed weekly challenge %s", stats.user_id, week_key)

        challenge.top_earners = await self._top_earners(challenge, stats)
        await self.store.save_weekly_challenge(challenge)
        return update

    async def _top_earners(self, challenge: WeeklyChallenge, current: UserStats) -> list[dict]:
        """Merge stored stats into the cached board. Weekly XP only grows, so the larger value wins."""
        week_key = challenge.week_key
        merged = {e["user_id"]: dict(e) for e in challenge.top_earners}
        for s in [*await self.store.list_user_stats(), current]:
            xp = s.weekly_xp_earned.get(week_key, 0)
            if xp <= 0:
                continue
            entry = merged.get(s.user_id)
            if entry is None or s is current or xp > entry["xp"]:
                merged[s.user_id] = {"user_id": s.user_id, "username": s.username, "xp": xp}
        earners = list(merged.values())
        earners.sort(key=lambda e: e["xp"], reverse=True)
        return earners[: self.top_size]

    async def current_challenge(self) -> WeeklyChallenge:
        return await self.get_or_create()

    async def user_progress(self, user_id: str) -> dict:
        challenge = await self.get_or_create()
        stats = await self.store.get_user_stats(user_id)
        weekly_xp = stats.weekly_xp_earned.get(challenge.week_key, 0) if stats else 0
        rank = next(
            (i + 1 for i, e in enumerate(challenge.top_earners) if e["user_id"] == user_id),
            None,
        )
        return {
            "week_key": challenge.week_key,
            "weekly_xp": weekly_xp,
            "target_xp": challenge.target_xp,
            "bonus_xp": challenge.bonus_xp,
            "completed": user_id in challenge.completed_by,
            "progress": min(100.0, round(weekly_xp / challenge.target_xp * 100, 2)) if challenge.target_xp else 100.0,
            "rank": rank,
        }
