"""Daily streak evaluation.

A streak counts consecutive local calendar days with a completed session
or a recorded daily goal. It is evaluated on each completion, not by a
scheduled job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from focustrack.records import UserStats
from focustrack.store.base import SessionStore
from focustrack.week_utils import days_strictly_between, local_date

logger = logging.getLogger(__name__)


@dataclass
class StreakUpdate:
    previous: int
    current: int

    @property
    def increased(self) -> bool:
        return self.current > self.previous


async def compute_streak(store: SessionStore, stats: UserStats, now: datetime, tz: str = "UTC") -> StreakUpdate:
    """Streak after a completion at ``now``. Does not mutate ``stats``."""
    previous = stats.current_streak
    if stats.last_session_at is None:
        return StreakUpdate(previous, 1)

    last_day = local_date(stats.last_session_at, tz)
    today = local_date(now, tz)
    gap = (today - last_day).days

    if gap <= 0:
        return StreakUpdate(previous, max(previous, 1))
    if gap == 1:
        return StreakUpdate(previous, previous + 1)

    for day in days_strictly_between(last_day, today):
        key = day.isoformat()
        if stats.sessions_by_day.get(key):
            continue
        if await store.get_daily_goal(stats.user_id, key) is not None:
            continue
        logger.info("Streak reset for user %s: no activity on %s", stats.user_id, key)
        return StreakUpdate(previous, 1)

    # Bridged gap days count toward the streak.
    return StreakUpdate(previous, previous + gap)


def milestone_bonus(update: StreakUpdate, bonuses: dict[int, int]) -> int:
    """Flat bonus when the streak newly reaches a milestone length."""
    if not update.increased:
        return 0
    return bonuses.get(update.current, 0)
