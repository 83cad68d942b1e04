"""Daily goals. A recorded goal keeps a streak alive on a day without sessions."""

from __future__ import annotations

import logging
from datetime import datetime

from focustrack.records import DailyGoal
from focustrack.store.base import SessionStore
from focustrack.week_utils import get_day_key, utcnow

logger = logging.getLogger(__name__)


class GoalService:
    def __init__(self, store: SessionStore, tz: str = "UTC", clock=utcnow) -> None:
        self.store = store
        self.tz = tz
        self.clock = clock

    async def set_goal(self, user_id: str, username: str, goal: str, now: datetime | None = None) -> DailyGoal:
        """Record (or replace) today's goal for a user."""
        now = now or self.clock()
        record = DailyGoal(
            user_id=user_id,
            day_key=get_day_key(now, self.tz),
            goal=goal.strip(),
            username=username,
            created_at=now,
        )
        await self.store.save_daily_goal(record)
        logger.info("Daily goal set for user %s on %s", user_id, record.day_key)
        return record

    async def get_goal_for_date(self, user_id: str, day: datetime | str) -> DailyGoal | None:
        day_key = day if isinstance(day, str) else get_day_key(day, self.tz)
        return await self.store.get_daily_goal(user_id, day_key)
