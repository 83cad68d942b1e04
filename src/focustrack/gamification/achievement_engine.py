"""Achievement evaluation against user stats.

Stat-backed definitions compare a named field with the threshold. Custom
definitions dispatch through ``CUSTOM_RULES``, one predicate per id.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from focustrack.gamification.achievements import ACHIEVEMENTS, AchievementDefinition
from focustrack.gamification.xp_curve import compute_level
from focustrack.gamification.xp_service import grant_xp
from focustrack.records import UserStats
from focustrack.store.base import SessionStore
from focustrack.week_utils import utcnow

logger = logging.getLogger(__name__)

Rule = Callable[[UserStats, int], bool]

CUSTOM_RULES: dict[str, Rule] = {}


def rule(*achievement_ids: str) -> Callable[[Rule], Rule]:
    """Register a predicate for one or more custom achievement ids."""

    def register(fn: Rule) -> Rule:
        for achievement_id in achievement_ids:
            CUSTOM_RULES[achievement_id] = fn
        return fn

    return register


@rule("power_hour", "marathon", "deep_focus", "ultra_marathon", "iron_will")
def _long_session(stats: UserStats, threshold: int) -> bool:
    return stats.longest_session_duration >= threshold


@rule("new_record")
def _new_record(stats: UserStats, threshold: int) -> bool:
    return stats.new_record_pending


@rule("early_bird")
def _early_bird(stats: UserStats, threshold: int) -> bool:
    return stats.sessions_before_7am >= threshold


@rule("night_owl")
def _night_owl(stats: UserStats, threshold: int) -> bool:
    return stats.sessions_after_11pm >= threshold


@rule("midnight_grinder")
def _midnight_grinder(stats: UserStats, threshold: int) -> bool:
    return stats.sessions_after_midnight >= threshold


@rule("morning_starter", "morning_routine", "morning_champion", "morning_legend")
def _morning(stats: UserStats, threshold: int) -> bool:
    return stats.morning_sessions_before_10am >= threshold


@rule("weekend_warrior")
def _weekend_warrior(stats: UserStats, threshold: int) -> bool:
    return stats.weekend_warrior_weeks >= threshold


@rule("weekend_streak")
def _weekend_streak(stats: UserStats, threshold: int) -> bool:
    return stats.consecutive_full_weekends >= threshold


@rule("full_week")
def _full_week(stats: UserStats, threshold: int) -> bool:
    return stats.full_weeks >= threshold


@rule("month_master")
def _month_master(stats: UserStats, threshold: int) -> bool:
    return stats.best_month_days >= threshold


@rule("level_5", "level_10", "level_25", "level_35", "level_50", "level_100")
def _level(stats: UserStats, threshold: int) -> bool:
    return compute_level(stats.xp) >= threshold


@rule("collector")
def _collector(stats: UserStats, threshold: int) -> bool:
    return len(stats.achievements) >= threshold


def is_satisfied(definition: AchievementDefinition, stats: UserStats) -> bool:
    """Whether ``stats`` meets the definition's condition."""
    if definition.kind in ("sessions", "hours", "streak"):
        return int(getattr(stats, definition.stat_field or "")) >= definition.threshold
    if definition.kind == "activities":
        return len(set(stats.activity_types)) >= definition.threshold
    if definition.kind == "custom":
        predicate = CUSTOM_RULES.get(definition.id)
        if predicate is None:
            logger.warning("No rule registered for achievement %s", definition.id)
            return False
        return predicate(stats, definition.threshold)
    logger.warning("Unknown achievement kind %s for %s", definition.kind, definition.id)
    return False


class AchievementEngine:
    """Unlocks achievements and grants their XP rewards exactly once."""

    def __init__(self, store: SessionStore, clock: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self.clock = clock

    async def evaluate_stats(self, stats: UserStats, server_id: str = "", now: datetime | None = None) -> list[str]:
        """Unlock everything ``stats`` now satisfies. Mutates ``stats``; caller saves.

        Runs to a fixpoint so rewards that cross a level or collector
        threshold unlock in the same call.
        """
        now = now or self.clock()
        unlocked: list[str] = []
        while True:
            owned = set(stats.achievements)
            newly = [a for a in ACHIEVEMENTS if a.id not in owned and is_satisfied(a, stats)]
            if not newly:
                break
            for definition in newly:
                stats.achievements.append(definition.id)
                stats.achievements_unlocked_at[definition.id] = now
                if definition.id == "new_record":
                    stats.new_record_pending = False
                await grant_xp(
                    self.store,
                    stats,
                    amount=definition.xp_reward,
                    source="achievement",
                    source_id=definition.id,
                    description=f'Unlocked achievement: "{definition.name}"',
                    idempotency_key=f"achievement:{definition.id}:{stats.user_id}",
                    server_id=server_id,
                    now=now,
                )
                unlocked.append(definition.id)
                logger.info("Achievement %s unlocked for user %s", definition.id, stats.user_id)
        return unlocked

    async def evaluate(self, user_id: str, server_id: str = "") -> list[str]:
        """Load, evaluate and persist a user's achievements. Idempotent."""
        stats = await self.store.get_user_stats(user_id)
        if stats is None:
            return []
        unlocked = await self.evaluate_stats(stats, server_id)
        if unlocked:
            await self.store.save_user_stats(stats)
        return unlocked
