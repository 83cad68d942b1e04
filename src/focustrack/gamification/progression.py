"""Progression engine: turns one completed session into XP, streak and unlocks."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from focustrack.gamification.achievement_engine import AchievementEngine
from focustrack.gamification.achievements import ACHIEVEMENTS_BY_ID
from focustrack.gamification.challenge_service import ChallengeUpdate, WeeklyChallengeTracker
from focustrack.gamification.streak_service import compute_streak, milestone_bonus
from focustrack.gamification.xp_curve import XPBreakdown, calculate_session_xp, compute_level
from focustrack.gamification.xp_service import get_or_create_stats, grant_xp
from focustrack.records import CompletedSession, UserStats
from focustrack.store.base import SessionStore
from focustrack.week_utils import get_day_key, get_month_key, get_week_iso, to_local, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ProgressionResult:
    xp_gained: int
    leveled_up: bool
    old_level: int
    new_level: int
    streak: int
    total_xp: int = 0
    streak_milestone: int | None = None
    achievements: list[str] = field(default_factory=list)
    achievement_xp: int = 0
    breakdown: XPBreakdown | None = None
    weekly: ChallengeUpdate | None = None
    duplicate: bool = False


@dataclass
class ProgressionConfig:
    xp_per_hour: int = 100
    session_completion_xp: int = 25
    first_session_of_day_xp: int = 25
    streak_milestone_bonuses: dict[int, int] = field(default_factory=lambda: {7: 100, 30: 500})
    stats_timezone: str = "UTC"


def apply_session_counters(stats: UserStats, completed: CompletedSession, tz: str, first_of_day: bool) -> None:
    """Fold one completion into the cumulative and schedule counters."""
    end = completed.end_time
    local = to_local(end, tz)
    day_key = get_day_key(end, tz)
    week_key = get_week_iso(end, tz)
    month_key = get_month_key(end, tz)

    stats.username = completed.username or stats.username
    stats.total_sessions += 1
    stats.total_duration += completed.duration
    stats.last_session_at = end
    if stats.first_session_at is None:
        stats.first_session_at = end
    stats.sessions_by_day[day_key] = stats.sessions_by_day.get(day_key, 0) + 1
    if completed.activity not in stats.activity_types:
        stats.activity_types.append(completed.activity)
    if first_of_day:
        stats.first_session_of_day_count += 1

    if stats.longest_session_duration > 0 and completed.duration > stats.longest_session_duration:
        if "new_record" not in stats.achievements:
            stats.new_record_pending = True
    stats.longest_session_duration = max(stats.longest_session_duration, completed.duration)

    hour = local.hour
    if hour < 7:
        stats.sessions_before_7am += 1
    if hour >= 23:
        stats.sessions_after_11pm += 1
    if 0 <= hour < 6:
        stats.sessions_after_midnight += 1
    if hour < 10 and completed.duration >= 3600:
        stats.morning_sessions_before_10am += 1

    weekday = local.isoweekday()
    week_days = stats.week_days.setdefault(week_key, [])
    if weekday not in week_days:
        week_days.append(weekday)
    month_days = stats.month_days.setdefault(month_key, [])
    if local.day not in month_days:
        month_days.append(local.day)


class ProgressionEngine:
    def __init__(
        self,
        store: SessionStore,
        achievements: AchievementEngine,
        challenges: WeeklyChallengeTracker,
        config: ProgressionConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.achievements = achievements
        self.challenges = challenges
        self.config = config or ProgressionConfig()
        self.clock = clock

    async def record_completion(self, completed: CompletedSession) -> ProgressionResult:
        """Apply a completed session to the user's stats exactly once.

        A second call for the same completion id is a no-op and returns a
        result with ``duplicate=True``.
        """
        cfg = self.config
        now = completed.end_time
        stats = await get_or_create_stats(self.store, completed.user_id, completed.username)
        old_xp = stats.xp
        old_level = compute_level(old_xp)

        first_of_day = stats.sessions_by_day.get(get_day_key(now, cfg.stats_timezone), 0) == 0
        streak = await compute_streak(self.store, stats, now, cfg.stats_timezone)
        milestone = milestone_bonus(streak, cfg.streak_milestone_bonuses)

        breakdown = calculate_session_xp(
            completed.duration,
            xp_per_hour=cfg.xp_per_hour,
            completion_xp=cfg.session_completion_xp,
            first_of_day_xp=cfg.first_session_of_day_xp,
            is_first_of_day=first_of_day,
            intensity=completed.intensity,
            milestone_xp=milestone,
        )

        granted = await grant_xp(
            self.store,
            stats,
            amount=breakdown.total,
            source="session",
            source_id=completed.id,
            description=f"Completed session: {completed.title}",
            idempotency_key=f"session:{completed.id}",
            server_id=completed.server_id,
            now=now,
        )
        if not granted:
            return ProgressionResult(
                xp_gained=0,
                leveled_up=False,
                old_level=old_level,
                new_level=old_level,
                streak=stats.current_streak,
                total_xp=stats.xp,
                duplicate=True,
            )

        apply_session_counters(stats, completed, cfg.stats_timezone, first_of_day)
        stats.current_streak = streak.current
        stats.longest_streak = max(stats.longest_streak, stats.current_streak)

        unlocked = await self.achievements.evaluate_stats(stats, completed.server_id, now)
        achievement_xp = sum(ACHIEVEMENTS_BY_ID[a].xp_reward for a in unlocked)
        weekly = await self.challenges.record_xp(stats, breakdown.total + achievement_xp, completed.server_id, now)

        await self.store.save_user_stats(stats)

        new_level = compute_level(stats.xp)
        logger.info(
            "Progression for user %s: +%d XP (streak %d, level %d -> %d, %d achievements)",
            stats.user_id, breakdown.total, stats.current_streak, old_level, new_level, len(unlocked),
        )
        return ProgressionResult(
            xp_gained=breakdown.total,
            leveled_up=new_level > old_level,
            old_level=old_level,
            new_level=new_level,
            streak=stats.current_streak,
            total_xp=stats.xp,
            streak_milestone=streak.current if milestone else None,
            achievements=unlocked,
            achievement_xp=achievement_xp,
            breakdown=breakdown,
            weekly=weekly,
        )
