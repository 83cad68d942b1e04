"""Service wiring and shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from fastapi import Request

from focustrack.competition.leaderboard_service import LeaderboardAggregator
from focustrack.config import Settings
from focustrack.gamification.achievement_engine import AchievementEngine
from focustrack.gamification.challenge_service import WeeklyChallengeTracker
from focustrack.gamification.goal_service import GoalService
from focustrack.gamification.progression import ProgressionConfig, ProgressionEngine
from focustrack.sessions.manager import SessionManager
from focustrack.sessions.timers import TimerRegistry
from focustrack.sessions.voice import ServerConfigService, VoicePresenceCoordinator
from focustrack.store.base import SessionStore
from focustrack.week_utils import utcnow


@dataclass
class FocusServices:
    store: SessionStore
    timers: TimerRegistry
    manager: SessionManager
    voice: VoicePresenceCoordinator
    server_configs: ServerConfigService
    progression: ProgressionEngine
    achievements: AchievementEngine
    challenges: WeeklyChallengeTracker
    goals: GoalService
    leaderboards: LeaderboardAggregator
    settings: Settings
    clock: Callable[[], datetime] = utcnow
    redis: object = None

    async def shutdown(self) -> None:
        await self.timers.shutdown()


def build_services(
    settings: Settings,
    store: SessionStore,
    *,
    redis: object = None,
    clock: Callable[[], datetime] = utcnow,
) -> FocusServices:
    """Wire the session, progression and competition components."""
    timers = TimerRegistry()
    achievements = AchievementEngine(store, clock)
    challenges = WeeklyChallengeTracker(
        store,
        target_xp=settings.weekly_target_xp,
        bonus_xp=settings.weekly_bonus_xp,
        top_size=settings.weekly_top_earners,
        tz=settings.stats_timezone,
        clock=clock,
    )
    progression = ProgressionEngine(
        store,
        achievements,
        challenges,
        ProgressionConfig(
            xp_per_hour=settings.xp_per_hour,
            session_completion_xp=settings.session_completion_xp,
            first_session_of_day_xp=settings.first_session_of_day_xp,
            streak_milestone_bonuses=dict(settings.streak_milestone_bonuses),
            stats_timezone=settings.stats_timezone,
        ),
        clock,
    )
    manager = SessionManager(
        store,
        progression,
        timers,
        redis=redis,
        clock=clock,
        auto_post_delay=settings.auto_post_delay_seconds,
        auto_end_delay=settings.auto_end_delay_seconds,
    )
    return FocusServices(
        store=store,
        timers=timers,
        manager=manager,
        voice=VoicePresenceCoordinator(manager, store),
        server_configs=ServerConfigService(store),
        progression=progression,
        achievements=achievements,
        challenges=challenges,
        goals=GoalService(store, settings.stats_timezone, clock),
        leaderboards=LeaderboardAggregator(store, settings.leaderboard_timezone, clock),
        settings=settings,
        clock=clock,
        redis=redis,
    )


def get_services(request: Request) -> FocusServices:
    """Return the application's service container (FastAPI dependency)."""
    services: FocusServices | None = getattr(request.app.state, "services", None)
    if services is None:
        msg = "Services not initialized. Start the app lifespan first."
        raise RuntimeError(msg)
    return services
