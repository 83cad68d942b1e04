"""Progression API endpoints: stats, achievements, goals and the weekly challenge."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from focustrack.dependencies import FocusServices, get_services
from focustrack.gamification.achievements import ACHIEVEMENTS, ACHIEVEMENTS_BY_ID
from focustrack.gamification.schemas import (
    AchievementDefinitionResponse,
    AllAchievementsResponse,
    ChallengeProgressResponse,
    EarnedAchievementResponse,
    GoalResponse,
    LevelResponse,
    SetGoalRequest,
    TopEarnerResponse,
    UserAchievementsResponse,
    UserStatsResponse,
    WeeklyChallengeResponse,
)
from focustrack.gamification.xp_curve import level_info

router = APIRouter(prefix="/api/v1", tags=["Progression"])


@router.get("/achievements", response_model=AllAchievementsResponse)
async def list_achievements():
    """Full achievement catalog in display order."""
    return AllAchievementsResponse(
        achievements=[
            AchievementDefinitionResponse(
                id=a.id,
                name=a.name,
                emoji=a.emoji,
                description=a.description,
                category=a.category,
                rarity=a.rarity,
                xp_reward=a.xp_reward,
                threshold=a.threshold,
            )
            for a in ACHIEVEMENTS
        ],
        total=len(ACHIEVEMENTS),
    )


@router.get("/users/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(user_id: str, services: FocusServices = Depends(get_services)):
    stats = await services.store.get_user_stats(user_id)
    if stats is None:
        raise HTTPException(status_code=404, detail="No stats for this user")
    return UserStatsResponse(
        user_id=stats.user_id,
        username=stats.username,
        total_sessions=stats.total_sessions,
        total_duration=stats.total_duration,
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        last_session_at=stats.last_session_at,
        first_session_at=stats.first_session_at,
        longest_session_duration=stats.longest_session_duration,
        activity_types=stats.activity_types,
        level=LevelResponse(**level_info(stats.xp)),
        achievements_unlocked=len(stats.achievements),
        weekly_challenges_completed=stats.weekly_challenges_completed,
    )


@router.get("/users/{user_id}/achievements", response_model=UserAchievementsResponse)
async def get_user_achievements(user_id: str, services: FocusServices = Depends(get_services)):
    stats = await services.store.get_user_stats(user_id)
    earned_ids = stats.achievements if stats else []
    earned = []
    for achievement_id in earned_ids:
        definition = ACHIEVEMENTS_BY_ID.get(achievement_id)
        if definition is None:
            continue
        earned.append(EarnedAchievementResponse(
            id=definition.id,
            name=definition.name,
            emoji=definition.emoji,
            rarity=definition.rarity,
            unlocked_at=stats.achievements_unlocked_at.get(achievement_id) if stats else None,
        ))
    return UserAchievementsResponse(
        earned=earned,
        total_earned=len(earned),
        total_available=len(ACHIEVEMENTS),
    )


@router.put("/users/{user_id}/goal", response_model=GoalResponse)
async def set_daily_goal(user_id: str, body: SetGoalRequest, services: FocusServices = Depends(get_services)):
    """Record today's goal. A goal keeps the streak alive on a day without sessions."""
    goal = await services.goals.set_goal(user_id, body.username, body.goal)
    return GoalResponse(user_id=goal.user_id, day_key=goal.day_key, goal=goal.goal, created_at=goal.created_at)


@router.get("/challenges/current", response_model=WeeklyChallengeResponse)
async def current_challenge(services: FocusServices = Depends(get_services)):
    challenge = await services.challenges.current_challenge()
    return WeeklyChallengeResponse(
        week_key=challenge.week_key,
        start_date=challenge.start_date,
        end_date=challenge.end_date,
        target_xp=challenge.target_xp,
        bonus_xp=challenge.bonus_xp,
        participants=len(challenge.participants),
        completed=len(challenge.completed_by),
        top_earners=[TopEarnerResponse(**e) for e in challenge.top_earners],
    )


@router.get("/challenges/current/{user_id}", response_model=ChallengeProgressResponse)
async def challenge_progress(user_id: str, services: FocusServices = Depends(get_services)):
    return ChallengeProgressResponse(**await services.challenges.user_progress(user_id))
