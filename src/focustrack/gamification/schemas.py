"""Pydantic response models for progression endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

# --- Achievements ---


class AchievementDefinitionResponse(BaseModel):
    id: str
    name: str
    emoji: str
    description: str
    category: str
    rarity: str
    xp_reward: int
    threshold: int


class AllAchievementsResponse(BaseModel):
    achievements: list[AchievementDefinitionResponse]
    total: int


class EarnedAchievementResponse(BaseModel):
    id: str
    name: str
    emoji: str
    rarity: str
    unlocked_at: datetime | None = None


class UserAchievementsResponse(BaseModel):
    earned: list[EarnedAchievementResponse]
    total_earned: int
    total_available: int


# --- Stats ---


class LevelResponse(BaseModel):
    level: int
    xp: int
    xp_for_level: int
    xp_for_next_level: int
    xp_to_next_level: int
    progress: float


class UserStatsResponse(BaseModel):
    user_id: str
    username: str
    total_sessions: int
    total_duration: int
    current_streak: int
    longest_streak: int
    last_session_at: datetime | None = None
    first_session_at: datetime | None = None
    longest_session_duration: int
    activity_types: list[str]
    level: LevelResponse
    achievements_unlocked: int
    weekly_challenges_completed: int


# --- Goals ---


class SetGoalRequest(BaseModel):
    username: str = ""
    goal: str = Field(min_length=1, max_length=500)


class GoalResponse(BaseModel):
    user_id: str
    day_key: str
    goal: str
    created_at: datetime | None = None


# --- Weekly challenge ---


class TopEarnerResponse(BaseModel):
    user_id: str
    username: str
    xp: int


class WeeklyChallengeResponse(BaseModel):
    week_key: str
    start_date: datetime
    end_date: datetime
    target_xp: int
    bonus_xp: int
    participants: int
    completed: int
    top_earners: list[TopEarnerResponse]


class ChallengeProgressResponse(BaseModel):
    week_key: str
    weekly_xp: int
    target_xp: int
    bonus_xp: int
    completed: bool
    progress: float
    rank: int | None = None
