"""Pydantic response models for leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: str
    username: str
    total_duration: int = 0
    session_count: int = 0
    xp: int = 0
    level: int | None = None
    achievement_count: int | None = None


class LeaderboardResponse(BaseModel):
    period: str
    metric: str
    since: datetime | None = None
    server_id: str | None = None
    entries: list[LeaderboardEntryResponse]


class UserRankResponse(BaseModel):
    user_id: str
    rank: int | None = None
    total_users: int
    percentile: float
