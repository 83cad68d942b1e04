"""Leaderboard API endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, Depends, Query

from focustrack.competition.schemas import LeaderboardEntryResponse, LeaderboardResponse, UserRankResponse
from focustrack.dependencies import FocusServices, get_services

router = APIRouter(prefix="/api/v1", tags=["Competition"])


@router.get("/leaderboards/xp", response_model=LeaderboardResponse)
async def xp_leaderboard(
    limit: int | None = Query(None, ge=1, le=100),
    services: FocusServices = Depends(get_services),
):
    """All-time XP and level ranking."""
    entries = await services.leaderboards.top_by_xp(limit or services.settings.leaderboard_default_limit)
    return LeaderboardResponse(
        period="alltime",
        metric="xp",
        entries=[LeaderboardEntryResponse(**asdict(e)) for e in entries],
    )


@router.get("/leaderboards/{period}", response_model=LeaderboardResponse)
async def period_leaderboard(
    period: Literal["daily", "weekly", "monthly"],
    metric: Literal["duration", "xp"] = "duration",
    server_id: str | None = None,
    limit: int | None = Query(None, ge=1, le=100),
    services: FocusServices = Depends(get_services),
):
    """Top users for the current day, week or month."""
    lb = services.leaderboards
    since = lb.window_start(period)
    size = limit or services.settings.leaderboard_default_limit
    if metric == "xp":
        entries = await lb.top_by_window_xp(since, size, server_id)
    else:
        entries = await lb.top_by_duration(since, size, server_id)
    return LeaderboardResponse(
        period=period,
        metric=metric,
        since=since,
        server_id=server_id,
        entries=[LeaderboardEntryResponse(**asdict(e)) for e in entries],
    )


@router.get("/users/{user_id}/ranking", response_model=UserRankResponse)
async def user_ranking(user_id: str, services: FocusServices = Depends(get_services)):
    """User's all-time rank by focused time."""
    return UserRankResponse(**await services.leaderboards.user_ranking(user_id))
