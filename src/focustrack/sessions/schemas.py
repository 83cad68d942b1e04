"""Pydantic request/response models for session and voice endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

# --- Requests ---


class StartSessionRequest(BaseModel):
    user_id: str
    username: str
    server_id: str
    activity: str = Field(min_length=1, max_length=256)


class UserRequest(BaseModel):
    user_id: str


class EndSessionRequest(BaseModel):
    user_id: str
    title: str = Field(min_length=1, max_length=256)
    description: str = Field(default="", max_length=4000)
    intensity: int | None = Field(default=None, ge=1, le=5)


class ManualSessionRequest(BaseModel):
    user_id: str
    username: str
    server_id: str
    activity: str = Field(min_length=1, max_length=256)
    title: str = Field(min_length=1, max_length=256)
    description: str = Field(default="", max_length=4000)
    hours: int = 0
    minutes: int = 0
    intensity: int | None = Field(default=None, ge=1, le=5)


class VoiceStateRequest(BaseModel):
    user_id: str
    username: str
    server_id: str
    old_channel_id: str | None = None
    new_channel_id: str | None = None


class FocusRoomRequest(BaseModel):
    setup_by: str | None = None


# --- Responses ---


class ActiveSessionResponse(BaseModel):
    user_id: str
    username: str
    server_id: str
    activity: str
    start_time: datetime
    is_paused: bool
    paused_at: datetime | None = None
    paused_duration: int
    is_vc_session: bool
    vc_channel_id: str | None = None
    pending_completion: bool
    elapsed: int


class CompletedSessionResponse(BaseModel):
    id: str
    user_id: str
    activity: str
    title: str
    description: str
    duration: int
    start_time: datetime
    end_time: datetime
    intensity: int | None = None
    source: str
    xp_gained: int = 0


class ProgressionResponse(BaseModel):
    xp_gained: int
    total_xp: int
    leveled_up: bool
    old_level: int
    new_level: int
    streak: int
    streak_milestone: int | None = None
    achievements: list[str] = []
    achievement_xp: int = 0
    weekly_xp: int | None = None
    weekly_challenge_completed: bool = False


class CompletionResponse(BaseModel):
    session: CompletedSessionResponse
    progression: ProgressionResponse


class LiveSessionResponse(BaseModel):
    user_id: str
    username: str
    activity: str
    start_time: datetime
    elapsed: int
    is_paused: bool
    is_vc_session: bool


class LiveSessionsResponse(BaseModel):
    server_id: str
    sessions: list[LiveSessionResponse]


class VoiceTransitionResponse(BaseModel):
    user_id: str
    actions: list[str]


class ServerConfigResponse(BaseModel):
    server_id: str
    focus_room_ids: list[str]
    feed_channel_id: str | None = None
    setup_at: datetime | None = None
    setup_by: str | None = None
