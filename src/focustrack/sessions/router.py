"""Session, voice and server-config API endpoints.

The chat-platform adapter forwards commands and voice-state changes here.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import TypeVar

import structlog
from fastapi import APIRouter, Depends, HTTPException

from focustrack.dependencies import FocusServices, get_services
from focustrack.records import ActiveSession, ServerConfig
from focustrack.sessions.manager import CompletionSummary
from focustrack.sessions.outcomes import OutcomeStatus, SessionOutcome
from focustrack.sessions.schemas import (
    ActiveSessionResponse,
    CompletedSessionResponse,
    CompletionResponse,
    EndSessionRequest,
    FocusRoomRequest,
    LiveSessionResponse,
    LiveSessionsResponse,
    ManualSessionRequest,
    ProgressionResponse,
    ServerConfigResponse,
    StartSessionRequest,
    UserRequest,
    VoiceStateRequest,
    VoiceTransitionResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["Sessions"])

T = TypeVar("T")

_STATUS_CODES = {
    OutcomeStatus.NOT_FOUND: 404,
    OutcomeStatus.CONFLICT: 409,
    OutcomeStatus.VALIDATION: 422,
}


def unwrap(outcome: SessionOutcome[T]) -> T:
    """Return the outcome value or raise the matching HTTP error."""
    if outcome.ok:
        return outcome.value  # type: ignore[return-value]
    raise HTTPException(status_code=_STATUS_CODES[outcome.status], detail=outcome.message)


def _active_response(session: ActiveSession, services: FocusServices) -> ActiveSessionResponse:
    return ActiveSessionResponse(
        user_id=session.user_id,
        username=session.username,
        server_id=session.server_id,
        activity=session.activity,
        start_time=session.start_time,
        is_paused=session.is_paused,
        paused_at=session.paused_at,
        paused_duration=session.paused_duration,
        is_vc_session=session.is_vc_session,
        vc_channel_id=session.vc_channel_id,
        pending_completion=session.pending_completion,
        elapsed=session.elapsed(services.clock()),
    )


def _completion_response(summary: CompletionSummary) -> CompletionResponse:
    completed, result = summary.completed, summary.progression
    return CompletionResponse(
        session=CompletedSessionResponse(
            id=completed.id,
            user_id=completed.user_id,
            activity=completed.activity,
            title=completed.title,
            description=completed.description,
            duration=completed.duration,
            start_time=completed.start_time,
            end_time=completed.end_time,
            intensity=completed.intensity,
            source=completed.source,
            xp_gained=completed.xp_gained,
        ),
        progression=ProgressionResponse(
            xp_gained=result.xp_gained,
            total_xp=result.total_xp,
            leveled_up=result.leveled_up,
            old_level=result.old_level,
            new_level=result.new_level,
            streak=result.streak,
            streak_milestone=result.streak_milestone,
            achievements=result.achievements,
            achievement_xp=result.achievement_xp,
            weekly_xp=result.weekly.weekly_xp if result.weekly else None,
            weekly_challenge_completed=bool(result.weekly and result.weekly.completed_now),
        ),
    )


def _config_response(config: ServerConfig) -> ServerConfigResponse:
    return ServerConfigResponse(**asdict(config))


# ── Session commands ──


@router.post("/sessions/start", response_model=ActiveSessionResponse, status_code=201)
async def start_session(body: StartSessionRequest, services: FocusServices = Depends(get_services)):
    """Start a focus session."""
    session = unwrap(await services.manager.start(body.user_id, body.username, body.server_id, body.activity))
    return _active_response(session, services)


@router.post("/sessions/pause", response_model=ActiveSessionResponse)
async def pause_session(body: UserRequest, services: FocusServices = Depends(get_services)):
    session = unwrap(await services.manager.pause(body.user_id))
    return _active_response(session, services)


@router.post("/sessions/resume", response_model=ActiveSessionResponse)
async def resume_session(body: UserRequest, services: FocusServices = Depends(get_services)):
    session = unwrap(await services.manager.resume(body.user_id))
    return _active_response(session, services)


@router.post("/sessions/end", response_model=CompletionResponse)
async def end_session(body: EndSessionRequest, services: FocusServices = Depends(get_services)):
    """End the active session and apply progression."""
    summary = unwrap(
        await services.manager.end(body.user_id, body.title, body.description, body.intensity)
    )
    logger.info("session_ended", user_id=body.user_id, xp_gained=summary.progression.xp_gained)
    return _completion_response(summary)


@router.post("/sessions/cancel", status_code=204)
async def cancel_session(body: UserRequest, services: FocusServices = Depends(get_services)):
    """Discard the active session. No stats are updated."""
    unwrap(await services.manager.cancel(body.user_id))


@router.post("/sessions/manual", response_model=CompletionResponse, status_code=201)
async def log_manual_session(body: ManualSessionRequest, services: FocusServices = Depends(get_services)):
    """Log a session that was not tracked live."""
    summary = unwrap(
        await services.manager.log_manual(
            body.user_id,
            body.username,
            body.server_id,
            body.activity,
            body.title,
            body.description,
            body.hours,
            body.minutes,
            body.intensity,
        )
    )
    return _completion_response(summary)


@router.get("/sessions/{user_id}", response_model=ActiveSessionResponse)
async def get_active_session(user_id: str, services: FocusServices = Depends(get_services)):
    session = await services.manager.get_active(user_id)
    if session is None:
        raise HTTPException(status_code=404, detail="No active session")
    return _active_response(session, services)


@router.get("/servers/{server_id}/live", response_model=LiveSessionsResponse)
async def live_sessions(server_id: str, services: FocusServices = Depends(get_services)):
    """Sessions currently running in a server."""
    live = await services.leaderboards.live_sessions(server_id, services.settings.live_sessions_limit)
    return LiveSessionsResponse(
        server_id=server_id,
        sessions=[LiveSessionResponse(**asdict(s)) for s in live],
    )


# ── Voice presence ──


@router.post("/voice/state", response_model=VoiceTransitionResponse)
async def voice_state(body: VoiceStateRequest, services: FocusServices = Depends(get_services)):
    """Apply a voice-channel presence change."""
    transition = await services.voice.handle_voice_state(
        body.user_id, body.username, body.server_id, body.old_channel_id, body.new_channel_id
    )
    return VoiceTransitionResponse(user_id=transition.user_id, actions=transition.actions)


# ── Server configuration ──


@router.get("/servers/{server_id}/config", response_model=ServerConfigResponse)
async def get_server_config(server_id: str, services: FocusServices = Depends(get_services)):
    return _config_response(await services.server_configs.get(server_id))


@router.put("/servers/{server_id}/focus-rooms/{channel_id}", response_model=ServerConfigResponse)
async def add_focus_room(
    server_id: str,
    channel_id: str,
    body: FocusRoomRequest | None = None,
    services: FocusServices = Depends(get_services),
):
    """Register a voice channel as a focus room."""
    config = await services.server_configs.add_focus_room(
        server_id, channel_id, body.setup_by if body else None, services.clock()
    )
    return _config_response(config)


@router.delete("/servers/{server_id}/focus-rooms/{channel_id}", response_model=ServerConfigResponse)
async def remove_focus_room(server_id: str, channel_id: str, services: FocusServices = Depends(get_services)):
    return _config_response(await services.server_configs.remove_focus_room(server_id, channel_id))
