"""Translates voice-channel presence changes into session transitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from focustrack.records import ServerConfig
from focustrack.sessions.manager import SessionManager
from focustrack.store.base import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class VoiceTransition:
    """What a presence change did. ``actions`` is empty for a no-op."""

    user_id: str
    actions: list[str] = field(default_factory=list)


class VoicePresenceCoordinator:
    """Drives focus-room auto-start/pending and generic disconnect pause.

    Focus-room handling runs first, then generic disconnect/reconnect.
    Both tolerate events for users with no session.
    """

    def __init__(self, manager: SessionManager, store: SessionStore) -> None:
        self.manager = manager
        self.store = store

    async def focus_rooms(self, server_id: str) -> set[str]:
        config = await self.store.get_server_config(server_id)
        return set(config.focus_room_ids) if config else set()

    async def handle_voice_state(
        self,
        user_id: str,
        username: str,
        server_id: str,
        old_channel_id: str | None,
        new_channel_id: str | None,
    ) -> VoiceTransition:
        transition = VoiceTransition(user_id)
        if old_channel_id == new_channel_id:
            return transition

        rooms = await self.focus_rooms(server_id)
        was_in_focus = old_channel_id in rooms if old_channel_id else False
        now_in_focus = new_channel_id in rooms if new_channel_id else False

        if now_in_focus and not was_in_focus:
            await self._entered_focus_room(transition, username, server_id, new_channel_id)
        elif was_in_focus:
            await self._left_focus_room(transition, new_channel_id, now_in_focus)

        if old_channel_id and new_channel_id is None:
            outcome = await self.manager.auto_pause(user_id)
            if outcome.ok:
                transition.actions.append("auto_paused")
        elif old_channel_id is None and new_channel_id:
            outcome = await self.manager.auto_resume(user_id)
            if outcome.ok:
                transition.actions.append("auto_resumed")

        if transition.actions:
            logger.info("Voice transition for user %s: %s", user_id, ", ".join(transition.actions))
        return transition

    async def _entered_focus_room(
        self, transition: VoiceTransition, username: str, server_id: str, channel_id: str
    ) -> None:
        user_id = transition.user_id
        session = await self.manager.get_active(user_id)
        if session is None:
            outcome = await self.manager.start_vc_session(user_id, username, server_id, channel_id)
            if outcome.ok:
                transition.actions.append("vc_session_started")
        elif session.is_vc_session and session.pending_completion:
            outcome = await self.manager.clear_pending_completion(user_id, channel_id)
            if outcome.ok:
                transition.actions.append("vc_session_resumed")

    async def _left_focus_room(
        self, transition: VoiceTransition, new_channel_id: str | None, now_in_focus: bool
    ) -> None:
        user_id = transition.user_id
        session = await self.manager.get_active(user_id)
        if session is None or not session.is_vc_session or session.pending_completion:
            return
        if now_in_focus and new_channel_id:
            outcome = await self.manager.switch_vc_channel(user_id, new_channel_id)
            if outcome.ok:
                transition.actions.append("vc_channel_switched")
            return
        outcome = await self.manager.mark_pending_completion(user_id)
        if outcome.ok:
            transition.actions.append("vc_pending_completion")

    async def on_voice_joined(self, user_id: str, username: str, server_id: str, channel_id: str) -> VoiceTransition:
        return await self.handle_voice_state(user_id, username, server_id, None, channel_id)

    async def on_voice_left(self, user_id: str, username: str, server_id: str, channel_id: str) -> VoiceTransition:
        return await self.handle_voice_state(user_id, username, server_id, channel_id, None)


class ServerConfigService:
    """Focus-room registration per server. Add and remove are idempotent."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store

    async def get(self, server_id: str) -> ServerConfig:
        return await self.store.get_server_config(server_id) or ServerConfig(server_id=server_id)

    async def add_focus_room(self, server_id: str, channel_id: str, setup_by: str | None, now: datetime) -> ServerConfig:
        config = await self.get(server_id)
        if channel_id not in config.focus_room_ids:
            config.focus_room_ids.append(channel_id)
        if config.setup_at is None:
            config.setup_at = now
            config.setup_by = setup_by
        await self.store.save_server_config(config)
        logger.info("Focus room %s registered for server %s", channel_id, server_id)
        return config

    async def remove_focus_room(self, server_id: str, channel_id: str) -> ServerConfig:
        config = await self.get(server_id)
        if channel_id in config.focus_room_ids:
            config.focus_room_ids.remove(channel_id)
            await self.store.save_server_config(config)
            logger.info("Focus room %s removed from server %s", channel_id, server_id)
        return config
