"""Active-session state machine and the completion pipeline.

Every operation for a user runs under that user's lock. A completion pops
the active session first (compare-and-delete in the store), so whichever
trigger wins the pop owns the completion and any competing trigger finds
nothing and becomes a no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from focustrack import events
from focustrack.exceptions import PersistenceError
from focustrack.gamification.progression import ProgressionEngine, ProgressionResult
from focustrack.locks import KeyedLock
from focustrack.records import ActiveSession, CompletedSession
from focustrack.sessions.formatting import format_duration
from focustrack.sessions.outcomes import SessionOutcome
from focustrack.sessions.timers import TimerKind, TimerRegistry
from focustrack.store.base import SessionStore
from focustrack.week_utils import utcnow

logger = logging.getLogger(__name__)

VC_ACTIVITY = "VC Session"
VC_TITLE = "Focus session in voice channel"


@dataclass
class CompletionSummary:
    completed: CompletedSession
    progression: ProgressionResult


class SessionManager:
    def __init__(
        self,
        store: SessionStore,
        progression: ProgressionEngine,
        timers: TimerRegistry | None = None,
        *,
        redis: object = None,
        clock: Callable[[], datetime] = utcnow,
        auto_post_delay: float = 600,
        auto_end_delay: float = 600,
    ) -> None:
        self.store = store
        self.progression = progression
        self.timers = timers or TimerRegistry()
        self.redis = redis
        self.clock = clock
        self.auto_post_delay = auto_post_delay
        self.auto_end_delay = auto_end_delay
        self._locks = KeyedLock()

    # --- Reads ---

    async def get_active(self, user_id: str) -> ActiveSession | None:
        return await self.store.get_active_session(user_id)

    async def elapsed(self, user_id: str) -> int | None:
        session = await self.store.get_active_session(user_id)
        return session.elapsed(self.clock()) if session else None

    # --- Explicit commands ---

    async def start(
        self,
        user_id: str,
        username: str,
        server_id: str,
        activity: str,
    ) -> SessionOutcome[ActiveSession]:
        if not activity.strip():
            return SessionOutcome.invalid("Activity is required")
        async with self._locks(user_id):
            session = ActiveSession(
                user_id=user_id,
                username=username,
                server_id=server_id,
                activity=activity.strip(),
                start_time=self.clock(),
            )
            if not await self.store.create_active_session(session):
                return SessionOutcome.conflict("You already have an active session")
        logger.info("Session started for user %s (%s)", user_id, session.activity)
        await self._publish_started(session)
        return SessionOutcome.success(session)

    async def pause(self, user_id: str) -> SessionOutcome[ActiveSession]:
        async with self._locks(user_id):
            session = await self.store.get_active_session(user_id)
            if session is None:
                return SessionOutcome.not_found()
            if session.is_paused:
                return SessionOutcome.conflict("Session is already paused")
            self._pause(session, auto=False)
            await self.store.save_active_session(session)
        logger.info("Session paused for user %s", user_id)
        return SessionOutcome.success(session)

    async def resume(self, user_id: str) -> SessionOutcome[ActiveSession]:
        async with self._locks(user_id):
            session = await self.store.get_active_session(user_id)
            if session is None:
                return SessionOutcome.not_found()
            if not session.is_paused:
                return SessionOutcome.conflict("Session is not paused")
            self._resume(session)
            await self.store.save_active_session(session)
            self.timers.cancel(TimerKind.AUTO_END, user_id)
        logger.info("Session resumed for user %s", user_id)
        return SessionOutcome.success(session)

    async def end(
        self,
        user_id: str,
        title: str,
        description: str = "",
        intensity: int | None = None,
    ) -> SessionOutcome[CompletionSummary]:
        if not title.strip():
            return SessionOutcome.invalid("Title is required")
        if intensity is not None and not 1 <= intensity <= 5:
            return SessionOutcome.invalid("Intensity must be between 1 and 5")
        async with self._locks(user_id):
            summary = await self._complete(
                user_id,
                title=title.strip(),
                description=description.strip(),
                intensity=intensity,
                source="command",
            )
        if summary is None:
            return SessionOutcome.not_found()
        return SessionOutcome.success(summary)

    async def cancel(self, user_id: str) -> SessionOutcome[ActiveSession]:
        """Discard the active session without touching stats."""
        async with self._locks(user_id):
            session = await self.store.pop_active_session(user_id)
            self.timers.cancel_all(user_id)
        if session is None:
            return SessionOutcome.not_found()
        logger.info("Session cancelled for user %s", user_id)
        return SessionOutcome.success(session)

    async def log_manual(
        self,
        user_id: str,
        username: str,
        server_id: str,
        activity: str,
        title: str,
        description: str = "",
        hours: int = 0,
        minutes: int = 0,
        intensity: int | None = None,
    ) -> SessionOutcome[CompletionSummary]:
        """Record a session that was not tracked live, ending now."""
        if not isinstance(hours, int) or not isinstance(minutes, int):
            return SessionOutcome.invalid("Hours and minutes must be whole numbers")
        if hours < 0 or minutes < 0 or minutes >= 60:
            return SessionOutcome.invalid("Hours must be >= 0 and minutes between 0 and 59")
        duration = hours * 3600 + minutes * 60
        if duration <= 0:
            return SessionOutcome.invalid("Duration must be greater than zero")
        if not activity.strip() or not title.strip():
            return SessionOutcome.invalid("Activity and title are required")
        if intensity is not None and not 1 <= intensity <= 5:
            return SessionOutcome.invalid("Intensity must be between 1 and 5")

        now = self.clock()
        completed = CompletedSession(
            user_id=user_id,
            username=username,
            server_id=server_id,
            activity=activity.strip(),
            title=title.strip(),
            description=description.strip(),
            duration=duration,
            start_time=now - timedelta(seconds=duration),
            end_time=now,
            created_at=now,
            intensity=intensity,
            source="manual",
        )
        async with self._locks(user_id):
            try:
                async with self.store.transaction():
                    result = await self._record(completed)
            except PersistenceError:
                logger.error("Manual session for user %s failed to persist", user_id)
                raise
        summary = CompletionSummary(completed, result)
        logger.info("Manual session logged for user %s: %s", user_id, format_duration(duration))
        await self._publish_completion(summary)
        return SessionOutcome.success(summary)

    # --- Voice-driven transitions ---

    async def start_vc_session(
        self,
        user_id: str,
        username: str,
        server_id: str,
        channel_id: str,
    ) -> SessionOutcome[ActiveSession]:
        async with self._locks(user_id):
            session = ActiveSession(
                user_id=user_id,
                username=username,
                server_id=server_id,
                activity=VC_ACTIVITY,
                start_time=self.clock(),
                is_vc_session=True,
                vc_channel_id=channel_id,
            )
            if not await self.store.create_active_session(session):
                return SessionOutcome.conflict("You already have an active session")
        logger.info("VC session auto-started for user %s in %s", user_id, channel_id)
        await self._publish_started(session)
        return SessionOutcome.success(session)

    async def clear_pending_completion(self, user_id: str, channel_id: str) -> SessionOutcome[ActiveSession]:
        """User came back to a focus room before the auto-post fired."""
        async with self._locks(user_id):
            session = await self.store.get_active_session(user_id)
            if session is None:
                return SessionOutcome.not_found()
            if not (session.is_vc_session and session.pending_completion):
                return SessionOutcome.conflict("Session is not pending completion")
            session.pending_completion = False
            session.left_vc_at = None
            session.vc_channel_id = channel_id
            await self.store.save_active_session(session)
            self.timers.cancel(TimerKind.AUTO_POST, user_id)
        logger.info("VC session resumed for user %s", user_id)
        return SessionOutcome.success(session)

    async def switch_vc_channel(self, user_id: str, channel_id: str) -> SessionOutcome[ActiveSession]:
        async with self._locks(user_id):
            session = await self.store.get_active_session(user_id)
            if session is None:
                return SessionOutcome.not_found()
            if not session.is_vc_session:
                return SessionOutcome.conflict("Session is not a voice session")
            session.vc_channel_id = channel_id
            await self.store.save_active_session(session)
        return SessionOutcome.success(session)

    async def mark_pending_completion(self, user_id: str) -> SessionOutcome[ActiveSession]:
        """User left the focus room; arm the auto-post timer."""
        async with self._locks(user_id):
            session = await self.store.get_active_session(user_id)
            if session is None:
                return SessionOutcome.not_found()
            if not session.is_vc_session or session.pending_completion:
                return SessionOutcome.conflict("Session is not an active voice session")
            session.pending_completion = True
            session.left_vc_at = self.clock()
            await self.store.save_active_session(session)
            self.timers.arm(
                TimerKind.AUTO_POST,
                user_id,
                self.auto_post_delay,
                lambda: self.auto_complete(user_id, TimerKind.AUTO_POST),
            )
        logger.info("VC session for user %s pending completion", user_id)
        return SessionOutcome.success(session)

    async def auto_pause(self, user_id: str) -> SessionOutcome[ActiveSession]:
        """Voice disconnect: pause a running session and arm the auto-end timer."""
        async with self._locks(user_id):
            session = await self.store.get_active_session(user_id)
            if session is None:
                return SessionOutcome.not_found()
            if session.is_paused:
                return SessionOutcome.conflict("Session is already paused")
            self._pause(session, auto=True)
            await self.store.save_active_session(session)
            self.timers.arm(
                TimerKind.AUTO_END,
                user_id,
                self.auto_end_delay,
                lambda: self.auto_complete(user_id, TimerKind.AUTO_END),
            )
        logger.info("Session auto-paused for user %s", user_id)
        return SessionOutcome.success(session)

    async def auto_resume(self, user_id: str) -> SessionOutcome[ActiveSession]:
        """Voice reconnect: resume only a session that was auto-paused."""
        async with self._locks(user_id):
            session = await self.store.get_active_session(user_id)
            if session is None:
                return SessionOutcome.not_found()
            if not (session.is_paused and session.auto_paused):
                return SessionOutcome.conflict("Session was not auto-paused")
            self._resume(session)
            await self.store.save_active_session(session)
            self.timers.cancel(TimerKind.AUTO_END, user_id)
        logger.info("Session auto-resumed for user %s", user_id)
        return SessionOutcome.success(session)

    async def auto_complete(self, user_id: str, kind: TimerKind) -> CompletionSummary | None:
        """Timer callback. Re-checks state and completes only if still eligible."""
        async with self._locks(user_id):
            session = await self.store.get_active_session(user_id)
            if session is None:
                logger.info("%s timer for user %s found no session", kind.value, user_id)
                return None
            if kind is TimerKind.AUTO_POST:
                eligible = session.is_vc_session and session.pending_completion
                title, source = VC_TITLE, "auto_post"
            else:
                eligible = session.is_paused and session.auto_paused
                title, source = "Auto-ended session", "auto_end"
            if not eligible:
                logger.info("%s timer for user %s skipped: session state changed", kind.value, user_id)
                return None
            summary = await self._complete(
                user_id,
                title=title,
                description=None,
                intensity=None,
                source=source,
            )
        return summary

    # --- Internals ---

    def _pause(self, session: ActiveSession, *, auto: bool) -> None:
        session.is_paused = True
        session.paused_at = self.clock()
        session.auto_paused = auto

    def _resume(self, session: ActiveSession) -> None:
        now = self.clock()
        if session.paused_at is not None:
            session.paused_duration += max(0, int((now - session.paused_at).total_seconds()))
        session.is_paused = False
        session.paused_at = None
        session.auto_paused = False

    async def _complete(
        self,
        user_id: str,
        *,
        title: str,
        description: str | None,
        intensity: int | None,
        source: str,
    ) -> CompletionSummary | None:
        """Pop, record and progress. Caller holds the user's lock."""
        try:
            async with self.store.transaction():
                session = await self.store.pop_active_session(user_id)
                if session is None:
                    return None
                now = self.clock()
                duration = session.elapsed(now)
                activity = VC_ACTIVITY if source == "auto_post" else session.activity
                completed = CompletedSession(
                    user_id=user_id,
                    username=session.username,
                    server_id=session.server_id,
                    activity=activity,
                    title=title,
                    description=description
                    if description is not None
                    else f"Completed {format_duration(duration)} of focused work",
                    duration=duration,
                    start_time=session.start_time,
                    end_time=now,
                    created_at=now,
                    intensity=intensity,
                    source=source,
                )
                result = await self._record(completed)
        except PersistenceError:
            logger.error("Completion for user %s failed to persist", user_id)
            raise
        finally:
            self.timers.cancel_all(user_id)

        summary = CompletionSummary(completed, result)
        logger.info(
            "Session completed for user %s via %s: %s, +%d XP",
            user_id, source, format_duration(completed.duration), result.xp_gained,
        )
        await self._publish_completion(summary)
        return summary

    async def _record(self, completed: CompletedSession) -> ProgressionResult:
        """Append the log entry, run progression and stamp the session XP on the entry."""
        await self.store.append_completed_session(completed)
        result = await self.progression.record_completion(completed)
        if not result.duplicate:
            completed.xp_gained = result.xp_gained
            await self.store.set_completed_session_xp(completed.id, result.xp_gained)
        return result

    async def _publish_started(self, session: ActiveSession) -> None:
        await events.publish(self.redis, events.SESSION_STARTED, {
            "user_id": session.user_id,
            "username": session.username,
            "server_id": session.server_id,
            "activity": session.activity,
            "is_vc_session": session.is_vc_session,
            "start_time": session.start_time.isoformat(),
        })

    async def _publish_completion(self, summary: CompletionSummary) -> None:
        completed, result = summary.completed, summary.progression
        base = {"user_id": completed.user_id, "username": completed.username, "server_id": completed.server_id}
        await events.publish(self.redis, events.SESSION_COMPLETED, {
            **base,
            "completion_id": completed.id,
            "activity": completed.activity,
            "title": completed.title,
            "duration": completed.duration,
            "xp_gained": result.xp_gained,
            "leveled_up": result.leveled_up,
            "new_level": result.new_level,
            "streak": result.streak,
            "source": completed.source,
        })
        if result.achievements:
            await events.publish(self.redis, events.ACHIEVEMENTS_UNLOCKED, {**base, "achievements": result.achievements})
        if result.streak_milestone:
            await events.publish(self.redis, events.STREAK_MILESTONE, {**base, "streak": result.streak_milestone})
        if result.leveled_up:
            await events.publish(self.redis, events.LEVEL_UP, {
                **base,
                "old_level": result.old_level,
                "new_level": result.new_level,
            })
        if result.weekly is not None and result.weekly.completed_now:
            await events.publish(self.redis, events.WEEKLY_CHALLENGE_COMPLETED, {
                **base,
                "week_key": result.weekly.week_key,
                "bonus_xp": result.weekly.bonus_awarded,
            })
