"""Session manager lifecycle: explicit commands, manual logs and completion races."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from focustrack.sessions.outcomes import OutcomeStatus
from focustrack.sessions.timers import TimerKind


class TestStartPauseResumeEnd:
    @pytest.mark.asyncio
    async def test_pause_time_is_excluded(self, services, store, clock):
        """10:00 start, pause 10:10, resume 10:15, end 11:00 is 45 minutes."""
        manager = services.manager
        assert (await manager.start("u1", "alice", "s1", "Reading")).ok
        clock.advance(minutes=10)
        assert (await manager.pause("u1")).ok
        clock.advance(minutes=5)
        assert (await manager.resume("u1")).ok
        clock.advance(minutes=45)

        outcome = await manager.end("u1", "Chapter 3", "Took notes")

        assert outcome.ok
        completed = outcome.value.completed
        assert completed.duration == 2700
        assert completed.activity == "Reading"
        assert completed.title == "Chapter 3"
        assert completed.source == "command"
        assert await store.get_active_session("u1") is None
        assert len(store.completed) == 1

    @pytest.mark.asyncio
    async def test_first_completion_progression(self, services, store, clock):
        manager = services.manager
        await manager.start("u1", "alice", "s1", "Reading")
        clock.advance(minutes=45)

        result = (await manager.end("u1", "Done")).value.progression

        # 45 min of time XP, completion and first-of-day bonuses.
        assert result.xp_gained == 125
        assert result.achievements == ["first_steps"]
        assert result.total_xp == 175
        assert result.streak == 1
        assert result.leveled_up is False
        stats = await store.get_user_stats("u1")
        assert stats.total_sessions == 1
        assert stats.total_duration == 2700
        assert stats.xp == 175
        assert stats.sessions_by_day == {"2026-03-02": 1}
        assert stats.activity_types == ["Reading"]
        assert store.completed[0].xp_gained == 125

    @pytest.mark.asyncio
    async def test_explicit_end_without_description(self, services, clock):
        await services.manager.start("u1", "alice", "s1", "Reading")
        clock.advance(hours=1, minutes=5)

        completed = (await services.manager.end("u1", "Done")).value.completed

        assert completed.description == ""

    @pytest.mark.asyncio
    async def test_second_start_conflicts(self, services):
        assert (await services.manager.start("u1", "alice", "s1", "Reading")).ok
        outcome = await services.manager.start("u1", "alice", "s1", "Coding")
        assert outcome.status is OutcomeStatus.CONFLICT
        assert (await services.manager.get_active("u1")).activity == "Reading"

    @pytest.mark.asyncio
    async def test_pause_and_resume_state_errors(self, services):
        manager = services.manager
        assert (await manager.pause("u1")).status is OutcomeStatus.NOT_FOUND
        await manager.start("u1", "alice", "s1", "Reading")
        assert (await manager.resume("u1")).status is OutcomeStatus.CONFLICT
        assert (await manager.pause("u1")).ok
        assert (await manager.pause("u1")).status is OutcomeStatus.CONFLICT

    @pytest.mark.asyncio
    async def test_end_validation(self, services):
        manager = services.manager
        assert (await manager.end("u1", "Done")).status is OutcomeStatus.NOT_FOUND
        await manager.start("u1", "alice", "s1", "Reading")
        assert (await manager.end("u1", "   ")).status is OutcomeStatus.VALIDATION
        assert (await manager.end("u1", "Done", intensity=6)).status is OutcomeStatus.VALIDATION
        assert await manager.get_active("u1") is not None

    @pytest.mark.asyncio
    async def test_end_while_paused_excludes_open_pause(self, services, clock):
        manager = services.manager
        await manager.start("u1", "alice", "s1", "Reading")
        clock.advance(minutes=20)
        await manager.pause("u1")
        clock.advance(minutes=30)

        completed = (await manager.end("u1", "Done")).value.completed

        assert completed.duration == 1200

    @pytest.mark.asyncio
    async def test_elapsed(self, services, clock):
        assert await services.manager.elapsed("u1") is None
        await services.manager.start("u1", "alice", "s1", "Reading")
        clock.advance(minutes=3)
        assert await services.manager.elapsed("u1") == 180


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_leaves_no_trace(self, services, store, clock):
        await services.manager.start("u1", "alice", "s1", "Reading")
        clock.advance(hours=2)

        assert (await services.manager.cancel("u1")).ok

        assert store.active == {}
        assert store.completed == []
        assert store.ledger == []
        assert await store.get_user_stats("u1") is None

    @pytest.mark.asyncio
    async def test_cancel_without_session(self, services):
        assert (await services.manager.cancel("u1")).status is OutcomeStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_cancel_disarms_timers(self, services):
        services.manager.auto_end_delay = 10
        await services.manager.start("u1", "alice", "s1", "Reading")
        await services.manager.auto_pause("u1")
        assert services.timers.is_armed(TimerKind.AUTO_END, "u1")

        await services.manager.cancel("u1")

        assert not services.timers.is_armed(TimerKind.AUTO_END, "u1")


class TestManualLog:
    @pytest.mark.asyncio
    async def test_manual_session(self, services, store, clock):
        outcome = await services.manager.log_manual(
            "u1", "alice", "s1", "Writing", "Essay draft", hours=1, minutes=30
        )

        assert outcome.ok
        completed = outcome.value.completed
        assert completed.duration == 5400
        assert completed.source == "manual"
        assert completed.end_time == clock()
        assert completed.start_time == clock() - timedelta(minutes=90)
        # 90 minutes of time XP plus completion and first-of-day bonuses.
        assert outcome.value.progression.xp_gained == 200
        assert len(store.completed) == 1
        assert store.completed[0].xp_gained == 200
        assert completed.xp_gained == 200

    @pytest.mark.asyncio
    async def test_manual_does_not_touch_active_session(self, services):
        await services.manager.start("u1", "alice", "s1", "Reading")
        assert (await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", minutes=20)).ok
        assert (await services.manager.get_active("u1")).activity == "Reading"

    @pytest.mark.parametrize(
        "hours,minutes",
        [(0, 0), (0, 60), (-1, 30), (1, -5), (1.5, 0)],
    )
    @pytest.mark.asyncio
    async def test_manual_validation(self, services, store, hours, minutes):
        outcome = await services.manager.log_manual(
            "u1", "alice", "s1", "Writing", "Essay", hours=hours, minutes=minutes
        )
        assert outcome.status is OutcomeStatus.VALIDATION
        assert store.completed == []

    @pytest.mark.asyncio
    async def test_manual_requires_title(self, services):
        outcome = await services.manager.log_manual("u1", "alice", "s1", "Writing", " ", minutes=30)
        assert outcome.status is OutcomeStatus.VALIDATION

    @pytest.mark.asyncio
    async def test_intensity_multiplier(self, services):
        outcome = await services.manager.log_manual(
            "u1", "alice", "s1", "Writing", "Essay", hours=1, intensity=5
        )
        # (100 + 25 + 25) * 1.5
        assert outcome.value.progression.xp_gained == 225
        assert outcome.value.completed.intensity == 5


class TestProgressionAcrossSessions:
    @pytest.mark.asyncio
    async def test_second_session_same_day_has_no_first_bonus(self, services, clock):
        await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", hours=1)
        clock.advance(hours=2)
        outcome = await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", hours=1)
        assert outcome.value.progression.xp_gained == 125
        assert outcome.value.progression.streak == 1

    @pytest.mark.asyncio
    async def test_streak_grows_day_by_day(self, services, store, clock):
        for _ in range(3):
            await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", minutes=30)
            clock.advance(days=1)
        stats = await store.get_user_stats("u1")
        assert stats.current_streak == 3
        assert stats.longest_streak == 3
        assert "hot_streak" in stats.achievements

    @pytest.mark.asyncio
    async def test_goal_keeps_streak_alive(self, services, store, clock):
        await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", minutes=30)
        clock.advance(days=1)
        await services.goals.set_goal("u1", "alice", "Plan next week")
        clock.advance(days=1)

        outcome = await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", minutes=30)

        assert outcome.value.progression.streak == 3

    @pytest.mark.asyncio
    async def test_new_personal_best_unlocks_new_record(self, services, store, clock):
        await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", minutes=30)
        clock.advance(hours=1)
        outcome = await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", minutes=45)

        assert "new_record" in outcome.value.progression.achievements
        assert (await store.get_user_stats("u1")).new_record_pending is False

    @pytest.mark.asyncio
    async def test_replayed_completion_is_a_duplicate(self, services, store):
        outcome = await services.manager.log_manual("u1", "alice", "s1", "Writing", "Essay", hours=1)
        xp_before = (await store.get_user_stats("u1")).xp

        replay = await services.progression.record_completion(outcome.value.completed)

        assert replay.duplicate is True
        assert replay.xp_gained == 0
        stats = await store.get_user_stats("u1")
        assert stats.xp == xp_before
        assert stats.total_sessions == 1
        assert [c.xp_gained for c in store.completed] == [150]


class TestCompletionRace:
    @pytest.mark.asyncio
    async def test_end_races_auto_post(self, services, store, clock):
        """An explicit end and the auto-post timer complete the session once."""
        manager = services.manager
        manager.auto_post_delay = 10
        await manager.start_vc_session("u1", "alice", "s1", "room1")
        clock.advance(minutes=30)
        await manager.mark_pending_completion("u1")

        ended, auto = await asyncio.gather(
            manager.end("u1", "Done"),
            manager.auto_complete("u1", TimerKind.AUTO_POST),
        )

        assert ended.ok
        assert auto is None
        assert len(store.completed) == 1
        session_grants = [e for e in store.ledger if e.source == "session"]
        assert len(session_grants) == 1
        assert not services.timers.is_armed(TimerKind.AUTO_POST, "u1")

    @pytest.mark.asyncio
    async def test_auto_post_wins_when_first(self, services, store, clock):
        manager = services.manager
        manager.auto_post_delay = 10
        await manager.start_vc_session("u1", "alice", "s1", "room1")
        clock.advance(minutes=30)
        await manager.mark_pending_completion("u1")

        auto, ended = await asyncio.gather(
            manager.auto_complete("u1", TimerKind.AUTO_POST),
            manager.end("u1", "Done"),
        )

        assert auto is not None
        assert ended.status is OutcomeStatus.NOT_FOUND
        assert len(store.completed) == 1

    @pytest.mark.asyncio
    async def test_concurrent_starts_create_one_session(self, services, store):
        outcomes = await asyncio.gather(
            *(services.manager.start("u1", "alice", "s1", f"Task {i}") for i in range(5))
        )
        assert sum(o.ok for o in outcomes) == 1
        assert len(store.active) == 1

    @pytest.mark.asyncio
    async def test_concurrent_starts_on_suspending_store(self, yielding_services, yielding_store):
        outcomes = await asyncio.gather(
            *(yielding_services.manager.start("u1", "alice", "s1", f"Task {i}") for i in range(5))
        )
        assert sum(o.ok for o in outcomes) == 1
        assert len(yielding_store.active) == 1

    @pytest.mark.asyncio
    async def test_end_races_auto_post_on_suspending_store(self, yielding_services, yielding_store, clock):
        manager = yielding_services.manager
        manager.auto_post_delay = 10
        await manager.start_vc_session("u1", "alice", "s1", "room1")
        clock.advance(minutes=30)
        await manager.mark_pending_completion("u1")

        results = await asyncio.gather(
            manager.end("u1", "Done"),
            manager.auto_complete("u1", TimerKind.AUTO_POST),
            manager.cancel("u1"),
        )

        ended, auto, cancelled = results
        assert ended.ok
        assert auto is None
        assert cancelled.status is OutcomeStatus.NOT_FOUND
        assert len(yielding_store.completed) == 1
        assert len([e for e in yielding_store.ledger if e.source == "session"]) == 1


class TestAutoEnd:
    @pytest.mark.asyncio
    async def test_auto_end_completes_paused_session(self, services, store, clock):
        manager = services.manager
        await manager.start("u1", "alice", "s1", "Reading")
        clock.advance(minutes=30)
        await manager.auto_pause("u1")
        clock.advance(minutes=10)

        await asyncio.sleep(0.05)

        assert len(store.completed) == 1
        completed = store.completed[0]
        assert completed.source == "auto_end"
        assert completed.title == "Auto-ended session"
        assert completed.duration == 1800
        assert completed.description == "Completed 30m of focused work"
        assert await store.get_active_session("u1") is None

    @pytest.mark.asyncio
    async def test_auto_resume_cancels_auto_end(self, services, store, clock):
        manager = services.manager
        manager.auto_end_delay = 0.03
        await manager.start("u1", "alice", "s1", "Reading")
        await manager.auto_pause("u1")
        clock.advance(minutes=2)
        assert (await manager.auto_resume("u1")).ok

        await asyncio.sleep(0.06)

        assert store.completed == []
        session = await manager.get_active("u1")
        assert session.is_paused is False
        assert session.paused_duration == 120

    @pytest.mark.asyncio
    async def test_explicit_resume_cancels_auto_end(self, services, store):
        manager = services.manager
        manager.auto_end_delay = 0.03
        await manager.start("u1", "alice", "s1", "Reading")
        await manager.auto_pause("u1")
        await manager.resume("u1")

        await asyncio.sleep(0.06)

        assert store.completed == []

    @pytest.mark.asyncio
    async def test_auto_resume_ignores_manual_pause(self, services):
        await services.manager.start("u1", "alice", "s1", "Reading")
        await services.manager.pause("u1")
        outcome = await services.manager.auto_resume("u1")
        assert outcome.status is OutcomeStatus.CONFLICT
        assert (await services.manager.get_active("u1")).is_paused

    @pytest.mark.asyncio
    async def test_stale_auto_end_is_a_noop(self, services, store):
        await services.manager.start("u1", "alice", "s1", "Reading")
        assert await services.manager.auto_complete("u1", TimerKind.AUTO_END) is None
        assert store.completed == []
