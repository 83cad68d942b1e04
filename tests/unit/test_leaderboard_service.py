"""Leaderboard aggregation tests: grouping, ordering, windows and rank."""

from datetime import datetime, timedelta, timezone

import pytest

from focustrack.competition.leaderboard_service import LeaderboardAggregator
from focustrack.records import ActiveSession, CompletedSession, UserStats, XPLedgerEntry
from focustrack.store.memory import MemorySessionStore

NOW = datetime(2026, 3, 4, 18, 0, tzinfo=timezone.utc)  # Wednesday


def _completed(user: str, duration: int, end: datetime = NOW, server: str = "s1") -> CompletedSession:
    return CompletedSession(
        user_id=user,
        username=user.upper(),
        server_id=server,
        activity="Reading",
        title="t",
        description="",
        duration=duration,
        start_time=end - timedelta(seconds=duration),
        end_time=end,
        created_at=end,
    )


@pytest.fixture
def aggregator() -> tuple[MemorySessionStore, LeaderboardAggregator]:
    store = MemorySessionStore()
    return store, LeaderboardAggregator(store, "UTC", clock=lambda: NOW)


class TestTopByDuration:
    @pytest.mark.asyncio
    async def test_groups_and_sorts(self, aggregator):
        store, lb = aggregator
        for user, duration in [("a", 600), ("b", 1800), ("a", 1500), ("c", 300)]:
            await store.append_completed_session(_completed(user, duration))

        entries = await lb.top_by_duration(limit=10)

        assert [(e.rank, e.user_id, e.total_duration, e.session_count) for e in entries] == [
            (1, "a", 2100, 2),
            (2, "b", 1800, 1),
            (3, "c", 300, 1),
        ]

    @pytest.mark.asyncio
    async def test_ties_keep_insertion_order(self, aggregator):
        store, lb = aggregator
        for user in ("x", "y", "z"):
            await store.append_completed_session(_completed(user, 900))

        entries = await lb.top_by_duration()

        assert [e.user_id for e in entries] == ["x", "y", "z"]

    @pytest.mark.asyncio
    async def test_limit_window_and_server(self, aggregator):
        store, lb = aggregator
        await store.append_completed_session(_completed("old", 5000, NOW - timedelta(days=10)))
        await store.append_completed_session(_completed("other", 5000, server="s2"))
        await store.append_completed_session(_completed("a", 100))
        await store.append_completed_session(_completed("b", 200))

        entries = await lb.top_by_duration(lb.window_start("weekly"), limit=1, server_id="s1")

        assert [e.user_id for e in entries] == ["b"]


class TestWindows:
    def test_window_starts(self, aggregator):
        _, lb = aggregator
        assert lb.window_start("daily") == datetime(2026, 3, 4, tzinfo=timezone.utc)
        assert lb.window_start("weekly") == datetime(2026, 3, 2, tzinfo=timezone.utc)
        assert lb.window_start("monthly") == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_unknown_period(self, aggregator):
        _, lb = aggregator
        with pytest.raises(ValueError):
            lb.window_start("yearly")


class TestXPRankings:
    @pytest.mark.asyncio
    async def test_window_xp_counts_session_grants_only(self, aggregator):
        store, lb = aggregator
        await store.save_user_stats(UserStats("a", username="Alice"))
        await store.save_user_stats(UserStats("b", username="Bob"))
        for key, user, amount, source in [
            ("session:1", "a", 100, "session"),
            ("session:2", "b", 150, "session"),
            ("achievement:first_steps:a", "a", 500, "achievement"),
            ("session:3", "a", 75, "session"),
        ]:
            await store.append_xp_entry(XPLedgerEntry(user, "s1", amount, source, key, "", key, NOW))

        entries = await lb.top_by_window_xp(lb.window_start("daily"))

        assert [(e.user_id, e.username, e.xp) for e in entries] == [("a", "Alice", 175), ("b", "Bob", 150)]

    @pytest.mark.asyncio
    async def test_all_time_xp_includes_level(self, aggregator):
        store, lb = aggregator
        await store.save_user_stats(UserStats("a", xp=300, achievements=["first_steps"]))
        await store.save_user_stats(UserStats("b", xp=5000))

        entries = await lb.top_by_xp()

        assert [(e.user_id, e.level) for e in entries] == [("b", 14), ("a", 2)]
        assert entries[1].achievement_count == 1

    @pytest.mark.asyncio
    async def test_user_ranking(self, aggregator):
        store, lb = aggregator
        for i, user in enumerate(("a", "b", "c", "d")):
            await store.save_user_stats(UserStats(user, total_duration=(4 - i) * 1000))

        ranking = await lb.user_ranking("b")

        assert ranking == {"user_id": "b", "rank": 2, "total_users": 4, "percentile": 50.0}
        assert (await lb.user_ranking("nobody"))["rank"] is None


class TestLiveSessions:
    @pytest.mark.asyncio
    async def test_earliest_first_with_elapsed(self, aggregator):
        store, lb = aggregator
        await store.create_active_session(
            ActiveSession("late", "L", "s1", "Coding", start_time=NOW - timedelta(minutes=5))
        )
        await store.create_active_session(
            ActiveSession("early", "E", "s1", "Reading", start_time=NOW - timedelta(minutes=50))
        )
        await store.create_active_session(
            ActiveSession("elsewhere", "X", "s2", "Reading", start_time=NOW - timedelta(hours=2))
        )

        live = await lb.live_sessions("s1")

        assert [(s.user_id, s.elapsed) for s in live] == [("early", 3000), ("late", 300)]
