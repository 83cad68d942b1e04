"""Achievement catalog and evaluation tests."""

from datetime import datetime, timezone

import pytest

from focustrack.gamification.achievement_engine import CUSTOM_RULES, AchievementEngine, is_satisfied
from focustrack.gamification.achievements import (
    ACHIEVEMENTS,
    ACHIEVEMENTS_BY_ID,
    get_achievement,
    get_achievements_by_category,
)
from focustrack.records import UserStats
from focustrack.store.memory import MemorySessionStore

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class TestCatalog:
    def test_ids_are_unique(self):
        ids = [a.id for a in ACHIEVEMENTS]
        assert len(ids) == len(set(ids))
        assert len(ACHIEVEMENTS_BY_ID) == len(ACHIEVEMENTS)

    def test_every_custom_entry_has_a_rule(self):
        missing = [a.id for a in ACHIEVEMENTS if a.kind == "custom" and a.id not in CUSTOM_RULES]
        assert missing == []

    def test_stat_entries_name_a_real_field(self):
        for a in ACHIEVEMENTS:
            if a.kind in ("sessions", "hours", "streak"):
                assert hasattr(UserStats("x"), a.stat_field), a.id

    def test_lookup_helpers(self):
        assert get_achievement("first_steps").name == "First Steps"
        assert get_achievement("does_not_exist") is None
        assert all(a.category == "streak" for a in get_achievements_by_category("streak"))


class TestIsSatisfied:
    def test_session_count(self):
        assert is_satisfied(ACHIEVEMENTS_BY_ID["first_steps"], UserStats("u", total_sessions=1))
        assert not is_satisfied(ACHIEVEMENTS_BY_ID["first_steps"], UserStats("u"))

    def test_long_session(self):
        stats = UserStats("u", longest_session_duration=2 * 3600)
        assert is_satisfied(ACHIEVEMENTS_BY_ID["power_hour"], stats)
        assert not is_satisfied(ACHIEVEMENTS_BY_ID["marathon"], stats)

    def test_weekend_warrior_needs_both_days(self):
        definition = ACHIEVEMENTS_BY_ID["weekend_warrior"]
        assert not is_satisfied(definition, UserStats("u", week_days={"2026-W10": [6]}))
        assert is_satisfied(definition, UserStats("u", week_days={"2026-W10": [6, 7]}))

    def test_weekend_streak_needs_consecutive_weeks(self):
        definition = ACHIEVEMENTS_BY_ID["weekend_streak"]
        gap = {w: [6, 7] for w in ("2026-W01", "2026-W02", "2026-W03", "2026-W05")}
        run = {w: [6, 7] for w in ("2025-W52", "2026-W01", "2026-W02", "2026-W03")}
        assert not is_satisfied(definition, UserStats("u", week_days=gap))
        assert is_satisfied(definition, UserStats("u", week_days=run))

    def test_full_week(self):
        definition = ACHIEVEMENTS_BY_ID["full_week"]
        assert is_satisfied(definition, UserStats("u", week_days={"2026-W10": [1, 2, 3, 4, 5, 6, 7]}))
        assert not is_satisfied(definition, UserStats("u", week_days={"2026-W10": [1, 2, 3, 4, 5, 6]}))

    def test_level_rule_uses_derived_level(self):
        assert is_satisfied(ACHIEVEMENTS_BY_ID["level_5"], UserStats("u", xp=1118))
        assert not is_satisfied(ACHIEVEMENTS_BY_ID["level_10"], UserStats("u", xp=1118))

    def test_activity_variety(self):
        stats = UserStats("u", activity_types=["Reading", "Coding", "Writing"])
        assert is_satisfied(ACHIEVEMENTS_BY_ID["explorer"], stats)
        assert not is_satisfied(ACHIEVEMENTS_BY_ID["polymath"], stats)


class TestAchievementEngine:
    @pytest.mark.asyncio
    async def test_unlock_grants_reward_once(self):
        store = MemorySessionStore()
        engine = AchievementEngine(store)
        stats = UserStats("u1", total_sessions=1)

        unlocked = await engine.evaluate_stats(stats, "s1", NOW)

        assert unlocked == ["first_steps"]
        assert stats.xp == ACHIEVEMENTS_BY_ID["first_steps"].xp_reward
        assert stats.achievements_unlocked_at["first_steps"] == NOW
        assert await engine.evaluate_stats(stats, "s1", NOW) == []
        assert len(store.ledger) == 1

    @pytest.mark.asyncio
    async def test_new_record_flag_cleared_on_award(self):
        engine = AchievementEngine(MemorySessionStore())
        stats = UserStats("u1", total_sessions=2, new_record_pending=True)

        unlocked = await engine.evaluate_stats(stats, "s1", NOW)

        assert "new_record" in unlocked
        assert stats.new_record_pending is False

    @pytest.mark.asyncio
    async def test_rewards_cascade_into_level_unlocks(self):
        engine = AchievementEngine(MemorySessionStore())
        # 950 XP is level 4; the first_steps reward lifts it to level 5.
        stats = UserStats("u1", total_sessions=1, xp=950)

        unlocked = await engine.evaluate_stats(stats, "s1", NOW)

        assert unlocked == ["first_steps", "level_5"]

    @pytest.mark.asyncio
    async def test_evaluate_persists(self):
        store = MemorySessionStore()
        await store.save_user_stats(UserStats("u1", total_sessions=1))
        engine = AchievementEngine(store, clock=lambda: NOW)

        assert await engine.evaluate("u1") == ["first_steps"]
        assert (await store.get_user_stats("u1")).achievements == ["first_steps"]
        assert await engine.evaluate("u1") == []

    @pytest.mark.asyncio
    async def test_evaluate_unknown_user(self):
        assert await AchievementEngine(MemorySessionStore()).evaluate("nobody") == []
