"""Level curve and session XP tests."""

import pytest

from focustrack.gamification.xp_curve import (
    MAX_LEVEL,
    calculate_session_xp,
    compute_level,
    level_info,
    level_progress,
    xp_for_level,
    xp_to_next_level,
)


class TestComputeLevel:
    def test_level_1_at_zero_xp(self):
        assert compute_level(0) == 1

    def test_below_first_threshold_is_level_1(self):
        assert compute_level(282) == 1

    def test_level_2_at_283_xp(self):
        assert compute_level(283) == 2

    def test_level_100_at_100000_xp(self):
        assert compute_level(100_000) == 100

    @pytest.mark.parametrize("xp", [100_000, 150_000, 10_000_000])
    def test_clamped_at_max_level(self, xp):
        assert compute_level(xp) == MAX_LEVEL

    def test_negative_xp_is_level_1(self):
        assert compute_level(-50) == 1

    def test_monotonic(self):
        levels = [compute_level(xp) for xp in range(0, 120_000, 97)]
        assert levels == sorted(levels)


class TestThresholds:
    def test_xp_for_level_1_is_zero(self):
        assert xp_for_level(1) == 0
        assert xp_for_level(0) == 0

    def test_xp_for_level_values(self):
        assert xp_for_level(4) == 800
        assert xp_for_level(9) == 2700
        assert xp_for_level(100) == 100_000

    def test_xp_to_next_level(self):
        # Level 4 at 800 XP; level 5 needs floor(100 * 5^1.5) = 1118.
        assert xp_to_next_level(800) == 318

    def test_no_next_level_at_max(self):
        assert xp_to_next_level(200_000) == 0
        assert level_progress(200_000) == 100.0

    def test_progress_clamped(self):
        for xp in (0, 100, 283, 500, 800, 1000, 5000):
            assert 0.0 <= level_progress(xp) <= 100.0

    def test_level_info_shape(self):
        info = level_info(800)
        assert info["level"] == 4
        assert info["xp"] == 800
        assert info["xp_for_level"] == 800
        assert info["xp_for_next_level"] == 1118
        assert info["progress"] == 0.0


class TestSessionXP:
    def _xp(self, duration, **kwargs):
        params = {
            "xp_per_hour": 100,
            "completion_xp": 25,
            "first_of_day_xp": 25,
            "is_first_of_day": False,
        }
        params.update(kwargs)
        return calculate_session_xp(duration, **params)

    def test_time_and_completion(self):
        assert self._xp(3600).total == 125

    def test_first_of_day_bonus(self):
        result = self._xp(2700, is_first_of_day=True)
        assert result.time_xp == 75
        assert result.first_of_day_xp == 25
        assert result.total == 125

    def test_intensity_scales_base(self):
        assert self._xp(2700, is_first_of_day=True, intensity=4).total == 156

    def test_intensity_rounds_down_once(self):
        assert self._xp(3600, intensity=2).total == 112

    def test_no_intensity_is_neutral(self):
        result = self._xp(3600, intensity=None)
        assert result.multiplier == 1.0

    def test_milestone_added_after_multiplier(self):
        result = self._xp(2700, is_first_of_day=True, intensity=5, milestone_xp=100)
        assert result.total == 187 + 100
        assert result.milestone_xp == 100

    def test_zero_duration_still_earns_completion(self):
        assert self._xp(0).total == 25
