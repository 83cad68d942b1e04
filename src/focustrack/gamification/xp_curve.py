"""Level curve and per-session XP composition.

Levels follow xp_for_level(L) = floor(100 * L^1.5); level(xp) inverts it
with half-up rounding, so a level is reached slightly before its threshold.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

MAX_LEVEL = 100
MIN_LEVELED_XP = 283

INTENSITY_MULTIPLIERS: dict[int, float] = {
    1: 0.8,
    2: 0.9,
    3: 1.0,
    4: 1.25,
    5: 1.5,
}


def compute_level(xp: int) -> int:
    """Level for a total XP amount, clamped to [1, MAX_LEVEL]."""
    if xp < MIN_LEVELED_XP:
        return 1
    level = math.floor((xp / 100) ** (2 / 3) + 0.5)
    return max(1, min(MAX_LEVEL, level))


def xp_for_level(level: int) -> int:
    """Total XP required to reach a level."""
    if level <= 1:
        return 0
    return math.floor(100 * level**1.5)


def xp_to_next_level(xp: int) -> int:
    """XP still needed for the next level (0 at max level)."""
    level = compute_level(xp)
    if level >= MAX_LEVEL:
        return 0
    return max(0, xp_for_level(level + 1) - xp)


def level_progress(xp: int) -> float:
    """Percent of the way from the current level threshold to the next."""
    level = compute_level(xp)
    if level >= MAX_LEVEL:
        return 100.0
    current = xp_for_level(level)
    span = xp_for_level(level + 1) - current
    if span <= 0:
        return 100.0
    return max(0.0, min(100.0, (xp - current) / span * 100))


def level_info(xp: int) -> dict:
    """Level summary used by the stats endpoints."""
    level = compute_level(xp)
    return {
        "level": level,
        "xp": xp,
        "xp_for_level": xp_for_level(level),
        "xp_for_next_level": xp_for_level(level + 1) if level < MAX_LEVEL else xp_for_level(level),
        "xp_to_next_level": xp_to_next_level(xp),
        "progress": round(level_progress(xp), 2),
    }


@dataclass
class XPBreakdown:
    time_xp: float
    completion_xp: int
    first_of_day_xp: int
    multiplier: float
    milestone_xp: int
    total: int


def calculate_session_xp(
    duration_seconds: int,
    *,
    xp_per_hour: int,
    completion_xp: int,
    first_of_day_xp: int,
    is_first_of_day: bool,
    intensity: int | None = None,
    milestone_xp: int = 0,
) -> XPBreakdown:
    """XP for one completion.

    The intensity multiplier scales time, completion and first-of-day XP;
    the streak milestone bonus is added afterwards, unscaled. The scaled
    part is rounded down once.
    """
    time_xp = duration_seconds / 3600 * xp_per_hour
    first = first_of_day_xp if is_first_of_day else 0
    multiplier = INTENSITY_MULTIPLIERS.get(intensity, 1.0) if intensity is not None else 1.0
    scaled = math.floor((time_xp + completion_xp + first) * multiplier)
    return XPBreakdown(
        time_xp=time_xp,
        completion_xp=completion_xp,
        first_of_day_xp=first,
        multiplier=multiplier,
        milestone_xp=milestone_xp,
        total=scaled + milestone_xp,
    )
