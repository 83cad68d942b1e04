"""Achievement catalog: static definitions, ordered for display."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    name: str
    emoji: str
    description: str
    category: str
    kind: str
    threshold: int
    xp_reward: int
    rarity: str
    stat_field: str | None = None


def _stat(id, name, emoji, description, category, kind, threshold, xp, rarity, stat_field):  # noqa: ANN001, ANN202
    return AchievementDefinition(id, name, emoji, description, category, kind, threshold, xp, rarity, stat_field)


def _custom(id, name, emoji, description, category, threshold, xp, rarity):  # noqa: ANN001, ANN202
    return AchievementDefinition(id, name, emoji, description, category, "custom", threshold, xp, rarity)


HOUR = 3600

ACHIEVEMENTS: list[AchievementDefinition] = [
    # Milestone
    _stat("first_steps", "First Steps", "🎯", "Complete your first session",
          "milestone", "sessions", 1, 50, "common", "total_sessions"),

    # Total hours
    _stat("getting_started", "Getting Started", "⏱️", "Focus for 10 hours total",
          "time", "hours", 10 * HOUR, 50, "common", "total_duration"),
    _stat("academic", "Academic", "🎓", "Focus for 25 hours total",
          "time", "hours", 25 * HOUR, 75, "common", "total_duration"),
    _stat("dedicated", "Dedicated", "⭐", "Focus for 50 hours total",
          "time", "hours", 50 * HOUR, 100, "common", "total_duration"),
    _stat("centurion", "Centurion", "💯", "Focus for 100 hours total",
          "time", "hours", 100 * HOUR, 200, "rare", "total_duration"),
    _stat("committed", "Committed", "🕐", "Focus for 250 hours total",
          "time", "hours", 250 * HOUR, 300, "rare", "total_duration"),
    _stat("scholar", "Scholar", "📚", "Focus for 500 hours total",
          "time", "hours", 500 * HOUR, 500, "epic", "total_duration"),
    _stat("master", "Master", "🧙", "Focus for 1,000 hours total",
          "time", "hours", 1000 * HOUR, 1000, "epic", "total_duration"),
    _stat("grandmaster", "Grandmaster", "👑", "Focus for 2,500 hours total",
          "time", "hours", 2500 * HOUR, 2500, "legendary", "total_duration"),
    _stat("legend", "Legend", "🏆", "Focus for 5,000 hours total",
          "time", "hours", 5000 * HOUR, 5000, "legendary", "total_duration"),

    # Consecutive days
    _stat("hot_streak", "Hot Streak", "🔥", "Maintain a 3-day streak",
          "streak", "streak", 3, 50, "common", "current_streak"),
    _stat("on_fire", "On Fire", "🔥", "Maintain a 7-day streak",
          "streak", "streak", 7, 100, "common", "current_streak"),
    _stat("blazing", "Blazing", "🔥", "Maintain a 14-day streak",
          "streak", "streak", 14, 200, "rare", "current_streak"),
    _stat("unstoppable", "Unstoppable", "💫", "Maintain a 30-day streak",
          "streak", "streak", 30, 300, "rare", "current_streak"),
    _stat("relentless", "Relentless", "⭐", "Maintain a 60-day streak",
          "streak", "streak", 60, 500, "epic", "current_streak"),
    _stat("phenomenal", "Phenomenal", "🌟", "Maintain a 90-day streak",
          "streak", "streak", 90, 750, "epic", "current_streak"),
    _stat("immortal", "Immortal", "💎", "Maintain a 180-day streak",
          "streak", "streak", 180, 1500, "legendary", "current_streak"),
    _stat("eternal", "Eternal", "♾️", "Maintain a 365-day streak",
          "streak", "streak", 365, 3650, "legendary", "current_streak"),

    # Activity variety
    _stat("explorer", "Explorer", "🧭", "Log sessions in 3 different activities",
          "milestone", "activities", 3, 75, "common", "activity_types"),
    _stat("polymath", "Polymath", "🧠", "Log sessions in 10 different activities",
          "milestone", "activities", 10, 250, "rare", "activity_types"),

    # Long sessions
    _custom("power_hour", "Power Hour", "⚡", "Complete a 2-hour session", "intensity", 2 * HOUR, 75, "common"),
    _custom("marathon", "Marathon", "💪", "Complete a 4-hour session", "intensity", 4 * HOUR, 150, "rare"),
    _custom("deep_focus", "Deep Focus", "🎯", "Complete a 6-hour session", "intensity", 6 * HOUR, 225, "rare"),
    _custom("ultra_marathon", "Ultra Marathon", "🏃", "Complete an 8-hour session", "intensity", 8 * HOUR, 300, "epic"),
    _custom("iron_will", "Iron Will", "🦾", "Complete a 12-hour session", "intensity", 12 * HOUR, 500, "legendary"),
    _custom("new_record", "New Record", "🎊", "Beat your personal best session duration", "intensity", 1, 200, "rare"),

    # Schedule
    _custom("early_bird", "Early Bird", "🐦", "Complete a session before 7 AM", "schedule", 1, 100, "rare"),
    _custom("night_owl", "Night Owl", "🦉", "Complete a session after 11 PM", "schedule", 1, 100, "rare"),
    _custom("weekend_warrior", "Weekend Warrior", "⚔️", "Focus on both Saturday and Sunday",
            "schedule", 1, 100, "rare"),
    _custom("morning_starter", "Morning Starter", "🌅", "Focus for 1 hour before 10 AM", "schedule", 1, 75, "common"),
    _custom("morning_routine", "Morning Routine", "☀️", "Focus for 1 hour before 10 AM (7 times)",
            "schedule", 7, 150, "rare"),
    _custom("morning_champion", "Morning Champion", "🌄", "Focus for 1 hour before 10 AM (14 times)",
            "schedule", 14, 300, "epic"),
    _custom("morning_legend", "Morning Legend", "🌞", "Focus for 1 hour before 10 AM (30 times)",
            "schedule", 30, 500, "epic"),
    _custom("midnight_grinder", "Midnight Grinder", "🌙", "Complete a session after midnight",
            "schedule", 1, 100, "rare"),
    _custom("weekend_streak", "Weekend Streak", "🗓️", "Focus on both weekend days for 4 consecutive weekends",
            "schedule", 4, 300, "epic"),
    _custom("full_week", "Full Week", "📅", "Focus every day of a calendar week", "schedule", 1, 250, "epic"),
    _custom("month_master", "Month Master", "🗓️", "Focus on at least 20 days in a single month",
            "schedule", 20, 400, "epic"),

    # Levels
    _custom("level_5", "Rising Star", "🌠", "Reach Level 5", "level", 5, 100, "common"),
    _custom("level_10", "Achiever", "🎖️", "Reach Level 10", "level", 10, 200, "common"),
    _custom("level_25", "Elite", "💎", "Reach Level 25", "level", 25, 500, "rare"),
    _custom("level_35", "Pro", "🚀", "Reach Level 35", "level", 35, 750, "rare"),
    _custom("level_50", "Champion", "🏅", "Reach Level 50", "level", 50, 1000, "epic"),
    _custom("level_100", "Transcendent", "✨", "Reach Level 100", "level", 100, 2500, "legendary"),

    # Meta
    _custom("collector", "Collector", "🏆", "Unlock 10 achievements", "meta", 10, 250, "rare"),
]

ACHIEVEMENTS_BY_ID: dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> AchievementDefinition | None:
    return ACHIEVEMENTS_BY_ID.get(achievement_id)


def get_achievements_by_category(category: str) -> list[AchievementDefinition]:
    return [a for a in ACHIEVEMENTS if a.category == category]
