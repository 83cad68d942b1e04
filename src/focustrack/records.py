"""Domain records shared by the session, progression and competition layers.

These are plain dataclasses; stores persist and return copies, so a caller
mutating a record never changes stored state until it saves it back.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from focustrack.week_utils import next_week_iso, previous_week_iso


def new_id() -> str:
    """Generate a completion/record identifier."""
    return uuid.uuid4().hex


@dataclass
class ActiveSession:
    """The single in-progress session a user may have."""

    user_id: str
    username: str
    server_id: str
    activity: str
    start_time: datetime
    is_paused: bool = False
    paused_at: datetime | None = None
    paused_duration: int = 0
    is_vc_session: bool = False
    vc_channel_id: str | None = None
    left_vc_at: datetime | None = None
    pending_completion: bool = False
    auto_paused: bool = False

    def elapsed(self, now: datetime) -> int:
        """Whole seconds of focused time at ``now``, excluding pauses."""
        total = (now - self.start_time).total_seconds() - self.paused_duration
        if self.is_paused and self.paused_at is not None:
            total -= (now - self.paused_at).total_seconds()
        return max(0, int(total))


@dataclass
class CompletedSession:
    """Immutable log entry for a finished session."""

    user_id: str
    username: str
    server_id: str
    activity: str
    title: str
    description: str
    duration: int
    start_time: datetime
    end_time: datetime
    created_at: datetime
    id: str = field(default_factory=new_id)
    intensity: int | None = None
    source: str = "command"
    xp_gained: int = 0


@dataclass
class UserStats:
    """Cumulative per-user progression state."""

    user_id: str
    username: str = ""
    total_sessions: int = 0
    total_duration: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_session_at: datetime | None = None
    first_session_at: datetime | None = None
    xp: int = 0
    achievements: list[str] = field(default_factory=list)
    achievements_unlocked_at: dict[str, datetime] = field(default_factory=dict)
    sessions_by_day: dict[str, int] = field(default_factory=dict)
    activity_types: list[str] = field(default_factory=list)
    longest_session_duration: int = 0
    first_session_of_day_count: int = 0
    sessions_before_7am: int = 0
    sessions_after_11pm: int = 0
    sessions_after_midnight: int = 0
    morning_sessions_before_10am: int = 0
    week_days: dict[str, list[int]] = field(default_factory=dict)
    month_days: dict[str, list[int]] = field(default_factory=dict)
    weekly_xp_earned: dict[str, int] = field(default_factory=dict)
    weekly_challenges_completed: int = 0
    new_record_pending: bool = False

    @property
    def weekend_warrior_weeks(self) -> int:
        return sum(1 for days in self.week_days.values() if {6, 7} <= set(days))

    @property
    def consecutive_full_weekends(self) -> int:
        """Longest run of consecutive ISO weeks with both Saturday and Sunday."""
        full = {week for week, days in self.week_days.items() if {6, 7} <= set(days)}
        best = 0
        for week in full:
            if previous_week_iso(week) in full:
                continue
            run, cursor = 0, week
            while cursor in full:
                run += 1
                cursor = next_week_iso(cursor)
            best = max(best, run)
        return best

    @property
    def full_weeks(self) -> int:
        return sum(1 for days in self.week_days.values() if len(set(days)) == 7)

    @property
    def best_month_days(self) -> int:
        return max((len(set(days)) for days in self.month_days.values()), default=0)


@dataclass
class XPLedgerEntry:
    user_id: str
    server_id: str
    amount: int
    source: str
    source_id: str
    description: str
    idempotency_key: str
    created_at: datetime


@dataclass
class WeeklyChallenge:
    """One community challenge per ISO week."""

    week_key: str
    start_date: datetime
    end_date: datetime
    target_xp: int
    bonus_xp: int
    participants: list[str] = field(default_factory=list)
    completed_by: list[str] = field(default_factory=list)
    top_earners: list[dict] = field(default_factory=list)


@dataclass
class DailyGoal:
    user_id: str
    day_key: str
    goal: str
    username: str = ""
    created_at: datetime | None = None


@dataclass
class ServerConfig:
    server_id: str
    focus_room_ids: list[str] = field(default_factory=list)
    feed_channel_id: str | None = None
    setup_at: datetime | None = None
    setup_by: str | None = None
