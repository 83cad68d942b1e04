"""ORM models for focus sessions, progression and challenges.

Column names match the dataclass fields in ``focustrack.records`` so the
SQL store can map rows to records by name.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from focustrack.db.base import Base, BigIntPK, JSONType, UTCDateTime

# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class ActiveSessionRow(Base):
    """One row per user with a live session."""

    __tablename__ = "active_sessions"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(String(128), nullable=False)
    server_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    activity: Mapped[str] = mapped_column(String(256), nullable=False)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    paused_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    paused_duration: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    is_vc_session: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    vc_channel_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    left_vc_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    pending_completion: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    auto_paused: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")


class CompletedSessionRow(Base):
    """Append-only log of finished sessions."""

    __tablename__ = "completed_sessions"
    __table_args__ = (
        Index("ix_completed_sessions_server_end", "server_id", "end_time"),
        Index("ix_completed_sessions_user_end", "user_id", "end_time"),
    )

    seq: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    username: Mapped[str] = mapped_column(String(128), nullable=False)
    server_id: Mapped[str] = mapped_column(String(64), nullable=False)
    activity: Mapped[str] = mapped_column(String(256), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    intensity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source: Mapped[str] = mapped_column(String(16), nullable=False, server_default="command")
    xp_gained: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


# ---------------------------------------------------------------------------
# Progression
# ---------------------------------------------------------------------------


class UserStatsRow(Base):
    """Denormalized per-user progression state."""

    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    total_sessions: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_duration: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    current_streak: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_session_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    first_session_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", index=True)
    achievements: Mapped[list[str]] = mapped_column(JSONType, default=list)
    achievements_unlocked_at: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    sessions_by_day: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    activity_types: Mapped[list[str]] = mapped_column(JSONType, default=list)
    longest_session_duration: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    first_session_of_day_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    sessions_before_7am: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    sessions_after_11pm: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    sessions_after_midnight: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    morning_sessions_before_10am: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    week_days: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    month_days: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    weekly_xp_earned: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    weekly_challenges_completed: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    new_record_pending: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")


class XPLedgerRow(Base):
    """Every XP grant, unique per idempotency key."""

    __tablename__ = "xp_ledger"
    __table_args__ = (
        Index("ix_xp_ledger_source_created", "source", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    server_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    idempotency_key: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)


class WeeklyChallengeRow(Base):
    __tablename__ = "weekly_challenges"

    week_key: Mapped[str] = mapped_column(String(10), primary_key=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    target_xp: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus_xp: Mapped[int] = mapped_column(Integer, nullable=False)
    participants: Mapped[list[str]] = mapped_column(JSONType, default=list)
    completed_by: Mapped[list[str]] = mapped_column(JSONType, default=list)
    top_earners: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)


class DailyGoalRow(Base):
    __tablename__ = "daily_goals"
    __table_args__ = (
        UniqueConstraint("user_id", "day_key", name="uq_daily_goals_user_day"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    day_key: Mapped[str] = mapped_column(String(10), nullable=False)
    goal: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    created_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class ServerConfigRow(Base):
    __tablename__ = "server_configs"

    server_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    focus_room_ids: Mapped[list[str]] = mapped_column(JSONType, default=list)
    feed_channel_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    setup_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    setup_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
