"""Focus sessions, progression, challenges and server config.

Revision ID: 001_focus_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_focus_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
BIGINT_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
TS = sa.DateTime(timezone=True)


def upgrade() -> None:
    # --- active_sessions ---
    op.create_table(
        "active_sessions",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("username", sa.String(128), nullable=False),
        sa.Column("server_id", sa.String(64), nullable=False),
        sa.Column("activity", sa.String(256), nullable=False),
        sa.Column("start_time", TS, nullable=False),
        sa.Column("is_paused", sa.Boolean(), server_default="false"),
        sa.Column("paused_at", TS, nullable=True),
        sa.Column("paused_duration", sa.Integer(), server_default="0"),
        sa.Column("is_vc_session", sa.Boolean(), server_default="false"),
        sa.Column("vc_channel_id", sa.String(64), nullable=True),
        sa.Column("left_vc_at", TS, nullable=True),
        sa.Column("pending_completion", sa.Boolean(), server_default="false"),
        sa.Column("auto_paused", sa.Boolean(), server_default="false"),
    )
    op.create_index("ix_active_sessions_server_id", "active_sessions", ["server_id"])

    # --- completed_sessions ---
    op.create_table(
        "completed_sessions",
        sa.Column("seq", BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(32), nullable=False, unique=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("username", sa.String(128), nullable=False),
        sa.Column("server_id", sa.String(64), nullable=False),
        sa.Column("activity", sa.String(256), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("start_time", TS, nullable=False),
        sa.Column("end_time", TS, nullable=False),
        sa.Column("created_at", TS, nullable=False),
        sa.Column("intensity", sa.Integer(), nullable=True),
        sa.Column("source", sa.String(16), nullable=False, server_default="command"),
    )
    op.create_index("ix_completed_sessions_server_end", "completed_sessions", ["server_id", "end_time"])
    op.create_index("ix_completed_sessions_user_end", "completed_sessions", ["user_id", "end_time"])

    # --- user_stats ---
    op.create_table(
        "user_stats",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("username", sa.String(128), nullable=False),
        sa.Column("total_sessions", sa.Integer(), server_default="0"),
        sa.Column("total_duration", sa.Integer(), server_default="0"),
        sa.Column("current_streak", sa.Integer(), server_default="0"),
        sa.Column("longest_streak", sa.Integer(), server_default="0"),
        sa.Column("last_session_at", TS, nullable=True),
        sa.Column("first_session_at", TS, nullable=True),
        sa.Column("xp", sa.Integer(), server_default="0"),
        sa.Column("achievements", JSON),
        sa.Column("achievements_unlocked_at", JSON),
        sa.Column("sessions_by_day", JSON),
        sa.Column("activity_types", JSON),
        sa.Column("longest_session_duration", sa.Integer(), server_default="0"),
        sa.Column("first_session_of_day_count", sa.Integer(), server_default="0"),
        sa.Column("sessions_before_7am", sa.Integer(), server_default="0"),
        sa.Column("sessions_after_11pm", sa.Integer(), server_default="0"),
        sa.Column("sessions_after_midnight", sa.Integer(), server_default="0"),
        sa.Column("morning_sessions_before_10am", sa.Integer(), server_default="0"),
        sa.Column("week_days", JSON),
        sa.Column("month_days", JSON),
        sa.Column("weekly_xp_earned", JSON),
        sa.Column("weekly_challenges_completed", sa.Integer(), server_default="0"),
        sa.Column("new_record_pending", sa.Boolean(), server_default="false"),
    )
    op.create_index("ix_user_stats_xp", "user_stats", ["xp"])

    # --- xp_ledger ---
    op.create_table(
        "xp_ledger",
        sa.Column("id", BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("server_id", sa.String(64), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("source_id", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("idempotency_key", sa.String(256), nullable=False, unique=True),
        sa.Column("created_at", TS, nullable=False),
    )
    op.create_index("ix_xp_ledger_user_id", "xp_ledger", ["user_id"])
    op.create_index("ix_xp_ledger_source_created", "xp_ledger", ["source", "created_at"])

    # --- weekly_challenges ---
    op.create_table(
        "weekly_challenges",
        sa.Column("week_key", sa.String(10), primary_key=True),
        sa.Column("start_date", TS, nullable=False),
        sa.Column("end_date", TS, nullable=False),
        sa.Column("target_xp", sa.Integer(), nullable=False),
        sa.Column("bonus_xp", sa.Integer(), nullable=False),
        sa.Column("participants", JSON),
        sa.Column("completed_by", JSON),
        sa.Column("top_earners", JSON),
    )

    # --- daily_goals ---
    op.create_table(
        "daily_goals",
        sa.Column("id", BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("day_key", sa.String(10), nullable=False),
        sa.Column("goal", sa.Text(), nullable=False),
        sa.Column("username", sa.String(128), nullable=False),
        sa.Column("created_at", TS, nullable=True),
        sa.UniqueConstraint("user_id", "day_key", name="uq_daily_goals_user_day"),
    )

    # --- server_configs ---
    op.create_table(
        "server_configs",
        sa.Column("server_id", sa.String(64), primary_key=True),
        sa.Column("focus_room_ids", JSON),
        sa.Column("feed_channel_id", sa.String(64), nullable=True),
        sa.Column("setup_at", TS, nullable=True),
        sa.Column("setup_by", sa.String(64), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("server_configs")
    op.drop_table("daily_goals")
    op.drop_table("weekly_challenges")
    op.drop_index("ix_xp_ledger_source_created", table_name="xp_ledger")
    op.drop_index("ix_xp_ledger_user_id", table_name="xp_ledger")
    op.drop_table("xp_ledger")
    op.drop_index("ix_user_stats_xp", table_name="user_stats")
    op.drop_table("user_stats")
    op.drop_index("ix_completed_sessions_user_end", table_name="completed_sessions")
    op.drop_index("ix_completed_sessions_server_end", table_name="completed_sessions")
    op.drop_table("completed_sessions")
    op.drop_index("ix_active_sessions_server_id", table_name="active_sessions")
    op.drop_table("active_sessions")
