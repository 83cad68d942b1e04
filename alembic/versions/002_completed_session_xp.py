"""Per-session XP on the completed-session log.

Revision ID: 002_completed_session_xp
Revises: 001_focus_tables
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002_completed_session_xp"
down_revision: str | None = "001_focus_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column(
        "completed_sessions",
        sa.Column("xp_gained", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    with op.batch_alter_table("completed_sessions") as batch:
        batch.drop_column("xp_gained")
