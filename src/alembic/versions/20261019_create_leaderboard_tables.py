"""Create leaderboard, period and entry tables

Revision ID: 20261019_leaderboards
Revises:
Create Date: 2026-10-19

This migration adds the tables owned by the leaderboard engine:
- leaderboards: competition definitions
- leaderboard_periods: concrete windows, unique per leaderboard
- leaderboard_entries: ranked snapshot rows, one per participant per period

Note: studios and teachers belong to the studio-management schema and
must already exist; entries reference them by foreign key.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_leaderboards"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the leaderboard tables and their indexes."""
    # === LEADERBOARDS ===
    op.create_table(
        "leaderboards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("participant_type", sa.String(), nullable=False),
        sa.Column("timeframe", sa.String(), nullable=False, server_default="MONTHLY"),
        sa.Column("metric_name", sa.String(), nullable=False, server_default=""),
        sa.Column(
            "higher_is_better", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("minimum_entries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_calculated", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_leaderboards_created_at", "leaderboards", ["created_at"])

    # === LEADERBOARD_PERIODS ===
    op.create_table(
        "leaderboard_periods",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "leaderboard_id",
            sa.String(36),
            sa.ForeignKey("leaderboards.id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(), nullable=False, server_default=""),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="ACTIVE"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "leaderboard_id", "start_date", "end_date", name="_period_window_uc"
        ),
    )
    op.create_index(
        "ix_leaderboard_periods_leaderboard_id",
        "leaderboard_periods",
        ["leaderboard_id"],
    )
    op.create_index(
        "ix_leaderboard_periods_created_at", "leaderboard_periods", ["created_at"]
    )

    # === LEADERBOARD_ENTRIES ===
    op.create_table(
        "leaderboard_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "period_id",
            sa.String(36),
            sa.ForeignKey("leaderboard_periods.id"),
            nullable=False,
        ),
        sa.Column(
            "studio_id", sa.String(36), sa.ForeignKey("studios.id"), nullable=True
        ),
        sa.Column(
            "teacher_id", sa.String(36), sa.ForeignKey("teachers.id"), nullable=True
        ),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("previous_score", sa.Float(), nullable=True),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("previous_rank", sa.Integer(), nullable=True),
        sa.Column("metrics_breakdown", sa.JSON(), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("period_id", "studio_id", name="_entry_period_studio_uc"),
        sa.UniqueConstraint(
            "period_id", "teacher_id", name="_entry_period_teacher_uc"
        ),
        sa.CheckConstraint(
            "(studio_id IS NULL) <> (teacher_id IS NULL)",
            name="ck_entry_single_participant",
        ),
    )
    op.create_index(
        "ix_leaderboard_entries_period_id", "leaderboard_entries", ["period_id"]
    )
    op.create_index(
        "ix_leaderboard_entries_studio_id", "leaderboard_entries", ["studio_id"]
    )
    op.create_index(
        "ix_leaderboard_entries_teacher_id", "leaderboard_entries", ["teacher_id"]
    )


def downgrade() -> None:
    """Drop the leaderboard tables in dependency order."""
    op.drop_index("ix_leaderboard_entries_teacher_id", "leaderboard_entries")
    op.drop_index("ix_leaderboard_entries_studio_id", "leaderboard_entries")
    op.drop_index("ix_leaderboard_entries_period_id", "leaderboard_entries")
    op.drop_table("leaderboard_entries")

    op.drop_index("ix_leaderboard_periods_created_at", "leaderboard_periods")
    op.drop_index("ix_leaderboard_periods_leaderboard_id", "leaderboard_periods")
    op.drop_table("leaderboard_periods")

    op.drop_index("ix_leaderboards_created_at", "leaderboards")
    op.drop_table("leaderboards")
