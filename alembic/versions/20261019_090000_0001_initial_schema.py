"""Initial schema: users, refresh tokens, monthly goals, tasks

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TASK_STATUS = ("To do", "In progress", "On approval", "Done")
TASK_PRIORITY = ("low", "medium", "high")
GOAL_STATUS = ("active", "paused", "completed", "cancelled")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # =========================================================================
    # users
    # =========================================================================
    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("avatar_url", sa.String(500), nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # =========================================================================
    # refresh_tokens
    # =========================================================================
    op.create_table(
        "refresh_tokens",
        sa.Column("token_id", sa.Uuid(), primary_key=True),
        sa.Column("token", sa.Text(), nullable=False, unique=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("replaced_by_token", sa.Text(), nullable=True),
    )
    op.create_index("idx_refresh_token_user", "refresh_tokens", ["user_id"])

    # =========================================================================
    # monthly_goals
    # =========================================================================
    op.create_table(
        "monthly_goals",
        sa.Column("goal_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("daily_time", sa.String(5), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column(
            "status",
            sa.Enum(*GOAL_STATUS, name="goalstatus", create_constraint=True),
            nullable=False,
            server_default="active",
        ),
        sa.Column("repeat_config", postgresql.JSONB(), nullable=False),
        sa.Column("stats", postgresql.JSONB(), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_goal_user_status", "monthly_goals", ["user_id", "status"])
    op.create_index("idx_goal_window", "monthly_goals", ["status", "start_date", "end_date"])

    # =========================================================================
    # tasks
    # =========================================================================
    op.create_table(
        "tasks",
        sa.Column("task_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "monthly_goal_id",
            sa.Uuid(),
            sa.ForeignKey("monthly_goals.goal_id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "status",
            sa.Enum(*TASK_STATUS, name="taskstatus", create_constraint=True),
            nullable=False,
            server_default="To do",
        ),
        sa.Column(
            "priority",
            sa.Enum(*TASK_PRIORITY, name="taskpriority", create_constraint=True),
            nullable=False,
            server_default="medium",
        ),
        sa.Column("project", sa.String(255), nullable=False, server_default=""),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reminder_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("goal_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("monthly_goal_id", "goal_date", name="uq_task_goal_date"),
    )
    op.create_index("idx_task_user_due", "tasks", ["user_id", "due_date"])
    op.create_index("idx_task_user_status", "tasks", ["user_id", "status"])
    op.create_index("idx_task_user_archived", "tasks", ["user_id", "is_archived"])


def downgrade() -> None:
    op.drop_table("tasks")
    op.drop_table("monthly_goals")
    op.drop_table("refresh_tokens")
    op.drop_table("users")

    op.execute("DROP TYPE IF EXISTS taskstatus")
    op.execute("DROP TYPE IF EXISTS taskpriority")
    op.execute("DROP TYPE IF EXISTS goalstatus")
