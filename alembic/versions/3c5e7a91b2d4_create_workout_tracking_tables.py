"""create workout tracking tables

Revision ID: 3c5e7a91b2d4
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c5e7a91b2d4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("role", sa.String(length=7), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("assigned_trainer_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(["assigned_trainer_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_assigned_trainer_id", "users", ["assigned_trainer_id"])

    op.create_table(
        "workout_plans",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("trainer_id", sa.Uuid(), nullable=False),
        sa.Column("frequency", sa.String(length=2), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("total_weeks", sa.Integer(), nullable=False),
        sa.Column("current_week", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("total_sessions_completed", sa.Integer(), nullable=False),
        sa.Column("total_sessions_planned", sa.Integer(), nullable=False),
        sa.Column("completion_rate", sa.Integer(), nullable=False),
        sa.Column("last_completed_session_id", sa.Uuid(), nullable=True),
        sa.Column("last_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_completed_week", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_weeks BETWEEN 1 AND 52", name="ck_workout_plans_total_weeks"),
        sa.CheckConstraint("current_week >= 1", name="ck_workout_plans_current_week"),
        sa.CheckConstraint("completion_rate BETWEEN 0 AND 100", name="ck_workout_plans_completion_rate"),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["trainer_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workout_plans_client_id", "workout_plans", ["client_id"])
    op.create_index("ix_workout_plans_trainer_id", "workout_plans", ["trainer_id"])
    op.create_index("ix_workout_plans_start_date", "workout_plans", ["start_date"])
    op.create_index("ix_workout_plans_is_active", "workout_plans", ["is_active"])

    op.create_table(
        "workout_sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("plan_id", sa.Uuid(), nullable=False),
        sa.Column("day_of_week", sa.String(length=9), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("estimated_duration", sa.Integer(), nullable=True),
        sa.Column("difficulty", sa.String(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("is_retired", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["plan_id"], ["workout_plans.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workout_sessions_plan_id", "workout_sessions", ["plan_id"])

    op.create_table(
        "session_exercises",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("exercise_name", sa.String(), nullable=False),
        sa.Column("sets", sa.Integer(), nullable=True),
        sa.Column("reps", sa.Integer(), nullable=True),
        sa.Column("rest_seconds", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["session_id"], ["workout_sessions.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_session_exercises_session_id", "session_exercises", ["session_id"])

    op.create_table(
        "workout_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("trainer_id", sa.Uuid(), nullable=False),
        sa.Column("plan_id", sa.Uuid(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("week", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.String(length=9), nullable=False),
        sa.Column("log_date", sa.Date(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("source", sa.String(length=12), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("non_completion_reason", sa.String(length=18), nullable=True),
        sa.Column("non_completion_notes", sa.Text(), nullable=True),
        sa.Column("proof_image", sa.String(), nullable=True),
        sa.Column("counted_in_progress", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("actual_duration", sa.Integer(), nullable=True),
        sa.Column("overall_notes", sa.Text(), nullable=True),
        sa.Column("difficulty", sa.Integer(), nullable=True),
        sa.Column("energy", sa.Integer(), nullable=True),
        sa.Column("mood", sa.Integer(), nullable=True),
        sa.Column("pain_level", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["trainer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["plan_id"], ["workout_plans.id"]),
        sa.ForeignKeyConstraint(["session_id"], ["workout_sessions.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workout_logs_trainer_id", "workout_logs", ["trainer_id"])
    op.create_index("ix_workout_logs_plan_id", "workout_logs", ["plan_id"])
    op.create_index("ix_workout_logs_client_log_date", "workout_logs", ["client_id", "log_date"])
    op.create_index(
        "uq_workout_logs_daily_key",
        "workout_logs",
        ["client_id", "plan_id", "session_id", "log_date"],
        unique=True,
        postgresql_where=sa.text("source = 'daily_status'"),
        sqlite_where=sa.text("source = 'daily_status'"),
    )

    op.create_table(
        "workout_log_exercises",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("log_id", sa.Uuid(), nullable=False),
        sa.Column("exercise_name", sa.String(), nullable=False),
        sa.Column("sets_completed", sa.Integer(), nullable=False),
        sa.Column("reps_completed", sa.Integer(), nullable=False),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["log_id"], ["workout_logs.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workout_log_exercises_log_id", "workout_log_exercises", ["log_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_log_id", sa.Uuid(), nullable=True),
        sa.Column("related_plan_id", sa.Uuid(), nullable=True),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["related_log_id"], ["workout_logs.id"]),
        sa.ForeignKeyConstraint(["related_plan_id"], ["workout_plans.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])
    op.create_index("ix_notifications_type", "notifications", ["type"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("workout_log_exercises")
    op.drop_index("uq_workout_logs_daily_key", table_name="workout_logs")
    op.drop_table("workout_logs")
    op.drop_table("session_exercises")
    op.drop_table("workout_sessions")
    op.drop_table("workout_plans")
    op.drop_table("users")
