"""add exercise catalog

Revision ID: 8f14d2c6a0e7
Revises: 3c5e7a91b2d4
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8f14d2c6a0e7"
down_revision: Union[str, Sequence[str], None] = "3c5e7a91b2d4"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "exercises",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("muscle_group", sa.String(), nullable=True),
        sa.Column("equipment", sa.String(), nullable=True),
        sa.Column("difficulty", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_exercises_name", "exercises", ["name"])

    op.add_column("session_exercises", sa.Column("exercise_id", sa.Uuid(), nullable=True))
    op.create_foreign_key(
        "fk_session_exercises_exercise_id", "session_exercises", "exercises", ["exercise_id"], ["id"]
    )


def downgrade() -> None:
    op.drop_constraint("fk_session_exercises_exercise_id", "session_exercises", type_="foreignkey")
    op.drop_column("session_exercises", "exercise_id")
    op.drop_index("ix_exercises_name", table_name="exercises")
    op.drop_table("exercises")
