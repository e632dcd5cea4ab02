"""Achievement definitions and unlocked user achievements

Revision ID: 002_achievements
Revises: 001_initial
Create Date: 2026-10-16 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "002_achievements"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "achievementdefinition",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("badge_color", sa.String(length=50), nullable=True),
        sa.Column("threshold", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_achievementdefinition_code", "achievementdefinition", ["code"], unique=True)
    op.create_index("ix_achievementdefinition_category", "achievementdefinition", ["category"])

    op.create_table(
        "userachievement",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("achievement_id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=True),
        sa.Column("round_id", sa.Integer(), nullable=True),
        sa.Column("value", sa.Integer(), nullable=True),
        sa.Column("unlocked_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["achievement_id"], ["achievementdefinition.id"]),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["round_id"], ["round.id"]),
        sa.UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )
    op.create_index("ix_userachievement_user_id", "userachievement", ["user_id"])
    op.create_index("ix_userachievement_achievement_id", "userachievement", ["achievement_id"])


def downgrade() -> None:
    op.drop_table("userachievement")
    op.drop_table("achievementdefinition")
