"""Initial schema: tournaments, rounds, matches, scoring rules, picks, streaks

Revision ID: 001_initial
Revises:
Create Date: 2026-10-16 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("format", sa.String(), nullable=False, server_default="bo3"),
        sa.Column("atp_url", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("active_round_number", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("uploaded_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("closed_by", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tournament_slug", "tournament", ["slug"])
    op.create_index("ix_tournament_year", "tournament", ["year"])
    op.create_index("ix_tournament_status", "tournament", ["status"])

    op.create_table(
        "round",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("is_finalized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("opens_at", sa.DateTime(), nullable=True),
        sa.Column("deadline", sa.DateTime(), nullable=True),
        sa.Column("submissions_closed_at", sa.DateTime(), nullable=True),
        sa.Column("submissions_closed_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "round_number", name="uq_tournament_round_number"),
    )
    op.create_index("ix_round_tournament_id", "round", ["tournament_id"])
    op.create_index("ix_round_submissions_closed_at", "round", ["submissions_closed_at"])

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("round_id", sa.Integer(), nullable=False),
        sa.Column("match_number", sa.Integer(), nullable=False),
        sa.Column("player1_name", sa.String(length=255), nullable=False),
        sa.Column("player2_name", sa.String(length=255), nullable=False),
        sa.Column("player1_seed", sa.Integer(), nullable=True),
        sa.Column("player2_seed", sa.Integer(), nullable=True),
        sa.Column("winner_name", sa.String(length=255), nullable=True),
        sa.Column("final_score", sa.String(length=50), nullable=True),
        sa.Column("sets_won", sa.Integer(), nullable=True),
        sa.Column("sets_lost", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("finalized_at", sa.DateTime(), nullable=True),
        sa.Column("finalized_by", sa.String(), nullable=True),
        sa.Column("is_retirement", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_bye", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["round_id"], ["round.id"]),
    )
    op.create_index("ix_match_round_id", "match", ["round_id"])
    op.create_index("ix_match_status", "match", ["status"])

    op.create_table(
        "roundscoringrule",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("round_id", sa.Integer(), nullable=False),
        sa.Column("points_per_winner", sa.Integer(), nullable=False),
        sa.Column("points_exact_score", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["round_id"], ["round.id"]),
        sa.UniqueConstraint("round_id"),
    )

    op.create_table(
        "userroundpick",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("round_id", sa.Integer(), nullable=False),
        sa.Column("is_draft", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("submitted_at", sa.DateTime(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("correct_winners", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("exact_scores", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("scored_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["round_id"], ["round.id"]),
        sa.UniqueConstraint("user_id", "round_id", name="uq_user_round_pick"),
    )
    op.create_index("ix_userroundpick_user_id", "userroundpick", ["user_id"])
    op.create_index("ix_userroundpick_round_id", "userroundpick", ["round_id"])

    op.create_table(
        "matchpick",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_round_pick_id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("predicted_winner", sa.String(length=255), nullable=False),
        sa.Column("predicted_sets_won", sa.Integer(), nullable=False),
        sa.Column("predicted_sets_lost", sa.Integer(), nullable=False),
        sa.Column("is_winner_correct", sa.Boolean(), nullable=True),
        sa.Column("is_exact_score", sa.Boolean(), nullable=True),
        sa.Column("points_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_round_pick_id"], ["userroundpick.id"]),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.UniqueConstraint("user_round_pick_id", "match_id", name="uq_match_pick"),
    )
    op.create_index("ix_matchpick_user_round_pick_id", "matchpick", ["user_round_pick_id"])
    op.create_index("ix_matchpick_match_id", "matchpick", ["match_id"])

    op.create_table(
        "userstreak",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_match_id", sa.Integer(), nullable=True),
        sa.Column("last_updated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["last_match_id"], ["match.id"]),
    )
    op.create_index("ix_userstreak_user_id", "userstreak", ["user_id"], unique=True)


def downgrade() -> None:
    op.drop_table("userstreak")
    op.drop_table("matchpick")
    op.drop_table("userroundpick")
    op.drop_table("roundscoringrule")
    op.drop_table("match")
    op.drop_table("round")
    op.drop_table("tournament")
