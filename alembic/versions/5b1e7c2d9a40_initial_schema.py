"""initial_schema

Revision ID: 5b1e7c2d9a40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5b1e7c2d9a40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Roster capacity guard. Serializes inserts per match with a row lock on the
# match, then refuses the insert once max_players entries exist.
CAPACITY_FUNCTION = """
CREATE OR REPLACE FUNCTION enforce_match_capacity() RETURNS trigger AS $$
DECLARE
    capacity integer;
    current_count integer;
BEGIN
    SELECT max_players INTO capacity FROM matches WHERE id = NEW.match_id FOR UPDATE;
    SELECT count(*) INTO current_count FROM match_players WHERE match_id = NEW.match_id;
    IF capacity IS NOT NULL AND current_count >= capacity THEN
        RAISE EXCEPTION 'match roster capacity reached' USING ERRCODE = 'check_violation';
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
"""

CAPACITY_TRIGGER = """
CREATE TRIGGER match_players_capacity
BEFORE INSERT ON match_players
FOR EACH ROW EXECUTE FUNCTION enforce_match_capacity();
"""


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    """Create all tables for the Kickabout application."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), server_default="player", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # --- players ---
    op.create_table(
        "players",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("nickname", sa.String(length=50), nullable=False),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("overall_rating", sa.Float(), server_default="5.0", nullable=False),
        sa.Column("matches_played", sa.Integer(), server_default="0", nullable=False),
        sa.Column("wins", sa.Integer(), server_default="0", nullable=False),
        sa.Column("goals_scored", sa.Integer(), server_default="0", nullable=False),
        sa.Column(
            "position_preference", sa.String(length=20), server_default="forward", nullable=False
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
        sa.UniqueConstraint("nickname"),
    )
    op.create_index("ix_players_overall_rating", "players", ["overall_rating"])

    # --- clubs ---
    op.create_table(
        "clubs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # --- club_players ---
    op.create_table(
        "club_players",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("club_id", sa.String(length=36), nullable=False),
        sa.Column("player_id", sa.String(length=36), nullable=False),
        sa.Column("role", sa.String(length=20), server_default="member", nullable=False),
        sa.Column(
            "joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("club_id", "player_id", name="uq_club_players_club_player"),
        sa.CheckConstraint(
            "role IN ('manager', 'captain', 'member')", name="ck_club_players_role"
        ),
    )

    # --- club_invitations ---
    op.create_table(
        "club_invitations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("club_id", sa.String(length=36), nullable=False),
        sa.Column("player_id", sa.String(length=36), nullable=False),
        sa.Column("invited_by", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invited_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_club_invitations_pending",
        "club_invitations",
        ["club_id", "player_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    # --- matches ---
    op.create_table(
        "matches",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("match_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("format", sa.String(length=10), server_default="5v5", nullable=False),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default="upcoming", nullable=False),
        sa.Column("organizer_id", sa.String(length=36), nullable=False),
        sa.Column("team_a_club_id", sa.String(length=36), nullable=True),
        sa.Column("team_b_club_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organizer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["team_a_club_id"], ["clubs.id"]),
        sa.ForeignKeyConstraint(["team_b_club_id"], ["clubs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("max_players BETWEEN 2 AND 22", name="ck_matches_max_players"),
    )
    op.create_index("ix_matches_status_date", "matches", ["status", "match_date"])

    # --- match_players ---
    op.create_table(
        "match_players",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("match_id", sa.String(length=36), nullable=False),
        sa.Column("player_id", sa.String(length=36), nullable=False),
        sa.Column("team", sa.String(length=1), nullable=True),
        sa.Column("goals_scored", sa.Integer(), server_default="0", nullable=False),
        sa.Column("rating", sa.Float(), server_default="5.0", nullable=False),
        sa.Column("is_present", sa.Boolean(), server_default="true", nullable=False),
        sa.Column(
            "joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id", "player_id", name="uq_match_players_match_player"),
    )
    op.create_index("ix_match_players_match_id", "match_players", ["match_id"])

    # --- match_results ---
    op.create_table(
        "match_results",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("match_id", sa.String(length=36), nullable=False),
        sa.Column("team_a_score", sa.Integer(), nullable=False),
        sa.Column("team_b_score", sa.Integer(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("goal_scorers", sa.JSON(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id"),
        sa.CheckConstraint(
            "team_a_score >= 0 AND team_b_score >= 0", name="ck_match_results_scores"
        ),
    )

    # --- player_ratings ---
    op.create_table(
        "player_ratings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("rater_id", sa.String(length=36), nullable=False),
        sa.Column("rated_player_id", sa.String(length=36), nullable=False),
        sa.Column("match_id", sa.String(length=36), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=30), server_default="overall", nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(["rater_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["rated_player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "rater_id", "rated_player_id", "match_id", name="uq_player_ratings_rater_rated_match"
        ),
        sa.CheckConstraint("rating BETWEEN 1 AND 10", name="ck_player_ratings_rating"),
    )
    op.create_index(
        "ix_player_ratings_rated_player_id", "player_ratings", ["rated_player_id"]
    )

    if op.get_bind().dialect.name == "postgresql":
        op.execute(CAPACITY_FUNCTION)
        op.execute(CAPACITY_TRIGGER)


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS match_players_capacity ON match_players")
        op.execute("DROP FUNCTION IF EXISTS enforce_match_capacity()")
    op.drop_table("player_ratings")
    op.drop_table("match_results")
    op.drop_table("match_players")
    op.drop_table("matches")
    op.drop_table("club_invitations")
    op.drop_table("club_players")
    op.drop_table("clubs")
    op.drop_table("players")
    op.drop_table("users")
