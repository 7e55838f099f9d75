"""SQLAlchemy database models.

The table metadata declared here is shared by every data store backend:
the SQL store runs it directly, the in-memory store reads column defaults
and unique constraints from it, and the Alembic migration mirrors it for
the hosted Postgres database.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from kickabout.core.constants import (
    DEFAULT_MATCH_PLAYER_RATING,
    DEFAULT_OVERALL_RATING,
    DEFAULT_POSITION,
    DEFAULT_RATING_CATEGORY,
)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    """Login identity. Owns exactly one player profile."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="player", server_default="player")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class Player(Base):
    """Public player profile with career counters."""

    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    nickname: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    overall_rating: Mapped[float] = mapped_column(
        Float, default=DEFAULT_OVERALL_RATING, server_default=str(DEFAULT_OVERALL_RATING)
    )
    matches_played: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    wins: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    goals_scored: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    position_preference: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_POSITION, server_default=DEFAULT_POSITION
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (Index("ix_players_overall_rating", "overall_rating"),)


class Club(Base):
    """Amateur club."""

    __tablename__ = "clubs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class ClubPlayer(Base):
    """Club membership. A player joins a given club at most once."""

    __tablename__ = "club_players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), default="member", server_default="member")
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("club_id", "player_id", name="uq_club_players_club_player"),
        CheckConstraint("role IN ('manager', 'captain', 'member')", name="ck_club_players_role"),
    )


class ClubInvitation(Base):
    """Invitation to join a club. pending -> accepted | rejected."""

    __tablename__ = "club_invitations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    invited_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", server_default="pending")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        # At most one pending invitation per (club, player). The "partial"
        # info entry lets the in-memory store apply the same predicate.
        Index(
            "uq_club_invitations_pending",
            "club_id",
            "player_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
            info={"partial": {"status": "pending"}},
        ),
    )


class Match(Base):
    """Organized match. upcoming -> in_progress -> completed, or cancelled."""

    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    match_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    format: Mapped[str] = mapped_column(String(10), default="5v5", server_default="5v5")
    max_players: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="upcoming", server_default="upcoming")
    organizer_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    team_a_club_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("clubs.id"), nullable=True
    )
    team_b_club_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("clubs.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_matches_status_date", "status", "match_date"),
        CheckConstraint("max_players BETWEEN 2 AND 22", name="ck_matches_max_players"),
    )


class MatchPlayer(Base):
    """Roster entry. A player joins a given match at most once."""

    __tablename__ = "match_players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    match_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    team: Mapped[str | None] = mapped_column(String(1), nullable=True)
    goals_scored: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    rating: Mapped[float] = mapped_column(
        Float,
        default=DEFAULT_MATCH_PLAYER_RATING,
        server_default=str(DEFAULT_MATCH_PLAYER_RATING),
    )
    is_present: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_players_match_player"),
        Index("ix_match_players_match_id", "match_id"),
    )


class MatchResult(Base):
    """Final score. At most one per match."""

    __tablename__ = "match_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    match_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("matches.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    team_a_score: Mapped[int] = mapped_column(Integer, nullable=False)
    team_b_score: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    goal_scorers: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "team_a_score >= 0 AND team_b_score >= 0", name="ck_match_results_scores"
        ),
    )


class PlayerRating(Base):
    """Peer rating given after a completed match."""

    __tablename__ = "player_ratings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    rater_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    rated_player_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    match_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(
        String(30), default=DEFAULT_RATING_CATEGORY, server_default=DEFAULT_RATING_CATEGORY
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "rater_id", "rated_player_id", "match_id", name="uq_player_ratings_rater_rated_match"
        ),
        CheckConstraint("rating BETWEEN 1 AND 10", name="ck_player_ratings_rating"),
        Index("ix_player_ratings_rated_player_id", "rated_player_id"),
    )


def match_outcome(team_a_score: int, team_b_score: int) -> str:
    """Winning side ("A", "B") or "draw" for a final score."""
    if team_a_score > team_b_score:
        return "A"
    if team_b_score > team_a_score:
        return "B"
    return "draw"


# Table names exposed to the data store layer
TABLES: tuple[str, ...] = tuple(Base.metadata.tables)
