"""Shared API schemas.

Every endpoint answers with the same envelope:
``{success, data, error, message, metadata: {timestamp, requestId, pagination?}}``.
Request bodies keep format checks loose on purpose so the services can
report every violated business rule in one ``ValidationError``.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ============================================================================
# Envelope
# ============================================================================


class Pagination(BaseModel):
    """Pagination block of a listing response."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")


class ResponseMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime
    request_id: str | None = Field(None, alias="requestId")
    pagination: Pagination | None = None


class ApiResponse(BaseModel, Generic[T]):
    """Uniform response envelope."""

    success: bool = True
    data: T | None = None
    error: str | None = None
    message: str | None = None
    metadata: ResponseMetadata


# ============================================================================
# Requests
# ============================================================================


class RegisterRequest(BaseModel):
    email: str
    password: str
    nickname: str
    position: str | None = Field(None, description="goalkeeper, defender, midfielder, forward")


class LoginRequest(BaseModel):
    email: str
    password: str


class RoleUpdateRequest(BaseModel):
    role: str = Field(..., description="player, organizer or admin")


class PlayerCreateRequest(BaseModel):
    """Create the caller's player profile."""

    nickname: str
    position_preference: str | None = None
    photo_url: str | None = None


class PlayerUpdateRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    nickname: str | None = None
    photo_url: str | None = None
    position_preference: str | None = None


class ClubCreateRequest(BaseModel):
    name: str
    description: str | None = None
    logo_url: str | None = None


class InviteRequest(BaseModel):
    player_id: str


class MatchCreateRequest(BaseModel):
    """Create a match. With both club ids set, club members are auto-rostered."""

    title: str
    description: str | None = None
    location: str
    match_date: datetime
    format: str = "5v5"
    max_players: int
    team_a_club_id: str | None = None
    team_b_club_id: str | None = None


class JoinMatchRequest(BaseModel):
    """Join a match. ``player_id`` defaults to the caller's own profile."""

    player_id: str | None = None
    team: str | None = Field(None, description="A or B")


class MatchStatusRequest(BaseModel):
    status: str = Field(..., description="in_progress or cancelled")


class MatchResultRequest(BaseModel):
    match_id: str
    team_a_score: int
    team_b_score: int
    duration_minutes: int | None = None
    goal_scorers: dict[str, int] = Field(
        default_factory=dict, description="Player id to goals scored in this match"
    )


class RatingCreateRequest(BaseModel):
    rated_player_id: str
    match_id: str
    rating: int = Field(..., description="Integer from 1 to 10")
    category: str | None = None
    comment: str | None = None


# ============================================================================
# Responses
# ============================================================================


class UserResponse(BaseModel):
    id: str
    email: str
    role: str
    created_at: datetime | None = None


class PlayerResponse(BaseModel):
    id: str
    user_id: str
    nickname: str
    photo_url: str | None = None
    overall_rating: float
    matches_played: int = 0
    wins: int = 0
    goals_scored: int = 0
    position_preference: str
    created_at: datetime | None = None


class RankedPlayerResponse(PlayerResponse):
    rank: int


class PlayerSummary(BaseModel):
    id: str
    nickname: str
    photo_url: str | None = None
    overall_rating: float | None = None
    position_preference: str | None = None


class SessionResponse(BaseModel):
    token: str
    user: UserResponse
    player: PlayerResponse | None = None


class MeResponse(BaseModel):
    user: UserResponse
    player: PlayerResponse | None = None


class ClubMemberResponse(BaseModel):
    id: str
    club_id: str
    player_id: str
    role: str
    joined_at: datetime | None = None
    player: PlayerSummary | None = None


class ClubResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    logo_url: str | None = None
    created_by: str
    created_at: datetime | None = None
    member_count: int = 0
    members: list[ClubMemberResponse] | None = None


class MyClubResponse(ClubResponse):
    """A club seen from one of its members."""

    role: str
    joined_at: datetime | None = None


class InvitationResponse(BaseModel):
    id: str
    club_id: str
    player_id: str
    invited_by: str
    status: str
    created_at: datetime | None = None
    club_name: str | None = None


class InvitationAcceptedResponse(BaseModel):
    invitation: InvitationResponse
    membership: ClubMemberResponse


class RosterEntryResponse(BaseModel):
    id: str
    match_id: str
    player_id: str
    team: str | None = None
    goals_scored: int = 0
    rating: float | None = None
    is_present: bool = True
    joined_at: datetime | None = None
    player: PlayerSummary | None = None


class MatchResultResponse(BaseModel):
    id: str
    match_id: str
    team_a_score: int
    team_b_score: int
    duration_minutes: int | None = None
    goal_scorers: dict[str, int] = Field(default_factory=dict)
    created_at: datetime | None = None


class MatchResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    location: str
    match_date: datetime
    format: str
    max_players: int
    status: str
    organizer_id: str
    team_a_club_id: str | None = None
    team_b_club_id: str | None = None
    created_at: datetime | None = None
    player_count: int = 0
    players: list[RosterEntryResponse] | None = None
    result: MatchResultResponse | None = None


class BalancedTeamsResponse(BaseModel):
    match_id: str
    team_a: list[RosterEntryResponse]
    team_b: list[RosterEntryResponse]
    team_a_rating: float
    team_b_rating: float


class ResultSubmissionResponse(BaseModel):
    result: MatchResultResponse
    match: MatchResponse


class RatingResponse(BaseModel):
    id: str
    rater_id: str
    rated_player_id: str
    match_id: str
    rating: int
    category: str
    comment: str | None = None
    created_at: datetime | None = None
    rater_nickname: str | None = None
    rated_nickname: str | None = None
    match_title: str | None = None


class RatingSubmissionResponse(BaseModel):
    rating: RatingResponse
    player: PlayerResponse | None = None


class HealthResponse(BaseModel):
    status: str
    version: str


class ReadinessResponse(BaseModel):
    status: str
    datastore: dict[str, Any]
