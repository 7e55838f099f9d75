"""Match lifecycle endpoints."""

import logging
from typing import Literal

from fastapi import APIRouter, Query, Request, status

from kickabout.api.dependencies import Matches
from kickabout.api.envelope import paginated, success
from kickabout.api.schemas import (
    ApiResponse,
    BalancedTeamsResponse,
    JoinMatchRequest,
    MatchCreateRequest,
    MatchResponse,
    MatchResultRequest,
    MatchResultResponse,
    MatchStatusRequest,
    ResultSubmissionResponse,
    RosterEntryResponse,
)
from kickabout.auth import AUTH_RESPONSES, ORGANIZER_RESPONSES, AuthenticatedUser, OrganizerUser
from kickabout.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from kickabout.core.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[MatchResponse]],
    responses=AUTH_RESPONSES,
    operation_id="getMatches",
)
async def list_matches(
    user: AuthenticatedUser,
    matches: Matches,
    status: Literal["upcoming", "in_progress", "completed", "cancelled"] | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict:
    """Matches newest first, optionally filtered by status."""
    return paginated(await matches.list_matches(page, limit, status))


@router.post(
    "",
    response_model=ApiResponse[MatchResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ORGANIZER_RESPONSES,
    operation_id="createMatch",
)
@limiter.limit(RATE_LIMITS["writes"])
async def create_match(
    request: Request, body: MatchCreateRequest, organizer: OrganizerUser, matches: Matches
) -> dict:
    """
    Create a match.

    When both team_a_club_id and team_b_club_id are given, every member of
    both clubs is placed on the roster on their club's side.
    """
    match = await matches.create_match(organizer, **body.model_dump())
    return success(match, message="Match created")


@router.post(
    "/results",
    response_model=ApiResponse[ResultSubmissionResponse],
    status_code=status.HTTP_201_CREATED,
    responses=AUTH_RESPONSES,
    operation_id="submitMatchResult",
)
@limiter.limit(RATE_LIMITS["writes"])
async def submit_result(
    request: Request, body: MatchResultRequest, user: AuthenticatedUser, matches: Matches
) -> dict:
    """Record the final score (organizer or admin). Completes the match."""
    submitted = await matches.submit_result(
        user,
        body.match_id,
        body.team_a_score,
        body.team_b_score,
        body.duration_minutes,
        body.goal_scorers,
    )
    return success(submitted, message="Result submitted")


@router.get(
    "/{match_id}",
    response_model=ApiResponse[MatchResponse],
    responses=AUTH_RESPONSES,
    operation_id="getMatch",
)
async def get_match(match_id: str, user: AuthenticatedUser, matches: Matches) -> dict:
    """Match details with roster and result."""
    return success(await matches.get_match(match_id))


@router.get(
    "/{match_id}/result",
    response_model=ApiResponse[MatchResultResponse],
    responses=AUTH_RESPONSES,
    operation_id="getMatchResult",
)
async def get_result(match_id: str, user: AuthenticatedUser, matches: Matches) -> dict:
    return success(await matches.get_result(match_id))


@router.post(
    "/{match_id}/join",
    response_model=ApiResponse[RosterEntryResponse],
    status_code=status.HTTP_201_CREATED,
    responses=AUTH_RESPONSES,
    operation_id="joinMatch",
)
@limiter.limit(RATE_LIMITS["writes"])
async def join_match(
    request: Request,
    match_id: str,
    user: AuthenticatedUser,
    matches: Matches,
    body: JoinMatchRequest | None = None,
) -> dict:
    """Join a match with your own player profile."""
    body = body or JoinMatchRequest()
    entry = await matches.join_match(match_id, body.player_id, body.team, caller=user)
    return success(entry, message="Joined match")


@router.delete(
    "/{match_id}/join",
    response_model=ApiResponse[None],
    responses=AUTH_RESPONSES,
    operation_id="leaveMatch",
)
async def leave_match(match_id: str, user: AuthenticatedUser, matches: Matches) -> dict:
    """Leave an upcoming match."""
    await matches.leave_match(match_id, user)
    return success(message="Left match")


@router.post(
    "/{match_id}/balance-teams",
    response_model=ApiResponse[BalancedTeamsResponse],
    responses=AUTH_RESPONSES,
    operation_id="balanceTeams",
)
async def balance_teams(match_id: str, user: AuthenticatedUser, matches: Matches) -> dict:
    """
    Split the roster into two teams by player rating (organizer or admin).

    Players are sorted by overall rating and dealt alternately, so the two
    best players always end up on opposite sides.
    """
    return success(await matches.balance_teams(match_id, user), message="Teams balanced")


@router.patch(
    "/{match_id}/status",
    response_model=ApiResponse[MatchResponse],
    responses=AUTH_RESPONSES,
    operation_id="updateMatchStatus",
)
async def update_status(
    match_id: str, body: MatchStatusRequest, user: AuthenticatedUser, matches: Matches
) -> dict:
    """Start or cancel a match (organizer or admin)."""
    return success(await matches.update_status(match_id, user, body.status))
