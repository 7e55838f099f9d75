"""Leaderboard endpoints."""

from fastapi import APIRouter, Query

from kickabout.api.dependencies import Stats
from kickabout.api.envelope import success
from kickabout.api.schemas import ApiResponse, RankedPlayerResponse
from kickabout.auth import AUTH_RESPONSES, AuthenticatedUser
from kickabout.core.constants import MAX_PAGE_SIZE

router = APIRouter()


@router.get(
    "/leaderboard",
    response_model=ApiResponse[list[RankedPlayerResponse]],
    responses=AUTH_RESPONSES,
    operation_id="getLeaderboard",
)
async def leaderboard(
    user: AuthenticatedUser, stats: Stats, limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE)
) -> dict:
    """Best-rated players."""
    return success(await stats.leaderboard(limit))


@router.get(
    "/top-scorers",
    response_model=ApiResponse[list[RankedPlayerResponse]],
    responses=AUTH_RESPONSES,
    operation_id="getTopScorers",
)
async def top_scorers(
    user: AuthenticatedUser, stats: Stats, limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE)
) -> dict:
    """Players with the most career goals."""
    return success(await stats.top_scorers(limit))
