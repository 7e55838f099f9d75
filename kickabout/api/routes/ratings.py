"""Peer rating endpoints."""

from fastapi import APIRouter, Request, status

from kickabout.api.dependencies import Ratings
from kickabout.api.envelope import success
from kickabout.api.schemas import (
    ApiResponse,
    RatingCreateRequest,
    RatingResponse,
    RatingSubmissionResponse,
)
from kickabout.auth import AUTH_RESPONSES, AuthenticatedUser
from kickabout.core.rate_limit import RATE_LIMITS, limiter

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[RatingSubmissionResponse],
    status_code=status.HTTP_201_CREATED,
    responses=AUTH_RESPONSES,
    operation_id="createRating",
)
@limiter.limit(RATE_LIMITS["writes"])
async def create_rating(
    request: Request, body: RatingCreateRequest, user: AuthenticatedUser, ratings: Ratings
) -> dict:
    """
    Rate another participant of a completed match from 1 to 10.

    One rating per rater, rated player and match. The rated player's overall
    rating becomes the mean of every rating they received.
    """
    created = await ratings.create_rating(
        user,
        rated_player_id=body.rated_player_id,
        match_id=body.match_id,
        rating=body.rating,
        category=body.category,
        comment=body.comment,
    )
    return success(created, message="Rating submitted")


@router.get(
    "/player/{player_id}",
    response_model=ApiResponse[list[RatingResponse]],
    responses=AUTH_RESPONSES,
    operation_id="getPlayerRatings",
)
async def player_ratings(player_id: str, user: AuthenticatedUser, ratings: Ratings) -> dict:
    return success(await ratings.get_player_ratings(player_id))


@router.get(
    "/match/{match_id}",
    response_model=ApiResponse[list[RatingResponse]],
    responses=AUTH_RESPONSES,
    operation_id="getMatchRatings",
)
async def match_ratings(match_id: str, user: AuthenticatedUser, ratings: Ratings) -> dict:
    return success(await ratings.get_match_ratings(match_id))
