"""Player directory endpoints."""

from fastapi import APIRouter, Query, status

from kickabout.api.dependencies import Players
from kickabout.api.envelope import paginated, success
from kickabout.api.schemas import (
    ApiResponse,
    PlayerCreateRequest,
    PlayerResponse,
    PlayerUpdateRequest,
)
from kickabout.auth import AUTH_RESPONSES, AuthenticatedUser
from kickabout.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[PlayerResponse]],
    responses=AUTH_RESPONSES,
    operation_id="listPlayers",
)
async def list_players(
    user: AuthenticatedUser,
    players: Players,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict:
    """Players ranked by overall rating."""
    return paginated(await players.list_players(page, limit))


@router.post(
    "",
    response_model=ApiResponse[PlayerResponse],
    status_code=status.HTTP_201_CREATED,
    responses=AUTH_RESPONSES,
    operation_id="createPlayerProfile",
)
async def create_player(
    body: PlayerCreateRequest, user: AuthenticatedUser, players: Players
) -> dict:
    """Create the caller's player profile if the account has none."""
    player = await players.create_profile(
        user, body.nickname, body.position_preference, body.photo_url
    )
    return success(player, message="Player profile created")


@router.get(
    "/email/{email}",
    response_model=ApiResponse[PlayerResponse],
    responses=AUTH_RESPONSES,
    operation_id="getPlayerByEmail",
)
async def get_player_by_email(email: str, user: AuthenticatedUser, players: Players) -> dict:
    return success(await players.get_by_email(email))


@router.get(
    "/{player_id}",
    response_model=ApiResponse[PlayerResponse],
    responses=AUTH_RESPONSES,
    operation_id="getPlayer",
)
async def get_player(player_id: str, user: AuthenticatedUser, players: Players) -> dict:
    return success(await players.get_player(player_id))


@router.put(
    "/{player_id}",
    response_model=ApiResponse[PlayerResponse],
    responses=AUTH_RESPONSES,
    operation_id="updatePlayer",
)
async def update_player(
    player_id: str, body: PlayerUpdateRequest, user: AuthenticatedUser, players: Players
) -> dict:
    """Edit your own profile. Nicknames stay unique."""
    updated = await players.update_player(user, player_id, body.model_dump(exclude_unset=True))
    return success(updated, message="Player updated")
