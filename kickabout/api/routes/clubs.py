"""Club and membership endpoints."""

from fastapi import APIRouter, Request, status

from kickabout.api.dependencies import Clubs
from kickabout.api.envelope import success
from kickabout.api.schemas import (
    ApiResponse,
    ClubCreateRequest,
    ClubMemberResponse,
    ClubResponse,
    InvitationAcceptedResponse,
    InvitationResponse,
    InviteRequest,
    MyClubResponse,
)
from kickabout.auth import ADMIN_RESPONSES, AUTH_RESPONSES, AdminUser, AuthenticatedUser
from kickabout.core.rate_limit import RATE_LIMITS, limiter

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[ClubResponse]],
    responses=AUTH_RESPONSES,
    operation_id="listClubs",
)
async def list_clubs(user: AuthenticatedUser, clubs: Clubs) -> dict:
    return success(await clubs.list_clubs())


@router.post(
    "",
    response_model=ApiResponse[ClubResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ADMIN_RESPONSES,
    operation_id="createClub",
)
@limiter.limit(RATE_LIMITS["writes"])
async def create_club(
    request: Request, body: ClubCreateRequest, admin: AdminUser, clubs: Clubs
) -> dict:
    """Create a club; the creating admin becomes its manager."""
    club = await clubs.create_club(admin, body.name, body.description, body.logo_url)
    return success(club, message="Club created")


@router.get(
    "/mine",
    response_model=ApiResponse[list[MyClubResponse]],
    responses=AUTH_RESPONSES,
    operation_id="getMyClubs",
)
async def my_clubs(user: AuthenticatedUser, clubs: Clubs) -> dict:
    return success(await clubs.my_clubs(user))


@router.get(
    "/invitations",
    response_model=ApiResponse[list[InvitationResponse]],
    responses=AUTH_RESPONSES,
    operation_id="listInvitations",
)
async def list_invitations(user: AuthenticatedUser, clubs: Clubs) -> dict:
    """Pending invitations addressed to the caller."""
    return success(await clubs.list_invitations(user))


@router.post(
    "/invitations/{invitation_id}/accept",
    response_model=ApiResponse[InvitationAcceptedResponse],
    responses=AUTH_RESPONSES,
    operation_id="acceptInvitation",
)
async def accept_invitation(invitation_id: str, user: AuthenticatedUser, clubs: Clubs) -> dict:
    return success(
        await clubs.accept_invitation(invitation_id, user), message="Invitation accepted"
    )


@router.post(
    "/invitations/{invitation_id}/reject",
    response_model=ApiResponse[InvitationResponse],
    responses=AUTH_RESPONSES,
    operation_id="rejectInvitation",
)
async def reject_invitation(invitation_id: str, user: AuthenticatedUser, clubs: Clubs) -> dict:
    return success(
        await clubs.reject_invitation(invitation_id, user), message="Invitation rejected"
    )


@router.get(
    "/{club_id}",
    response_model=ApiResponse[ClubResponse],
    responses=AUTH_RESPONSES,
    operation_id="getClub",
)
async def get_club(club_id: str, user: AuthenticatedUser, clubs: Clubs) -> dict:
    return success(await clubs.get_club(club_id))


@router.get(
    "/{club_id}/members",
    response_model=ApiResponse[list[ClubMemberResponse]],
    responses=AUTH_RESPONSES,
    operation_id="listClubMembers",
)
async def list_members(club_id: str, user: AuthenticatedUser, clubs: Clubs) -> dict:
    return success(await clubs.list_members(club_id))


@router.post(
    "/{club_id}/invite",
    response_model=ApiResponse[InvitationResponse],
    status_code=status.HTTP_201_CREATED,
    responses=AUTH_RESPONSES,
    operation_id="invitePlayer",
)
@limiter.limit(RATE_LIMITS["writes"])
async def invite_player(
    request: Request, club_id: str, body: InviteRequest, user: AuthenticatedUser, clubs: Clubs
) -> dict:
    """Invite a player. Only the club's managers and captains may invite."""
    invitation = await clubs.invite_player(club_id, user, body.player_id)
    return success(invitation, message="Invitation sent")


@router.post(
    "/{club_id}/join",
    response_model=ApiResponse[InvitationAcceptedResponse],
    responses=AUTH_RESPONSES,
    operation_id="joinClub",
)
async def join_club(club_id: str, user: AuthenticatedUser, clubs: Clubs) -> dict:
    """Join a club by accepting your pending invitation to it."""
    return success(await clubs.join_club(club_id, user), message="Joined club")
