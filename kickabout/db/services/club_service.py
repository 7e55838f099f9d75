"""Club membership service: clubs, invitations and rosters."""

import logging
from collections import Counter
from typing import Any

from kickabout.auth.session import CallerIdentity
from kickabout.core.constants import CLUB_INVITER_ROLES
from kickabout.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from kickabout.core.validation import club_violations, ensure_valid
from kickabout.db.repositories import UnitOfWork
from kickabout.db.services.common import caller_player_id, player_summary
from kickabout.db.store import DataStore, Row

logger = logging.getLogger(__name__)


class ClubService:
    """Service for clubs and club membership."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_clubs(self) -> list[dict[str, Any]]:
        """All clubs, newest first, with their member count."""
        async with UnitOfWork(self.store) as uow:
            clubs = await uow.clubs.list_newest()
            members = await uow.club_players.list_members_of([c["id"] for c in clubs])
        counts = Counter(m["club_id"] for m in members)
        return [{**club, "member_count": counts.get(club["id"], 0)} for club in clubs]

    async def get_club(self, club_id: str) -> dict[str, Any]:
        """A club with its expanded member list."""
        async with UnitOfWork(self.store) as uow:
            club = await uow.clubs.get_by_id(club_id)
            if club is None:
                raise NotFoundError("Club not found")
            members = await self._expanded_members(uow, club_id)
        return {**club, "member_count": len(members), "members": members}

    async def list_members(self, club_id: str) -> list[dict[str, Any]]:
        """Members of a club ordered by join time."""
        async with UnitOfWork(self.store) as uow:
            if not await uow.clubs.exists({"id": club_id}):
                raise NotFoundError("Club not found")
            return await self._expanded_members(uow, club_id)

    async def my_clubs(self, caller: CallerIdentity) -> list[dict[str, Any]]:
        """Clubs the caller belongs to, with the caller's role in each."""
        async with UnitOfWork(self.store) as uow:
            player = await uow.players.get_by_user_id(caller.user_id)
            if player is None:
                return []
            memberships = await uow.club_players.list_for_player(player["id"])
            clubs = await uow.clubs.get_many_by_ids(m["club_id"] for m in memberships)
        return [
            {**clubs[m["club_id"]], "role": m["role"], "joined_at": m["joined_at"]}
            for m in memberships
            if m["club_id"] in clubs
        ]

    async def list_invitations(self, caller: CallerIdentity) -> list[dict[str, Any]]:
        """The caller's pending invitations, newest first."""
        async with UnitOfWork(self.store) as uow:
            player = await uow.players.get_by_user_id(caller.user_id)
            if player is None:
                return []
            invitations = await uow.club_invitations.list_pending_for_player(player["id"])
            clubs = await uow.clubs.get_many_by_ids(i["club_id"] for i in invitations)
        return [
            {**inv, "club_name": clubs[inv["club_id"]]["name"] if inv["club_id"] in clubs else None}
            for inv in invitations
        ]

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_club(
        self,
        caller: CallerIdentity,
        name: str,
        description: str | None = None,
        logo_url: str | None = None,
    ) -> dict[str, Any]:
        """Create a club managed by the calling admin.

        The club is deleted again if the manager membership cannot be written.
        """
        if not caller.is_admin:
            raise ForbiddenError("Admin access required")
        name = (name or "").strip()
        ensure_valid(club_violations(name, description))

        async with UnitOfWork(self.store) as uow:
            player_id = await caller_player_id(uow, caller)
            if await uow.clubs.get_by_name(name):
                raise ConflictError("Club name already taken")
            try:
                club = await uow.clubs.create(
                    name=name,
                    description=description,
                    logo_url=logo_url,
                    created_by=caller.user_id,
                )
            except ConflictError as e:
                raise ConflictError("Club name already taken") from e
            uow.add_compensation(
                f"delete club {club['id']}", lambda: uow.clubs.delete(club["id"])
            )

            membership = await uow.club_players.create(
                club_id=club["id"], player_id=player_id, role="manager"
            )
            await uow.commit()

        logger.info(f"Club {club['id']} created by user {caller.user_id}")
        return {**club, "member_count": 1, "members": [membership]}

    async def invite_player(
        self, club_id: str, caller: CallerIdentity, player_id: str
    ) -> Row:
        """Invite a player; only managers and captains of the club may invite."""
        async with UnitOfWork(self.store) as uow:
            if not await uow.clubs.exists({"id": club_id}):
                raise NotFoundError("Club not found")
            if not await uow.players.exists({"id": player_id}):
                raise NotFoundError("Player not found")

            inviter = await uow.players.get_by_user_id(caller.user_id)
            membership = (
                await uow.club_players.get_membership(club_id, inviter["id"]) if inviter else None
            )
            if membership is None or membership["role"] not in CLUB_INVITER_ROLES:
                raise ForbiddenError("Only club managers and captains can invite players")

            if await uow.club_players.get_membership(club_id, player_id):
                raise ConflictError("Player is already a member of this club")
            if await uow.club_invitations.get_pending(club_id, player_id):
                raise ConflictError("An invitation is already pending for this player")

            try:
                invitation = await uow.club_invitations.create(
                    club_id=club_id,
                    player_id=player_id,
                    invited_by=caller.user_id,
                    status="pending",
                )
            except ConflictError as e:
                raise ConflictError("An invitation is already pending for this player") from e

        logger.info(f"Player {player_id} invited to club {club_id}")
        return invitation

    async def accept_invitation(self, invitation_id: str, caller: CallerIdentity) -> dict[str, Any]:
        """Accept a pending invitation and become a member."""
        async with UnitOfWork(self.store) as uow:
            player = await uow.players.get_by_user_id(caller.user_id)
            pending = (
                await uow.club_invitations.get_pending_for_player(invitation_id, player["id"])
                if player
                else None
            )
            if pending is None:
                raise NotFoundError("Pending invitation not found")
            return await self._accept(uow, pending)

    async def reject_invitation(self, invitation_id: str, caller: CallerIdentity) -> Row:
        """Decline a pending invitation."""
        async with UnitOfWork(self.store) as uow:
            player = await uow.players.get_by_user_id(caller.user_id)
            pending = (
                await uow.club_invitations.get_pending_for_player(invitation_id, player["id"])
                if player
                else None
            )
            if pending is None:
                raise NotFoundError("Pending invitation not found")
            rejected = await uow.club_invitations.transition(invitation_id, "pending", "rejected")
        if rejected is None:
            raise NotFoundError("Pending invitation not found")
        return rejected

    async def join_club(self, club_id: str, caller: CallerIdentity) -> dict[str, Any]:
        """Join a club by accepting the caller's pending invitation to it."""
        async with UnitOfWork(self.store) as uow:
            if not await uow.clubs.exists({"id": club_id}):
                raise NotFoundError("Club not found")
            player = await uow.players.get_by_user_id(caller.user_id)
            pending = None
            if player:
                pending = await uow.club_invitations.get_pending(club_id, player["id"])
            if pending is None:
                raise NotFoundError("No pending invitation for this club")
            return await self._accept(uow, pending)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    async def _accept(uow: UnitOfWork, invitation: Row) -> dict[str, Any]:
        accepted = await uow.club_invitations.transition(invitation["id"], "pending", "accepted")
        if accepted is None:
            # Someone else moved it out of pending first
            raise NotFoundError("Pending invitation not found")
        uow.add_compensation(
            f"restore invitation {invitation['id']} to pending",
            lambda: uow.club_invitations.transition(invitation["id"], "accepted", "pending"),
        )

        try:
            membership = await uow.club_players.create(
                club_id=invitation["club_id"], player_id=invitation["player_id"], role="member"
            )
        except ConflictError as e:
            raise ConflictError("Player is already a member of this club") from e
        await uow.commit()

        logger.info(f"Player {invitation['player_id']} joined club {invitation['club_id']}")
        return {"invitation": accepted, "membership": membership}

    @staticmethod
    async def _expanded_members(uow: UnitOfWork, club_id: str) -> list[dict[str, Any]]:
        members = await uow.club_players.list_members(club_id)
        players = await uow.players.get_many_by_ids(m["player_id"] for m in members)
        return [{**m, "player": player_summary(players.get(m["player_id"]))} for m in members]
