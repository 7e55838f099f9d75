"""Club, membership and invitation repositories."""

from kickabout.db.repositories.base import BaseRepository
from kickabout.db.store import Row


class ClubRepository(BaseRepository):
    """Repository for clubs."""

    table = "clubs"
    touch_on_update = True

    async def get_by_name(self, name: str) -> Row | None:
        return await self.get_by_field("name", name)

    async def list_newest(self) -> list[Row]:
        return await self.get_all(order_by="created_at", descending=True, limit=None)


class ClubPlayerRepository(BaseRepository):
    """Repository for club memberships."""

    table = "club_players"

    async def get_membership(self, club_id: str, player_id: str) -> Row | None:
        return await self.find_one({"club_id": club_id, "player_id": player_id})

    async def list_members(self, club_id: str) -> list[Row]:
        """Members of a club, longest-standing first."""
        return await self.get_many_by_field("club_id", club_id, order_by="joined_at")

    async def list_members_of(self, club_ids: list[str]) -> list[Row]:
        return await self.find({"club_id": club_ids}, order_by="joined_at")

    async def list_for_player(self, player_id: str) -> list[Row]:
        return await self.get_many_by_field("player_id", player_id, order_by="joined_at")


class ClubInvitationRepository(BaseRepository):
    """Repository for club invitations."""

    table = "club_invitations"
    touch_on_update = True

    async def get_pending(self, club_id: str, player_id: str) -> Row | None:
        return await self.find_one(
            {"club_id": club_id, "player_id": player_id, "status": "pending"}
        )

    async def get_pending_for_player(self, invitation_id: str, player_id: str) -> Row | None:
        return await self.find_one(
            {"id": invitation_id, "player_id": player_id, "status": "pending"}
        )

    async def list_pending_for_player(self, player_id: str) -> list[Row]:
        return await self.find(
            {"player_id": player_id, "status": "pending"},
            order_by="created_at",
            descending=True,
        )

    async def transition(
        self, invitation_id: str, from_status: str, to_status: str
    ) -> Row | None:
        """Move an invitation between statuses.

        The current status is part of the filter, so of two concurrent
        transitions only one finds the row.
        """
        rows = await self.update_many(
            {"id": invitation_id, "status": from_status}, status=to_status
        )
        return rows[0] if rows else None
