"""User and player repositories."""

from kickabout.db.models import utcnow
from kickabout.db.repositories.base import BaseRepository
from kickabout.db.store import Row


class UserRepository(BaseRepository):
    """Repository for login identities."""

    table = "users"
    touch_on_update = True

    async def get_by_email(self, email: str) -> Row | None:
        return await self.get_by_field("email", email)


class PlayerRepository(BaseRepository):
    """Repository for player profiles and their career counters."""

    table = "players"
    touch_on_update = True

    async def get_by_user_id(self, user_id: str) -> Row | None:
        return await self.get_by_field("user_id", user_id)

    async def get_by_nickname(self, nickname: str) -> Row | None:
        return await self.get_by_field("nickname", nickname)

    async def list_ranked(
        self, order_by: str = "overall_rating", *, limit: int = 20, offset: int = 0
    ) -> list[Row]:
        """Players ordered by a counter, highest first."""
        return await self.get_all(order_by=order_by, descending=True, limit=limit, offset=offset)

    async def add_match_stats(
        self, player_id: str, *, played: int = 0, wins: int = 0, goals: int = 0
    ) -> Row | None:
        """Increment career counters in one store call, safe against concurrent fan-outs."""
        rows = await self.store.increment(
            self.table,
            {"id": player_id},
            {"matches_played": played, "wins": wins, "goals_scored": goals},
            values={"updated_at": utcnow()},
        )
        return rows[0] if rows else None
