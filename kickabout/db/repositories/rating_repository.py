"""Peer rating repository."""

from kickabout.db.repositories.base import BaseRepository
from kickabout.db.store import Row


class PlayerRatingRepository(BaseRepository):
    """Repository for post-match peer ratings."""

    table = "player_ratings"

    async def get_existing(self, rater_id: str, rated_player_id: str, match_id: str) -> Row | None:
        return await self.find_one(
            {"rater_id": rater_id, "rated_player_id": rated_player_id, "match_id": match_id}
        )

    async def get_for_player(self, player_id: str) -> list[Row]:
        """Ratings received by a player, newest first."""
        return await self.get_many_by_field(
            "rated_player_id", player_id, order_by="created_at", descending=True
        )

    async def get_for_match(self, match_id: str) -> list[Row]:
        """Ratings given for a match, newest first."""
        return await self.get_many_by_field(
            "match_id", match_id, order_by="created_at", descending=True
        )

    async def average_for_player(self, player_id: str) -> float | None:
        """Unweighted mean of every rating a player has received."""
        rows = await self.get_many_by_field("rated_player_id", player_id)
        if not rows:
            return None
        return sum(int(row["rating"]) for row in rows) / len(rows)
