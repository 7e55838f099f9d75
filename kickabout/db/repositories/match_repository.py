"""Match, roster and result repositories."""

from typing import Any

from kickabout.db.repositories.base import BaseRepository
from kickabout.db.store import Row


class MatchRepository(BaseRepository):
    """Repository for Match operations."""

    table = "matches"
    touch_on_update = True

    async def list_newest(
        self, *, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Row]:
        filters = {"status": status} if status else {}
        return await self.find(
            filters, order_by="created_at", descending=True, limit=limit, offset=offset
        )

    async def count_by_status(self, status: str | None = None) -> int:
        return await self.count({"status": status} if status else None)

    async def set_status(
        self, match_id: str, status: str, *, expected: str | None = None
    ) -> Row | None:
        """Change a match status, optionally only from an expected current status."""
        filters: dict[str, Any] = {"id": match_id}
        if expected is not None:
            filters["status"] = expected
        rows = await self.update_many(filters, status=status)
        return rows[0] if rows else None


class MatchPlayerRepository(BaseRepository):
    """Repository for roster entries."""

    table = "match_players"

    async def get_roster(self, match_id: str) -> list[Row]:
        """Roster in join order."""
        return await self.get_many_by_field("match_id", match_id, order_by="joined_at")

    async def get_entry(self, match_id: str, player_id: str) -> Row | None:
        return await self.find_one({"match_id": match_id, "player_id": player_id})

    async def count_roster(self, match_id: str) -> int:
        return await self.count({"match_id": match_id})

    async def add_bounded(self, max_players: int, **kwargs: Any) -> Row:
        """Add a roster entry unless the match already has ``max_players`` entries."""
        return await self.store.insert_bounded(
            self.table, kwargs, scope={"match_id": kwargs["match_id"]}, limit=max_players
        )

    async def get_participants(self, match_id: str, player_ids: list[str]) -> set[str]:
        """Which of the given players are on the match roster."""
        rows = await self.find({"match_id": match_id, "player_id": player_ids})
        return {row["player_id"] for row in rows}


class MatchResultRepository(BaseRepository):
    """Repository for final scores."""

    table = "match_results"

    async def get_by_match(self, match_id: str) -> Row | None:
        return await self.get_by_field("match_id", match_id)

    async def get_by_matches(self, match_ids: list[str]) -> dict[str, Row]:
        if not match_ids:
            return {}
        rows = await self.find({"match_id": match_ids})
        return {row["match_id"]: row for row in rows}
