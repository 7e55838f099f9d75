"""Stats service for leaderboards."""

import logging
from typing import Any

from kickabout.core.constants import MAX_PAGE_SIZE
from kickabout.db.repositories import UnitOfWork
from kickabout.db.store import DataStore

logger = logging.getLogger(__name__)


class StatsService:
    """Service for player statistics."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def leaderboard(self, limit: int = 10) -> list[dict[str, Any]]:
        """Players ranked by overall rating."""
        return await self._ranked("overall_rating", limit)

    async def top_scorers(self, limit: int = 10) -> list[dict[str, Any]]:
        """Players ranked by career goals."""
        return await self._ranked("goals_scored", limit)

    async def _ranked(self, column: str, limit: int) -> list[dict[str, Any]]:
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        async with UnitOfWork(self.store) as uow:
            players = await uow.players.list_ranked(column, limit=limit)
        return [{"rank": i, **player} for i, player in enumerate(players, start=1)]
