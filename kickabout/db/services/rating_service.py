"""Peer rating service."""

import logging
from typing import Any

from kickabout.auth.session import CallerIdentity
from kickabout.core.constants import DEFAULT_RATING_CATEGORY
from kickabout.core.exceptions import (
    ConflictError,
    DuplicateRatingError,
    MatchNotCompletedError,
    NotFoundError,
    NotParticipantError,
    SelfRatingError,
)
from kickabout.core.validation import ensure_valid, rating_violations
from kickabout.db.repositories import UnitOfWork
from kickabout.db.services.common import caller_player_id
from kickabout.db.store import DataStore, Row

logger = logging.getLogger(__name__)


class RatingService:
    """Service for post-match peer ratings."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def create_rating(
        self,
        caller: CallerIdentity,
        *,
        rated_player_id: str,
        match_id: str,
        rating: int,
        category: str | None = None,
        comment: str | None = None,
    ) -> dict[str, Any]:
        """Rate a teammate or opponent after a completed match.

        The rated player's overall rating becomes the mean of every rating
        they have received.
        """
        ensure_valid(rating_violations(rating, category, comment))
        category = (category or DEFAULT_RATING_CATEGORY).strip()

        async with UnitOfWork(self.store) as uow:
            rater_id = await caller_player_id(uow, caller)
            if rater_id == rated_player_id:
                raise SelfRatingError("You cannot rate yourself")

            match = await uow.matches.get_by_id(match_id)
            if match is None:
                raise NotFoundError("Match not found")
            if not await uow.players.exists({"id": rated_player_id}):
                raise NotFoundError("Player not found")
            if match["status"] != "completed":
                raise MatchNotCompletedError("Ratings open once the match is completed")

            participants = await uow.match_players.get_participants(
                match_id, [rater_id, rated_player_id]
            )
            if rater_id not in participants or rated_player_id not in participants:
                raise NotParticipantError("Both players must have played in the match")

            if await uow.player_ratings.get_existing(rater_id, rated_player_id, match_id):
                raise DuplicateRatingError("You already rated this player for this match")
            try:
                created = await uow.player_ratings.create(
                    rater_id=rater_id,
                    rated_player_id=rated_player_id,
                    match_id=match_id,
                    rating=rating,
                    category=category,
                    comment=comment,
                )
            except ConflictError as e:
                raise DuplicateRatingError("You already rated this player for this match") from e

            average = await uow.player_ratings.average_for_player(rated_player_id)
            player = await uow.players.update(rated_player_id, overall_rating=average)

        logger.info(
            f"Player {rated_player_id} rated {rating} by {rater_id} for match {match_id}, "
            f"overall now {average}"
        )
        return {"rating": created, "player": player}

    async def get_player_ratings(self, player_id: str) -> list[dict[str, Any]]:
        """Ratings a player received, newest first."""
        async with UnitOfWork(self.store) as uow:
            if not await uow.players.exists({"id": player_id}):
                raise NotFoundError("Player not found")
            ratings = await uow.player_ratings.get_for_player(player_id)
            return await self._expand(uow, ratings)

    async def get_match_ratings(self, match_id: str) -> list[dict[str, Any]]:
        """Ratings given for a match, newest first."""
        async with UnitOfWork(self.store) as uow:
            if not await uow.matches.exists({"id": match_id}):
                raise NotFoundError("Match not found")
            ratings = await uow.player_ratings.get_for_match(match_id)
            return await self._expand(uow, ratings)

    @staticmethod
    async def _expand(uow: UnitOfWork, ratings: list[Row]) -> list[dict[str, Any]]:
        """Attach rater and rated nicknames and the match title."""
        player_ids = {r["rater_id"] for r in ratings} | {r["rated_player_id"] for r in ratings}
        players = await uow.players.get_many_by_ids(player_ids)
        matches = await uow.matches.get_many_by_ids(r["match_id"] for r in ratings)

        def nickname(player_id: str) -> str | None:
            player = players.get(player_id)
            return player["nickname"] if player else None

        def title(match_id: str) -> str | None:
            match = matches.get(match_id)
            return match["title"] if match else None

        return [
            {
                **r,
                "rater_nickname": nickname(r["rater_id"]),
                "rated_nickname": nickname(r["rated_player_id"]),
                "match_title": title(r["match_id"]),
            }
            for r in ratings
        ]
