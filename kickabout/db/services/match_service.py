"""Match lifecycle service.

Covers creation with club auto-roster, joining and leaving, team
balancing, status edits and result submission with the player
statistics fan-out.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any

from kickabout.auth.session import CallerIdentity
from kickabout.core.constants import (
    DEFAULT_MATCH_PLAYER_RATING,
    DEFAULT_OVERALL_RATING,
    MATCH_STATUS_TRANSITIONS,
    MATCH_STATUSES,
    TERMINAL_MATCH_STATUSES,
)
from kickabout.core.exceptions import (
    CapacityError,
    ConflictError,
    EmptyRosterError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from kickabout.core.validation import ensure_valid, match_violations, result_violations
from kickabout.db.models import match_outcome
from kickabout.db.repositories import UnitOfWork
from kickabout.db.services.common import (
    Page,
    caller_player_id,
    is_organizer_or_admin,
    page_window,
    player_summary,
)
from kickabout.db.store import DataStore, Row

logger = logging.getLogger(__name__)

TEAMS = ("A", "B")


def _roster_entry(match_id: str, player_id: str, team: str | None) -> dict[str, Any]:
    return {
        "match_id": match_id,
        "player_id": player_id,
        "team": team,
        "goals_scored": 0,
        "rating": DEFAULT_MATCH_PLAYER_RATING,
        "is_present": True,
    }


def snake_split(entries: list[Row], ratings: dict[str, float]) -> tuple[list[Row], list[Row]]:
    """Split a roster into two teams of near-equal summed rating.

    Entries are ordered by rating descending, then join time, then player
    id, and dealt alternately: even positions to A, odd positions to B.
    The same roster and ratings always give the same split.
    """
    def key(entry: Row) -> tuple[float, Any, str]:
        rating = ratings.get(entry["player_id"], DEFAULT_OVERALL_RATING)
        return (-rating, entry["joined_at"], entry["player_id"])

    ordered = sorted(entries, key=key)
    return ordered[0::2], ordered[1::2]


class MatchService:
    """Service for match-related operations."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_matches(
        self, page: int = 1, limit: int = 20, status: str | None = None
    ) -> Page:
        """Matches newest first, each with its current player count."""
        if status is not None and status not in MATCH_STATUSES:
            raise ValidationError.from_violations(
                [f"status must be one of: {', '.join(MATCH_STATUSES)}"]
            )
        page, limit = page_window(page, limit)
        async with UnitOfWork(self.store) as uow:
            total = await uow.matches.count_by_status(status)
            matches = await uow.matches.list_newest(
                status=status, limit=limit, offset=(page - 1) * limit
            )
            ids = [m["id"] for m in matches]
            entries = await uow.match_players.find({"match_id": ids}) if ids else []

        counts = Counter(e["match_id"] for e in entries)
        items = [{**m, "player_count": counts.get(m["id"], 0)} for m in matches]
        return Page(items=items, page=page, limit=limit, total=total)

    async def get_match(self, match_id: str) -> dict[str, Any]:
        """A match with its expanded roster and result, if any."""
        async with UnitOfWork(self.store) as uow:
            match = await uow.matches.get_by_id(match_id)
            if match is None:
                raise NotFoundError("Match not found")
            roster = await self._expanded_roster(uow, match_id)
            result = await uow.match_results.get_by_match(match_id)
        return {**match, "player_count": len(roster), "players": roster, "result": result}

    async def get_result(self, match_id: str) -> Row:
        async with UnitOfWork(self.store) as uow:
            if not await uow.matches.exists({"id": match_id}):
                raise NotFoundError("Match not found")
            result = await uow.match_results.get_by_match(match_id)
        if result is None:
            raise NotFoundError("Match result not found")
        return result

    # =========================================================================
    # Creation and roster
    # =========================================================================

    async def create_match(
        self,
        caller: CallerIdentity,
        *,
        title: str,
        location: str,
        match_date: datetime,
        max_players: int,
        format: str = "5v5",
        description: str | None = None,
        team_a_club_id: str | None = None,
        team_b_club_id: str | None = None,
    ) -> dict[str, Any]:
        """Create an upcoming match organized by the caller.

        With both club ids set, every member of both clubs is put on the
        roster on their club's side. A player in both clubs plays for A.
        The creation is refused with ``CapacityError`` before any write when
        that roster would exceed ``max_players``.
        """
        title = (title or "").strip()
        location = (location or "").strip()
        ensure_valid(
            match_violations(
                title=title,
                location=location,
                match_date=match_date,
                max_players=max_players,
                format=format,
            )
        )
        if team_a_club_id and team_a_club_id == team_b_club_id:
            raise ValidationError.from_violations(["a club cannot play against itself"])

        async with UnitOfWork(self.store) as uow:
            for club_id in (team_a_club_id, team_b_club_id):
                if club_id and not await uow.clubs.exists({"id": club_id}):
                    raise NotFoundError("Club not found", {"club_id": club_id})

            sides: dict[str, str] = {}
            if team_a_club_id and team_b_club_id:
                for member in await uow.club_players.list_members(team_a_club_id):
                    sides.setdefault(member["player_id"], "A")
                for member in await uow.club_players.list_members(team_b_club_id):
                    sides.setdefault(member["player_id"], "B")
                if len(sides) > max_players:
                    raise CapacityError(
                        f"Club rosters have {len(sides)} players but the match allows "
                        f"{max_players}",
                        {"roster_size": len(sides), "max_players": max_players},
                    )

            match = await uow.matches.create(
                title=title,
                description=description,
                location=location,
                match_date=match_date,
                format=format,
                max_players=max_players,
                status="upcoming",
                organizer_id=caller.user_id,
                team_a_club_id=team_a_club_id,
                team_b_club_id=team_b_club_id,
            )
            uow.add_compensation(
                f"delete match {match['id']}", lambda: uow.matches.delete(match["id"])
            )
            roster = await uow.match_players.create_many(
                [_roster_entry(match["id"], pid, team) for pid, team in sides.items()]
            )
            await uow.commit()

        logger.info(
            f"Match {match['id']} created by user {caller.user_id} "
            f"with {len(roster)} auto-rostered players"
        )
        return {**match, "player_count": len(roster), "players": roster}

    async def join_match(
        self,
        match_id: str,
        player_id: str | None = None,
        team: str | None = None,
        caller: CallerIdentity | None = None,
    ) -> Row:
        """Put a player on the roster.

        With ``caller`` set, the player profile must be the caller's own and
        defaults to it when ``player_id`` is omitted.
        """
        if team is not None and team not in TEAMS:
            raise ValidationError.from_violations(["team must be A or B"])
        if player_id is None and caller is None:
            raise ValidationError.from_violations(["player_id is required"])

        async with UnitOfWork(self.store) as uow:
            match = await uow.matches.get_by_id(match_id)
            if match is None:
                raise NotFoundError("Match not found")
            if match["status"] in TERMINAL_MATCH_STATUSES:
                raise ConflictError(f"Match is already {match['status']}")

            if player_id is None:
                player_id = await caller_player_id(uow, caller)
            player = await uow.players.get_by_id(player_id)
            if player is None:
                raise NotFoundError("Player not found")
            if caller is not None and player["user_id"] != caller.user_id:
                raise ForbiddenError("You can only join a match as yourself")

            if await uow.match_players.count_roster(match_id) >= match["max_players"]:
                raise CapacityError("Match is full")
            if await uow.match_players.get_entry(match_id, player_id):
                raise ConflictError("Player already joined this match")

            try:
                entry = await uow.match_players.add_bounded(
                    match["max_players"], **_roster_entry(match_id, player_id, team)
                )
            except ConflictError as e:
                raise ConflictError("Player already joined this match") from e

        logger.info(f"Player {player_id} joined match {match_id}")
        return entry

    async def leave_match(self, match_id: str, caller: CallerIdentity) -> None:
        """Take the caller off the roster of an upcoming match."""
        async with UnitOfWork(self.store) as uow:
            match = await uow.matches.get_by_id(match_id)
            if match is None:
                raise NotFoundError("Match not found")
            if match["status"] != "upcoming":
                raise ConflictError(f"Cannot leave a match that is {match['status']}")
            player_id = await caller_player_id(uow, caller)
            entry = await uow.match_players.get_entry(match_id, player_id)
            if entry is None:
                raise NotFoundError("You are not on this match's roster")
            await uow.match_players.delete(entry["id"])

        logger.info(f"Player {player_id} left match {match_id}")

    async def balance_teams(
        self, match_id: str, caller: CallerIdentity | None = None
    ) -> dict[str, Any]:
        """Reassign every rostered player to team A or B by current rating."""
        async with UnitOfWork(self.store) as uow:
            match = await uow.matches.get_by_id(match_id)
            if match is None:
                raise NotFoundError("Match not found")
            if caller is not None and not is_organizer_or_admin(match, caller):
                raise ForbiddenError("Only the match organizer or an admin can balance teams")

            entries = await uow.match_players.get_roster(match_id)
            if not entries:
                raise EmptyRosterError("No players have joined this match")

            players = await uow.players.get_many_by_ids(e["player_id"] for e in entries)
            ratings = {
                pid: float(p.get("overall_rating") or DEFAULT_OVERALL_RATING)
                for pid, p in players.items()
            }
            team_a, team_b = snake_split(entries, ratings)

            for team, side in (("A", team_a), ("B", team_b)):
                if side:
                    await uow.match_players.update_many(
                        {"id": [e["id"] for e in side]}, team=team
                    )

        def project(side: list[Row], team: str) -> list[dict[str, Any]]:
            return [
                {**e, "team": team, "player": player_summary(players.get(e["player_id"]))}
                for e in side
            ]

        logger.info(f"Balanced match {match_id}: {len(team_a)} vs {len(team_b)}")
        return {
            "match_id": match_id,
            "team_a": project(team_a, "A"),
            "team_b": project(team_b, "B"),
            "team_a_rating": sum(ratings[e["player_id"]] for e in team_a),
            "team_b_rating": sum(ratings[e["player_id"]] for e in team_b),
        }

    # =========================================================================
    # Status and results
    # =========================================================================

    async def update_status(self, match_id: str, caller: CallerIdentity, status: str) -> Row:
        """Directly move a match to ``in_progress`` or ``cancelled``."""
        if status not in MATCH_STATUSES:
            raise ValidationError.from_violations(
                [f"status must be one of: {', '.join(MATCH_STATUSES)}"]
            )

        async with UnitOfWork(self.store) as uow:
            match = await uow.matches.get_by_id(match_id)
            if match is None:
                raise NotFoundError("Match not found")
            if not is_organizer_or_admin(match, caller):
                raise ForbiddenError("Only the match organizer or an admin can change its status")

            current = match["status"]
            if status not in MATCH_STATUS_TRANSITIONS.get(current, frozenset()):
                raise ConflictError(f"Cannot move a match from {current} to {status}")
            updated = await uow.matches.set_status(match_id, status, expected=current)
            if updated is None:
                raise ConflictError("Match status changed concurrently, retry")

        logger.info(f"Match {match_id} moved from {current} to {status}")
        return updated

    async def submit_result(
        self,
        caller: CallerIdentity,
        match_id: str,
        team_a_score: int,
        team_b_score: int,
        duration_minutes: int | None = None,
        goal_scorers: dict[str, int] | None = None,
    ) -> dict[str, Any]:
        """Record the final score, complete the match and update player statistics.

        The result row and the status flip form one unit: the result is
        deleted again if the flip fails. The statistics fan-out runs after
        that and is best-effort.
        """
        goal_scorers = dict(goal_scorers or {})
        ensure_valid(result_violations(team_a_score, team_b_score, duration_minutes, goal_scorers))

        async with UnitOfWork(self.store) as uow:
            match = await uow.matches.get_by_id(match_id)
            if match is None:
                raise NotFoundError("Match not found")
            if not is_organizer_or_admin(match, caller):
                raise ForbiddenError("Only the match organizer or an admin can submit the result")
            if match["status"] == "cancelled":
                raise ConflictError("Cannot submit a result for a cancelled match")
            if await uow.match_results.get_by_match(match_id):
                raise ConflictError("A result was already submitted for this match")

            try:
                result = await uow.match_results.create(
                    match_id=match_id,
                    team_a_score=team_a_score,
                    team_b_score=team_b_score,
                    duration_minutes=duration_minutes,
                    goal_scorers=goal_scorers,
                )
            except ConflictError as e:
                raise ConflictError("A result was already submitted for this match") from e
            uow.add_compensation(
                f"delete result of match {match_id}",
                lambda: uow.match_results.delete(result["id"]),
            )

            completed = await uow.matches.set_status(match_id, "completed")
            if completed is None:
                raise NotFoundError("Match not found")
            await uow.commit()

        logger.info(f"Result {team_a_score}-{team_b_score} recorded for match {match_id}")
        await self._apply_statistics(match_id, result)
        return {"result": result, "match": completed}

    async def _apply_statistics(self, match_id: str, result: Row) -> None:
        """Best-effort fan-out of a result onto career counters.

        Every rostered player gets a match played and, on the winning side,
        a win. Goals from ``goal_scorers`` are added to the player's career
        total and written onto their roster entry. Failures are logged only.
        """
        goals: dict[str, int] = {
            pid: int(n) for pid, n in (result.get("goal_scorers") or {}).items()
        }
        winner = match_outcome(result["team_a_score"], result["team_b_score"])
        failures = 0

        async with UnitOfWork(self.store) as uow:
            try:
                roster = await uow.match_players.get_roster(match_id)
            except Exception as e:
                logger.error(f"Statistics fan-out for match {match_id} could not load roster: {e}")
                return

            rostered = {entry["player_id"] for entry in roster}
            for entry in roster:
                player_id = entry["player_id"]
                scored = goals.get(player_id, 0)
                try:
                    await uow.players.add_match_stats(
                        player_id,
                        played=1,
                        wins=1 if entry.get("team") == winner else 0,
                        goals=scored,
                    )
                    if scored:
                        await uow.match_players.update(entry["id"], goals_scored=scored)
                except Exception as e:
                    failures += 1
                    logger.error(f"Statistics update failed for player {player_id}: {e}")

            for player_id, scored in goals.items():
                if player_id in rostered or not scored:
                    continue
                try:
                    await uow.players.add_match_stats(player_id, goals=scored)
                except Exception as e:
                    failures += 1
                    logger.error(f"Goal update failed for player {player_id}: {e}")

        if failures:
            logger.warning(f"Statistics fan-out for match {match_id} had {failures} failures")

    @staticmethod
    async def _expanded_roster(uow: UnitOfWork, match_id: str) -> list[dict[str, Any]]:
        entries = await uow.match_players.get_roster(match_id)
        players = await uow.players.get_many_by_ids(e["player_id"] for e in entries)
        return [{**e, "player": player_summary(players.get(e["player_id"]))} for e in entries]
