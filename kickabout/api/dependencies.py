"""FastAPI dependencies building services around the request's data store.

Provides typed dependencies for route signatures:
- Auth, Players, Clubs, Matches, Ratings, Stats
"""

from typing import Annotated

from fastapi import Depends

from kickabout.db.services import (
    AuthService,
    ClubService,
    MatchService,
    PlayerService,
    RatingService,
    StatsService,
)
from kickabout.db.store import DataStore, get_datastore

Store = Annotated[DataStore, Depends(get_datastore)]


def get_auth_service(store: Store) -> AuthService:
    return AuthService(store)


def get_player_service(store: Store) -> PlayerService:
    return PlayerService(store)


def get_club_service(store: Store) -> ClubService:
    return ClubService(store)


def get_match_service(store: Store) -> MatchService:
    return MatchService(store)


def get_rating_service(store: Store) -> RatingService:
    return RatingService(store)


def get_stats_service(store: Store) -> StatsService:
    return StatsService(store)


Auth = Annotated[AuthService, Depends(get_auth_service)]
Players = Annotated[PlayerService, Depends(get_player_service)]
Clubs = Annotated[ClubService, Depends(get_club_service)]
Matches = Annotated[MatchService, Depends(get_match_service)]
Ratings = Annotated[RatingService, Depends(get_rating_service)]
Stats = Annotated[StatsService, Depends(get_stats_service)]
