"""Database services layer.

Business operations built on the repositories. Every service is
constructed with the data store it works against:

    matches = MatchService(store)
    await matches.join_match(match_id, player_id, caller=caller)
"""

from kickabout.db.services.auth_service import AuthService
from kickabout.db.services.club_service import ClubService
from kickabout.db.services.common import Page
from kickabout.db.services.match_service import MatchService
from kickabout.db.services.player_service import PlayerService
from kickabout.db.services.rating_service import RatingService
from kickabout.db.services.stats_service import StatsService

__all__ = [
    "AuthService",
    "ClubService",
    "MatchService",
    "Page",
    "PlayerService",
    "RatingService",
    "StatsService",
]
