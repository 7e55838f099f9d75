"""Domain vocabularies and numeric ranges shared across the application."""

from typing import Literal

# Closed enums
UserRole = Literal["player", "organizer", "admin"]
USER_ROLES: tuple[str, ...] = ("player", "organizer", "admin")
ORGANIZER_ROLES = frozenset({"organizer", "admin"})

Position = Literal["goalkeeper", "defender", "midfielder", "forward"]
POSITIONS: tuple[str, ...] = ("goalkeeper", "defender", "midfielder", "forward")
DEFAULT_POSITION: Position = "forward"

ClubRole = Literal["manager", "captain", "member"]
CLUB_ROLES: tuple[str, ...] = ("manager", "captain", "member")
CLUB_INVITER_ROLES = frozenset({"manager", "captain"})

InvitationStatus = Literal["pending", "accepted", "rejected"]

MatchStatus = Literal["upcoming", "in_progress", "completed", "cancelled"]
MATCH_STATUSES: tuple[str, ...] = ("upcoming", "in_progress", "completed", "cancelled")
TERMINAL_MATCH_STATUSES = frozenset({"completed", "cancelled"})

# Allowed direct status edits; "completed" is only reached by submitting a result
MATCH_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    "upcoming": frozenset({"in_progress", "cancelled"}),
    "in_progress": frozenset({"cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}

MatchFormat = Literal["5v5", "7v7", "11v11"]
MATCH_FORMATS: tuple[str, ...] = ("5v5", "7v7", "11v11")

Team = Literal["A", "B"]

# Rating scale (overall_rating shares the same 0-10 scale)
RATING_MIN = 1
RATING_MAX = 10
DEFAULT_OVERALL_RATING = 5.0
DEFAULT_MATCH_PLAYER_RATING = 5.0
DEFAULT_RATING_CATEGORY = "overall"

# Validation bounds
PASSWORD_MIN_LENGTH = 6
NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 50
CLUB_NAME_MIN_LENGTH = 3
CLUB_NAME_MAX_LENGTH = 100
CLUB_DESCRIPTION_MAX_LENGTH = 500
MATCH_MIN_PLAYERS = 2
MATCH_MAX_PLAYERS = 22
LOCATION_MIN_LENGTH = 3
COMMENT_MAX_LENGTH = 500
CATEGORY_MAX_LENGTH = 30

# Pagination
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

AVATAR_URL_TEMPLATE = "https://ui-avatars.com/api/?name={nickname}&background=random"
