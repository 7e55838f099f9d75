"""Business-rule validation.

Each ``*_violations`` function returns every rule the input breaks, so a
single error can list them all. ``ensure_valid`` raises that error.
"""

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from kickabout.core.constants import (
    CATEGORY_MAX_LENGTH,
    CLUB_DESCRIPTION_MAX_LENGTH,
    CLUB_NAME_MAX_LENGTH,
    CLUB_NAME_MIN_LENGTH,
    COMMENT_MAX_LENGTH,
    LOCATION_MIN_LENGTH,
    MATCH_FORMATS,
    MATCH_MAX_PLAYERS,
    MATCH_MIN_PLAYERS,
    NICKNAME_MAX_LENGTH,
    NICKNAME_MIN_LENGTH,
    PASSWORD_MIN_LENGTH,
    POSITIONS,
    RATING_MAX,
    RATING_MIN,
)
from kickabout.core.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MAX_BYTES = 72  # bcrypt ignores anything longer
TITLE_MAX_LENGTH = 200


def ensure_valid(violations: list[str]) -> None:
    if violations:
        raise ValidationError.from_violations(violations)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def email_violations(email: str) -> list[str]:
    if not EMAIL_PATTERN.match(email or ""):
        return ["email must be a valid email address"]
    return []


def nickname_violations(nickname: str) -> list[str]:
    length = len((nickname or "").strip())
    if length < NICKNAME_MIN_LENGTH or length > NICKNAME_MAX_LENGTH:
        return [
            f"nickname must be between {NICKNAME_MIN_LENGTH} and "
            f"{NICKNAME_MAX_LENGTH} characters"
        ]
    return []


def position_violations(position: str | None) -> list[str]:
    if position is not None and position not in POSITIONS:
        return [f"position must be one of: {', '.join(POSITIONS)}"]
    return []


def registration_violations(
    email: str, password: str, nickname: str, position: str | None = None
) -> list[str]:
    violations = email_violations(email)
    if len(password or "") < PASSWORD_MIN_LENGTH:
        violations.append(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    elif len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        violations.append(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    violations += nickname_violations(nickname)
    violations += position_violations(position)
    return violations


def match_violations(
    *,
    title: str,
    location: str,
    match_date: Any,
    max_players: Any,
    format: str,
) -> list[str]:
    violations: list[str] = []
    if not (title or "").strip():
        violations.append("title is required")
    elif len(title) > TITLE_MAX_LENGTH:
        violations.append(f"title must be at most {TITLE_MAX_LENGTH} characters")
    if len((location or "").strip()) < LOCATION_MIN_LENGTH:
        violations.append(f"location must be at least {LOCATION_MIN_LENGTH} characters")
    if not isinstance(match_date, datetime):
        violations.append("match_date must be a valid date")
    if not _is_int(max_players) or not MATCH_MIN_PLAYERS <= max_players <= MATCH_MAX_PLAYERS:
        violations.append(
            f"max_players must be an integer between {MATCH_MIN_PLAYERS} and {MATCH_MAX_PLAYERS}"
        )
    if format not in MATCH_FORMATS:
        violations.append(f"format must be one of: {', '.join(MATCH_FORMATS)}")
    return violations


def club_violations(name: str, description: str | None) -> list[str]:
    violations: list[str] = []
    length = len((name or "").strip())
    if length < CLUB_NAME_MIN_LENGTH or length > CLUB_NAME_MAX_LENGTH:
        violations.append(
            f"name must be between {CLUB_NAME_MIN_LENGTH} and {CLUB_NAME_MAX_LENGTH} characters"
        )
    if description and len(description) > CLUB_DESCRIPTION_MAX_LENGTH:
        violations.append(
            f"description must be at most {CLUB_DESCRIPTION_MAX_LENGTH} characters"
        )
    return violations


def rating_violations(rating: Any, category: str | None, comment: str | None) -> list[str]:
    violations: list[str] = []
    if not _is_int(rating) or not RATING_MIN <= rating <= RATING_MAX:
        violations.append(f"rating must be an integer between {RATING_MIN} and {RATING_MAX}")
    if category is not None and not 1 <= len(category.strip()) <= CATEGORY_MAX_LENGTH:
        violations.append(f"category must be between 1 and {CATEGORY_MAX_LENGTH} characters")
    if comment and len(comment) > COMMENT_MAX_LENGTH:
        violations.append(f"comment must be at most {COMMENT_MAX_LENGTH} characters")
    return violations


def result_violations(
    team_a_score: Any,
    team_b_score: Any,
    duration_minutes: Any,
    goal_scorers: Mapping[str, Any] | None,
) -> list[str]:
    violations: list[str] = []
    for name, score in (("team_a_score", team_a_score), ("team_b_score", team_b_score)):
        if not _is_int(score) or score < 0:
            violations.append(f"{name} must be a non-negative integer")
    if duration_minutes is not None and (not _is_int(duration_minutes) or duration_minutes <= 0):
        violations.append("duration_minutes must be a positive integer")
    for player_id, goals in (goal_scorers or {}).items():
        if not _is_int(goals) or goals < 0:
            violations.append(f"goal_scorers[{player_id}] must be a non-negative integer")
    return violations
