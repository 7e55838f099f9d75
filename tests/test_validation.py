"""Tests for business-rule validation."""

from datetime import UTC, datetime

import pytest

from kickabout.core.exceptions import ValidationError
from kickabout.core.validation import (
    club_violations,
    email_violations,
    ensure_valid,
    match_violations,
    rating_violations,
    registration_violations,
    result_violations,
)

VALID_MATCH = {
    "title": "Sunday kickabout",
    "location": "Hackney Marshes",
    "match_date": datetime(2030, 5, 1, 18, 0, tzinfo=UTC),
    "max_players": 10,
    "format": "5v5",
}


class TestRegistrationViolations:
    """Tests for registration_violations function."""

    def test_valid_input(self):
        """Should accept a well-formed registration."""
        assert registration_violations("ann@example.com", "secret123", "AnnA") == []

    def test_lists_every_broken_rule(self):
        """Should report email, password and nickname together."""
        violations = registration_violations("not-an-email", "abc", "A", "striker")

        assert len(violations) == 4
        assert violations[0].startswith("email")
        assert violations[1].startswith("password")
        assert violations[2].startswith("nickname")
        assert violations[3].startswith("position")

    def test_password_byte_limit(self):
        """Should reject passwords bcrypt would truncate."""
        assert registration_violations("ann@example.com", "é" * 40, "AnnA") == [
            "password must be at most 72 bytes"
        ]

    @pytest.mark.parametrize("email", ["", "ann", "ann@", "ann@example", "a n@example.com"])
    def test_bad_emails(self, email):
        """Should reject malformed addresses."""
        assert email_violations(email)


class TestMatchViolations:
    """Tests for match_violations function."""

    def test_valid_match(self):
        """Should accept a well-formed match."""
        assert match_violations(**VALID_MATCH) == []

    @pytest.mark.parametrize("max_players", [1, 23, True, "10", 10.0])
    def test_max_players_bounds(self, max_players):
        """Should require an integer between 2 and 22."""
        assert match_violations(**{**VALID_MATCH, "max_players": max_players}) == [
            "max_players must be an integer between 2 and 22"
        ]

    def test_unknown_format(self):
        """Should reject formats outside 5v5, 7v7 and 11v11."""
        violations = match_violations(**{**VALID_MATCH, "format": "6v6"})

        assert violations == ["format must be one of: 5v5, 7v7, 11v11"]

    def test_missing_date(self):
        """Should require a parsed datetime."""
        assert match_violations(**{**VALID_MATCH, "match_date": "tomorrow"}) == [
            "match_date must be a valid date"
        ]


class TestOtherViolations:
    """Tests for club, rating and result rules."""

    def test_club_name_length(self):
        """Should require 3 to 100 characters."""
        assert club_violations("FC", None)
        assert club_violations("FC Dulwich", "x" * 500) == []
        assert club_violations("FC Dulwich", "x" * 501)

    @pytest.mark.parametrize("rating", [0, 11, 7.5, None])
    def test_rating_range(self, rating):
        """Should require an integer from 1 to 10."""
        assert rating_violations(rating, None, None)

    def test_rating_category_and_comment(self):
        """Should bound category and comment lengths."""
        assert rating_violations(7, "passing", "x" * 500) == []
        assert len(rating_violations(7, " ", "x" * 501)) == 2

    def test_result_rules(self):
        """Should report every negative or malformed figure."""
        violations = result_violations(-1, 2, 0, {"p1": 2, "p2": -1})

        assert violations == [
            "team_a_score must be a non-negative integer",
            "duration_minutes must be a positive integer",
            "goal_scorers[p2] must be a non-negative integer",
        ]


class TestEnsureValid:
    """Tests for ensure_valid function."""

    def test_passes_when_clean(self):
        """Should do nothing without violations."""
        ensure_valid([])

    def test_raises_with_all_violations(self):
        """Should raise one error listing every violation."""
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid(["a is required", "b is required"])

        assert exc_info.value.details == {"errors": ["a is required", "b is required"]}
        assert exc_info.value.status_code == 422
