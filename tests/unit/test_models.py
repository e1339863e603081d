"""
Unit tests for queue models (rank resolution, level parsing).
"""

import pytest

from core.queue.models import (
    AccessLevel,
    Caller,
    Outcome,
    QueueResult,
    level_from_stored,
    parse_int,
    parse_level,
    user_rank,
)


class TestUserRank:
    """Tests for rank resolution."""

    @pytest.mark.parametrize(
        "flags, expected",
        [
            ({}, AccessLevel.VIEWER),
            ({"is_subscriber": True}, AccessLevel.SUBSCRIBER),
            ({"is_vip": True, "is_subscriber": True}, AccessLevel.VIP),
            ({"is_moderator": True}, AccessLevel.MODERATOR),
            ({"is_broadcaster": True}, AccessLevel.MODERATOR),
            ({"is_vip": True, "is_moderator": True}, AccessLevel.MODERATOR),
        ],
    )
    def test_rank(self, flags, expected):
        """Test highest flag wins."""
        args = {"is_broadcaster": False, "is_moderator": False, "is_vip": False, "is_subscriber": False}
        args.update(flags)
        assert user_rank(**args) == expected

    def test_caller_privileged(self):
        """Test only moderator-equivalent callers are privileged."""
        assert Caller(1, "owner", is_broadcaster=True).is_privileged
        assert Caller(2, "mod", is_moderator=True).is_privileged
        assert not Caller(3, "vip", is_vip=True).is_privileged
        assert not Caller(4, "viewer").is_privileged


class TestParseLevel:
    """Tests for `!level` argument parsing."""

    @pytest.mark.parametrize(
        "token, expected",
        [
            ("viewer", AccessLevel.VIEWER),
            ("Subscriber", AccessLevel.SUBSCRIBER),
            ("VIP", AccessLevel.VIP),
            ("moderator", AccessLevel.MODERATOR),
            ("v", AccessLevel.VIEWER),
            ("s", AccessLevel.SUBSCRIBER),
            ("M", AccessLevel.MODERATOR),
            ("2", AccessLevel.VIP),
            ("3", AccessLevel.MODERATOR),
        ],
    )
    def test_known_tokens(self, token, expected):
        assert parse_level(token) == expected
        assert parse_level(token, strict=True) == expected

    def test_no_vip_shorthand(self):
        """Test 'v' means Viewer, VIP is only reachable by name or number."""
        assert parse_level("v") == AccessLevel.VIEWER
        assert parse_level("vi") == AccessLevel.VIEWER

    @pytest.mark.parametrize("token", ["admin", "7", "-1", "x"])
    def test_unknown_falls_back_to_viewer(self, token):
        assert parse_level(token) == AccessLevel.VIEWER

    @pytest.mark.parametrize("token", ["admin", "7", "-1", "x"])
    def test_unknown_rejected_in_strict_mode(self, token):
        assert parse_level(token, strict=True) is None

    def test_level_from_stored(self):
        assert level_from_stored(None) == AccessLevel.VIEWER
        assert level_from_stored("VIP") == AccessLevel.VIP
        assert level_from_stored("garbage") == AccessLevel.VIEWER

    def test_labels(self):
        assert [lvl.label for lvl in AccessLevel] == ["Viewer", "Subscriber", "VIP", "Moderator"]


class TestParseInt:
    """Tests for leading-integer parsing."""

    @pytest.mark.parametrize(
        "token, expected",
        [("5", 5), ("12abc", 12), ("-3", -3), (" 4", 4), ("abc", None), ("", None), (None, None)],
    )
    def test_parse_int(self, token, expected):
        assert parse_int(token) == expected


def test_result_categories():
    """Test outcome categorisation helpers."""
    assert QueueResult(Outcome.FAULT, error=RuntimeError("x")).is_fault
    assert QueueResult(Outcome.QUEUE_FULL).is_rejection
    assert QueueResult(Outcome.INVALID_NUMBER).is_validation_error
    assert not QueueResult(Outcome.JOINED).is_rejection
