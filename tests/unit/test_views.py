"""
Unit tests for queue message rendering.
"""

import pytest

from core.queue.models import AccessLevel, Outcome, QueueResult, QueueSettings
from views.queue import render, render_list, render_summary

MENTION = "@alice"


class TestSummary:
    """Tests for the four `!queue` renderings."""

    def test_closed(self):
        text = render_summary(QueueSettings(limit=5, is_open=False), count=3)

        assert text == "the queue is currently closed."

    def test_four_cases_are_distinct(self):
        unbounded = QueueSettings(limit=0, level=AccessLevel.SUBSCRIBER, is_open=True)
        limited = QueueSettings(limit=10, level=AccessLevel.SUBSCRIBER, is_open=True)

        texts = {
            render_summary(unbounded, 0),
            render_summary(limited, 0),
            render_summary(unbounded, 4),
            render_summary(limited, 4),
        }

        assert len(texts) == 4

    def test_empty_with_limit(self):
        text = render_summary(QueueSettings(limit=10, is_open=True), 0)

        assert "currently empty" in text
        assert "maximum of 10 people" in text
        assert "Viewer and above" in text

    def test_nonempty_unbounded(self):
        text = render_summary(QueueSettings(level=AccessLevel.VIP, is_open=True), 4)

        assert text == "the queue is currently open to VIP and above. There are currently 4 people in the queue."

    def test_nonempty_with_limit(self):
        text = render_summary(QueueSettings(limit=6, is_open=True), 4)

        assert text.endswith("The queue is set to a maximum of 6 people long.")


class TestList:
    """Tests for `!list` rendering and truncation."""

    def test_empty(self):
        assert render_list(MENTION, []) == "@alice, the queue is currently empty."

    def test_full_list(self):
        text = render_list(MENTION, ["A", "B", "C"])

        assert text == "@alice, the queue is currently 1. A, 2. B, 3. C."

    def test_truncates_with_ellipsis(self):
        members = [f"member{i:03d}" for i in range(100)]

        text = render_list(MENTION, members, max_chars=120)

        assert text.endswith(" ...")
        assert len(text) <= 120 + len(" ...")
        assert "1. member000" in text
        assert "member099" not in text

    def test_default_cap_is_500(self):
        members = [f"viewer_with_a_long_name_{i}" for i in range(100)]

        text = render_list(MENTION, members)

        assert len(text) <= 504
        assert text.endswith(" ...")

    def test_render_uses_configured_cap(self):
        result = QueueResult(Outcome.LIST, members=tuple(f"m{i}" for i in range(50)))

        short = render(result, MENTION, list_max_chars=60)
        long = render(result, MENTION, list_max_chars=2000)

        assert short.endswith(" ...")
        assert long.endswith("50. m49.")


class TestRender:
    """Tests for per-outcome rendering."""

    def test_silent_outcomes(self):
        assert render(QueueResult(Outcome.NOT_PERMITTED), MENTION) is None
        assert render(QueueResult(Outcome.FAULT, error=RuntimeError()), MENTION) is None

    def test_tier_rejection_cites_level(self):
        result = QueueResult(Outcome.LEVEL_TOO_LOW, settings=QueueSettings(level=AccessLevel.SUBSCRIBER, is_open=True))

        assert render(result, MENTION) == "@alice, the queue is currently open to Subscriber and above."

    def test_full(self):
        text = render(QueueResult(Outcome.QUEUE_FULL), MENTION)

        assert "the queue is currently full" in text

    @pytest.mark.parametrize(
        "result, expected",
        [
            (QueueResult(Outcome.JOINED, position=3), "you have been added to the queue at position 3."),
            (QueueResult(Outcome.ALREADY_QUEUED, position=2), "you are already in the queue at position 2."),
            (QueueResult(Outcome.ALREADY_QUEUED), "you are already in the queue."),
            (QueueResult(Outcome.LEFT), "you have been removed from the queue."),
            (QueueResult(Outcome.NOT_QUEUED), "you are not currently in the queue."),
            (QueueResult(Outcome.ALREADY_OPEN), "the queue is already open."),
            (QueueResult(Outcome.CLOSED), "the queue is now closed."),
            (QueueResult(Outcome.CLEARED), "the queue has been cleared."),
            (QueueResult(Outcome.LIMIT_SET, settings=QueueSettings(limit=8)), "the queue limit has been set to 8."),
            (QueueResult(Outcome.LIMIT_REMOVED), "the queue limit has been removed."),
            (QueueResult(Outcome.INVALID_NUMBER), "please specify a valid number."),
            (QueueResult(Outcome.MISSING_USERNAME), "please specify a username."),
            (QueueResult(Outcome.QUEUE_EMPTY), "the queue is currently empty."),
            (QueueResult(Outcome.NOT_ENOUGH_MEMBERS), "there are not enough people in the queue."),
            (QueueResult(Outcome.REMOVED, target="Bob"), "Bob has been removed from the queue."),
            (QueueResult(Outcome.TARGET_NOT_QUEUED, target="Bob"), "Bob is not in the queue."),
            (QueueResult(Outcome.POSITION, position=4), "you are at position 4 in the queue."),
            (QueueResult(Outcome.COUNT, count=2), "there are currently 2 people in the queue."),
        ],
    )
    def test_messages(self, result, expected):
        assert render(result, MENTION) == f"{MENTION}, {expected}"

    def test_limit_set_and_removed_are_distinct(self):
        set_text = render(QueueResult(Outcome.LIMIT_SET, settings=QueueSettings(limit=3)), MENTION)
        removed_text = render(QueueResult(Outcome.LIMIT_REMOVED, settings=QueueSettings(limit=0)), MENTION)

        assert set_text != removed_text

    def test_opened(self):
        unbounded = render(QueueResult(Outcome.OPENED, settings=QueueSettings(is_open=True)), MENTION)
        limited = render(
            QueueResult(Outcome.OPENED, settings=QueueSettings(limit=5, level=AccessLevel.VIP, is_open=True)),
            MENTION,
        )

        assert unbounded == "@alice, the queue is now open to Viewer and above."
        assert limited == "@alice, the queue is now open to VIP and above with a maximum of 5 people in the queue."

    def test_length_info(self):
        none = render(QueueResult(Outcome.LENGTH_INFO, settings=QueueSettings()), MENTION)
        some = render(QueueResult(Outcome.LENGTH_INFO, settings=QueueSettings(limit=12)), MENTION)

        assert none == "@alice, the queue currently has no limit."
        assert some == "@alice, the queue is currently 12 people long."

    def test_status_info(self):
        opened = render(QueueResult(Outcome.STATUS_INFO, settings=QueueSettings(is_open=True)), MENTION)
        closed = render(QueueResult(Outcome.STATUS_INFO, settings=QueueSettings()), MENTION)

        assert opened.endswith("the queue is currently open.")
        assert closed.endswith("the queue is currently closed.")

    def test_picked(self):
        text = render(QueueResult(Outcome.PICKED, members=("A", "B")), MENTION)

        assert text == "@alice, the following users have been picked: 1. A, 2. B"

    def test_level_set(self):
        text = render(QueueResult(Outcome.LEVEL_SET, settings=QueueSettings(level=AccessLevel.MODERATOR)), MENTION)

        assert text == "@alice, the queue is now open to Moderator and above."
