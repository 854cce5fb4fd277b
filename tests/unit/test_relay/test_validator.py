"""Unit tests for item eligibility."""

import pytest

from src.feed.models import FeedItem
from src.relay.validator import SkipReason, skip_reason, validate


class TestValidate:
    """Tests for the eligibility filter."""

    def test_story_with_title_and_url_is_eligible(self) -> None:
        """The canonical eligible item."""
        item = FeedItem(id=1, type="story", title="Foo", url="http://x")
        assert validate(item) is True
        assert skip_reason(item) is None

    def test_job_is_not_eligible(self) -> None:
        """Non-story kinds are filtered."""
        item = FeedItem(id=1, type="job", title="Foo", url="http://x")
        assert validate(item) is False
        assert skip_reason(item) is SkipReason.NOT_A_STORY

    def test_empty_title_is_not_eligible(self) -> None:
        """Stories need a title."""
        item = FeedItem(id=1, type="story", title="", url="http://x")
        assert validate(item) is False
        assert skip_reason(item) is SkipReason.MISSING_TITLE

    def test_missing_url_is_not_eligible(self) -> None:
        """Text posts without a URL are filtered."""
        item = FeedItem(id=1, type="story", title="Ask HN: ?")
        assert validate(item) is False
        assert skip_reason(item) is SkipReason.MISSING_URL

    @pytest.mark.parametrize("kind", ["comment", "poll", "pollopt", ""])
    def test_other_kinds(self, kind: str) -> None:
        """Every non-story kind is rejected."""
        item = FeedItem(id=1, type=kind, title="t", url="http://x")
        assert validate(item) is False
