"""Eligibility filter for fetched items."""

from enum import Enum

from src.feed.models import FeedItem, ItemKind


class SkipReason(str, Enum):
    """Why an item is not delivered.

    A skip is a filter outcome, not an error; it is logged and never
    surfaced to clients.
    """

    NOT_A_STORY = "NOT_A_STORY"
    MISSING_TITLE = "MISSING_TITLE"
    MISSING_URL = "MISSING_URL"


def skip_reason(item: FeedItem) -> SkipReason | None:
    """Get the reason an item would be skipped.

    Args:
        item: Fetched item.

    Returns:
        The first failing rule, or None if the item is eligible.
    """
    if item.kind is not ItemKind.STORY:
        return SkipReason.NOT_A_STORY
    if not item.title:
        return SkipReason.MISSING_TITLE
    if not item.url:
        return SkipReason.MISSING_URL
    return None


def validate(item: FeedItem) -> bool:
    """Check whether an item is eligible for delivery."""
    return skip_reason(item) is None
