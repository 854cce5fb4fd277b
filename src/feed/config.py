"""Configuration model for the upstream feed client."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.feed.constants import (
    DEFAULT_FEED_BASE_URL,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    ITEM_PATH_TEMPLATE,
    TOP_STORIES_PATH,
)


class FeedConfig(BaseModel):
    """Configuration for the feed client.

    Every upstream call is bounded by ``timeout_seconds``; there is no
    retry policy, a failed call is reported to the caller as is.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: Annotated[str, Field(min_length=1)] = DEFAULT_FEED_BASE_URL
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    max_response_size_bytes: Annotated[int, Field(ge=1024, le=100 * 1024 * 1024)] = (
        DEFAULT_MAX_RESPONSE_SIZE_BYTES
    )
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            msg = f"base_url must be an http(s) URL, got '{v}'"
            raise ValueError(msg)
        return v.rstrip("/")

    @property
    def top_stories_url(self) -> str:
        """URL of the ranked identifier list."""
        return f"{self.base_url}{TOP_STORIES_PATH}"

    def item_url(self, identifier: int) -> str:
        """URL of a single item.

        Args:
            identifier: Upstream item identifier.

        Returns:
            Item URL.
        """
        return f"{self.base_url}{ITEM_PATH_TEMPLATE.format(identifier=identifier)}"
