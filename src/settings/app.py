"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.feed.config import FeedConfig
from src.feed.constants import (
    DEFAULT_FEED_BASE_URL,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)
from src.relay.config import (
    DEFAULT_DELTA_BATCH_LIMIT,
    DEFAULT_INITIAL_BATCH_LIMIT,
    DEFAULT_POLL_INTERVAL_SECONDS,
    RelayConfig,
)


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", validation_alias="RELAY_HOST")  # noqa: S104
    port: int = Field(default=8080, ge=1, le=65535, validation_alias="RELAY_PORT")

    feed_base_url: str = Field(
        default=DEFAULT_FEED_BASE_URL, validation_alias="RELAY_FEED_BASE_URL"
    )
    fetch_timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS, validation_alias="RELAY_FETCH_TIMEOUT_SECONDS"
    )
    max_response_size_bytes: int = Field(
        default=DEFAULT_MAX_RESPONSE_SIZE_BYTES,
        validation_alias="RELAY_MAX_RESPONSE_SIZE_BYTES",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT, validation_alias="RELAY_USER_AGENT"
    )

    initial_batch_limit: int = Field(
        default=DEFAULT_INITIAL_BATCH_LIMIT,
        validation_alias="RELAY_INITIAL_BATCH_LIMIT",
    )
    delta_batch_limit: int = Field(
        default=DEFAULT_DELTA_BATCH_LIMIT, validation_alias="RELAY_DELTA_BATCH_LIMIT"
    )
    poll_interval_seconds: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        validation_alias="RELAY_POLL_INTERVAL_SECONDS",
    )
    stats_interval_seconds: float = Field(
        default=2.0, gt=0.0, validation_alias="RELAY_STATS_INTERVAL_SECONDS"
    )

    ui_dir: Path = Field(default=Path("ui"), validation_alias="RELAY_UI_DIR")
    allow_origin: str = Field(default="*", validation_alias="RELAY_ALLOW_ORIGIN")

    def feed_config(self) -> FeedConfig:
        """Build the feed client configuration."""
        return FeedConfig(
            base_url=self.feed_base_url,
            timeout_seconds=self.fetch_timeout_seconds,
            max_response_size_bytes=self.max_response_size_bytes,
            user_agent=self.user_agent,
        )

    def relay_config(self) -> RelayConfig:
        """Build the relay configuration."""
        return RelayConfig(
            initial_batch_limit=self.initial_batch_limit,
            delta_batch_limit=self.delta_batch_limit,
            poll_interval_seconds=self.poll_interval_seconds,
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
