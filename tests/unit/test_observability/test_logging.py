"""Unit tests for logging setup."""

import io
import json
import logging

import structlog

from src.observability.logging import (
    bind_session_context,
    clear_session_context,
    configure_logging,
)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output(self) -> None:
        """Should render events as JSON lines with level and timestamp."""
        stream = io.StringIO()
        configure_logging(level=logging.INFO, output=stream, json_format=True)

        structlog.get_logger().bind(component="test").info("story_sent", identifier=7)

        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "story_sent"
        assert record["identifier"] == 7
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_level_filtering(self) -> None:
        """Should drop events below the configured level."""
        stream = io.StringIO()
        configure_logging(level=logging.WARNING, output=stream, json_format=True)

        structlog.get_logger().bind(component="test").info("delta_none")

        assert stream.getvalue() == ""


class TestSessionContext:
    """Tests for session context binding."""

    def test_bind_and_clear(self) -> None:
        """Should add and remove the session id from the context."""
        bind_session_context("abc123")
        assert structlog.contextvars.get_contextvars()["session_id"] == "abc123"

        clear_session_context()
        assert "session_id" not in structlog.contextvars.get_contextvars()
