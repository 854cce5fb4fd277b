"""Unit tests for the relay CLI."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest
from click.testing import CliRunner

from src.cli.main import cli
from src.feed.client import FeedClient
from src.feed.config import FeedConfig


ITEMS: dict[str, object] = {
    "/v0/topstories.json": [1, 2, 3],
    "/v0/item/1.json": {"id": 1, "type": "story", "title": "Hello", "url": "http://x"},
    "/v0/item/2.json": {"id": 2, "type": "job", "title": "Hiring", "url": "http://y"},
}


def feed_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path in ITEMS:
        return httpx.Response(200, content=json.dumps(ITEMS[request.url.path]))
    return httpx.Response(404)


def failing_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503)


def mock_client_factory(handler: object) -> MagicMock:
    def build(config: FeedConfig) -> FeedClient:
        return FeedClient(config, transport=httpx.MockTransport(handler))  # type: ignore[arg-type]

    return MagicMock(side_effect=build)


@pytest.fixture(autouse=True)
def isolated_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run each command from an empty directory."""
    monkeypatch.chdir(tmp_path)


class TestCheckCommand:
    """Tests for the check command."""

    def test_reports_eligibility(self) -> None:
        """Should list each inspected item with its outcome."""
        runner = CliRunner()
        with patch("src.cli.main.FeedClient", mock_client_factory(feed_handler)):
            result = runner.invoke(cli, ["check", "--limit", "3"])

        assert result.exit_code == 0, result.output
        assert "Top list: 3 identifiers" in result.output
        assert "1: deliver  Hello" in result.output
        assert "2: skip (NOT_A_STORY)" in result.output
        assert "3: error (HTTP_4XX)" in result.output

    def test_respects_limit(self) -> None:
        """Should stop after the requested number of items."""
        runner = CliRunner()
        with patch("src.cli.main.FeedClient", mock_client_factory(feed_handler)):
            result = runner.invoke(cli, ["check", "--limit", "1"])

        assert result.exit_code == 0
        assert "1: deliver" in result.output
        assert "2:" not in result.output

    def test_list_failure_exits_nonzero(self) -> None:
        """Should exit 1 when the ranked list cannot be fetched."""
        runner = CliRunner()
        with patch("src.cli.main.FeedClient", mock_client_factory(failing_handler)):
            result = runner.invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "Error fetching top story IDs" in result.output


class TestServeCommand:
    """Tests for the serve command."""

    @patch("src.cli.main.RelayServer")
    def test_runs_uvicorn_with_overrides(self, mock_server: MagicMock) -> None:
        """Should start uvicorn on the requested address."""
        runner = CliRunner()
        result = runner.invoke(
            cli, ["serve", "--host", "127.0.0.1", "--port", "9999", "--no-json-logs"]
        )

        assert result.exit_code == 0, result.output
        mock_server.assert_called_once()
        config = mock_server.call_args[0][0]
        assert config.host == "127.0.0.1"
        assert config.port == 9999
        assert config.log_config is None
        mock_server.return_value.run.assert_called_once()

    @patch("src.cli.main.RelayServer")
    def test_exit_hook_drains_sessions(self, mock_server: MagicMock) -> None:
        """Should hand the session manager's drain to the server."""
        result = CliRunner().invoke(cli, ["serve", "--no-json-logs"])

        assert result.exit_code == 0, result.output
        config = mock_server.call_args[0][0]
        on_exit = mock_server.call_args[1]["on_exit"]
        manager = config.app.state.session_manager
        assert on_exit == manager.drain

    @patch("src.cli.main.RelayServer")
    def test_defaults_from_settings(
        self, mock_server: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Should fall back to RELAY_HOST and RELAY_PORT."""
        monkeypatch.setenv("RELAY_HOST", "10.0.0.1")
        monkeypatch.setenv("RELAY_PORT", "8181")

        result = CliRunner().invoke(cli, ["serve"])

        assert result.exit_code == 0, result.output
        config = mock_server.call_args[0][0]
        assert config.host == "10.0.0.1"
        assert config.port == 8181
