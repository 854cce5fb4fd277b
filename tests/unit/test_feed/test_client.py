"""Unit tests for the async feed client."""

import asyncio
import json
import time
from collections.abc import AsyncIterator, Callable

import httpx
import pytest

from src.feed.client import FeedClient
from src.feed.config import FeedConfig
from src.feed.errors import DecodeError, FeedErrorClass, FetchError
from src.feed.metrics import FeedMetrics


BASE_URL = "https://feed.test/v0"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    """Start every test with fresh metrics."""
    FeedMetrics.reset()


def make_client(handler: Handler, **config: object) -> FeedClient:
    """Create a client backed by a mock transport."""
    return FeedClient(
        FeedConfig(base_url=BASE_URL, **config),  # type: ignore[arg-type]
        transport=httpx.MockTransport(handler),
    )


def json_response(payload: object, status_code: int = 200) -> httpx.Response:
    """Build a JSON response."""
    return httpx.Response(status_code, content=json.dumps(payload).encode())


async def trickle(first: bytes) -> AsyncIterator[bytes]:
    """Yield one chunk, then stall far past any test timeout."""
    yield first
    await asyncio.sleep(60)
    yield b"]"


class TestFetchTopIdentifiers:
    """Tests for the ranked identifier list call."""

    @pytest.mark.asyncio
    async def test_returns_identifiers_in_rank_order(self) -> None:
        """Identifiers come back in upstream order."""
        seen_urls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_urls.append(str(request.url))
            return json_response([30, 10, 20])

        client = make_client(handler)
        try:
            assert await client.fetch_top_identifiers() == [30, 10, 20]
        finally:
            await client.aclose()

        assert seen_urls == [f"{BASE_URL}/topstories.json"]

    @pytest.mark.asyncio
    async def test_sends_user_agent(self) -> None:
        """Configured user agent is sent upstream."""
        agents: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            agents.append(request.headers["user-agent"])
            return json_response([])

        client = make_client(handler, user_agent="relay-test/1.0")
        try:
            await client.fetch_top_identifiers()
        finally:
            await client.aclose()

        assert agents == ["relay-test/1.0"]

    @pytest.mark.asyncio
    async def test_malformed_json_raises_decode_error(self) -> None:
        """Non-JSON body is a decode failure."""
        client = make_client(lambda _: httpx.Response(200, content=b"<html>"))
        try:
            with pytest.raises(DecodeError) as exc_info:
                await client.fetch_top_identifiers()
        finally:
            await client.aclose()

        assert exc_info.value.error_class == FeedErrorClass.MALFORMED_JSON
        assert exc_info.value.identifier is None

    @pytest.mark.asyncio
    async def test_wrong_shape_raises_decode_error(self) -> None:
        """A JSON object instead of an array is a decode failure."""
        client = make_client(lambda _: json_response({"ids": [1, 2]}))
        try:
            with pytest.raises(DecodeError):
                await client.fetch_top_identifiers()
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_server_error_raises_fetch_error(self) -> None:
        """5xx is classified and carries the status code."""
        client = make_client(lambda _: httpx.Response(503, content=b"down"))
        try:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_top_identifiers()
        finally:
            await client.aclose()

        assert exc_info.value.error_class == FeedErrorClass.HTTP_5XX
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_timeout_raises_fetch_error(self) -> None:
        """Transport timeout is a fetch failure, not retried."""
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            msg = "timed out"
            raise httpx.ReadTimeout(msg, request=request)

        client = make_client(handler)
        try:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_top_identifiers()
        finally:
            await client.aclose()

        assert exc_info.value.error_class == FeedErrorClass.NETWORK_TIMEOUT
        assert attempts == 1

    @pytest.mark.asyncio
    async def test_slow_body_hits_overall_deadline(self) -> None:
        """A body trickling in past the timeout fails the whole call."""
        client = make_client(
            lambda _: httpx.Response(200, content=trickle(b"[1,")),
            timeout_seconds=0.2,
        )
        started = time.monotonic()
        try:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_top_identifiers()
        finally:
            await client.aclose()

        assert time.monotonic() - started < 5
        assert exc_info.value.error_class == FeedErrorClass.NETWORK_TIMEOUT
        assert exc_info.value.identifier is None
        assert "0.2s" in str(exc_info.value)
        assert FeedMetrics.get_instance().http_failures_total == {
            "NETWORK_TIMEOUT": 1
        }

    @pytest.mark.asyncio
    async def test_connect_error_raises_fetch_error(self) -> None:
        """Connection failure is classified."""

        def handler(request: httpx.Request) -> httpx.Response:
            msg = "refused"
            raise httpx.ConnectError(msg, request=request)

        client = make_client(handler)
        try:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_top_identifiers()
        finally:
            await client.aclose()

        assert exc_info.value.error_class == FeedErrorClass.CONNECTION_ERROR

    @pytest.mark.asyncio
    async def test_oversized_body_raises_fetch_error(self) -> None:
        """Bodies beyond the size limit are rejected."""
        client = make_client(
            lambda _: httpx.Response(200, content=b"1" * 4096),
            max_response_size_bytes=1024,
        )
        try:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_top_identifiers()
        finally:
            await client.aclose()

        assert exc_info.value.error_class == FeedErrorClass.RESPONSE_SIZE_EXCEEDED


class TestFetchItem:
    """Tests for the single item call."""

    @pytest.mark.asyncio
    async def test_parses_item(self) -> None:
        """Item fields are parsed and extra upstream fields ignored."""
        seen_urls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen_urls.append(str(request.url))
            return json_response(
                {
                    "id": 42,
                    "title": "Show HN: Thing",
                    "url": "https://thing.example",
                    "by": "alice",
                    "score": 99,
                    "type": "story",
                    "kids": [1, 2, 3],
                    "time": 1700000000,
                }
            )

        client = make_client(handler)
        try:
            item = await client.fetch_item(42)
        finally:
            await client.aclose()

        assert seen_urls == [f"{BASE_URL}/item/42.json"]
        assert item.id == 42
        assert item.title == "Show HN: Thing"
        assert item.url == "https://thing.example"
        assert item.by == "alice"
        assert item.score == 99
        assert item.type == "story"

    @pytest.mark.asyncio
    async def test_absent_fields_default(self) -> None:
        """Ask HN style items without url parse with empty defaults."""
        client = make_client(lambda _: json_response({"id": 7, "type": "story"}))
        try:
            item = await client.fetch_item(7)
        finally:
            await client.aclose()

        assert item.title == ""
        assert item.url == ""
        assert item.score == 0

    @pytest.mark.asyncio
    async def test_null_item_is_empty(self) -> None:
        """Deleted items come back as null and become empty, ineligible items."""
        client = make_client(lambda _: httpx.Response(200, content=b"null\n"))
        try:
            item = await client.fetch_item(5)
        finally:
            await client.aclose()

        assert item.id == 5
        assert item.type == ""
        assert item.title == ""
        assert FeedMetrics.get_instance().missing_items_total == 1
        assert FeedMetrics.get_instance().http_failures_total == {}

    @pytest.mark.asyncio
    async def test_slow_item_body_hits_deadline(self) -> None:
        """The deadline carries the item identifier."""
        client = make_client(
            lambda _: httpx.Response(200, content=trickle(b'{"id": 4,')),
            timeout_seconds=0.2,
        )
        try:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_item(4)
        finally:
            await client.aclose()

        assert exc_info.value.error_class == FeedErrorClass.NETWORK_TIMEOUT
        assert exc_info.value.identifier == 4

    @pytest.mark.asyncio
    async def test_not_found_raises_fetch_error(self) -> None:
        """4xx carries the identifier and status."""
        client = make_client(lambda _: httpx.Response(404))
        try:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_item(9)
        finally:
            await client.aclose()

        assert exc_info.value.error_class == FeedErrorClass.HTTP_4XX
        assert exc_info.value.identifier == 9
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_rate_limited(self) -> None:
        """429 is classified as rate limited."""
        client = make_client(lambda _: httpx.Response(429))
        try:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_item(9)
        finally:
            await client.aclose()

        assert exc_info.value.error_class == FeedErrorClass.RATE_LIMITED


class TestFeedClientMetrics:
    """Tests for metrics recorded by the client."""

    @pytest.mark.asyncio
    async def test_records_requests_and_failures(self) -> None:
        """Successful and failed calls are both counted."""
        responses = iter([json_response([1]), httpx.Response(500)])
        client = make_client(lambda _: next(responses))
        try:
            await client.fetch_top_identifiers()
            with pytest.raises(FetchError):
                await client.fetch_item(1)
        finally:
            await client.aclose()

        metrics = FeedMetrics.get_instance()
        assert metrics.http_request_count == 2
        assert metrics.http_requests_total == {200: 1, 500: 1}
        assert metrics.http_failures_total == {"HTTP_5XX": 1}
        assert metrics.http_bytes_total == len(b"[1]")

    @pytest.mark.asyncio
    async def test_counts_calls_by_kind(self) -> None:
        """List and item calls are counted separately, failures included."""
        responses = iter(
            [json_response([1, 2]), json_response({"id": 1}), httpx.Response(503)]
        )
        client = make_client(lambda _: next(responses))
        try:
            await client.fetch_top_identifiers()
            await client.fetch_item(1)
            with pytest.raises(FetchError):
                await client.fetch_item(2)
        finally:
            await client.aclose()

        metrics = FeedMetrics.get_instance()
        assert metrics.calls_total == {"top_stories": 1, "item": 2}
        assert metrics.to_dict()["calls_total"] == {"top_stories": 1, "item": 2}
