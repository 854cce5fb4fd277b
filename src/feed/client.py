"""Async HTTP client for the upstream ranked-item feed."""

import asyncio
import time
from io import BytesIO

import httpx
import structlog
from pydantic import ValidationError

from src.feed.config import FeedConfig
from src.feed.constants import (
    DEFAULT_CHUNK_SIZE,
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
)
from src.feed.errors import DecodeError, FeedError, FeedErrorClass, FetchError
from src.feed.metrics import CALL_ITEM, CALL_TOP_STORIES, FeedMetrics
from src.feed.models import FeedItem, IdentifierList


logger = structlog.get_logger()

# Body of a deleted or unknown item
NULL_BODY = b"null"


def _describe_validation_error(error: ValidationError) -> str:
    """Summarize a pydantic validation error in one line."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "body"
    return f"{location}: {first['msg']} ({error.error_count()} error(s))"


class FeedClient:
    """Stateless client for the upstream feed.

    Provides two calls, each bounded by the configured timeout:
    - the ranked identifier list
    - a single item body

    Failures raise ``FetchError`` or ``DecodeError``; nothing is retried.
    One instance is shared by every session; the underlying
    ``httpx.AsyncClient`` pools connections and needs no extra locking.
    """

    def __init__(
        self,
        config: FeedConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the feed client.

        Args:
            config: Feed configuration.
            transport: Optional transport override (used by tests).
        """
        self._config = config
        self._metrics = FeedMetrics.get_instance()
        self._client = httpx.AsyncClient(
            timeout=config.timeout_seconds,
            follow_redirects=True,
            headers={
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
            transport=transport,
        )
        self._log = logger.bind(component="feed")

    @property
    def config(self) -> FeedConfig:
        """Get the feed configuration."""
        return self._config

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()

    async def fetch_top_identifiers(self) -> list[int]:
        """Fetch the ranked identifier list.

        Returns:
            Identifiers in upstream rank order.

        Raises:
            FetchError: On timeout, transport failure or non-2xx status.
            DecodeError: If the body is not a JSON array of integers.
        """
        self._metrics.record_call(CALL_TOP_STORIES)
        body = await self._get(self._config.top_stories_url, identifier=None)
        try:
            identifiers: list[int] = IdentifierList.validate_json(body)
        except ValidationError as e:
            error = DecodeError(
                f"Malformed identifier list: {_describe_validation_error(e)}"
            )
            self._record_failure(error)
            raise error from e
        return identifiers

    async def fetch_item(self, identifier: int) -> FeedItem:
        """Fetch a single item body.

        Args:
            identifier: Upstream item identifier.

        Returns:
            Parsed item. A missing or deleted item (a JSON null body) comes
            back as an empty item carrying only its identifier, which the
            validator rejects.

        Raises:
            FetchError: On timeout, transport failure or non-2xx status.
            DecodeError: If the body is not an item object.
        """
        self._metrics.record_call(CALL_ITEM)
        body = await self._get(self._config.item_url(identifier), identifier)
        if body.strip() == NULL_BODY:
            self._metrics.record_missing_item()
            self._log.debug("item_missing", identifier=identifier)
            return FeedItem(id=identifier)
        try:
            return FeedItem.model_validate_json(body)
        except ValidationError as e:
            error = DecodeError(
                f"Malformed item {identifier}: {_describe_validation_error(e)}",
                identifier=identifier,
            )
            self._record_failure(error)
            raise error from e

    async def _get(self, url: str, identifier: int | None) -> bytes:
        """GET a URL and return its body.

        The response is opened, read and closed within this call.

        Args:
            url: URL to fetch.
            identifier: Item identifier for error context.

        Returns:
            Response body bytes.
        """
        start_time_ns = time.perf_counter_ns()
        log = self._log.bind(url=url, identifier=identifier)

        try:
            status_code, body = await self._execute(url, identifier)
        except FeedError as e:
            self._record_failure(e)
            log.warning("fetch_failed", **e.to_dict())
            raise
        finally:
            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            self._metrics.record_duration(duration_ms)

        log.debug(
            "fetch_complete",
            status_code=status_code,
            bytes=len(body),
            duration_ms=round(duration_ms, 2),
        )
        return body

    async def _execute(self, url: str, identifier: int | None) -> tuple[int, bytes]:
        """Execute a single request, translating transport errors.

        The whole call, body included, is bounded by the configured
        timeout; httpx only bounds each connect and read step.

        Args:
            url: URL to fetch.
            identifier: Item identifier for error context.

        Returns:
            Tuple of status code and body.
        """
        timeout = self._config.timeout_seconds
        try:
            async with (
                asyncio.timeout(timeout),
                self._client.stream("GET", url) as response,
            ):
                http_error = self._classify_http_error(response.status_code, identifier)
                if http_error is not None:
                    self._metrics.record_request(response.status_code, 0)
                    raise http_error

                body = await self._read_body_with_limit(response, identifier)
                self._metrics.record_request(response.status_code, len(body))
                return response.status_code, body

        except TimeoutError as e:
            raise FetchError(
                error_class=FeedErrorClass.NETWORK_TIMEOUT,
                message=f"Request exceeded {timeout}s deadline",
                identifier=identifier,
            ) from e

        except httpx.TimeoutException as e:
            raise FetchError(
                error_class=FeedErrorClass.NETWORK_TIMEOUT,
                message=f"Request timed out: {e}",
                identifier=identifier,
            ) from e

        except httpx.ConnectError as e:
            raise FetchError(
                error_class=FeedErrorClass.CONNECTION_ERROR,
                message=f"Connection failed: {e}",
                identifier=identifier,
            ) from e

        except httpx.HTTPError as e:
            raise FetchError(
                error_class=FeedErrorClass.UNKNOWN,
                message=f"Transport error: {e}",
                identifier=identifier,
            ) from e

    async def _read_body_with_limit(
        self,
        response: httpx.Response,
        identifier: int | None,
    ) -> bytes:
        """Read response body with size limit.

        Args:
            response: Streaming HTTP response.
            identifier: Item identifier for error context.

        Returns:
            Response body bytes.

        Raises:
            FetchError: If the size limit is exceeded.
        """
        buffer = BytesIO()
        total_read = 0
        max_size = self._config.max_response_size_bytes

        async for chunk in response.aiter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
            total_read += len(chunk)
            if total_read > max_size:
                raise FetchError(
                    error_class=FeedErrorClass.RESPONSE_SIZE_EXCEEDED,
                    message=(
                        f"Response size exceeded limit of {max_size} bytes "
                        f"(read {total_read} bytes)"
                    ),
                    identifier=identifier,
                    status_code=response.status_code,
                )
            buffer.write(chunk)

        return buffer.getvalue()

    def _classify_http_error(
        self,
        status_code: int,
        identifier: int | None,
    ) -> FetchError | None:
        """Classify HTTP status code as error.

        Args:
            status_code: HTTP status code.
            identifier: Item identifier for error context.

        Returns:
            FetchError if status indicates error, None otherwise.
        """
        if HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX:
            return None

        if status_code == HTTP_STATUS_TOO_MANY_REQUESTS:
            error_class = FeedErrorClass.RATE_LIMITED
            message = "Rate limited (429 Too Many Requests)"
        elif HTTP_STATUS_BAD_REQUEST <= status_code < HTTP_STATUS_SERVER_ERROR_MIN:
            error_class = FeedErrorClass.HTTP_4XX
            message = f"Client error ({status_code})"
        elif HTTP_STATUS_SERVER_ERROR_MIN <= status_code < HTTP_STATUS_SERVER_ERROR_MAX:
            error_class = FeedErrorClass.HTTP_5XX
            message = f"Server error ({status_code})"
        else:
            error_class = FeedErrorClass.UNKNOWN
            message = f"Unexpected status ({status_code})"

        return FetchError(
            error_class=error_class,
            message=message,
            identifier=identifier,
            status_code=status_code,
        )

    def _record_failure(self, error: FeedError) -> None:
        self._metrics.record_failure(error.error_class)
