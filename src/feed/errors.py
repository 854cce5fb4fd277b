"""Error types for the feed client.

Every failure of an upstream call surfaces as a ``FeedError`` subclass so
the scheduler can decide whether to report it or skip it.
"""

from enum import Enum


class FeedErrorClass(str, Enum):
    """Classification of feed errors for metrics and logging.

    - NETWORK_TIMEOUT: Request timed out
    - CONNECTION_ERROR: Could not establish connection
    - HTTP_4XX: 4xx client error (except 429)
    - HTTP_5XX: 5xx server error
    - RATE_LIMITED: 429 Too Many Requests
    - RESPONSE_SIZE_EXCEEDED: Response exceeded max size limit
    - MALFORMED_JSON: Body is not valid JSON or has the wrong shape
    - ENCODE_FAILED: Item could not be serialized for delivery
    - UNKNOWN: Unclassified transport error
    """

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    HTTP_4XX = "HTTP_4XX"
    HTTP_5XX = "HTTP_5XX"
    RATE_LIMITED = "RATE_LIMITED"
    RESPONSE_SIZE_EXCEEDED = "RESPONSE_SIZE_EXCEEDED"
    MALFORMED_JSON = "MALFORMED_JSON"
    ENCODE_FAILED = "ENCODE_FAILED"
    UNKNOWN = "UNKNOWN"


class FeedError(Exception):
    """Base exception for feed errors."""

    def __init__(
        self,
        error_class: FeedErrorClass,
        message: str,
        identifier: int | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize the feed error.

        Args:
            error_class: Classification of the error.
            message: Human-readable description of the cause.
            identifier: Item identifier, None for list-level calls.
            status_code: HTTP status code if a response was received.
        """
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.identifier = identifier
        self.status_code = status_code

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "identifier": self.identifier,
            "status_code": self.status_code,
        }


class FetchError(FeedError):
    """Network, timeout, non-2xx or oversize failure of an upstream call."""


class DecodeError(FeedError):
    """Upstream body was not the expected JSON, or an item failed to encode."""

    def __init__(
        self,
        message: str,
        identifier: int | None = None,
        error_class: FeedErrorClass = FeedErrorClass.MALFORMED_JSON,
    ) -> None:
        """Initialize the decode error.

        Args:
            message: Human-readable description of the cause.
            identifier: Item identifier, None for list-level calls.
            error_class: MALFORMED_JSON or ENCODE_FAILED.
        """
        super().__init__(
            error_class=error_class,
            message=message,
            identifier=identifier,
        )
