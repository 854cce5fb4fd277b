"""Metrics collection for the feed client."""

from dataclasses import dataclass, field
from typing import ClassVar

from src.feed.errors import FeedErrorClass


CALL_TOP_STORIES = "top_stories"
CALL_ITEM = "item"


@dataclass
class FeedMetrics:
    """Metrics for upstream feed calls.

    Singleton class shared by every session in the process. Calls are
    counted per kind (ranked list or single item) before they are made;
    HTTP counters only see requests that got a response.
    """

    http_requests_total: dict[int, int] = field(default_factory=dict)
    http_failures_total: dict[str, int] = field(default_factory=dict)
    http_bytes_total: int = 0
    http_duration_ms_total: float = 0.0
    http_request_count: int = 0
    calls_total: dict[str, int] = field(default_factory=dict)
    missing_items_total: int = 0

    _instance: ClassVar["FeedMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FeedMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_call(self, kind: str) -> None:
        """Record an upstream call before it is made.

        Args:
            kind: CALL_TOP_STORIES or CALL_ITEM.
        """
        self.calls_total[kind] = self.calls_total.get(kind, 0) + 1

    def record_missing_item(self) -> None:
        """Record an item whose body was null (deleted or unknown)."""
        self.missing_items_total += 1

    def record_request(self, status_code: int, bytes_received: int) -> None:
        """Record a completed HTTP request.

        Args:
            status_code: HTTP status code.
            bytes_received: Number of bytes received.
        """
        self.http_requests_total[status_code] = (
            self.http_requests_total.get(status_code, 0) + 1
        )
        self.http_bytes_total += bytes_received
        self.http_request_count += 1

    def record_failure(self, error_class: FeedErrorClass) -> None:
        """Record a failed call.

        Args:
            error_class: Classification of the failure.
        """
        key = error_class.value
        self.http_failures_total[key] = self.http_failures_total.get(key, 0) + 1

    def record_duration(self, duration_ms: float) -> None:
        """Record request duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        self.http_duration_ms_total += duration_ms

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "http_requests_total": dict(self.http_requests_total),
            "http_failures_total": dict(self.http_failures_total),
            "http_bytes_total": self.http_bytes_total,
            "http_duration_ms_total": self.http_duration_ms_total,
            "http_request_count": self.http_request_count,
            "calls_total": dict(self.calls_total),
            "missing_items_total": self.missing_items_total,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average request duration.

        Returns:
            Average duration in milliseconds.
        """
        if self.http_request_count == 0:
            return 0.0
        return self.http_duration_ms_total / self.http_request_count
