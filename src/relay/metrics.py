"""Metrics collection for the relay core."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class RelayMetrics:
    """Metrics for sessions, cycles and delivered events.

    Singleton class shared by every session in the process.
    """

    sessions_opened_total: int = 0
    sessions_closed_total: int = 0
    cycles_total: int = 0
    cycle_failures_total: int = 0
    stories_delivered_total: int = 0
    stories_skipped_total: int = 0
    story_errors_total: int = 0
    delta_truncated_total: int = 0
    write_errors_total: int = 0
    events_emitted_total: dict[str, int] = field(default_factory=dict)

    _instance: ClassVar["RelayMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "RelayMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_session_opened(self) -> None:
        """Record a new client session."""
        self.sessions_opened_total += 1

    def record_session_closed(self) -> None:
        """Record a session teardown."""
        self.sessions_closed_total += 1

    def record_cycle(self, failed: bool = False) -> None:
        """Record a periodic cycle.

        Args:
            failed: Whether the list fetch failed.
        """
        self.cycles_total += 1
        if failed:
            self.cycle_failures_total += 1

    def record_event(self, kind: str) -> None:
        """Record an emitted event.

        Args:
            kind: Event kind on the wire.
        """
        self.events_emitted_total[kind] = self.events_emitted_total.get(kind, 0) + 1

    def record_delivered(self) -> None:
        """Record a delivered story."""
        self.stories_delivered_total += 1

    def record_skipped(self) -> None:
        """Record an item filtered out by validation."""
        self.stories_skipped_total += 1

    def record_story_error(self) -> None:
        """Record an item-level fetch/decode/encode failure."""
        self.story_errors_total += 1

    def record_truncation(self, dropped: int) -> None:
        """Record identifiers marked seen but dropped by the burst bound.

        Args:
            dropped: Number of identifiers beyond the bound.
        """
        self.delta_truncated_total += dropped

    def record_write_error(self) -> None:
        """Record a write to a closed client."""
        self.write_errors_total += 1

    @property
    def sessions_active(self) -> int:
        """Sessions opened and not yet closed."""
        return self.sessions_opened_total - self.sessions_closed_total

    def to_dict(self) -> dict[str, int | dict[str, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "sessions_opened_total": self.sessions_opened_total,
            "sessions_closed_total": self.sessions_closed_total,
            "cycles_total": self.cycles_total,
            "cycle_failures_total": self.cycle_failures_total,
            "stories_delivered_total": self.stories_delivered_total,
            "stories_skipped_total": self.stories_skipped_total,
            "story_errors_total": self.story_errors_total,
            "delta_truncated_total": self.delta_truncated_total,
            "write_errors_total": self.write_errors_total,
            "events_emitted_total": dict(self.events_emitted_total),
        }
