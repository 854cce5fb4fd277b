"""Process-wide record of identifiers already examined or delivered."""

import threading
from collections.abc import Iterable, Sequence

import structlog


logger = structlog.get_logger()


class SeenSetTracker:
    """Monotonic set of upstream identifiers shared by all sessions.

    Constructed once per process and injected into every session. Every
    read and write happens under a single lock, which totally orders the
    delta computations of concurrent sessions: when two sessions race on
    the same identifier exactly one of them observes it as new.

    Identifiers are never removed. There is no persistence; a restart
    starts from an empty set.
    """

    def __init__(self) -> None:
        """Initialize an empty tracker."""
        self._seen: set[int] = set()
        self._lock = threading.Lock()
        self._log = logger.bind(component="tracker")

    def mark_and_diff(self, candidates: Sequence[int]) -> list[int]:
        """Mark candidates as seen and return the ones that were new.

        Every candidate is inserted, whether or not it ends up delivered.

        Args:
            candidates: Identifiers in upstream rank order.

        Returns:
            The subsequence of candidates absent before this call, in
            input order. A duplicate within ``candidates`` is new at most
            once.
        """
        new_ids: list[int] = []
        with self._lock:
            for identifier in candidates:
                if identifier not in self._seen:
                    new_ids.append(identifier)
                    self._seen.add(identifier)
            seen_count = len(self._seen)

        self._log.debug(
            "delta_computed",
            candidates=len(candidates),
            new=len(new_ids),
            seen_count=seen_count,
        )
        return new_ids

    def mark_seeded(self, ids: Iterable[int]) -> None:
        """Insert baseline identifiers without producing a diff.

        Args:
            ids: Identifiers delivered in a session's initial batch.
        """
        with self._lock:
            self._seen.update(ids)

    def snapshot(self) -> frozenset[int]:
        """Get an immutable copy of the current set."""
        with self._lock:
            return frozenset(self._seen)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
