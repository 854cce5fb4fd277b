"""Per-session polling cadence and delta delivery."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

import structlog

from src.feed.errors import DecodeError, FeedError
from src.feed.models import FeedItem
from src.relay.config import RelayConfig
from src.relay.metrics import RelayMetrics
from src.relay.tracker import SeenSetTracker
from src.relay.validator import skip_reason
from src.relay.writer import EventKind, EventStreamWriter, clock_time


if TYPE_CHECKING:
    from src.relay.session import Session


logger = structlog.get_logger()

PHASE_INITIAL = "initial"
PHASE_DELTA = "delta"


class FeedSource(Protocol):
    """Protocol for the upstream feed.

    Allows dependency injection of the feed client for testing.
    """

    async def fetch_top_identifiers(self) -> list[int]:
        """Fetch the ranked identifier list."""
        ...

    async def fetch_item(self, identifier: int) -> FeedItem:
        """Fetch a single item."""
        ...


@dataclass
class CycleResult:
    """Outcome of one periodic cycle."""

    new_ids: list[int] = field(default_factory=list)
    delivered: list[int] = field(default_factory=list)
    list_failed: bool = False

    @property
    def truncated(self) -> int:
        """Number of new identifiers left undelivered by the burst bound."""
        return max(0, len(self.new_ids) - len(self.delivered))


def _verb(error: FeedError) -> str:
    return "decoding" if isinstance(error, DecodeError) else "fetching"


class DeltaScheduler:
    """Drives the initial batch and the periodic delta checks of a session.

    Initial phase: fetch the ranked list, deliver up to K items in rank
    order, seed the tracker with what was delivered.

    Periodic phase: every interval, fetch the ranked list, ask the
    tracker for the delta, deliver up to M new items in rank order, or a
    ``no-new-data`` heartbeat when there is nothing new.

    Feed failures become client-visible events; ``WriteError`` propagates
    to the session manager.
    """

    def __init__(
        self,
        feed: FeedSource,
        tracker: SeenSetTracker,
        writer: EventStreamWriter,
        config: RelayConfig,
    ) -> None:
        """Initialize the scheduler.

        Args:
            feed: Upstream feed client.
            tracker: Process-wide seen-set.
            writer: Event writer.
            config: Batch limits and polling interval.
        """
        self._feed = feed
        self._tracker = tracker
        self._writer = writer
        self._config = config
        self._metrics = RelayMetrics.get_instance()

    @property
    def config(self) -> RelayConfig:
        """Get the relay configuration."""
        return self._config

    async def run_initial(self, session: "Session") -> list[int]:
        """Send the initial batch to a freshly connected session.

        Args:
            session: Target session.

        Returns:
            Identifiers delivered, in order.

        Raises:
            WriteError: If the client went away.
        """
        log = logger.bind(component="scheduler", session_id=session.session_id)
        log.info("initial_batch_started", limit=self._config.initial_batch_limit)

        try:
            identifiers = await self._feed.fetch_top_identifiers()
        except FeedError as e:
            log.warning("initial_list_failed", **e.to_dict())
            await self._writer.emit(
                session,
                EventKind.ERROR,
                f"Error {_verb(e)} initial top story IDs: {e}",
            )
            return []

        delivered: list[int] = []
        for identifier in identifiers[: self._config.initial_batch_limit]:
            if session.is_cancelled:
                break
            if await self._deliver(session, identifier, PHASE_INITIAL):
                self._tracker.mark_seeded({identifier})
                delivered.append(identifier)

        log.info("initial_batch_complete", delivered=len(delivered))
        return delivered

    async def run_cycle(self, session: "Session") -> CycleResult:
        """Run one periodic delta check.

        A list-level failure leaves the seen-set untouched so the same
        identifiers are considered again on the next tick.

        Args:
            session: Target session.

        Returns:
            CycleResult describing what happened.

        Raises:
            WriteError: If the client went away.
        """
        log = logger.bind(component="scheduler", session_id=session.session_id)
        if session.is_cancelled:
            return CycleResult()

        try:
            identifiers = await self._feed.fetch_top_identifiers()
        except FeedError as e:
            self._metrics.record_cycle(failed=True)
            log.warning("delta_list_failed", **e.to_dict())
            await self._writer.emit(
                session,
                EventKind.ERROR,
                f"Error {_verb(e)} top story IDs for delta: {e}",
            )
            return CycleResult(list_failed=True)

        self._metrics.record_cycle()
        result = CycleResult(new_ids=self._tracker.mark_and_diff(identifiers))

        if not result.new_ids:
            log.info("delta_none")
            await self._writer.emit(
                session,
                EventKind.NO_NEW_DATA,
                f"No new stories at {clock_time()}",
            )
            return result

        log.info("delta_found", new=len(result.new_ids))

        limit = self._config.delta_batch_limit
        if len(result.new_ids) > limit:
            # Dropped identifiers stay marked as seen and are never sent.
            dropped = result.new_ids[limit:]
            self._metrics.record_truncation(len(dropped))
            log.warning("delta_truncated", limit=limit, dropped_ids=dropped)

        for identifier in result.new_ids[:limit]:
            if session.is_cancelled:
                break
            if await self._deliver(session, identifier, PHASE_DELTA):
                result.delivered.append(identifier)

        return result

    async def run_periodic(self, session: "Session") -> None:
        """Run delta cycles on a fixed interval until the session is cancelled.

        Args:
            session: Target session.

        Raises:
            WriteError: If the client went away.
        """
        interval = self._config.poll_interval_seconds
        while not await session.wait_cancelled(timeout=interval):
            await self.run_cycle(session)

    async def _deliver(self, session: "Session", identifier: int, phase: str) -> bool:
        """Fetch, validate and send a single item.

        Args:
            session: Target session.
            identifier: Item identifier.
            phase: PHASE_INITIAL or PHASE_DELTA, for messages.

        Returns:
            True if a ``new-story`` event was written.
        """
        log = logger.bind(
            component="scheduler",
            session_id=session.session_id,
            identifier=identifier,
            phase=phase,
        )

        try:
            item = await self._feed.fetch_item(identifier)
        except FeedError as e:
            self._metrics.record_story_error()
            log.warning("story_fetch_failed", **e.to_dict())
            await self._writer.emit(
                session,
                EventKind.STORY_ERROR,
                f"Error {_verb(e)} {phase} story {identifier}: {e}",
            )
            return False

        reason = skip_reason(item)
        if reason is not None:
            self._metrics.record_skipped()
            log.info("story_skipped", item_type=item.type, reason=reason.value)
            return False

        try:
            await self._writer.emit_item(session, item)
        except DecodeError as e:
            self._metrics.record_story_error()
            log.warning("story_encode_failed", **e.to_dict())
            await self._writer.emit(
                session,
                EventKind.STORY_ERROR,
                f"Error marshalling {phase} story {identifier} to JSON: {e}",
            )
            return False

        self._metrics.record_delivered()
        log.info("story_sent", title=item.title)
        return True
