"""Client sessions and their lifecycle."""

import asyncio
import uuid

import structlog

from src.observability.logging import bind_session_context, clear_session_context
from src.relay.errors import WriteError
from src.relay.metrics import RelayMetrics
from src.relay.scheduler import DeltaScheduler
from src.relay.state_machine import SessionState, SessionStateMachine
from src.relay.writer import EventKind, EventSink, EventStreamWriter, clock_time


logger = structlog.get_logger()


class Session:
    """One connected client and its streaming loop.

    Holds the output sink and a cancellation signal tied to the
    connection. Owns no shared state; everything shared lives in the
    tracker.
    """

    def __init__(
        self,
        sink: EventSink,
        client: str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            sink: Destination of this client's frames.
            client: Remote address for logging.
            session_id: Explicit identifier (defaults to a random one).
        """
        self.session_id = session_id or uuid.uuid4().hex
        self.client = client
        self.sink = sink
        self.state_machine = SessionStateMachine(self.session_id)
        self.task: asyncio.Task[None] | None = None
        self._cancelled = asyncio.Event()

    @property
    def state(self) -> SessionState:
        """Get the current lifecycle state."""
        return self.state_machine.state

    @property
    def is_cancelled(self) -> bool:
        """Check if the session was cancelled or its client is gone."""
        return self._cancelled.is_set() or self.sink.closed

    def cancel(self) -> None:
        """Signal the session to stop."""
        self._cancelled.set()

    async def wait_cancelled(self, timeout: float) -> bool:
        """Wait for cancellation, up to a timeout.

        Args:
            timeout: Seconds to wait.

        Returns:
            True if the session is cancelled.
        """
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=timeout)
        except TimeoutError:
            return self.is_cancelled
        return True

    async def wait_closed(self) -> None:
        """Block until the session is cancelled."""
        await self._cancelled.wait()


class SessionManager:
    """Owns the lifecycle of every client session.

    Opening a session sends the ``connected`` event and the initial
    batch before returning, then spawns the periodic loop as its own
    task. Closing cancels that task; the tracker is process-wide and
    needs no per-session cleanup.
    """

    def __init__(
        self,
        scheduler: DeltaScheduler,
        writer: EventStreamWriter,
    ) -> None:
        """Initialize the session manager.

        Args:
            scheduler: Delta scheduler shared by all sessions.
            writer: Event writer shared by all sessions.
        """
        self._scheduler = scheduler
        self._writer = writer
        self._sessions: dict[str, Session] = {}
        self._draining = False
        self._metrics = RelayMetrics.get_instance()
        self._log = logger.bind(component="session_manager")

    @property
    def active_count(self) -> int:
        """Number of open sessions."""
        return len(self._sessions)

    @property
    def draining(self) -> bool:
        """Check if the server is shutting down."""
        return self._draining

    def get(self, session_id: str) -> Session | None:
        """Look up an open session.

        Args:
            session_id: Session identifier.

        Returns:
            The session, or None if it is not open.
        """
        return self._sessions.get(session_id)

    async def open(self, sink: EventSink, client: str | None = None) -> Session:
        """Accept a connection and start streaming to it.

        Args:
            sink: Destination of the client's frames.
            client: Remote address for logging.

        Returns:
            The session; already closed if the client went away during
            the initial phase.
        """
        session = Session(sink=sink, client=client)
        if self._draining:
            session.cancel()
        self._sessions[session.session_id] = session
        self._metrics.record_session_opened()

        log = self._log.bind(session_id=session.session_id)
        log.info("session_opened", client=client, active=self.active_count)

        try:
            session.state_machine.to_initializing()
            await self._writer.emit(
                session,
                EventKind.CONNECTED,
                f"Connected to HN stream at {clock_time()}",
            )
            await self._scheduler.run_initial(session)
        except WriteError as e:
            log.info("session_write_failed", phase="initial", error=e.message)
            await self.close(session)
            return session
        except BaseException:
            await self.close(session)
            raise

        if session.is_cancelled:
            await self.close(session)
            return session

        session.state_machine.to_streaming()
        session.task = asyncio.create_task(
            self._run_periodic(session),
            name=f"session-{session.session_id}",
        )
        return session

    async def close(self, session: Session) -> None:
        """Tear a session down. Safe to call more than once.

        Args:
            session: Session to close.
        """
        if self._sessions.pop(session.session_id, None) is None:
            return

        session.cancel()
        task = session.task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})

        session.state_machine.to_closed()
        self._metrics.record_session_closed()
        self._log.info(
            "session_closed",
            session_id=session.session_id,
            active=self.active_count,
        )

    def drain(self) -> None:
        """Cancel every open session and refuse new ones.

        Called on the event loop when the server begins to exit. Each
        open stream then ends and releases its connection.
        """
        self._draining = True
        self._log.info("session_manager_draining", sessions=self.active_count)
        for session in self._sessions.values():
            session.cancel()

    async def shutdown(self) -> None:
        """Close every open session."""
        sessions = list(self._sessions.values())
        self._log.info("session_manager_shutdown", sessions=len(sessions))
        for session in sessions:
            await self.close(session)

    async def _run_periodic(self, session: Session) -> None:
        """Periodic loop of one session, run as its own task."""
        bind_session_context(session.session_id)
        try:
            await self._scheduler.run_periodic(session)
        except WriteError as e:
            self._log.info(
                "session_write_failed",
                session_id=session.session_id,
                phase="periodic",
                error=e.message,
            )
        except Exception:
            self._log.exception("session_loop_failed", session_id=session.session_id)
        finally:
            session.cancel()
            clear_session_context()
