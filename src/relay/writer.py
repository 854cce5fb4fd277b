"""Framing and writing of server-sent events to client sessions."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from pydantic_core import PydanticSerializationError
from sse_starlette import ServerSentEvent
from starlette.types import Send

from src.feed.errors import DecodeError, FeedErrorClass
from src.feed.models import FeedItem
from src.relay.errors import WriteError
from src.relay.metrics import RelayMetrics


if TYPE_CHECKING:
    from src.relay.session import Session


# Line separator inside a frame; a frame ends with an empty line.
FRAME_SEPARATOR = "\n"

CLOCK_FORMAT = "%H:%M:%S"


class EventKind(str, Enum):
    """Event names on the wire."""

    CONNECTED = "connected"
    NEW_STORY = "new-story"
    NO_NEW_DATA = "no-new-data"
    ERROR = "error"
    STORY_ERROR = "story-error"


def clock_time(now: datetime | None = None) -> str:
    """Format a wall-clock time for human-readable event payloads.

    Args:
        now: Time to format (defaults to now, local time).

    Returns:
        Time as HH:MM:SS.
    """
    return (now or datetime.now()).strftime(CLOCK_FORMAT)  # noqa: DTZ005


def encode_frame(kind: EventKind, payload: str, event_id: int | None = None) -> bytes:
    """Encode one event as an SSE frame.

    Args:
        kind: Event kind.
        payload: Data text; embedded newlines become extra data lines.
        event_id: Optional identifier written as the ``id:`` line.

    Returns:
        Frame bytes terminated by a blank line.
    """
    event = ServerSentEvent(
        data=payload,
        event=kind.value,
        id=str(event_id) if event_id is not None else None,
        sep=FRAME_SEPARATOR,
    )
    return event.encode()


class EventSink(Protocol):
    """Destination of a session's frames.

    ``send`` writes and flushes one frame or raises ``WriteError``.
    """

    async def send(self, frame: bytes) -> None:
        """Write one frame."""
        ...

    @property
    def closed(self) -> bool:
        """Check if the client side is gone."""
        ...


class AsgiEventSink:
    """Event sink over an ASGI ``send`` callable.

    Each frame goes out as its own ``http.response.body`` message, which
    the server flushes immediately. Nothing is buffered.
    """

    def __init__(self, send: Send) -> None:
        """Initialize the sink.

        Args:
            send: ASGI send callable of an already-started response.
        """
        self._send = send
        self._closed = False

    @property
    def closed(self) -> bool:
        """Check if the client side is gone."""
        return self._closed

    def close(self) -> None:
        """Mark the client side as gone."""
        self._closed = True

    async def send(self, frame: bytes) -> None:
        """Write one frame.

        Args:
            frame: Encoded SSE frame.

        Raises:
            WriteError: If the client disconnected.
        """
        if self._closed:
            msg = "Client stream is closed"
            raise WriteError(msg)
        try:
            await self._send(
                {"type": "http.response.body", "body": frame, "more_body": True}
            )
        except OSError as e:
            self._closed = True
            msg = f"Client stream write failed: {e}"
            raise WriteError(msg) from e


class EventStreamWriter:
    """Writes framed events to a session's sink.

    Never blocks on a closed client and never queues: a write to a
    cancelled session or closed sink raises ``WriteError``.
    """

    def __init__(self) -> None:
        """Initialize the writer."""
        self._metrics = RelayMetrics.get_instance()

    async def emit(
        self,
        session: "Session",
        kind: EventKind,
        payload: str,
        event_id: int | None = None,
    ) -> None:
        """Frame and write one event.

        Args:
            session: Target session.
            kind: Event kind.
            payload: Data text.
            event_id: Optional item identifier for the ``id:`` line.

        Raises:
            WriteError: If the session is cancelled or its sink is closed.
        """
        if session.is_cancelled:
            self._metrics.record_write_error()
            msg = "Session is cancelled"
            raise WriteError(msg, session_id=session.session_id)

        frame = encode_frame(kind, payload, event_id)
        try:
            await session.sink.send(frame)
        except WriteError as e:
            self._metrics.record_write_error()
            e.session_id = session.session_id
            raise

        self._metrics.record_event(kind.value)

    async def emit_item(self, session: "Session", item: FeedItem) -> None:
        """Write a validated item as a ``new-story`` event.

        Args:
            session: Target session.
            item: Item to deliver.

        Raises:
            DecodeError: If the item cannot be JSON-encoded.
            WriteError: If the session is cancelled or its sink is closed.
        """
        try:
            payload = item.model_dump_json()
        except PydanticSerializationError as e:
            msg = f"Could not encode item {item.id}: {e}"
            raise DecodeError(
                msg,
                identifier=item.id,
                error_class=FeedErrorClass.ENCODE_FAILED,
            ) from e

        await self.emit(session, EventKind.NEW_STORY, payload, event_id=item.id)
