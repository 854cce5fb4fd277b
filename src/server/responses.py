"""ASGI response that hands the client connection to a relay session."""

import asyncio
from collections.abc import Mapping

import structlog
from starlette.background import BackgroundTask
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from src.relay.session import SessionManager
from src.relay.writer import AsgiEventSink


logger = structlog.get_logger()

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class EventStreamResponse(Response):
    """Long-lived ``text/event-stream`` response driven by a session.

    The session writes each frame straight to the ASGI ``send`` callable.
    A concurrent listener watches ``receive`` for ``http.disconnect`` and
    closes the sink, which cancels the session.
    """

    media_type = "text/event-stream"

    def __init__(
        self,
        manager: SessionManager,
        headers: Mapping[str, str] | None = None,
        status_code: int = 200,
        background: BackgroundTask | None = None,
    ) -> None:
        """Initialize the response.

        Args:
            manager: Session manager that will own the connection.
            headers: Extra response headers.
            status_code: HTTP status code.
            background: Optional task run after the stream ends.
        """
        self._manager = manager
        self.status_code = status_code
        self.background = background
        self.init_headers({**STREAM_HEADERS, **(headers or {})})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Stream events until the client disconnects or the server stops."""
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            }
        )

        sink = AsgiEventSink(send)
        client = scope.get("client")
        client_addr = f"{client[0]}:{client[1]}" if client else None
        disconnect = asyncio.create_task(self._listen_for_disconnect(receive, sink))

        try:
            session = await self._manager.open(sink, client=client_addr)
            closed = asyncio.create_task(session.wait_closed())
            try:
                await asyncio.wait(
                    {disconnect, closed},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                closed.cancel()
                await self._manager.close(session)
        finally:
            disconnect.cancel()

        if not sink.closed:
            await send({"type": "http.response.body", "body": b"", "more_body": False})

        if self.background is not None:
            await self.background()

    @staticmethod
    async def _listen_for_disconnect(receive: Receive, sink: AsgiEventSink) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                sink.close()
                logger.info("client_disconnected", component="server")
                return
