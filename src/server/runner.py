"""Uvicorn server that drains relay sessions on exit."""

import asyncio
from collections.abc import Callable
from types import FrameType

import structlog
import uvicorn


logger = structlog.get_logger()


class RelayServer(uvicorn.Server):
    """Uvicorn server with an exit hook.

    Uvicorn waits for open connections to finish before it runs the
    lifespan shutdown, and event streams never finish on their own. The
    hook runs on the event loop as soon as an exit signal arrives so the
    streams can end first.
    """

    def __init__(self, config: uvicorn.Config, on_exit: Callable[[], None]) -> None:
        """Initialize the server.

        Args:
            config: Uvicorn configuration.
            on_exit: Called on the event loop when exit is requested.
        """
        super().__init__(config)
        self._on_exit = on_exit

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        """Schedule the exit hook, then let uvicorn begin its shutdown."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None and not self.should_exit:
            logger.info("server_exit_requested", component="server", signal=sig)
            loop.call_soon_threadsafe(self._on_exit)

        super().handle_exit(sig, frame)
