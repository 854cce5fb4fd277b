"""FastAPI application exposing the relay and stats streams."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from sse_starlette import EventSourceResponse, ServerSentEvent

from src.feed.client import FeedClient
from src.feed.metrics import FeedMetrics
from src.relay.metrics import RelayMetrics
from src.relay.scheduler import DeltaScheduler, FeedSource
from src.relay.session import SessionManager
from src.relay.tracker import SeenSetTracker
from src.relay.writer import FRAME_SEPARATOR, EventStreamWriter
from src.server.responses import EventStreamResponse
from src.settings.app import AppSettings, get_settings
from src.stats.sampler import sample_stats


logger = structlog.get_logger()


async def stats_stream(interval_seconds: float) -> AsyncIterator[ServerSentEvent]:
    """Yield a host stats sample every interval, forever.

    Args:
        interval_seconds: Seconds between samples.

    Yields:
        Unnamed events whose data is the JSON-encoded sample.
    """
    while True:
        sample = await asyncio.to_thread(sample_stats)
        yield ServerSentEvent(data=sample.model_dump_json())
        await asyncio.sleep(interval_seconds)


def create_app(
    settings: AppSettings | None = None,
    feed: FeedSource | None = None,
    tracker: SeenSetTracker | None = None,
) -> FastAPI:
    """Build the relay application.

    One tracker, scheduler and session manager are created per app and
    shared by every connection.

    Args:
        settings: Application settings (defaults to the environment).
        feed: Feed override; a FeedClient is created when omitted.
        tracker: Seen-set override; an empty one is created when omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    tracker = tracker or SeenSetTracker()
    feed_client: FeedClient | None = None
    if feed is None:
        feed_client = FeedClient(settings.feed_config())
        feed = feed_client

    writer = EventStreamWriter()
    scheduler = DeltaScheduler(feed, tracker, writer, settings.relay_config())
    manager = SessionManager(scheduler, writer)
    log = logger.bind(component="server")

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        log.info(
            "relay_started",
            host=settings.host,
            port=settings.port,
            feed_base_url=settings.feed_base_url,
            poll_interval_seconds=settings.poll_interval_seconds,
        )
        yield
        await manager.shutdown()
        if feed_client is not None:
            await feed_client.aclose()
        log.info("relay_stopped", seen_count=len(tracker))

    app = FastAPI(title="HN Delta Relay", lifespan=lifespan)
    app.state.settings = settings
    app.state.tracker = tracker
    app.state.session_manager = manager

    cors_headers = {"Access-Control-Allow-Origin": settings.allow_origin}

    @app.get("/hn-events")
    async def hn_events() -> EventStreamResponse:
        log.info("relay_client_connected")
        return EventStreamResponse(manager, headers=cors_headers)

    @app.get("/stats")
    async def stats() -> EventSourceResponse:
        return EventSourceResponse(
            stats_stream(settings.stats_interval_seconds),
            headers={"Cache-Control": "no-cache", **cors_headers},
            sep=FRAME_SEPARATOR,
        )

    @app.get("/status")
    def status() -> dict[str, object]:
        return {
            "sessions_active": manager.active_count,
            "seen_count": len(tracker),
            "relay": RelayMetrics.get_instance().to_dict(),
            "feed": FeedMetrics.get_instance().to_dict(),
        }

    if settings.ui_dir.is_dir():
        app.mount(
            "/",
            StaticFiles(directory=str(settings.ui_dir), html=True),
            name="ui",
        )
    else:
        log.info("ui_dir_missing", ui_dir=str(settings.ui_dir))

    return app
