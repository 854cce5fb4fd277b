"""HTTP surface of the relay."""

from src.server.app import create_app, stats_stream
from src.server.responses import EventStreamResponse
from src.server.runner import RelayServer


__all__ = ["EventStreamResponse", "RelayServer", "create_app", "stats_stream"]
