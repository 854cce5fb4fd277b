"""Upstream feed access: ranked identifier list and item bodies.

This module provides:
- An async HTTP client bounded by a fixed timeout, with no retries
- Item and identifier-list models matching the upstream JSON
- Typed fetch/decode errors
- Metrics collection for observability
"""

from src.feed.client import FeedClient
from src.feed.config import FeedConfig
from src.feed.errors import DecodeError, FeedError, FeedErrorClass, FetchError
from src.feed.metrics import FeedMetrics
from src.feed.models import FeedItem, ItemKind


__all__ = [
    # Client
    "FeedClient",
    # Config
    "FeedConfig",
    # Models
    "FeedItem",
    "ItemKind",
    # Errors
    "FeedError",
    "FeedErrorClass",
    "FetchError",
    "DecodeError",
    # Metrics
    "FeedMetrics",
]
