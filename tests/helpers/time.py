"""Shared, deterministic timestamps for tests."""

from datetime import datetime


# Naive local time, matching what event payloads format.
FIXED_NOW = datetime(2024, 5, 1, 13, 4, 5)  # noqa: DTZ001
