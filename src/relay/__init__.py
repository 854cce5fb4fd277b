"""Delta detection and event streaming core.

This module provides:
- The process-wide seen-set tracker
- Item eligibility validation
- Per-session scheduling of the initial batch and periodic delta checks
- SSE framing and writing
- Session lifecycle management
"""

from src.relay.config import RelayConfig
from src.relay.errors import RelayError, WriteError
from src.relay.metrics import RelayMetrics
from src.relay.scheduler import CycleResult, DeltaScheduler, FeedSource
from src.relay.session import Session, SessionManager
from src.relay.state_machine import (
    SessionState,
    SessionStateMachine,
    SessionStateTransitionError,
)
from src.relay.tracker import SeenSetTracker
from src.relay.validator import SkipReason, skip_reason, validate
from src.relay.writer import (
    AsgiEventSink,
    EventKind,
    EventSink,
    EventStreamWriter,
    encode_frame,
)


__all__ = [
    # Config
    "RelayConfig",
    # Tracker
    "SeenSetTracker",
    # Validation
    "SkipReason",
    "skip_reason",
    "validate",
    # Scheduling
    "DeltaScheduler",
    "CycleResult",
    "FeedSource",
    # Writing
    "EventKind",
    "EventSink",
    "AsgiEventSink",
    "EventStreamWriter",
    "encode_frame",
    # Sessions
    "Session",
    "SessionManager",
    "SessionState",
    "SessionStateMachine",
    "SessionStateTransitionError",
    # Errors
    "RelayError",
    "WriteError",
    # Metrics
    "RelayMetrics",
]
