"""Configuration model for the delta relay."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_INITIAL_BATCH_LIMIT = 10
DEFAULT_DELTA_BATCH_LIMIT = 5
DEFAULT_POLL_INTERVAL_SECONDS = 120.0


class RelayConfig(BaseModel):
    """Per-session polling cadence and burst bounds.

    - initial_batch_limit: items sent to a fresh session (K)
    - delta_batch_limit: new items sent per periodic cycle (M)
    - poll_interval_seconds: wait between periodic cycles
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial_batch_limit: Annotated[int, Field(ge=0, le=500)] = (
        DEFAULT_INITIAL_BATCH_LIMIT
    )
    delta_batch_limit: Annotated[int, Field(ge=0, le=500)] = DEFAULT_DELTA_BATCH_LIMIT
    poll_interval_seconds: Annotated[float, Field(gt=0.0, le=86400.0)] = (
        DEFAULT_POLL_INTERVAL_SECONDS
    )
