"""Execution timeline entries reported alongside a run."""

from typing import Literal

from pydantic import BaseModel

TimelineStatus = Literal["running", "completed", "failed", "skipped", "retrying"]


class TimelineEntry(BaseModel):
    """One node lifecycle event."""

    id: str
    node_id: int
    node_title: str
    status: TimelineStatus
    message: str | None = None
    timestamp: int  # epoch milliseconds
    duration_ms: int | None = None
