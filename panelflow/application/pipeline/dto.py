"""Pipeline DTOs."""

from pydantic import BaseModel, Field

from panelflow.domain.entities.base import CamelModel
from panelflow.domain.entities.pipeline import PipelineSnapshot, RunState, RunStatus
from panelflow.domain.entities.timeline import TimelineEntry


class RunPipelineRequest(CamelModel):
    """Request to run a pipeline snapshot."""

    snapshot: PipelineSnapshot
    run_id: str | None = Field(None, max_length=100)  # auto-generated if omitted


class PipelineRunResponse(CamelModel):
    """Final state of a pipeline run."""

    run_id: str
    status: RunStatus
    order: list[int] = []
    outputs: dict[int, str] = {}
    error: str | None = None
    skipped: list[int] = []
    attempts: dict[int, int] = {}
    timeline: list[TimelineEntry] = []

    @classmethod
    def from_state(cls, state: RunState, timeline: list[TimelineEntry]) -> "PipelineRunResponse":
        return cls(
            run_id=state.run_id,
            status=state.status,
            order=state.order,
            outputs=state.outputs,
            error=state.error,
            skipped=state.skipped,
            attempts=state.attempts,
            timeline=timeline,
        )


class PipelineStreamEvent(BaseModel):
    """SSE event for streaming pipeline progress."""

    # step_start, step_complete, step_fail, step_skip, step_retry, stopped, done, error
    event_type: str
    node_id: int | None = None
    chunk: str | None = None
    payload: dict | None = None


class StopRunResponse(CamelModel):
    run_id: str
    stopped: bool


class NodeCompletedRequest(CamelModel):
    """Notification that a node finished outside a full run."""

    snapshot: PipelineSnapshot
    output: str | None = None


class AutoChainResultDTO(CamelModel):
    target_node_id: int
    success: bool
    output: str = ""
    error: str | None = None


class NodeCompletedResponse(CamelModel):
    node_id: int
    triggered: list[AutoChainResultDTO] = []
