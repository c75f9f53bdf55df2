"""Agent call results returned by the external agent backend."""

from pydantic import BaseModel

EXECUTION_COMPLETED = "completed"
EXECUTION_FAILED = "failed"


class AgentExecution(BaseModel):
    """Outcome of a single agent call."""

    id: str | None = None
    agent_id: str = ""
    status: str  # "completed" | "failed"
    output_text: str | None = None
    error_message: str | None = None

    @property
    def completed(self) -> bool:
        return self.status == EXECUTION_COMPLETED


class OrchestrationRun(BaseModel):
    """Handle of an orchestration started for an agent (approval flows etc.)."""

    id: str
    orchestrator_agent_id: str = ""
    status: str = "pending"
