"""Engine error taxonomy.

Structural and configuration errors fail a run without retry, transient agent
errors are retried per policy, cancellation is its own terminal outcome.
"""


class PanelFlowError(Exception):
    """Base class for engine errors."""


class CycleDetectedError(PanelFlowError):
    """Edges among involved nodes form a cycle; nothing may execute."""

    def __init__(self, message: str = "Cycle detected: pipeline cannot run.") -> None:
        super().__init__(message)


class AgentNotConfiguredError(PanelFlowError):
    """Active panel has no agent identity."""

    def __init__(self, node_id: int) -> None:
        self.node_id = node_id
        super().__init__(f"Panel #{node_id}: no agent configured.")


class AgentCallError(PanelFlowError):
    """External agent call failed (transient, retried per policy)."""


class AgentExecutionError(AgentCallError):
    """Agent backend reported a failed execution."""


class RateLimitError(AgentCallError):
    """Agent backend signalled a rate limit (HTTP 429)."""


class PipelineStoppedError(PanelFlowError):
    """Cancellation token observed."""

    def __init__(self, reason: str = "Pipeline stopped.") -> None:
        super().__init__(reason)


class SummarizationError(PanelFlowError):
    """Reduce phase of the batch summarizer failed."""


class NodeExecutionError(PanelFlowError):
    """A node failed terminally (retries exhausted or summarization failed)."""

    def __init__(self, node_id: int, message: str) -> None:
        self.node_id = node_id
        self.message = message
        super().__init__(f"Panel #{node_id}: {message}")


class RunAlreadyActiveError(PanelFlowError):
    """A run with the same id is still executing."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Run already active: {run_id}")
