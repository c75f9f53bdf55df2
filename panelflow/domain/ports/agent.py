"""Agent Port - interface for the external agent-call collaborator."""

from typing import Protocol

from panelflow.domain.entities.agent import AgentExecution, OrchestrationRun


class AgentInvokerPort(Protocol):
    """Runs a single agent call given an agent identity and a prompt."""

    async def invoke(self, agent_id: str, prompt: str) -> AgentExecution:
        """Execute the agent once and return its outcome."""
        ...

    async def orchestrate(self, agent_id: str, prompt: str, mode: str) -> OrchestrationRun:
        """Start an orchestration run for the agent (e.g. approval mode)."""
        ...

    async def is_available(self) -> bool:
        """Check if the agent backend is reachable."""
        ...
