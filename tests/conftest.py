"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from panelflow.domain.entities.agent import AgentExecution, OrchestrationRun

Response = str | Exception | AgentExecution | Callable[[str], "str | Exception | AgentExecution"]


class FakeAgentInvoker:
    """Scripted AgentInvokerPort.

    Each agent id has a queue of responses consumed in order; once empty the
    default is used. A response is output text, an AgentExecution, an
    exception to raise, or a callable taking the prompt.
    """

    def __init__(self, responses: dict[str, list[Response]] | None = None, default: Response = "ok"):
        self._responses = {k: list(v) for k, v in (responses or {}).items()}
        self._default = default
        self.calls: list[tuple[str, str]] = []
        self.orchestrations: list[tuple[str, str, str]] = []
        self.available = True

    @property
    def prompts(self) -> list[str]:
        return [prompt for _, prompt in self.calls]

    async def invoke(self, agent_id: str, prompt: str) -> AgentExecution:
        self.calls.append((agent_id, prompt))
        queue = self._responses.get(agent_id)
        item = queue.pop(0) if queue else self._default
        if callable(item) and not isinstance(item, AgentExecution):
            item = item(prompt)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, AgentExecution):
            return item
        return AgentExecution(id=f"exec-{len(self.calls)}", agent_id=agent_id, status="completed", output_text=item)

    async def orchestrate(self, agent_id: str, prompt: str, mode: str) -> OrchestrationRun:
        self.orchestrations.append((agent_id, prompt, mode))
        return OrchestrationRun(id=f"run-{len(self.orchestrations)}", orchestrator_agent_id=agent_id)

    async def is_available(self) -> bool:
        return self.available


def failed(message: str = "boom") -> AgentExecution:
    return AgentExecution(status="failed", error_message=message)


@pytest.fixture
def make_invoker():
    """Factory for FakeAgentInvoker."""
    return FakeAgentInvoker


@pytest.fixture
def failed_execution():
    """Factory for a failed AgentExecution with the given error message."""
    return failed


@pytest.fixture
def no_sleep():
    """Awaitable sleep replacement that records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def api_container(monkeypatch, tmp_path):
    """Global container with a scripted agent backend and a tmp summary cache."""
    from panelflow.api import container as container_module
    from panelflow.domain.ports.config import AppConfig, PersistenceConfig

    container = container_module.Container(
        config=AppConfig(persistence=PersistenceConfig(summary_cache_dir=str(tmp_path / "cache")))
    )
    container.agent_invoker = FakeAgentInvoker()
    monkeypatch.setattr(container_module, "_container", container)
    return container


@pytest.fixture
async def client(api_container):
    """HTTP client against the app; lifespan is not run."""
    from httpx import ASGITransport, AsyncClient

    from panelflow.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
