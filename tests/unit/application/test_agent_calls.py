"""Tests for agent call normalization."""

import httpx
import pytest

from panelflow.application.shared import call_agent, start_orchestration
from panelflow.application.shared.agent_calls import is_rate_limit_message
from panelflow.domain.errors import AgentCallError, AgentExecutionError, RateLimitError


class TestRateLimitDetection:
    @pytest.mark.parametrize(
        "message",
        ["HTTP 429", "Rate limit exceeded", "Too Many Requests", "RESOURCE_EXHAUSTED: quota"],
    )
    def test_detects_markers(self, message):
        assert is_rate_limit_message(message)

    def test_plain_error(self):
        assert not is_rate_limit_message("connection reset")


class TestCallAgent:
    @pytest.mark.asyncio
    async def test_returns_output_text(self, make_invoker):
        invoker = make_invoker({"a": ["hello"]})
        assert await call_agent(invoker, "a", "prompt") == "hello"
        assert invoker.calls == [("a", "prompt")]

    @pytest.mark.asyncio
    async def test_failed_execution_raises(self, make_invoker, failed_execution):
        invoker = make_invoker({"a": [failed_execution("model not loaded")]})
        with pytest.raises(AgentExecutionError, match="model not loaded"):
            await call_agent(invoker, "a", "prompt")

    @pytest.mark.asyncio
    async def test_failed_execution_with_rate_limit(self, make_invoker, failed_execution):
        invoker = make_invoker({"a": [failed_execution("429 Too Many Requests")]})
        with pytest.raises(RateLimitError):
            await call_agent(invoker, "a", "prompt")

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self, make_invoker):
        invoker = make_invoker({"a": [httpx.ConnectError("refused")]})
        with pytest.raises(AgentCallError, match="refused") as exc_info:
            await call_agent(invoker, "a", "prompt")
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_engine_errors_pass_through(self, make_invoker):
        error = RateLimitError("slow down")
        invoker = make_invoker({"a": [error]})
        with pytest.raises(RateLimitError) as exc_info:
            await call_agent(invoker, "a", "prompt")
        assert exc_info.value is error


class TestStartOrchestration:
    @pytest.mark.asyncio
    async def test_returns_run_reference(self, make_invoker):
        invoker = make_invoker()
        result = await start_orchestration(invoker, "a", "prompt", "approval")
        assert result == "[orchestration:run-1]"
        assert invoker.orchestrations == [("a", "prompt", "approval")]
