"""LLM agent invoker - resolves agent ids to local profiles and calls an LLM."""

import logging
import uuid

import httpx
from ollama import ResponseError

from panelflow.domain.entities.agent import (
    EXECUTION_COMPLETED,
    EXECUTION_FAILED,
    AgentExecution,
    OrchestrationRun,
)
from panelflow.domain.errors import AgentCallError, RateLimitError
from panelflow.domain.ports.config import AgentProfile
from panelflow.domain.ports.llm import LLMMessage, LLMPort

logger = logging.getLogger(__name__)


def _status_code(exc: Exception) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    if isinstance(exc, ResponseError):
        return exc.status_code
    return None


class LLMAgentInvoker:
    """Implements AgentInvokerPort over an LLMPort using configured agent profiles.

    Unknown agent ids fall back to the provider's default model with no
    system prompt. Orchestration is not supported by this backend.
    """

    def __init__(self, llm: LLMPort, profiles: dict[str, AgentProfile] | None = None) -> None:
        self._llm = llm
        self._profiles = profiles or {}

    def _profile(self, agent_id: str) -> AgentProfile | None:
        return self._profiles.get(agent_id)

    async def invoke(self, agent_id: str, prompt: str) -> AgentExecution:
        profile = self._profile(agent_id)
        messages: list[LLMMessage] = []
        if profile and profile.system_prompt:
            messages.append(LLMMessage(role="system", content=profile.system_prompt))
        messages.append(LLMMessage(role="user", content=prompt))

        try:
            response = await self._llm.generate(
                messages,
                model=profile.model if profile else None,
                temperature=profile.temperature if profile else 0.7,
            )
        except (httpx.HTTPError, ResponseError) as e:
            if _status_code(e) == 429:
                raise RateLimitError(f"429 Too Many Requests: {e}") from e
            logger.warning("Agent %s LLM call failed: %s", agent_id, e)
            return AgentExecution(
                id=str(uuid.uuid4()),
                agent_id=agent_id,
                status=EXECUTION_FAILED,
                error_message=str(e) or type(e).__name__,
            )

        return AgentExecution(
            id=str(uuid.uuid4()),
            agent_id=agent_id,
            status=EXECUTION_COMPLETED,
            output_text=response.content,
        )

    async def orchestrate(self, agent_id: str, prompt: str, mode: str) -> OrchestrationRun:
        raise AgentCallError(f"Orchestration mode {mode!r} is not supported by the LLM backend")

    async def is_available(self) -> bool:
        return await self._llm.is_available()

    async def close(self) -> None:
        close = getattr(self._llm, "close", None)
        if close is not None:
            await close()
