"""Agent invoker adapters."""

from panelflow.domain.ports.agent import AgentInvokerPort
from panelflow.domain.ports.config import AppConfig
from panelflow.infrastructure.agents.http_invoker import HttpAgentInvoker
from panelflow.infrastructure.agents.llm_invoker import LLMAgentInvoker
from panelflow.infrastructure.llm import create_llm_adapter


def create_agent_invoker(config: AppConfig) -> AgentInvokerPort:
    """Factory: REST agent backend ("http") or local LLM profiles (any other backend)."""
    if config.agents.backend.lower() == "http":
        return HttpAgentInvoker(config.agent_api)
    return LLMAgentInvoker(create_llm_adapter(config), config.agents.profiles)


__all__ = ["HttpAgentInvoker", "LLMAgentInvoker", "create_agent_invoker"]
