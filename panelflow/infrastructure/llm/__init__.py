"""LLM providers backing locally resolved agent profiles."""

from panelflow.domain.ports.config import AppConfig
from panelflow.domain.ports.llm import LLMPort
from panelflow.infrastructure.llm.ollama import OllamaAdapter
from panelflow.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter


def create_llm_adapter(config: AppConfig) -> LLMPort:
    """Factory: provider from config.agents.backend (ollama | lm_studio | openai_compatible)."""
    backend = config.agents.backend.lower()
    if backend in ("lm_studio", "openai_compatible"):
        return OpenAICompatibleAdapter(config.openai_compatible)
    return OllamaAdapter(config.ollama)


__all__ = ["OllamaAdapter", "OpenAICompatibleAdapter", "create_llm_adapter"]
