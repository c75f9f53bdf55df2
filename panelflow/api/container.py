"""Dependency Injection Container - centralized service management."""

from functools import cached_property
from typing import TYPE_CHECKING

from panelflow.application.pipeline.output_store import PanelOutputStore
from panelflow.domain.ports.agent import AgentInvokerPort
from panelflow.domain.ports.config import AppConfig
from panelflow.domain.ports.summary_cache import SummaryCacheStorePort
from panelflow.infrastructure.config import load_config

if TYPE_CHECKING:
    from panelflow.application.pipeline.auto_chain import AutoChainTrigger
    from panelflow.application.pipeline.executor import PipelineExecutor
    from panelflow.application.pipeline.use_case import PipelineUseCase
    from panelflow.application.summarizer import MapReduceSummarizer


class Container:
    """Dependency Injection Container with lazy initialization.

    All dependencies are created on first access and cached. The output
    store and the summary cache are shared by every run in the process.
    """

    def __init__(self, config: AppConfig | None = None):
        self._config_override = config

    @cached_property
    def config(self) -> AppConfig:
        if self._config_override:
            return self._config_override
        return load_config()

    @cached_property
    def agent_invoker(self) -> AgentInvokerPort:
        """Agent backend based on config.agents.backend."""
        from panelflow.infrastructure.agents import create_agent_invoker

        return create_agent_invoker(self.config)

    @cached_property
    def output_store(self) -> PanelOutputStore:
        return PanelOutputStore()

    @cached_property
    def summary_cache_store(self) -> SummaryCacheStorePort:
        from panelflow.infrastructure.persistence.summary_cache_store import (
            JsonFileSummaryCacheStore,
        )

        return JsonFileSummaryCacheStore(self.config.persistence.summary_cache_dir)

    @cached_property
    def summarizer(self) -> "MapReduceSummarizer":
        from panelflow.application.summarizer import MapReduceSummarizer

        return MapReduceSummarizer(
            invoker=self.agent_invoker,
            cache_store=self.summary_cache_store,
            settings=self.config.summarizer,
        )

    @cached_property
    def executor(self) -> "PipelineExecutor":
        from panelflow.application.pipeline.executor import PipelineExecutor

        return PipelineExecutor(
            invoker=self.agent_invoker,
            outputs=self.output_store,
            summarizer=self.summarizer,
            min_retry_delay_ms=self.config.pipeline.min_retry_delay_ms,
            max_input_bytes=self.config.pipeline.max_input_bytes,
        )

    @cached_property
    def auto_chain(self) -> "AutoChainTrigger":
        from panelflow.application.pipeline.auto_chain import AutoChainTrigger

        return AutoChainTrigger(
            invoker=self.agent_invoker,
            outputs=self.output_store,
            max_input_bytes=self.config.pipeline.max_input_bytes,
        )

    @cached_property
    def pipeline_use_case(self) -> "PipelineUseCase":
        from panelflow.application.pipeline.use_case import PipelineUseCase

        return PipelineUseCase(executor=self.executor, auto_chain=self.auto_chain)

    async def close(self) -> None:
        """Release network clients of the agent backend, if one was created."""
        invoker = self.__dict__.get("agent_invoker")
        close = getattr(invoker, "close", None)
        if close is not None:
            await close()

    def reset(self) -> None:
        """Reset all cached instances (useful for testing)."""
        for attr in list(self.__dict__.keys()):
            if not attr.startswith("_"):
                delattr(self, attr)


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get or create global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    if _container:
        _container.reset()
    _container = None
