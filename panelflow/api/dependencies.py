"""FastAPI dependencies - resolved from the DI container."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from panelflow.api.container import get_container
from panelflow.application.pipeline.output_store import PanelOutputStore
from panelflow.application.pipeline.use_case import PipelineUseCase
from panelflow.application.summarizer import MapReduceSummarizer
from panelflow.domain.ports.config import AppConfig
from panelflow.domain.ports.summary_cache import SummaryCacheStorePort

limiter = Limiter(key_func=get_remote_address)


def get_config() -> AppConfig:
    return get_container().config


def get_pipeline_use_case() -> PipelineUseCase:
    return get_container().pipeline_use_case


def get_output_store() -> PanelOutputStore:
    return get_container().output_store


def get_summarizer() -> MapReduceSummarizer:
    return get_container().summarizer


def get_summary_cache_store() -> SummaryCacheStorePort:
    return get_container().summary_cache_store
