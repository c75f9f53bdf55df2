"""TOML configuration loader with env overrides."""

import logging
import os
import tomllib
from pathlib import Path

from panelflow.domain.ports.config import (
    AgentApiConfig,
    AgentsConfig,
    AppConfig,
    FolderConfig,
    OllamaConfig,
    OpenAICompatibleConfig,
    PersistenceConfig,
    PipelineConfig,
    SecurityConfig,
    ServerConfig,
    SummarizerConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"


def _load_toml(path: Path) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _set_int(config: dict, section: str, key: str, env_name: str) -> None:
    raw = os.getenv(env_name)
    if not raw:
        return
    try:
        config.setdefault(section, {})[key] = int(raw)
    except ValueError:
        logger.warning("Invalid %s env value: %r, ignoring", env_name, raw)


def _apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides."""
    if backend := os.getenv("AGENT_BACKEND"):
        config.setdefault("agents", {})["backend"] = backend.strip()
    if url := os.getenv("AGENT_API_URL"):
        config.setdefault("agent_api", {})["base_url"] = url.strip()
    if key := os.getenv("AGENT_API_KEY"):
        config.setdefault("agent_api", {})["api_key"] = key.strip()
    if host := os.getenv("OLLAMA_HOST"):
        config.setdefault("ollama", {})["host"] = host
    if base_url := os.getenv("OPENAI_BASE_URL"):
        config.setdefault("openai_compatible", {})["base_url"] = base_url
    _set_int(config, "server", "port", "PORT")
    if level := os.getenv("LOG_LEVEL"):
        config.setdefault("logging", {})["level"] = level.upper()
    if path := os.getenv("LOG_FILE"):
        config.setdefault("logging", {})["file"] = path.strip()
    if origins := os.getenv("CORS_ORIGINS"):
        config.setdefault("security", {})["cors_origins"] = [o.strip() for o in origins.split(",")]
    _set_int(config, "security", "rate_limit_requests_per_minute", "RATE_LIMIT_PER_MINUTE")
    if cache_dir := os.getenv("SUMMARY_CACHE_DIR"):
        config.setdefault("persistence", {})["summary_cache_dir"] = cache_dir.strip()
    _set_int(config, "summarizer", "concurrency", "SUMMARIZER_CONCURRENCY")
    return config


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = {**base[key], **value}
        else:
            base[key] = value
    return base


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Load configuration from TOML files with env overrides.

    Loads default.toml, then development.toml if exists.
    """
    config_dir = config_dir or DEFAULT_CONFIG_DIR
    config: dict = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = _load_toml(default_path)

    dev_path = config_dir / "development.toml"
    if dev_path.exists():
        config = _merge(config, _load_toml(dev_path))

    config = _apply_env_overrides(config)

    logging_raw = config.get("logging") or {}
    return AppConfig(
        server=ServerConfig(**(config.get("server") or {})),
        agents=AgentsConfig(**(config.get("agents") or {})),
        agent_api=AgentApiConfig(**(config.get("agent_api") or {})),
        ollama=OllamaConfig(**(config.get("ollama") or {})),
        openai_compatible=OpenAICompatibleConfig(**(config.get("openai_compatible") or {})),
        pipeline=PipelineConfig(**(config.get("pipeline") or {})),
        summarizer=SummarizerConfig(**(config.get("summarizer") or {})),
        folder=FolderConfig(**(config.get("folder") or {})),
        persistence=PersistenceConfig(**(config.get("persistence") or {})),
        security=SecurityConfig(**(config.get("security") or {})),
        log_level=logging_raw.get("level", "INFO"),
        log_file=(logging_raw.get("file") or "").strip(),
        log_rotation_max_mb=int(logging_raw.get("log_rotation_max_mb", 5)),
        log_rotation_backups=int(logging_raw.get("log_rotation_backups", 3)),
    )
