"""Tests for TOML config loader."""

from pathlib import Path

import pytest

from panelflow.infrastructure.config.toml_loader import _apply_env_overrides, load_config

ENV_VARS = (
    "AGENT_BACKEND",
    "AGENT_API_URL",
    "AGENT_API_KEY",
    "OLLAMA_HOST",
    "OPENAI_BASE_URL",
    "PORT",
    "LOG_LEVEL",
    "LOG_FILE",
    "CORS_ORIGINS",
    "RATE_LIMIT_PER_MINUTE",
    "SUMMARY_CACHE_DIR",
    "SUMMARIZER_CONCURRENCY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_config(self):
        """Shipped default.toml matches the engine limits."""
        config = load_config()

        assert config.agents.backend == "http"
        assert config.pipeline.max_input_bytes == 95_000
        assert config.pipeline.min_retry_delay_ms == 1000
        assert config.summarizer.chunk_bytes == 10_000
        assert config.summarizer.concurrency == 3
        assert config.summarizer.reduce_batch_size == 30
        assert config.agents.profiles["summarizer"].temperature == 0.3

    def test_loads_from_custom_dir(self, tmp_path: Path):
        (tmp_path / "default.toml").write_text(
            """
[agents]
backend = "ollama"

[server]
port = 9999

[logging]
level = "DEBUG"
file = "logs/app.log"
"""
        )
        config = load_config(tmp_path)

        assert config.agents.backend == "ollama"
        assert config.server.port == 9999
        assert config.log_level == "DEBUG"
        assert config.log_file == "logs/app.log"

    def test_merges_development_config(self, tmp_path: Path):
        """development.toml overrides keys of default.toml section by section."""
        (tmp_path / "default.toml").write_text(
            """
[summarizer]
concurrency = 3
batch_delay_ms = 5000
"""
        )
        (tmp_path / "development.toml").write_text(
            """
[summarizer]
concurrency = 1
"""
        )
        config = load_config(tmp_path)

        assert config.summarizer.concurrency == 1
        assert config.summarizer.batch_delay_ms == 5000

    def test_handles_missing_files(self, tmp_path: Path):
        config = load_config(tmp_path)

        assert config.agents.backend == "http"
        assert config.persistence.summary_cache_dir == "output/summary_cache"
        assert config.log_file == ""


class TestApplyEnvOverrides:
    """Tests for _apply_env_overrides function."""

    def test_agent_backend_overrides(self, monkeypatch):
        monkeypatch.setenv("AGENT_BACKEND", " lm_studio ")
        monkeypatch.setenv("AGENT_API_URL", "http://agents:3000")
        monkeypatch.setenv("AGENT_API_KEY", "secret")

        config = _apply_env_overrides({})

        assert config["agents"]["backend"] == "lm_studio"
        assert config["agent_api"] == {"base_url": "http://agents:3000", "api_key": "secret"}

    def test_cors_origins_split(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        config = _apply_env_overrides({})
        assert config["security"]["cors_origins"] == ["http://a.test", "http://b.test"]

    def test_log_level_uppercased(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert _apply_env_overrides({})["logging"]["level"] == "DEBUG"

    def test_integer_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("SUMMARIZER_CONCURRENCY", "1")
        monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "10")

        config = _apply_env_overrides({"server": {"host": "127.0.0.1"}})

        assert config["server"] == {"host": "127.0.0.1", "port": 9000}
        assert config["summarizer"]["concurrency"] == 1
        assert config["security"]["rate_limit_requests_per_minute"] == 10

    def test_invalid_integer_ignored(self, monkeypatch):
        monkeypatch.setenv("PORT", "eighty")
        config = _apply_env_overrides({"server": {"port": 8000}})
        assert config["server"]["port"] == 8000

    def test_env_wins_over_files(self, monkeypatch, tmp_path: Path):
        (tmp_path / "default.toml").write_text('[persistence]\nsummary_cache_dir = "a"\n')
        monkeypatch.setenv("SUMMARY_CACHE_DIR", "/var/cache/panelflow")

        config = load_config(tmp_path)

        assert config.persistence.summary_cache_dir == "/var/cache/panelflow"
