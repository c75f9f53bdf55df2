"""Config Port - interface for configuration access."""

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class AgentProfile(BaseModel):
    """Agent identity resolved locally when agents run on an LLM provider."""

    model: str = "qwen2.5-coder:7b"
    system_prompt: str = ""
    temperature: float = 0.7


class AgentsConfig(BaseModel):
    """Agent backend selection."""

    backend: str = "http"  # "http" | "ollama" | "lm_studio"
    # Only used by LLM backends. Keys are agent ids referenced by panels.
    profiles: dict[str, AgentProfile] = {}

    model_config = ConfigDict(extra="ignore")


class AgentApiConfig(BaseModel):
    """Agent backend REST API (execute/orchestrate endpoints)."""

    base_url: str = "http://localhost:3000"
    api_key: str = ""
    timeout: int = 300


class OllamaConfig(BaseModel):
    """Ollama connection configuration."""

    host: str = "http://localhost:11434"
    timeout: int = 120
    num_ctx: int | None = None  # Context window. None = model default.


class OpenAICompatibleConfig(BaseModel):
    """LM Studio, vLLM, LocalAI - OpenAI-compatible API."""

    base_url: str = "http://localhost:1234/v1"
    api_key: str = ""
    timeout: int = 120
    max_tokens: int | None = None


class PipelineConfig(BaseModel):
    """Pipeline executor limits."""

    max_input_bytes: int = Field(95_000, gt=0)  # agent call input budget
    min_retry_delay_ms: int = Field(1000, ge=0)


class SummarizerConfig(BaseModel):
    """Map-reduce summarizer limits (tuned for ~15 requests/minute providers)."""

    chunk_bytes: int = Field(10_000, gt=0)
    concurrency: int = Field(3, ge=1)
    batch_delay_ms: int = Field(5_000, ge=0)
    reduce_batch_size: int = Field(30, ge=2)
    max_rate_limit_retries: int = Field(5, ge=0)
    backoff_step_seconds: float = Field(15.0, ge=0)
    backoff_max_seconds: float = Field(90.0, ge=0)


class FolderConfig(BaseModel):
    """Folder panel reader limits."""

    max_depth: int = 5
    max_files: int = 500
    max_file_bytes: int = 50 * 1024
    max_total_bytes: int = 80 * 1024
    exclude_patterns: list[str] = [
        "node_modules",
        ".git",
        ".svn",
        "__pycache__",
        ".DS_Store",
        "Thumbs.db",
        "dist",
        "build",
        "target",
    ]


class PersistenceConfig(BaseModel):
    """Persistence settings."""

    summary_cache_dir: str = "output/summary_cache"


class SecurityConfig(BaseModel):
    """Security settings."""

    rate_limit_requests_per_minute: int = 100
    cors_origins: list[str] = ["http://localhost:5173"]


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Full application configuration."""

    server: ServerConfig = ServerConfig()
    agents: AgentsConfig = AgentsConfig()
    agent_api: AgentApiConfig = AgentApiConfig()
    ollama: OllamaConfig = OllamaConfig()
    openai_compatible: OpenAICompatibleConfig = OpenAICompatibleConfig()
    pipeline: PipelineConfig = PipelineConfig()
    summarizer: SummarizerConfig = SummarizerConfig()
    folder: FolderConfig = FolderConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    security: SecurityConfig = SecurityConfig()
    log_level: str = "INFO"
    # Log file: path relative to cwd or absolute. Empty = only stdout.
    log_file: str = ""
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3


class ConfigPort(Protocol):
    """Interface for configuration providers."""

    def get_config(self) -> AppConfig:
        """Get the full application configuration."""
        ...
