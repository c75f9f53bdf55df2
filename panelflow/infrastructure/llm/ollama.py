"""Ollama adapter - implements LLMPort."""

import logging

import httpx
from ollama import AsyncClient

from panelflow.domain.ports.config import OllamaConfig
from panelflow.domain.ports.llm import LLMMessage, LLMResponse

logger = logging.getLogger(__name__)

# Fail fast when the host is down so startup is not blocked
DEFAULT_CONNECT_TIMEOUT = 5.0


class OllamaAdapter:
    """Ollama implementation of LLMPort."""

    def __init__(self, config: OllamaConfig, client: AsyncClient | None = None) -> None:
        self._config = config
        read_timeout = float(config.timeout) if config.timeout else 120.0
        timeout = httpx.Timeout(
            connect=DEFAULT_CONNECT_TIMEOUT,
            read=read_timeout,
            write=read_timeout,
            pool=30.0,
        )
        self._client = client or AsyncClient(host=config.host, timeout=timeout)

    def _ollama_options(self, temperature: float) -> dict:
        opts: dict = {"temperature": temperature}
        if self._config.num_ctx is not None:
            opts["num_ctx"] = self._config.num_ctx
        return opts

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate a single response. Errors (ollama.ResponseError etc.) propagate."""
        model = model or "llama2"
        response = await self._client.chat(
            model=model,
            messages=[{"role": m.role, "content": m.content} for m in messages],
            options=self._ollama_options(temperature),
        )
        content = response.message.content if response.message else ""
        return LLMResponse(content=content or "", model=response.model or model, done=True)

    async def is_available(self) -> bool:
        """Check if Ollama server is available."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._config.host.rstrip('/')}/api/tags")
                return resp.status_code == 200
        except httpx.HTTPError as e:
            logger.debug("Ollama availability check failed: %s", e)
            return False
