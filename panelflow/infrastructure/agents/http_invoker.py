"""HTTP agent invoker - talks to the agent backend REST API."""

import logging

import httpx

from panelflow.domain.entities.agent import AgentExecution, OrchestrationRun
from panelflow.domain.errors import AgentCallError, RateLimitError
from panelflow.domain.ports.config import AgentApiConfig

logger = logging.getLogger(__name__)


class HttpAgentInvoker:
    """Implements AgentInvokerPort via POST /api/execute and /api/orchestrate."""

    def __init__(
        self,
        config: AgentApiConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json"}
        if config.api_key:
            self._headers["Authorization"] = f"Bearer {config.api_key}"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                headers=self._headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, body: dict) -> dict:
        try:
            resp = await self._get_client().post(f"{self._base_url}{path}", json=body)
        except httpx.HTTPError as e:
            raise AgentCallError(f"Agent API unreachable: {e}") from e

        if resp.status_code == 429:
            raise RateLimitError(f"429 Too Many Requests: {resp.text[:200]}")
        if resp.status_code >= 400:
            logger.error("Agent API error %s on %s: %s", resp.status_code, path, resp.text[:500])
            raise AgentCallError(f"Agent API error {resp.status_code}: {resp.text[:200]}")
        try:
            return resp.json()
        except ValueError as e:
            raise AgentCallError(f"Agent API returned invalid JSON: {e}") from e

    async def invoke(self, agent_id: str, prompt: str) -> AgentExecution:
        data = await self._post("/api/execute", {"agent_id": agent_id, "input": prompt})
        return AgentExecution.model_validate(data)

    async def orchestrate(self, agent_id: str, prompt: str, mode: str) -> OrchestrationRun:
        data = await self._post(
            "/api/orchestrate",
            {"agent_id": agent_id, "input": prompt, "mode": mode},
        )
        return OrchestrationRun.model_validate(data)

    async def is_available(self) -> bool:
        try:
            resp = await self._get_client().get(f"{self._base_url}/health", timeout=5.0)
            return resp.status_code == 200
        except httpx.HTTPError as e:
            logger.debug("Agent API availability check failed: %s", e)
            return False
