"""
Workers AI embedder: Cloudflare's hosted inference via the REST API.

    POST {url}/accounts/{account_id}/ai/run/{model}
    {"text": ["...", "..."]}

    -> {"success": true, "result": {"shape": [n, 768], "data": [[...], ...]}}
"""

from __future__ import annotations

import logging

import httpx

from vectorgate.embeddings.base import EmbeddingBackend, EmbeddingResponse
from vectorgate.errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "@cf/baai/bge-base-en-v1.5"


class WorkersAIEmbedder(EmbeddingBackend):
    """Embedder backed by Workers AI."""

    def __init__(
        self,
        account_id: str,
        api_token: str = "",
        url: str = "https://api.cloudflare.com/client/v4",
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        name: str = "workers_ai",
    ):
        super().__init__(name=name, url=url, model=model or DEFAULT_MODEL, timeout=timeout)
        self.account_id = account_id
        self.api_token = api_token

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    @property
    def endpoint(self) -> str:
        return f"{self.url}/accounts/{self.account_id}/ai/run/{self.model}"

    async def run(self, texts: list[str]) -> EmbeddingResponse:
        if not self.account_id:
            raise EmbeddingError(self.name, "no account_id configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.endpoint,
                    json={"text": texts},
                    headers=self._headers(),
                )
        except httpx.TimeoutException as e:
            logger.warning("Workers AI embedder '%s' timed out", self.name)
            raise EmbeddingError(self.name, f"Timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning("Workers AI embedder '%s' failed: %s", self.name, e)
            raise EmbeddingError(self.name, str(e)) from e

        if resp.status_code >= 400:
            raise EmbeddingError(self.name, f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            body = resp.json()
        except ValueError as e:
            raise EmbeddingError(
                self.name, f"non-JSON response: {resp.text[:200]}"
            ) from e

        if not body.get("success", True):
            errors = body.get("errors") or []
            reason = "; ".join(str(err.get("message", err)) for err in errors) or "request rejected"
            raise EmbeddingError(self.name, reason)

        result = body.get("result") or {}
        data = result.get("data")
        if not data:
            raise EmbeddingError(self.name, f"model '{self.model}' returned no vectors")

        logger.debug("Workers AI embedded %d texts (shape=%s)", len(texts), result.get("shape"))
        return EmbeddingResponse(shape=result.get("shape", []), data=data)
