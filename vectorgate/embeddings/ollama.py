"""
Ollama embedder: local embeddings via Ollama's /api/embed endpoint.
Handy for development when no hosted inference account is available.
"""

from __future__ import annotations

import logging

import httpx

from vectorgate.embeddings.base import EmbeddingBackend, EmbeddingResponse
from vectorgate.errors import EmbeddingError

logger = logging.getLogger(__name__)


class OllamaEmbedder(EmbeddingBackend):
    """Embedder backed by a local Ollama instance."""

    def __init__(
        self,
        url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
        name: str = "ollama",
    ):
        super().__init__(name=name, url=url, model=model, timeout=timeout)

    async def run(self, texts: list[str]) -> EmbeddingResponse:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    f"{self.url}/api/embed",
                    json={"model": self.model, "input": texts},
                )
        except httpx.TimeoutException as e:
            logger.warning("Ollama embedder '%s' timed out", self.name)
            raise EmbeddingError(self.name, f"Timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning("Ollama embedder '%s' failed: %s", self.name, e)
            raise EmbeddingError(self.name, str(e)) from e

        if resp.status_code == 404:
            raise EmbeddingError(
                self.name,
                f"model '{self.model}' not found, run: ollama pull {self.model}",
            )
        if resp.status_code >= 400:
            raise EmbeddingError(self.name, f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as e:
            raise EmbeddingError(
                self.name, f"non-JSON response: {resp.text[:200]}"
            ) from e

        embeddings = data.get("embeddings")
        if not embeddings or not embeddings[0]:
            raise EmbeddingError(
                self.name,
                f"model '{self.model}' returned an empty embeddings array",
            )
        return EmbeddingResponse(shape=[len(embeddings), len(embeddings[0])], data=embeddings)
