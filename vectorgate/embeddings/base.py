"""
Embedding backend abstraction.
All embedders implement this interface so the gateway can treat them uniformly.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingResponse:
    """Reply from an inference service: one vector per input, in input order."""
    shape: list[int] = field(default_factory=list)
    data: list[list[float]] = field(default_factory=list)


class EmbeddingBackend(abc.ABC):
    """
    Abstract base for embedding services.
    Takes a batch of strings, returns a batch of fixed-dimension vectors.
    """

    def __init__(self, name: str, url: str, model: str, timeout: float = 30.0):
        self.name = name
        self.url = url.rstrip("/")
        self.model = model
        self.timeout = timeout

    @abc.abstractmethod
    async def run(self, texts: list[str]) -> EmbeddingResponse:
        """Call the service once for the whole batch."""
        ...

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts. Order of the result matches the input."""
        resp = await self.run(texts)
        return resp.data

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} model={self.model!r}>"
