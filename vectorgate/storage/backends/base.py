"""
VectorIndex: abstract base for vector index backends.

All backends implement two primitives:
  upsert   store a batch of VectorRecords
  query    nearest-neighbour search by vector

Embedding logic stays in the gateway (the caller), not here.
Backends are intentionally dumb: they only move vectors around.
"""

from abc import ABC, abstractmethod

from vectorgate.models import Match, VectorRecord


class VectorIndex(ABC):
    """Abstract vector index backend."""

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> dict:
        """Insert or update vectors. Returns whatever the index reports back."""
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        return_metadata: bool = True,
    ) -> list[Match]:
        """Nearest-neighbour search, best match first."""
        ...
