"""
ChromaIndex: local ChromaDB implementation of VectorIndex.

Meant for development without a hosted index. All ChromaDB-specific
imports and calls live here.

PersistentClient is not thread-safe, and its calls block, so every
collection operation runs in a worker thread behind a threading.Lock.
"""

import asyncio
import logging
import threading
from pathlib import Path

import chromadb

from vectorgate.errors import VectorIndexError
from vectorgate.models import Match, VectorRecord

from .base import VectorIndex

logger = logging.getLogger(__name__)


class ChromaIndex(VectorIndex):
    """ChromaDB-backed vector index (thread-safe)."""

    def __init__(self, path: str, collection: str = "vectorgate"):
        chroma_path = Path(path)
        chroma_path.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._client = chromadb.PersistentClient(path=str(chroma_path))
        self._collection = self._client.get_or_create_collection(
            name=collection,
            metadata={"hnsw:space": "cosine"},
        )
        logger.info("ChromaIndex initialised (path=%s, collection=%s)", chroma_path, collection)

    def _upsert_sync(self, records: list[VectorRecord]) -> dict:
        # Chroma rejects repeated ids inside one call; last record per id wins.
        latest: dict[str, VectorRecord] = {}
        for record in records:
            latest[record.id] = record
        rows = [r.to_dict() for r in latest.values()]
        with self._lock:
            self._collection.upsert(
                ids=[row["id"] for row in rows],
                embeddings=[row["values"] for row in rows],
                documents=[row["metadata"]["text"] for row in rows],
                metadatas=[row["metadata"] for row in rows],
            )
        return {"count": len(rows), "ids": [row["id"] for row in rows]}

    def _query_sync(self, vector: list[float], top_k: int, return_metadata: bool) -> list[Match]:
        include = ["distances", "metadatas"] if return_metadata else ["distances"]
        with self._lock:
            results = self._collection.query(
                query_embeddings=[list(vector)],
                n_results=top_k,
                include=include,
            )
        ids = results["ids"][0]
        distances = results["distances"][0]
        metadatas = (results.get("metadatas") or [[None] * len(ids)])[0]
        return [
            Match(
                id=ids[i],
                score=round(1.0 - distances[i], 6),
                metadata=metadatas[i] if return_metadata else None,
            )
            for i in range(len(ids))
        ]

    # ------------------------------------------------------------------
    # VectorIndex interface
    # ------------------------------------------------------------------

    async def upsert(self, records: list[VectorRecord]) -> dict:
        try:
            return await asyncio.to_thread(self._upsert_sync, records)
        except Exception as e:
            logger.warning("Chroma upsert failed: %s", e)
            raise VectorIndexError("upsert", str(e)) from e

    async def query(
        self,
        vector: list[float],
        top_k: int,
        return_metadata: bool = True,
    ) -> list[Match]:
        try:
            return await asyncio.to_thread(self._query_sync, vector, top_k, return_metadata)
        except Exception as e:
            logger.warning("Chroma query failed: %s", e)
            raise VectorIndexError("query", str(e)) from e
