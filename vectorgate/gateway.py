"""
Gateway: the core of vectorgate.
Shuttles records between the HTTP caller, the embedding service and the
vector index. Holds no per-request state.

Insert:  rows -> embed(texts) -> VectorRecords -> index.upsert
Query:   text -> embed([text]) -> index.query(topK, metadata)

Every failure is reported back as {"success": false, "error": ...};
nothing raised by a backend escapes a handler.
"""

import logging
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from vectorgate.embeddings import EmbeddingBackend, make_embedder
from vectorgate.errors import EmbeddingError, ValidationError
from vectorgate.models import VectorRecord, parse_rows
from vectorgate.storage.backends import VectorIndex, make_index

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3


def new_id() -> str:
    return str(uuid4())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _failure(error: Exception | str) -> dict:
    message = getattr(error, "message", None) or str(error)
    return {"success": False, "error": message}


class Gateway:
    """Insert and query pipelines over an embedder and a vector index."""

    def __init__(
        self,
        embedder: EmbeddingBackend,
        index: VectorIndex,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], str] = utc_now,
        top_k: int = DEFAULT_TOP_K,
        id_per_record: bool = False,
    ):
        self.embedder = embedder
        self.index = index
        self.id_factory = id_factory
        self.clock = clock
        self.top_k = top_k
        self.id_per_record = id_per_record

    @classmethod
    def from_config(cls, cfg: dict) -> "Gateway":
        """Build the embedder and index described by config.yaml."""
        embed_cfg = dict(cfg.get("embedding", {}))
        embed_type = embed_cfg.pop("backend", "workers_ai")
        index_cfg = dict(cfg.get("vector_index", {}))
        index_type = index_cfg.pop("backend", "vectorize")

        embed_keys = ("url", "model", "timeout")
        if embed_type != "ollama":
            embed_keys += ("account_id", "api_token")
        embed_kwargs = {k: embed_cfg[k] for k in embed_keys if k in embed_cfg}

        if index_type == "chromadb":
            index_kwargs = {
                "path": index_cfg.get("path", "./data/chroma"),
                "collection": index_cfg.get("collection", "vectorgate"),
            }
        else:
            index_kwargs = {
                k: index_cfg[k]
                for k in ("account_id", "index_name", "api_token", "url", "timeout")
                if k in index_cfg
            }

        return cls(
            embedder=make_embedder(embed_type, **embed_kwargs),
            index=make_index(index_type, **index_kwargs),
            top_k=int(cfg.get("query", {}).get("top_k", DEFAULT_TOP_K)),
            id_per_record=bool(cfg.get("insert", {}).get("id_per_record", False)),
        )

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def build_records(
        self,
        texts: list[str],
        metadata: list[str],
        vectors: list[list[float]],
        namespace: str,
    ) -> list[VectorRecord]:
        """Pair each vector with its source row. One shared id unless id_per_record."""
        if len(vectors) != len(texts):
            raise EmbeddingError(
                self.embedder.name,
                f"expected {len(texts)} vectors, got {len(vectors)}",
            )
        batch_id = None if self.id_per_record else self.id_factory()
        records = []
        for idx, values in enumerate(vectors):
            records.append(VectorRecord(
                id=self.id_factory() if self.id_per_record else batch_id,
                values=values,
                text=texts[idx],
                metadata=metadata[idx],
                namespace=namespace,
                created_at=self.clock(),
            ))
        return records

    async def insert(self, rows, user_id: str | None) -> dict:
        if not user_id:
            return _failure(ValidationError("User ID is required"))

        try:
            inputs = parse_rows(rows)
            texts = [r.text for r in inputs]
            metadata = [r.metadata for r in inputs]

            vectors = await self.embedder.embed(texts)
            records = self.build_records(texts, metadata, vectors, namespace=str(user_id))
            inserted = await self.index.upsert(records)
        except Exception as e:
            logger.warning("insert failed (user=%s): %s", user_id, e)
            return _failure(e)

        logger.debug("Inserted %d vectors for %s", len(records), user_id)
        return {
            "success": True,
            "namespace": self.id_factory(),
            "inserted": inserted,
        }

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def query(self, text: str | None) -> dict:
        try:
            if not isinstance(text, str) or not text.strip():
                raise ValidationError("Query is required")
            vectors = await self.embedder.embed([text])
            if not vectors:
                raise EmbeddingError(self.embedder.name, "no vector returned for query")
            matches = await self.index.query(vectors[0], top_k=self.top_k, return_metadata=True)
        except Exception as e:
            logger.warning("query failed: %s", e)
            return _failure(e)

        return {"matches": [m.to_dict() for m in matches[:self.top_k]]}

    # ------------------------------------------------------------------
    # Generate
    # ------------------------------------------------------------------

    def generate(self) -> dict:
        return {"success": True, "namespace": self.id_factory()}
