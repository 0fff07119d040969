"""
Tests for the insert / query / generate pipelines.
External services are replaced with in-memory fakes.
Run with: pytest tests/test_gateway.py
"""

import itertools

import pytest

from vectorgate.embeddings.base import EmbeddingBackend, EmbeddingResponse
from vectorgate.errors import VectorIndexError
from vectorgate.gateway import Gateway
from vectorgate.models import Match
from vectorgate.storage.backends.base import VectorIndex


class FakeEmbedder(EmbeddingBackend):
    def __init__(self, fail: Exception | None = None, drop: int = 0):
        super().__init__(name="fake", url="http://fake", model="fake-embed")
        self.calls: list[list[str]] = []
        self.fail = fail
        self.drop = drop

    async def run(self, texts):
        self.calls.append(list(texts))
        if self.fail:
            raise self.fail
        data = [[float(i), 1.0, 0.5] for i in range(len(texts) - self.drop)]
        return EmbeddingResponse(shape=[len(data), 3], data=data)


class FakeIndex(VectorIndex):
    def __init__(self, matches=None, fail: Exception | None = None):
        self.upserts = []
        self.queries = []
        self.matches = matches or []
        self.fail = fail

    async def upsert(self, records):
        if self.fail:
            raise self.fail
        self.upserts.append(records)
        return {"mutationId": "mut-1", "count": len(records)}

    async def query(self, vector, top_k, return_metadata=True):
        if self.fail:
            raise self.fail
        self.queries.append((vector, top_k, return_metadata))
        return list(self.matches)


def counter_ids():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def index():
    return FakeIndex()


@pytest.fixture
def gateway(embedder, index):
    return Gateway(
        embedder=embedder,
        index=index,
        id_factory=counter_ids(),
        clock=lambda: "2024-05-01T12:00:00Z",
    )


ROWS = [
    {"data": "This is a story about an orange cloud", "metadata": "title: cloud"},
    {"data": "This is a story about a llama", "metadata": "title: llama"},
    {"data": "This is a story about a hugging emoji", "metadata": "title: emoji"},
]


# ---------------------------------------------------------------------------
# Insert
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", [None, ""])
async def test_insert_requires_user_id(gateway, embedder, index, user_id):
    result = await gateway.insert(ROWS, user_id)
    assert result == {"success": False, "error": "User ID is required"}
    assert embedder.calls == []
    assert index.upserts == []


@pytest.mark.asyncio
async def test_insert_one_record_per_row(gateway, embedder, index):
    result = await gateway.insert(ROWS, "user-42")

    assert result["success"] is True
    assert result["inserted"] == {"mutationId": "mut-1", "count": 3}
    assert embedder.calls == [[r["data"] for r in ROWS]]

    records = index.upserts[0]
    assert len(records) == len(ROWS)
    for row, record in zip(ROWS, records):
        meta = record.to_dict()["metadata"]
        assert meta["text"] == row["data"]
        assert meta["metadata"] == row["metadata"]
        assert meta["namespace"] == "user-42"
        assert meta["createdAt"] == "2024-05-01T12:00:00Z"


@pytest.mark.asyncio
async def test_insert_shares_one_id_across_batch(gateway, index):
    result = await gateway.insert(ROWS, "user-42")
    ids = {r.id for r in index.upserts[0]}
    assert ids == {"id-1"}
    # namespace in the envelope is a separate fresh identifier
    assert result["namespace"] == "id-2"


@pytest.mark.asyncio
async def test_insert_id_per_record(embedder, index):
    gw = Gateway(embedder, index, id_factory=counter_ids(), id_per_record=True)
    result = await gw.insert(ROWS, "user-42")
    assert [r.id for r in index.upserts[0]] == ["id-1", "id-2", "id-3"]
    assert result["namespace"] == "id-4"


@pytest.mark.asyncio
async def test_insert_vectors_follow_input_order(gateway, index):
    await gateway.insert(ROWS, "u")
    assert [r.values[0] for r in index.upserts[0]] == [0.0, 1.0, 2.0]


@pytest.mark.asyncio
async def test_insert_embedding_failure(index):
    gw = Gateway(FakeEmbedder(fail=RuntimeError("model unavailable")), index)
    result = await gw.insert(ROWS, "u")
    assert result == {"success": False, "error": "model unavailable"}
    assert index.upserts == []


@pytest.mark.asyncio
async def test_insert_upsert_failure(embedder):
    gw = Gateway(embedder, FakeIndex(fail=VectorIndexError("upsert", "HTTP 500: boom")))
    result = await gw.insert(ROWS, "u")
    assert result["success"] is False
    assert result["error"] == "Vector index upsert failed: HTTP 500: boom"


@pytest.mark.asyncio
async def test_insert_vector_count_mismatch(index):
    gw = Gateway(FakeEmbedder(drop=1), index)
    result = await gw.insert(ROWS, "u")
    assert result["success"] is False
    assert "expected 3 vectors, got 2" in result["error"]
    assert index.upserts == []


@pytest.mark.asyncio
async def test_insert_malformed_rows(gateway, embedder):
    result = await gateway.insert([{"metadata": "no data"}], "u")
    assert result == {"success": False, "error": "Row 0 is missing 'data'"}
    assert embedder.calls == []

    result = await gateway.insert({"data": "x"}, "u")
    assert result == {"success": False, "error": "Request body must be a list of rows"}


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_embeds_single_element_batch(embedder):
    index = FakeIndex(matches=[Match(id="1", score=0.89, metadata={"text": "orange cloud"})])
    gw = Gateway(embedder, index)
    result = await gw.query("orange cloud")

    assert embedder.calls == [["orange cloud"]]
    vector, top_k, return_metadata = index.queries[0]
    assert vector == [0.0, 1.0, 0.5]
    assert top_k == 3
    assert return_metadata is True
    assert result == {"matches": [{"id": "1", "score": 0.89, "metadata": {"text": "orange cloud"}}]}


@pytest.mark.asyncio
async def test_query_caps_at_top_k_and_keeps_order(embedder):
    matches = [Match(id=str(i), score=1.0 - i / 10) for i in range(6)]
    gw = Gateway(embedder, FakeIndex(matches=matches), top_k=4)
    result = await gw.query("anything")
    assert [m["id"] for m in result["matches"]] == ["0", "1", "2", "3"]
    scores = [m["score"] for m in result["matches"]]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [None, "", "   ", 42])
async def test_query_requires_text(gateway, embedder, text):
    result = await gateway.query(text)
    assert result == {"success": False, "error": "Query is required"}
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_query_embedding_failure(index):
    gw = Gateway(FakeEmbedder(fail=ValueError("bad input")), index)
    assert await gw.query("x") == {"success": False, "error": "bad input"}
    assert index.queries == []


@pytest.mark.asyncio
async def test_query_index_failure(embedder):
    gw = Gateway(embedder, FakeIndex(fail=VectorIndexError("query", "Timeout after 30s")))
    result = await gw.query("x")
    assert result == {"success": False, "error": "Vector index query failed: Timeout after 30s"}


# ---------------------------------------------------------------------------
# Generate / config
# ---------------------------------------------------------------------------

def test_generate_is_fresh_each_time(embedder, index):
    gw = Gateway(embedder, index, id_factory=counter_ids())
    assert gw.generate() == {"success": True, "namespace": "id-1"}
    assert gw.generate() == {"success": True, "namespace": "id-2"}


def test_generate_default_ids_are_uuids(embedder, index):
    import uuid
    gw = Gateway(embedder, index)
    ns = gw.generate()["namespace"]
    assert str(uuid.UUID(ns)) == ns


def test_from_config_builds_backends():
    from vectorgate.embeddings.ollama import OllamaEmbedder
    from vectorgate.storage.backends.vectorize import VectorizeIndex

    cfg = {
        "embedding": {"backend": "ollama", "url": "http://localhost:11434", "model": "nomic-embed-text"},
        "vector_index": {
            "backend": "vectorize",
            "account_id": "acct",
            "api_token": "tok",
            "index_name": "docs",
            "path": "./ignored",
        },
        "query": {"top_k": 5},
        "insert": {"id_per_record": True},
    }
    gw = Gateway.from_config(cfg)
    assert isinstance(gw.embedder, OllamaEmbedder)
    assert isinstance(gw.index, VectorizeIndex)
    assert gw.index.index_name == "docs"
    assert gw.top_k == 5
    assert gw.id_per_record is True


def test_from_config_unknown_backend():
    with pytest.raises(ValueError, match="Unknown embedding backend"):
        Gateway.from_config({"embedding": {"backend": "nope"}})
