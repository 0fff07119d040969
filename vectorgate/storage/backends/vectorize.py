"""
VectorizeIndex: Cloudflare Vectorize (v2) over its REST API.

    POST {url}/accounts/{account_id}/vectorize/v2/indexes/{index}/upsert
         body: NDJSON, one {"id", "values", "metadata"} per line
    POST {url}/accounts/{account_id}/vectorize/v2/indexes/{index}/query
         body: {"vector", "topK", "returnValues", "returnMetadata"}

Both reply with the usual Cloudflare envelope:
    {"success": bool, "errors": [...], "result": {...}}
"""

import json
import logging

import httpx

from vectorgate.errors import VectorIndexError
from vectorgate.models import Match, VectorRecord

from .base import VectorIndex

logger = logging.getLogger(__name__)


class VectorizeIndex(VectorIndex):
    """Vectorize-backed vector index."""

    def __init__(
        self,
        account_id: str,
        index_name: str,
        api_token: str = "",
        url: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 30.0,
    ):
        self.account_id = account_id
        self.index_name = index_name
        self.api_token = api_token
        self.url = url.rstrip("/")
        self.timeout = timeout
        logger.info("VectorizeIndex initialised (index=%s)", index_name)

    @property
    def base_url(self) -> str:
        return f"{self.url}/accounts/{self.account_id}/vectorize/v2/indexes/{self.index_name}"

    def _headers(self, content_type: str = "application/json") -> dict:
        headers = {"Content-Type": content_type}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _post(self, operation: str, **kwargs) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(f"{self.base_url}/{operation}", **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Vectorize %s timed out (index=%s)", operation, self.index_name)
            raise VectorIndexError(operation, f"Timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.warning("Vectorize %s failed: %s", operation, e)
            raise VectorIndexError(operation, str(e)) from e

        if resp.status_code >= 400:
            raise VectorIndexError(operation, f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            body = resp.json()
        except ValueError as e:
            raise VectorIndexError(operation, f"non-JSON response: {resp.text[:200]}") from e

        if not body.get("success", True):
            errors = body.get("errors") or []
            reason = "; ".join(str(err.get("message", err)) for err in errors) or "request rejected"
            raise VectorIndexError(operation, reason)
        return body.get("result") or {}

    # ------------------------------------------------------------------
    # VectorIndex interface
    # ------------------------------------------------------------------

    async def upsert(self, records: list[VectorRecord]) -> dict:
        payload = "\n".join(json.dumps(r.to_dict()) for r in records)
        result = await self._post(
            "upsert",
            content=payload.encode("utf-8"),
            headers=self._headers("application/x-ndjson"),
        )
        logger.debug("Vectorize upserted %d vectors: %s", len(records), result)
        return result

    async def query(
        self,
        vector: list[float],
        top_k: int,
        return_metadata: bool = True,
    ) -> list[Match]:
        result = await self._post(
            "query",
            json={
                "vector": list(vector),
                "topK": top_k,
                "returnValues": False,
                "returnMetadata": "all" if return_metadata else "none",
            },
            headers=self._headers(),
        )
        return [Match.from_dict(m) for m in result.get("matches", [])]
