"""
Data models for the insert and query pipelines.
These define the shape of data flowing between the HTTP layer,
the embedding service and the vector index.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from vectorgate.errors import ValidationError


@dataclass
class InputRecord:
    """One (text, metadata) row from an insert request. Lives for one request."""
    text: str
    metadata: str = ""

    @classmethod
    def from_row(cls, row, index: int = 0) -> "InputRecord":
        if not isinstance(row, dict):
            raise ValidationError(f"Row {index} must be an object")
        if "data" not in row or row["data"] is None:
            raise ValidationError(f"Row {index} is missing 'data'")
        metadata = row.get("metadata")
        return cls(text=str(row["data"]), metadata="" if metadata is None else str(metadata))


@dataclass
class VectorRecord:
    """A vector plus its metadata, in the shape the vector index accepts."""
    id: str
    values: list[float]
    text: str = ""
    metadata: str = ""
    namespace: str = ""
    created_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "values": list(self.values),
            "metadata": {
                "text": self.text,
                "metadata": self.metadata,
                "namespace": self.namespace,
                "createdAt": self.created_at,
            },
        }


@dataclass
class Match:
    """A single nearest-neighbour hit, as reported by the index."""
    id: str
    score: float
    metadata: dict | None = field(default=None)

    @classmethod
    def from_dict(cls, data: dict) -> "Match":
        return cls(
            id=str(data.get("id", "")),
            score=float(data.get("score", 0.0)),
            metadata=data.get("metadata"),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "score": self.score, "metadata": self.metadata}


def parse_rows(body) -> list[InputRecord]:
    """Turn a request body (list of {data, metadata} objects) into InputRecords."""
    if not isinstance(body, list):
        raise ValidationError("Request body must be a list of rows")
    return [InputRecord.from_row(row, i) for i, row in enumerate(body)]
