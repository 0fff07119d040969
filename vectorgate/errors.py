"""
Exceptions raised inside the gateway.

Every one of these ends up in the same place: the handler catches it and
returns {"success": false, "error": <message>} to the caller.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base exception for all vectorgate errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(GatewayError):
    """Raised when a required field is missing or the body is malformed."""


class EmbeddingError(GatewayError):
    """Raised when the embedding service fails or returns something unusable."""

    def __init__(self, backend: str, reason: str):
        self.backend = backend
        self.reason = reason
        super().__init__(f"Embedding backend '{backend}' failed: {reason}")


class VectorIndexError(GatewayError):
    """Raised when an upsert or query against the vector index fails."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Vector index {operation} failed: {reason}")
