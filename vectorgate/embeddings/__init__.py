"""
Embedding backend factory.

Usage:
    from vectorgate.embeddings import make_embedder
    embedder = make_embedder("workers_ai", account_id="...", api_token="...")

Adding a new embedder:
    1. Create vectorgate/embeddings/<name>.py implementing EmbeddingBackend.
    2. Add an entry to _REGISTRY below.
    3. Set  embedding.backend: <name>  in config.yaml.
"""

from .base import EmbeddingBackend, EmbeddingResponse

_REGISTRY: dict[str, type[EmbeddingBackend]] = {}


def _register():
    global _REGISTRY
    if _REGISTRY:
        return
    from .ollama import OllamaEmbedder
    from .workers_ai import WorkersAIEmbedder
    _REGISTRY["workers_ai"] = WorkersAIEmbedder
    _REGISTRY["ollama"] = OllamaEmbedder


def make_embedder(backend_type: str, **kwargs) -> EmbeddingBackend:
    """
    Instantiate an embedding backend by name.

    Args:
        backend_type: Registry key (e.g. "workers_ai").
        **kwargs:     Passed directly to the backend constructor.

    Raises:
        ValueError: If the backend type is not registered.
    """
    _register()
    cls = _REGISTRY.get(backend_type)
    if cls is None:
        available = ", ".join(_REGISTRY.keys())
        raise ValueError(
            f"Unknown embedding backend: '{backend_type}'. "
            f"Available: {available}"
        )
    return cls(**kwargs)


__all__ = ["EmbeddingBackend", "EmbeddingResponse", "make_embedder"]
