"""
Vector index factory.

Usage:
    from vectorgate.storage.backends import make_index
    index = make_index("vectorize", account_id="...", index_name="docs")

Adding a new index:
    1. Create vectorgate/storage/backends/<name>.py implementing VectorIndex.
    2. Add an entry to _REGISTRY below.
    3. Set  vector_index.backend: <name>  in config.yaml.
    No other changes required.
"""

from .base import VectorIndex

_REGISTRY: dict[str, type[VectorIndex]] = {}


def _register():
    """Lazy-import backends to avoid hard dependencies at import time."""
    global _REGISTRY
    if _REGISTRY:
        return
    from .chroma import ChromaIndex
    from .vectorize import VectorizeIndex
    _REGISTRY["vectorize"] = VectorizeIndex
    _REGISTRY["chromadb"] = ChromaIndex


def make_index(backend_type: str, **kwargs) -> VectorIndex:
    """
    Instantiate a vector index by name.

    Args:
        backend_type: Registry key (e.g. "vectorize").
        **kwargs:     Passed directly to the backend constructor.

    Raises:
        ValueError: If the backend type is not registered.
    """
    _register()
    cls = _REGISTRY.get(backend_type)
    if cls is None:
        available = ", ".join(_REGISTRY.keys())
        raise ValueError(
            f"Unknown vector index backend: '{backend_type}'. "
            f"Available: {available}"
        )
    return cls(**kwargs)


__all__ = ["VectorIndex", "make_index"]
