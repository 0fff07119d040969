"""vectorgate: embed, store and query text through a vector index."""

__version__ = "1.0.0"
