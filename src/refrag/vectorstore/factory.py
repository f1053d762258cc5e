"""Vector store lookup by backend name."""

from __future__ import annotations

from refrag.registry import ComponentRegistry
from refrag.vectorstore.base import VectorStore

_STORES: ComponentRegistry[VectorStore] = ComponentRegistry(
    "vector store",
    {
        "faiss": "refrag.vectorstore.faiss_store:FAISSStore",
        "qdrant": "refrag.vectorstore.qdrant_store:QdrantStore",
    },
    extras={"qdrant": "qdrant"},
)


def get_vector_store(backend: str = "faiss", **kwargs) -> VectorStore:
    """Get a vector store by name.

    Args:
        backend: One of ``faiss``, ``qdrant``.
        **kwargs: Passed to the store constructor (``dimension``, ``path``,
            ``url``, ``collection_name``).

    Raises:
        ConfigurationError: Unknown backend, or its client library is missing.
    """
    return _STORES.create(backend, **kwargs)


def available_stores() -> list[str]:
    return _STORES.names()


def clear_cache() -> None:
    """Drop cached default stores (for testing)."""
    _STORES.clear()
