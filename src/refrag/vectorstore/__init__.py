"""Vector store backends — FAISS (local) and Qdrant."""

from refrag.vectorstore.base import VectorStore
from refrag.vectorstore.factory import available_stores, get_vector_store
from refrag.vectorstore.schemas import SearchResult, VectorRecord

__all__ = [
    "SearchResult",
    "VectorRecord",
    "VectorStore",
    "available_stores",
    "get_vector_store",
]
