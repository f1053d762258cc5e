"""Retrieval — query embedding + nearest-neighbour rule search."""

from refrag.retrieval.retriever import RuleRetriever, dedupe_chunks
from refrag.retrieval.schemas import RetrievedChunk

__all__ = ["RetrievedChunk", "RuleRetriever", "dedupe_chunks"]
