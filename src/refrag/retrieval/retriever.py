"""Rule retriever — embed query, delegate nearest-neighbour search to the store."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from refrag.embeddings.base import EmbeddingProvider
from refrag.errors import RetrievalUnavailableError
from refrag.retrieval.schemas import RetrievedChunk
from refrag.vectorstore.base import VectorStore

logger = logging.getLogger(__name__)

DEDUPE_PREFIX_CHARS = 100


def dedupe_chunks(
    chunks: Sequence[RetrievedChunk],
    prefix_chars: int = DEDUPE_PREFIX_CHARS,
) -> list[RetrievedChunk]:
    """Drop chunks whose first ``prefix_chars`` characters were already seen.

    The first occurrence wins and order of first appearance is kept.
    """
    seen: set[str] = set()
    unique: list[RetrievedChunk] = []
    for chunk in chunks:
        key = chunk.chunk[:prefix_chars]
        if key in seen:
            continue
        seen.add(key)
        unique.append(chunk)
    return unique


class RuleRetriever:
    """Orchestrates query embedding → vector store search.

    Ordering and truncation are the store's: results are passed through in
    the order returned and never exceed ``k``.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        max_workers: int = 4,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.max_workers = max_workers

    def search(self, query: str, k: int = 5) -> list[RetrievedChunk]:
        """Return up to ``k`` rule chunks most similar to ``query``.

        Args:
            query: Free-text query.
            k: Maximum number of results.

        Returns:
            Chunks sorted by similarity, highest first. Empty when the store
            has no matches, the query is blank, or ``k <= 0``.

        Raises:
            RetrievalUnavailableError: If embedding or search fails.
        """
        if k <= 0 or not query.strip():
            return []

        try:
            query_embedding = self.embedding_provider.embed_query(query)
            raw_results = self.vector_store.search(query_embedding, top_k=k)
        except RetrievalUnavailableError:
            raise
        except Exception as exc:
            raise RetrievalUnavailableError(f"Rule search failed: {exc}") from exc

        results = [RetrievedChunk(chunk=r.text, similarity=r.score) for r in raw_results[:k]]
        logger.info("Retrieved %d rule chunks (k=%d)", len(results), k)
        return results

    def search_many(self, queries: Sequence[str], k: int = 5) -> list[RetrievedChunk]:
        """Search several independent queries concurrently and merge the hits.

        Results are concatenated in query order, then deduplicated on their
        leading characters. All searches must succeed.

        Raises:
            RetrievalUnavailableError: If any of the searches fails.
        """
        if not queries:
            return []

        workers = max(1, min(self.max_workers, len(queries)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.search, q, k) for q in queries]
            batches = [f.result() for f in futures]

        merged = [chunk for batch in batches for chunk in batch]
        unique = dedupe_chunks(merged)
        logger.info(
            "Multi-query search: %d queries, %d hits, %d unique",
            len(queries), len(merged), len(unique),
        )
        return unique
