"""Qdrant vector store — hosted or local rule index.

Requires the ``qdrant`` extra. Supports Qdrant Cloud, a local path, and
an in-memory instance for tests.
"""

from __future__ import annotations

import logging

from refrag.vectorstore.base import VectorStore
from refrag.vectorstore.schemas import (
    SearchResult,
    VectorRecord,
    metadata_to_payload,
    payload_to_metadata,
)

logger = logging.getLogger(__name__)


class QdrantStore(VectorStore):
    """Qdrant-backed vector store."""

    def __init__(
        self,
        collection_name: str = "rules_embeddings",
        dimension: int = 1536,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
    ):
        from qdrant_client import QdrantClient, models

        self._models = models
        self._collection_name = collection_name
        self._dimension = dimension

        if url:
            self._client = QdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = QdrantClient(path=path)
        else:
            self._client = QdrantClient(":memory:")

        if not self._client.collection_exists(collection_name):
            self._create_collection()
            logger.info("Created Qdrant collection '%s' (dim=%d)", collection_name, dimension)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        points = []
        for record in records:
            payload = metadata_to_payload(record.metadata)
            payload["text"] = record.text
            points.append(self._models.PointStruct(
                id=record.id,
                vector=record.embedding,
                payload=payload,
            ))

        self._client.upsert(collection_name=self._collection_name, points=points)
        logger.info("QdrantStore added %d records", len(records))
        return len(records)

    def search(self, query_embedding: list[float], top_k: int = 5) -> list[SearchResult]:
        if top_k <= 0:
            return []

        response = self._client.query_points(
            collection_name=self._collection_name,
            query=query_embedding,
            limit=top_k,
        )

        results: list[SearchResult] = []
        for point in response.points:
            payload = point.payload or {}
            results.append(SearchResult(
                id=str(point.id),
                text=payload.get("text", ""),
                score=point.score if point.score is not None else 0.0,
                metadata=payload_to_metadata(payload),
            ))
        return results

    def count(self) -> int:
        return self._client.count(collection_name=self._collection_name, exact=True).count

    def delete(self, ids: list[str]) -> int:
        if not ids:
            return 0
        self._client.delete(
            collection_name=self._collection_name,
            points_selector=self._models.PointIdsList(points=ids),
        )
        return len(ids)

    def clear(self) -> None:
        self._client.delete_collection(self._collection_name)
        self._create_collection()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create_collection(self) -> None:
        self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=self._models.VectorParams(
                size=self._dimension,
                distance=self._models.Distance.COSINE,
            ),
        )
