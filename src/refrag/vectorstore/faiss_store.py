"""FAISS vector store — local, zero infrastructure.

Cosine similarity via inner product over L2-normalized vectors, with a
parallel dict holding chunk text and metadata.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from refrag.vectorstore.base import VectorStore
from refrag.vectorstore.schemas import (
    SearchResult,
    VectorRecord,
    metadata_to_payload,
    payload_to_metadata,
)

logger = logging.getLogger(__name__)


class FAISSStore(VectorStore):
    """FAISS-backed vector store."""

    def __init__(self, dimension: int = 1536, path: str | None = None):
        import faiss

        self._faiss = faiss
        self._dimension = dimension
        self._index = faiss.IndexFlatIP(dimension)
        self._records: dict[int, dict] = {}  # int position -> {id, text, metadata}

        if path and (Path(path) / "index.faiss").exists():
            self.load(path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        vectors = np.array([r.embedding for r in records], dtype=np.float32)
        self._faiss.normalize_L2(vectors)

        start = self._index.ntotal
        self._index.add(vectors)
        for i, record in enumerate(records):
            self._records[start + i] = {
                "id": record.id,
                "text": record.text,
                "metadata": record.metadata,
            }

        logger.info("FAISSStore added %d records (total: %d)", len(records), self.count())
        return len(records)

    def search(self, query_embedding: list[float], top_k: int = 5) -> list[SearchResult]:
        if self._index.ntotal == 0 or top_k <= 0:
            return []

        query_vec = np.array([query_embedding], dtype=np.float32)
        self._faiss.normalize_L2(query_vec)

        scores, indices = self._index.search(query_vec, min(top_k, self._index.ntotal))

        results: list[SearchResult] = []
        for score, idx in zip(scores[0], indices[0], strict=True):
            if idx == -1:
                continue
            record = self._records.get(int(idx))
            if record is None:
                continue
            results.append(SearchResult(
                id=record["id"],
                text=record["text"],
                score=float(score),
                metadata=record["metadata"],
            ))

        return results

    def count(self) -> int:
        return self._index.ntotal

    def delete(self, ids: list[str]) -> int:
        id_set = set(ids)
        keep = [pos for pos, rec in sorted(self._records.items()) if rec["id"] not in id_set]
        deleted = len(self._records) - len(keep)
        if deleted == 0:
            return 0

        # IndexFlatIP has no native removal by external id; rebuild from stored vectors.
        vectors = self._index.reconstruct_n(0, self._index.ntotal)
        kept_records = [self._records[pos] for pos in keep]

        self._index = self._faiss.IndexFlatIP(self._dimension)
        if keep:
            self._index.add(np.ascontiguousarray(vectors[keep], dtype=np.float32))
        self._records = dict(enumerate(kept_records))

        logger.info("FAISSStore deleted %d records (total: %d)", deleted, self.count())
        return deleted

    def clear(self) -> None:
        self._index = self._faiss.IndexFlatIP(self._dimension)
        self._records.clear()

    def save(self, path: str) -> None:
        """Save FAISS index and chunk metadata to disk."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        self._faiss.write_index(self._index, str(p / "index.faiss"))

        serializable = {
            str(pos): {
                "id": rec["id"],
                "text": rec["text"],
                "metadata": metadata_to_payload(rec["metadata"]),
            }
            for pos, rec in self._records.items()
        }
        with open(p / "metadata.json", "w", encoding="utf-8") as fh:
            json.dump({"dimension": self._dimension, "records": serializable}, fh)

        logger.info("FAISSStore saved to %s (%d records)", path, self.count())

    def load(self, path: str) -> None:
        """Load FAISS index and chunk metadata from disk."""
        p = Path(path)

        self._index = self._faiss.read_index(str(p / "index.faiss"))
        self._dimension = self._index.d

        with open(p / "metadata.json", encoding="utf-8") as fh:
            data = json.load(fh)

        self._records = {
            int(pos): {
                "id": rec["id"],
                "text": rec["text"],
                "metadata": payload_to_metadata(rec.get("metadata", {})),
            }
            for pos, rec in data["records"].items()
        }
        logger.info("FAISSStore loaded from %s (%d records)", path, self.count())
