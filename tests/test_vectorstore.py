"""Tests for vector store backends — FAISS and Qdrant (in-memory)."""

from __future__ import annotations

import dataclasses
import uuid
from pathlib import Path

import numpy as np
import pytest

from refrag.chunking.schemas import ChunkMetadata
from refrag.errors import ConfigurationError
from refrag.vectorstore.base import VectorStore
from refrag.vectorstore.factory import available_stores, clear_cache, get_vector_store
from refrag.vectorstore.faiss_store import FAISSStore
from refrag.vectorstore.schemas import (
    SearchResult,
    VectorRecord,
    metadata_to_payload,
    payload_to_metadata,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

DIM = 64  # Small dimension for fast tests


def _random_embedding(dim: int = DIM) -> list[float]:
    vec = np.random.randn(dim).astype(np.float32)
    vec /= np.linalg.norm(vec)
    return vec.tolist()


def _make_record(text: str = "sample rule", chunk_index: int = 0) -> VectorRecord:
    return VectorRecord(
        id=str(uuid.uuid4()),
        text=text,
        embedding=_random_embedding(),
        metadata=ChunkMetadata(
            source_filename="rules.txt",
            source_offset=chunk_index * 720,
            chunk_index=chunk_index,
            total_chunks=3,
        ),
    )


# ---------------------------------------------------------------------------
# FAISS Store Tests
# ---------------------------------------------------------------------------


class TestFAISSStore:
    @pytest.fixture
    def store(self) -> FAISSStore:
        return FAISSStore(dimension=DIM)

    def test_is_vector_store(self):
        assert issubclass(FAISSStore, VectorStore)

    def test_add_records(self, store: FAISSStore):
        assert store.add([_make_record(f"rule {i}") for i in range(5)]) == 5
        assert store.count() == 5

    def test_add_empty(self, store: FAISSStore):
        assert store.add([]) == 0

    def test_search_finds_exact_vector(self, store: FAISSStore):
        records = [_make_record(f"rule {i}") for i in range(10)]
        store.add(records)

        results = store.search(records[3].embedding, top_k=3)
        assert results[0].text == "rule 3"
        assert results[0].score == pytest.approx(1.0, abs=1e-4)
        assert results[0].metadata.source_filename == "rules.txt"

    def test_search_top_k(self, store: FAISSStore):
        store.add([_make_record(f"rule {i}") for i in range(10)])
        assert len(store.search(_random_embedding(), top_k=3)) == 3

    def test_search_top_k_larger_than_store(self, store: FAISSStore):
        store.add([_make_record("only rule")])
        assert len(store.search(_random_embedding(), top_k=5)) == 1

    def test_search_empty_store(self, store: FAISSStore):
        assert store.search(_random_embedding(), top_k=5) == []

    def test_search_non_positive_k(self, store: FAISSStore):
        store.add([_make_record()])
        assert store.search(_random_embedding(), top_k=0) == []

    def test_search_returns_sorted_by_score(self, store: FAISSStore):
        store.add([_make_record(f"rule {i}") for i in range(20)])
        scores = [r.score for r in store.search(_random_embedding(), top_k=10)]
        assert scores == sorted(scores, reverse=True)

    def test_delete_keeps_other_records(self, store: FAISSStore):
        records = [_make_record(f"rule {i}") for i in range(4)]
        store.add(records)

        assert store.delete([records[1].id]) == 1
        assert store.count() == 3

        results = store.search(records[2].embedding, top_k=1)
        assert results[0].id == records[2].id
        remaining = {r.id for r in store.search(_random_embedding(), top_k=10)}
        assert records[1].id not in remaining

    def test_delete_unknown_id(self, store: FAISSStore):
        store.add([_make_record()])
        assert store.delete(["missing"]) == 0
        assert store.count() == 1

    def test_clear(self, store: FAISSStore):
        store.add([_make_record() for _ in range(5)])
        store.clear()
        assert store.count() == 0

    def test_save_and_load(self, store: FAISSStore, tmp_path: Path):
        records = [_make_record(f"rule {i}", chunk_index=i) for i in range(3)]
        store.add(records)
        store.save(str(tmp_path / "index"))

        loaded = FAISSStore(dimension=DIM, path=str(tmp_path / "index"))
        assert loaded.count() == 3

        hit = loaded.search(records[2].embedding, top_k=1)[0]
        assert hit.id == records[2].id
        assert hit.metadata == records[2].metadata

    def test_store_name(self):
        assert FAISSStore.store_name() == "FAISSStore"


# ---------------------------------------------------------------------------
# Qdrant Store Tests
# ---------------------------------------------------------------------------


class TestQdrantStore:
    @pytest.fixture
    def store(self):
        pytest.importorskip("qdrant_client")
        from refrag.vectorstore.qdrant_store import QdrantStore

        return QdrantStore(collection_name=f"test_{uuid.uuid4().hex[:8]}", dimension=DIM)

    def test_add_and_count(self, store):
        assert store.add([_make_record(f"rule {i}") for i in range(5)]) == 5
        assert store.count() == 5

    def test_add_empty(self, store):
        assert store.add([]) == 0

    def test_search_basic(self, store):
        records = [_make_record(f"rule {i}", chunk_index=i) for i in range(3)]
        store.add(records)

        results = store.search(records[1].embedding, top_k=2)
        assert len(results) == 2
        assert isinstance(results[0], SearchResult)
        assert results[0].text == "rule 1"
        assert results[0].metadata.chunk_index == 1

    def test_search_empty_store(self, store):
        assert store.search(_random_embedding(), top_k=5) == []

    def test_delete(self, store):
        records = [_make_record() for _ in range(3)]
        store.add(records)
        assert store.delete([records[0].id]) == 1
        assert store.count() == 2

    def test_clear(self, store):
        store.add([_make_record() for _ in range(3)])
        store.clear()
        assert store.count() == 0


# ---------------------------------------------------------------------------
# Schema Tests
# ---------------------------------------------------------------------------


class TestVectorSchemas:
    def test_search_result_frozen(self):
        result = SearchResult(id="a", text="rule", score=0.9)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.score = 0.1  # type: ignore[misc]

    def test_metadata_payload_round_trip(self):
        meta = ChunkMetadata(source_filename="rules.pdf", source_offset=720,
                             chunk_index=1, total_chunks=4)
        assert payload_to_metadata(metadata_to_payload(meta)) == meta

    def test_payload_ignores_unknown_keys(self):
        meta = payload_to_metadata({"text": "rule", "chunk_index": 2})
        assert meta.chunk_index == 2
        assert meta.source_filename is None


# ---------------------------------------------------------------------------
# Factory Tests
# ---------------------------------------------------------------------------


class TestVectorStoreFactory:
    def setup_method(self):
        clear_cache()

    def test_available_stores(self):
        assert available_stores() == ["faiss", "qdrant"]

    def test_get_faiss(self):
        assert isinstance(get_vector_store("faiss", dimension=DIM), FAISSStore)

    def test_unknown_store_raises(self):
        with pytest.raises(ConfigurationError, match="Unknown vector store"):
            get_vector_store("pinecone")

    def test_caching(self):
        assert get_vector_store("faiss") is get_vector_store("faiss")

    def test_kwargs_bypass_cache(self):
        s1 = get_vector_store("faiss")
        s2 = get_vector_store("faiss", dimension=512)
        assert s1 is not s2
