"""Data models for vector store operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from refrag.chunking.schemas import ChunkMetadata


@dataclass
class VectorRecord:
    """A rule chunk with its embedding, ready for storage."""

    id: str
    text: str
    embedding: list[float]
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(frozen=True)
class SearchResult:
    """A single nearest-neighbour hit from the vector store."""

    id: str
    text: str
    score: float
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


def metadata_to_payload(meta: ChunkMetadata) -> dict[str, Any]:
    """Flatten chunk metadata into a JSON-safe dict."""
    return asdict(meta)


def payload_to_metadata(payload: dict[str, Any]) -> ChunkMetadata:
    """Rebuild chunk metadata from a stored payload, ignoring unknown keys."""
    return ChunkMetadata(
        source_filename=payload.get("source_filename"),
        source_offset=int(payload.get("source_offset", 0) or 0),
        chunk_index=int(payload.get("chunk_index", 0) or 0),
        total_chunks=int(payload.get("total_chunks", 0) or 0),
    )
