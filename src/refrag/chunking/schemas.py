"""Data models for chunks."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata carried by each chunk — stored alongside embeddings."""

    source_filename: str | None = None
    source_offset: int = 0
    chunk_index: int = 0
    total_chunks: int = 0


@dataclass(frozen=True)
class Chunk:
    """A single retrievable slice of a rulebook.

    ``source_offset`` is the index of the first word of the window within
    the whitespace-split source document.
    """

    text: str
    source_offset: int = 0
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)

    @property
    def word_count(self) -> int:
        return len(self.text.split())
