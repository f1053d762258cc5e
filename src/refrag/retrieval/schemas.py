"""Data models for retrieval operations."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetrievedChunk:
    """A rule chunk returned for a query, with its similarity score."""

    chunk: str
    similarity: float

    def to_dict(self) -> dict[str, str | float]:
        return {"chunk": self.chunk, "similarity": self.similarity}
