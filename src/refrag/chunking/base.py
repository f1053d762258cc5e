"""Abstract base class for chunkers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from refrag.chunking.schemas import Chunk


class BaseChunker(ABC):
    """Interface for document chunking strategies."""

    @abstractmethod
    def chunk(self, text: str, source_filename: str | None = None) -> list[Chunk]:
        """Split text into chunks.

        Args:
            text: Full document text.
            source_filename: Optional source label propagated to each chunk.

        Returns:
            List of ``Chunk`` objects in document order.
        """

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__
