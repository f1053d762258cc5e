"""Fixed-size overlapping word windows.

No sentence or paragraph awareness: the overlap between consecutive windows
is what keeps a rule clause from being cut cleanly in two.
"""

from __future__ import annotations

import logging

from refrag.chunking.base import BaseChunker
from refrag.chunking.schemas import Chunk, ChunkMetadata
from refrag.errors import ConfigurationError

logger = logging.getLogger(__name__)

WINDOW_SIZE = 800
OVERLAP = 80


def _validate_window(window_size: int, overlap: int) -> None:
    if window_size <= 0:
        raise ConfigurationError(f"window_size must be positive, got {window_size}")
    if overlap < 0:
        raise ConfigurationError(f"overlap must be non-negative, got {overlap}")
    if overlap >= window_size:
        raise ConfigurationError(
            f"overlap ({overlap}) must be smaller than window_size ({window_size}); "
            "the window would never advance"
        )


def _window_starts(word_count: int, window_size: int, overlap: int) -> list[int]:
    """Start offsets of every window over ``word_count`` words.

    The window that reaches the last word is the final one.
    """
    step = window_size - overlap
    starts: list[int] = []
    start = 0
    while start < word_count:
        starts.append(start)
        if start + window_size >= word_count:
            break
        start += step
    return starts


def chunk_text(text: str, window_size: int = WINDOW_SIZE, overlap: int = OVERLAP) -> list[str]:
    """Split ``text`` into overlapping windows of at most ``window_size`` words.

    Args:
        text: Source text; split on any whitespace.
        window_size: Words per window.
        overlap: Words shared by consecutive windows.

    Returns:
        Space-joined windows in document order. Empty for blank input.

    Raises:
        ConfigurationError: If ``overlap >= window_size`` or either is out of range.
    """
    _validate_window(window_size, overlap)
    words = text.split()
    return [
        " ".join(words[start : start + window_size])
        for start in _window_starts(len(words), window_size, overlap)
    ]


class WordWindowChunker(BaseChunker):
    """Chunker producing overlapping word windows with source offsets."""

    def __init__(self, window_size: int = WINDOW_SIZE, overlap: int = OVERLAP):
        _validate_window(window_size, overlap)
        self.window_size = window_size
        self.overlap = overlap

    def chunk(self, text: str, source_filename: str | None = None) -> list[Chunk]:
        words = text.split()
        starts = _window_starts(len(words), self.window_size, self.overlap)
        total = len(starts)

        chunks = [
            Chunk(
                text=" ".join(words[start : start + self.window_size]),
                source_offset=start,
                metadata=ChunkMetadata(
                    source_filename=source_filename,
                    source_offset=start,
                    chunk_index=i,
                    total_chunks=total,
                ),
            )
            for i, start in enumerate(starts)
        ]

        logger.info(
            "WordWindowChunker produced %d chunks from %d words (window=%d, overlap=%d)",
            total, len(words), self.window_size, self.overlap,
        )
        return chunks
