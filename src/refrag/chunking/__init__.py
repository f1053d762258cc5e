"""Word-window chunking for rulebook text."""

from refrag.chunking.base import BaseChunker
from refrag.chunking.schemas import Chunk, ChunkMetadata
from refrag.chunking.word_chunker import WordWindowChunker, chunk_text

__all__ = ["BaseChunker", "Chunk", "ChunkMetadata", "WordWindowChunker", "chunk_text"]
