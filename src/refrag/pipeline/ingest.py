"""Ingestion pipeline — file → load → chunk → embed → store.

This is the main entry point for adding rulebooks to the vector store.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from refrag.chunking.base import BaseChunker
from refrag.chunking.word_chunker import WordWindowChunker
from refrag.documents.loader import DocumentLoader
from refrag.embeddings.base import EmbeddingProvider
from refrag.pipeline.schemas import IngestResult
from refrag.vectorstore.base import VectorStore
from refrag.vectorstore.schemas import VectorRecord

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Orchestrates rulebook ingestion: load → chunk → embed → store."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        loader: DocumentLoader | None = None,
        chunker: BaseChunker | None = None,
        batch_size: int = 64,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.loader = loader or DocumentLoader()
        self.chunker = chunker or WordWindowChunker()
        self.batch_size = batch_size

    def ingest_file(self, path: str | Path) -> IngestResult:
        """Ingest a single rulebook file into the vector store.

        Args:
            path: Path to a ``.txt``, ``.md`` or ``.pdf`` rulebook.

        Returns:
            An ``IngestResult`` with counts and warnings.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ConfigurationError: If the file type is not supported.
            RetrievalUnavailableError: If embedding fails.
        """
        path = Path(path)
        result = self.loader.load_file(path)
        return self._ingest(result.text, source=str(path), source_name=path.name,
                            warnings=list(result.warnings))

    def ingest_text(self, text: str, source_name: str = "inline") -> IngestResult:
        """Ingest raw text directly (no file loading step)."""
        return self._ingest(text, source=source_name, source_name=source_name, warnings=[])

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _ingest(
        self,
        text: str,
        source: str,
        source_name: str,
        warnings: list[str],
    ) -> IngestResult:
        if not text.strip():
            warnings.append("Document loaded but contains no extractable text")
            return IngestResult(source=source, chunks_created=0, chunks_embedded=0,
                                chunks_stored=0, warnings=warnings)

        chunks = self.chunker.chunk(text, source_filename=source_name)

        texts = [c.text for c in chunks]
        embeddings: list[list[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i : i + self.batch_size]
            embeddings.extend(self.embedding_provider.embed_texts(batch))

        records = [
            VectorRecord(
                id=str(uuid.uuid4()),
                text=chunk.text,
                embedding=embedding,
                metadata=chunk.metadata,
            )
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]
        stored = self.vector_store.add(records)

        logger.info(
            "Ingested %s: %d chunks → %d embedded → %d stored",
            source_name, len(chunks), len(embeddings), stored,
        )

        return IngestResult(
            source=source,
            chunks_created=len(chunks),
            chunks_embedded=len(embeddings),
            chunks_stored=stored,
            warnings=warnings,
        )
