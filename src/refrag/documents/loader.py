"""Rulebook loader — plain text and PDF.

Accepts filesystem paths or in-memory bytes (rulebooks fetched from object
storage arrive as bytes).
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

from refrag.documents.schemas import LoadResult
from refrag.errors import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".txt", ".md", ".pdf"}


class DocumentLoader:
    """Load rulebooks into a structured ``LoadResult``."""

    def load_file(self, path: str | Path) -> LoadResult:
        """Load a rulebook from a filesystem path."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        ext = self._check_extension(path.name)
        result = self._dispatch(path.read_bytes(), ext)
        result.source_path = str(path)
        return result

    def load_bytes(self, data: bytes, filename: str) -> LoadResult:
        """Load a rulebook from in-memory bytes."""
        ext = self._check_extension(filename)
        result = self._dispatch(data, ext)
        result.source_path = filename
        return result

    # ------------------------------------------------------------------
    # Private dispatch
    # ------------------------------------------------------------------

    @staticmethod
    def _check_extension(filename: str) -> str:
        ext = Path(filename).suffix.lower()
        if ext not in SUPPORTED_EXTENSIONS:
            raise ConfigurationError(
                f"Unsupported format '{ext}'. Supported: {sorted(SUPPORTED_EXTENSIONS)}"
            )
        return ext

    def _dispatch(self, data: bytes, ext: str) -> LoadResult:
        result = self._load_pdf(data) if ext == ".pdf" else self._load_txt(data)
        result.format = ext.lstrip(".")
        result.char_count = len(result.text)
        for warning in result.warnings:
            logger.warning("Loader: %s", warning)
        return result

    # ------------------------------------------------------------------
    # Format-specific loaders
    # ------------------------------------------------------------------

    @staticmethod
    def _load_txt(data: bytes) -> LoadResult:
        for encoding in ("utf-8", "cp1252"):
            try:
                text = data.decode(encoding)
                return LoadResult(text=text, page_texts=[text], page_count=1)
            except UnicodeDecodeError:
                continue
        text = data.decode("utf-8", errors="replace")
        return LoadResult(
            text=text,
            page_texts=[text],
            page_count=1,
            warnings=["Encoding detection fell back to utf-8 with replacements"],
        )

    @staticmethod
    def _load_pdf(data: bytes) -> LoadResult:
        import pdfplumber

        warnings: list[str] = []
        page_texts: list[str] = []

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for page in pdf.pages:
                    page_texts.append(page.extract_text() or "")
        except Exception as exc:
            warnings.append(f"PDF extraction error: {exc}")
            return LoadResult(text="", warnings=warnings)

        full_text = "\n\n".join(page_texts)
        if not full_text.strip():
            warnings.append("PDF contains no extractable text (may be scanned/image-only)")

        return LoadResult(
            text=full_text,
            page_texts=page_texts,
            page_count=len(page_texts),
            warnings=warnings,
        )
