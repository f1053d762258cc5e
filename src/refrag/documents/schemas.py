"""Data models for rulebook loading."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LoadResult:
    """Result of loading a single rulebook file.

    Attributes:
        text: Full extracted text.
        page_texts: Per-page text (for PDFs).
        source_path: Filesystem path or identifier.
        format: File extension used (pdf, txt).
        page_count: Number of pages.
        char_count: Length of ``text``.
        warnings: Non-fatal issues encountered during loading.
    """

    text: str
    page_texts: list[str] = field(default_factory=list)
    source_path: str | None = None
    format: str = ""
    page_count: int | None = None
    char_count: int = 0
    warnings: list[str] = field(default_factory=list)
