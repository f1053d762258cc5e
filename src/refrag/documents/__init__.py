"""Rulebook loading — plain text and PDF."""

from refrag.documents.loader import DocumentLoader
from refrag.documents.schemas import LoadResult

__all__ = ["DocumentLoader", "LoadResult"]
