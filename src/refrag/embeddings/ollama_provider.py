"""Ollama embedding provider — local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text`` or ``mxbai-embed-large``.
"""

from __future__ import annotations

import logging

import httpx

from refrag.embeddings.base import EmbeddingProvider, flatten_text
from refrag.errors import RetrievalUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        data = self._post({"model": self.model, "input": [flatten_text(t) for t in texts]})
        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise RetrievalUnavailableError(
                f"Ollama returned {len(embeddings or [])} embeddings for {len(texts)} inputs"
            )
        return embeddings

    def embed_query(self, query: str) -> list[float]:
        return self.embed_texts([query])[0]

    @property
    def dimension(self) -> int:
        return self._dimension

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _post(self, payload: dict) -> dict:
        try:
            resp = self._client.post("/api/embed", json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise RetrievalUnavailableError(f"Ollama embedding request failed: {exc}") from exc
        return resp.json()
