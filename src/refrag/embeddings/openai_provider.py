"""OpenAI embedding provider — text-embedding-3-small/large.

Requires an API key via ``OPENAI_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from typing import Any

from refrag.embeddings.base import EmbeddingProvider, flatten_text
from refrag.errors import RetrievalUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"

_DIMENSION_MAP = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

BATCH_SIZE = 2048  # OpenAI max inputs per request


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via the OpenAI Embeddings API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        dimensions: int | None = None,
    ):
        import openai

        self._openai = openai
        self.model = model
        self._dimensions = dimensions or _DIMENSION_MAP.get(model, 1536)
        self._client: Any = openai.OpenAI(api_key=api_key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for i in range(0, len(texts), BATCH_SIZE):
            batch = [flatten_text(t) for t in texts[i : i + BATCH_SIZE]]
            data = self._create(batch)
            # Sort by index to guarantee order
            all_embeddings.extend(d.embedding for d in sorted(data, key=lambda x: x.index))

        return all_embeddings

    def embed_query(self, query: str) -> list[float]:
        return self._create(flatten_text(query))[0].embedding

    @property
    def dimension(self) -> int:
        return self._dimensions

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create(self, payload: str | list[str]) -> list[Any]:
        try:
            resp = self._client.embeddings.create(model=self.model, input=payload)
        except self._openai.OpenAIError as exc:
            raise RetrievalUnavailableError(f"OpenAI embedding request failed: {exc}") from exc
        return resp.data
