"""Embedding provider lookup by name."""

from __future__ import annotations

from refrag.embeddings.base import EmbeddingProvider
from refrag.registry import ComponentRegistry

_PROVIDERS: ComponentRegistry[EmbeddingProvider] = ComponentRegistry(
    "embedding provider",
    {
        "openai": "refrag.embeddings.openai_provider:OpenAIEmbeddingProvider",
        "ollama": "refrag.embeddings.ollama_provider:OllamaEmbeddingProvider",
        "huggingface": "refrag.embeddings.huggingface_provider:HuggingFaceEmbeddingProvider",
    },
    extras={"huggingface": "huggingface"},
)


def get_embedding_provider(provider: str = "openai", **kwargs) -> EmbeddingProvider:
    """Get an embedding provider by name.

    The provider used for ingestion must also be used for queries, or
    similarities are meaningless.

    Args:
        provider: One of ``openai``, ``ollama``, ``huggingface``.
        **kwargs: Passed to the provider constructor.
    """
    return _PROVIDERS.create(provider, **kwargs)


def available_providers() -> list[str]:
    return _PROVIDERS.names()


def clear_cache() -> None:
    _PROVIDERS.clear()
