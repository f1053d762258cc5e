"""Embedding providers — OpenAI, Ollama, HuggingFace."""

from refrag.embeddings.base import EmbeddingProvider, flatten_text
from refrag.embeddings.factory import available_providers, get_embedding_provider

__all__ = [
    "EmbeddingProvider",
    "available_providers",
    "flatten_text",
    "get_embedding_provider",
]
