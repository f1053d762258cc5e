"""Generation provider lookup by name."""

from __future__ import annotations

from refrag.llm.base import LLMProvider
from refrag.registry import ComponentRegistry

_PROVIDERS: ComponentRegistry[LLMProvider] = ComponentRegistry(
    "LLM provider",
    {
        "openai": "refrag.llm.openai_provider:OpenAILLMProvider",
        "anthropic": "refrag.llm.anthropic_provider:AnthropicLLMProvider",
        "ollama": "refrag.llm.ollama_provider:OllamaLLMProvider",
    },
    extras={"anthropic": "anthropic"},
)


def get_llm_provider(provider: str = "openai", **kwargs) -> LLMProvider:
    """Get an LLM provider by name (``openai``, ``anthropic``, ``ollama``)."""
    return _PROVIDERS.create(provider, **kwargs)


def available_providers() -> list[str]:
    return _PROVIDERS.names()


def clear_cache() -> None:
    _PROVIDERS.clear()
