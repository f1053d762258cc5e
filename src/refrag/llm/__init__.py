"""LLM providers — OpenAI, Anthropic, Ollama."""

from refrag.llm.base import LLMProvider
from refrag.llm.factory import available_providers, get_llm_provider
from refrag.llm.schemas import (
    DEFAULT_TEMPERATURE,
    EVALUATION_TEMPERATURE,
    QUESTION_TEMPERATURE,
    ChatMessage,
    GenerationOptions,
)

__all__ = [
    "DEFAULT_TEMPERATURE",
    "EVALUATION_TEMPERATURE",
    "QUESTION_TEMPERATURE",
    "ChatMessage",
    "GenerationOptions",
    "LLMProvider",
    "available_providers",
    "get_llm_provider",
]
