"""Anthropic LLM provider.

Requires the ``anthropic`` extra and ``ANTHROPIC_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from refrag.errors import GenerationTransportError
from refrag.llm.base import LLMProvider
from refrag.llm.schemas import ChatMessage, GenerationOptions

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"

# The Messages API requires an explicit cap.
FALLBACK_MAX_TOKENS = 1024


class AnthropicLLMProvider(LLMProvider):
    """Generate responses via the Anthropic Messages API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        default_max_tokens: int = FALLBACK_MAX_TOKENS,
    ):
        import anthropic

        self._anthropic = anthropic
        self.model = model
        self.default_max_tokens = default_max_tokens
        self._client: Any = anthropic.Anthropic(api_key=api_key)

    def complete(
        self,
        messages: Sequence[ChatMessage],
        model: str | None = None,
        options: GenerationOptions | None = None,
    ) -> str:
        opts = options or GenerationOptions()
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        request: dict[str, Any] = {
            "model": model or self.model,
            "max_tokens": opts.max_tokens or self.default_max_tokens,
            "temperature": opts.temperature,
            "messages": [m.to_dict() for m in messages if m.role != "system"],
        }
        if system:
            request["system"] = system

        try:
            response = self._client.messages.create(**request)
        except self._anthropic.AnthropicError as exc:
            raise GenerationTransportError(f"Anthropic completion failed: {exc}") from exc

        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
