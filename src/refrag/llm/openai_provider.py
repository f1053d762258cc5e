"""OpenAI LLM provider — GPT-4o family and OpenAI-compatible endpoints.

Requires ``OPENAI_API_KEY`` env var.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from refrag.errors import GenerationTransportError
from refrag.llm.base import LLMProvider
from refrag.llm.schemas import ChatMessage, GenerationOptions

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAILLMProvider(LLMProvider):
    """Generate responses via the OpenAI Chat Completions API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
    ):
        import openai

        self._openai = openai
        self.model = model

        kwargs: dict[str, Any] = {}
        if api_key:
            kwargs["api_key"] = api_key
        if base_url:
            kwargs["base_url"] = base_url

        self._client: Any = openai.OpenAI(**kwargs)

    def complete(
        self,
        messages: Sequence[ChatMessage],
        model: str | None = None,
        options: GenerationOptions | None = None,
    ) -> str:
        opts = options or GenerationOptions()
        request: dict[str, Any] = {
            "model": model or self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": opts.temperature,
        }
        if opts.max_tokens:
            request["max_tokens"] = opts.max_tokens

        try:
            response = self._client.chat.completions.create(**request)
        except self._openai.OpenAIError as exc:
            raise GenerationTransportError(f"OpenAI completion failed: {exc}") from exc

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
