"""Ollama LLM provider — local-first, no API keys."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from refrag.errors import GenerationTransportError
from refrag.llm.base import LLMProvider
from refrag.llm.schemas import ChatMessage, GenerationOptions

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.1:8b"
DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaLLMProvider(LLMProvider):
    """Generate responses via a local Ollama server's chat endpoint."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def complete(
        self,
        messages: Sequence[ChatMessage],
        model: str | None = None,
        options: GenerationOptions | None = None,
    ) -> str:
        opts = options or GenerationOptions()
        sampling: dict[str, Any] = {"temperature": opts.temperature}
        if opts.max_tokens:
            sampling["num_predict"] = opts.max_tokens

        payload = {
            "model": model or self.model,
            "messages": [m.to_dict() for m in messages],
            "stream": False,
            "options": sampling,
        }

        try:
            resp = self._client.post("/api/chat", json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as exc:
            raise GenerationTransportError(f"Ollama completion failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationTransportError(f"Ollama returned a non-JSON body: {exc}") from exc

        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, dict):
            raise GenerationTransportError(f"Ollama response has no message: {body!r:.200}")
        return message.get("content") or ""
