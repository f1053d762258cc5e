"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from refrag.llm.schemas import ChatMessage, GenerationOptions


class LLMProvider(ABC):
    """Interface for chat completion.

    A thin transport: no retries, no caching. Service failures surface as
    ``GenerationTransportError``.
    """

    model: str

    @abstractmethod
    def complete(
        self,
        messages: Sequence[ChatMessage],
        model: str | None = None,
        options: GenerationOptions | None = None,
    ) -> str:
        """Send a message sequence and return the raw completion text.

        Args:
            messages: Ordered system/user/assistant messages.
            model: Model override; the provider default when omitted.
            options: Sampling parameters; ``GenerationOptions()`` when omitted.

        Returns:
            Generated text (empty string if the model returned nothing).
        """

    def generate(self, prompt: str, system: str | None = None, **kwargs) -> str:
        """Single-turn convenience wrapper around :meth:`complete`."""
        messages = []
        if system:
            messages.append(ChatMessage(role="system", content=system))
        messages.append(ChatMessage(role="user", content=prompt))
        return self.complete(messages, **kwargs)

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__
