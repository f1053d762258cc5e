"""Data models for chat-completion requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

DEFAULT_TEMPERATURE = 0.7
EVALUATION_TEMPERATURE = 0.3
QUESTION_TEMPERATURE = 0.85

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """One message in a chat-completion request."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling parameters. ``max_tokens=None`` leaves the cap off the request."""

    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = None
