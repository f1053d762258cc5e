"""Exception hierarchy for the rule-grounding engine."""

from __future__ import annotations


class RefragError(Exception):
    """Base class for all errors raised by refrag."""


class ConfigurationError(RefragError, ValueError):
    """Invalid static configuration (bad chunk sizes, unknown provider, ...).

    Fatal and never retried.
    """


class RetrievalUnavailableError(RefragError):
    """The embedding service or the vector store could not be reached."""


class GenerationTransportError(RefragError):
    """The generative model service failed or could not be reached."""


class GenerationFormatError(RefragError):
    """Model output could not be parsed or violated the expected schema."""

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(message)
        self.raw = raw


class InsufficientContextError(RefragError):
    """Retrieval produced no grounding context where context is mandatory."""


class QuestionGenerationError(RefragError):
    """Quiz question generation exhausted its attempts."""
