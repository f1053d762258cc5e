"""Grounded structured generation — retrieve → prompt → validate, with retries.

Shared by ruling evaluation and quiz generation. Format failures are
retried immediately; transport failures are retried after a capped
exponential backoff. When attempts run out, the prompt spec's fallback
record is returned instead of raising.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from pydantic import BaseModel

from refrag.errors import (
    GenerationFormatError,
    GenerationTransportError,
    InsufficientContextError,
)
from refrag.llm.base import LLMProvider
from refrag.pipeline.prompts import build_grounding_context
from refrag.pipeline.schemas import (
    EvaluationState,
    GroundingContext,
    PromptSpec,
    StateListener,
    StructuredOutcome,
)
from refrag.retrieval.retriever import RuleRetriever
from refrag.structured.parser import parse_model_output

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

MAX_RETRIES = 2


def _log_transition(state: EvaluationState, attempt: int) -> None:
    logger.debug("-> %s (attempt %d)", state, attempt)


class StructuredGenerator:
    """Runs :class:`PromptSpec` requests against a retriever and an LLM."""

    def __init__(
        self,
        retriever: RuleRetriever,
        llm_provider: LLMProvider,
        max_retries: int = MAX_RETRIES,
        backoff_base: float = 0.5,
        backoff_max: float = 4.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.retriever = retriever
        self.llm_provider = llm_provider
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def retrieve_context(self, spec: PromptSpec[T]) -> GroundingContext:
        """Retrieve and format grounding context for ``spec``.

        Raises:
            RetrievalUnavailableError: If the rule index cannot be searched.
            InsufficientContextError: If ``spec.require_context`` and nothing
                was found.
        """
        if len(spec.queries) == 1:
            chunks = self.retriever.search(spec.queries[0], spec.top_k)
        else:
            chunks = self.retriever.search_many(spec.queries, spec.top_k)

        if spec.select_chunks is not None:
            chunks = spec.select_chunks(chunks)

        context = build_grounding_context(chunks)
        if spec.require_context and not context.has_context:
            raise InsufficientContextError(
                f"No rule context found for {spec.name}; has the rulebook been ingested?"
            )
        return context

    def generate_structured_content(
        self,
        spec: PromptSpec[T],
        listener: StateListener | None = None,
    ) -> StructuredOutcome[T]:
        """Retrieve context, prompt the model, and return a validated record.

        Args:
            spec: What to retrieve, how to prompt and what to validate against.
            listener: Called with each :class:`EvaluationState` transition
                and the current attempt number.

        Raises:
            RetrievalUnavailableError: If the rule index cannot be searched.
            InsufficientContextError: See :meth:`retrieve_context`.
        """
        notify = listener or _log_transition
        notify(EvaluationState.RETRIEVING, 0)
        context = self.retrieve_context(spec)
        return self.generate_with_context(spec, context, listener=notify)

    def generate_with_context(
        self,
        spec: PromptSpec[T],
        context: GroundingContext,
        listener: StateListener | None = None,
    ) -> StructuredOutcome[T]:
        """Run the bounded attempt loop for an already retrieved context."""
        notify = listener or _log_transition
        messages = spec.build_messages(context)

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                notify(EvaluationState.RETRYING, attempt)
            try:
                notify(EvaluationState.GENERATING, attempt)
                raw = self.llm_provider.complete(messages, model=spec.model, options=spec.options)
                notify(EvaluationState.VALIDATING, attempt)
                record = parse_model_output(raw, spec.schema)
                if spec.repair is not None:
                    record = spec.repair(record, context)
            except GenerationFormatError as exc:
                logger.warning(
                    "%s attempt %d/%d: malformed model output: %s",
                    spec.name, attempt, self.max_attempts, exc,
                )
            except GenerationTransportError as exc:
                logger.warning(
                    "%s attempt %d/%d: model transport error: %s",
                    spec.name, attempt, self.max_attempts, exc,
                )
                if attempt < self.max_attempts:
                    self._backoff(attempt)
            else:
                notify(EvaluationState.SUCCEEDED, attempt)
                logger.info("%s succeeded on attempt %d", spec.name, attempt)
                return StructuredOutcome(record=record, context=context, attempts=attempt)

        notify(EvaluationState.FAILED_SAFE, self.max_attempts)
        logger.error("%s failed after %d attempts", spec.name, self.max_attempts)
        fallback = spec.fallback(context) if spec.fallback is not None else None
        return StructuredOutcome(
            record=fallback,
            context=context,
            attempts=self.max_attempts,
            failed_safe=True,
        )

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _backoff(self, attempt: int) -> None:
        delay = min(self.backoff_base * 2 ** (attempt - 1), self.backoff_max)
        if delay > 0:
            logger.debug("Backing off %.2fs before retry", delay)
            self._sleep(delay)
