"""Ruling evaluation — grade a trainee's call against the correct call.

Retrieval is anchored on the correct call, never on the trainee's answer,
so a wrong answer cannot steer which rules the model sees.

``evaluate_ruling`` always returns a result. Retrieval outages, exhausted
retries and unexpected errors all end in the same fixed incorrect result.
"""

from __future__ import annotations

import logging

from refrag.errors import RetrievalUnavailableError
from refrag.llm.schemas import EVALUATION_TEMPERATURE, ChatMessage, GenerationOptions
from refrag.pipeline.prompts import EVALUATION_SYSTEM_PROMPT, build_evaluation_prompt
from refrag.pipeline.schemas import (
    Difficulty,
    EvaluationRequest,
    EvaluationResult,
    EvaluationState,
    GroundingContext,
    PromptSpec,
)
from refrag.pipeline.structured import StructuredGenerator
from refrag.structured.repair import apply_insufficiency_policy
from refrag.structured.schemas import RulingEvaluation

logger = logging.getLogger(__name__)

EVALUATION_TOP_K = 4
EVALUATION_MAX_TOKENS = 500

FAILED_SAFE_EXPLANATION = (
    "Evaluation failed due to a technical error. Please try again. If the problem "
    "persists, the ruling may need manual review."
)
FAILED_SAFE_RULE_REFERENCE = "Evaluation unavailable"

BLANK_ANSWER_EXPLANATION = "No ruling was submitted, so it cannot be marked correct."
BLANK_ANSWER_RULE_REFERENCE = "No ruling submitted"


def failed_safe_result(user_answer: str) -> EvaluationResult:
    """The deterministic result returned when evaluation cannot complete."""
    return EvaluationResult(
        is_correct=False,
        normalized_call=user_answer.strip(),
        explanation=FAILED_SAFE_EXPLANATION,
        rule_reference=FAILED_SAFE_RULE_REFERENCE,
    )


class RulingEvaluator:
    """Grade rulings with rule-grounded model output.

    ``transitions`` holds the ``(state, attempt)`` sequence of the most
    recent evaluation.
    """

    def __init__(
        self,
        generator: StructuredGenerator,
        model: str | None = None,
        top_k: int = EVALUATION_TOP_K,
        temperature: float = EVALUATION_TEMPERATURE,
        max_tokens: int = EVALUATION_MAX_TOKENS,
    ):
        self.generator = generator
        self.model = model
        self.top_k = top_k
        self.options = GenerationOptions(temperature=temperature, max_tokens=max_tokens)
        self.transitions: list[tuple[EvaluationState, int]] = []

    @property
    def state(self) -> EvaluationState | None:
        return self.transitions[-1][0] if self.transitions else None

    def evaluate_ruling(
        self,
        user_answer: str,
        correct_call: str,
        difficulty: str | Difficulty = Difficulty.MEDIUM,
    ) -> EvaluationResult:
        """Grade ``user_answer`` against ``correct_call``.

        Args:
            user_answer: The trainee's free-text ruling.
            correct_call: The known-correct ruling for the clip.
            difficulty: ``easy``, ``medium``, ``hard`` or ``extreme``;
                anything else is treated as ``medium``.

        Returns:
            An ``EvaluationResult``. Never raises.
        """
        self.transitions = []
        try:
            request = EvaluationRequest(
                user_answer=user_answer,
                correct_call=correct_call,
                difficulty=Difficulty.coerce(difficulty),
            )
        except ValueError:
            logger.info("Blank ruling submitted; marking incorrect without evaluation")
            return EvaluationResult(
                is_correct=False,
                normalized_call="",
                explanation=BLANK_ANSWER_EXPLANATION,
                rule_reference=BLANK_ANSWER_RULE_REFERENCE,
            )

        try:
            return self._evaluate(request)
        except RetrievalUnavailableError as exc:
            logger.error("Rule retrieval unavailable, returning safe result: %s", exc)
        except Exception:
            logger.exception("Unexpected error while evaluating ruling")
        self._transition(EvaluationState.FAILED_SAFE, 0)
        return failed_safe_result(request.user_answer)

    def build_prompt_spec(self, request: EvaluationRequest) -> PromptSpec[RulingEvaluation]:
        """Describe the grounded generation call for one request."""

        def build_messages(context: GroundingContext) -> list[ChatMessage]:
            return [
                ChatMessage(role="system", content=EVALUATION_SYSTEM_PROMPT),
                ChatMessage(
                    role="user",
                    content=build_evaluation_prompt(
                        request.user_answer,
                        request.correct_call,
                        request.difficulty,
                        context,
                    ),
                ),
            ]

        def repair(record: RulingEvaluation, context: GroundingContext) -> RulingEvaluation:
            return apply_insufficiency_policy(record, context.has_context)

        def fallback(context: GroundingContext) -> RulingEvaluation:
            return RulingEvaluation(**failed_safe_result(request.user_answer).to_dict())

        return PromptSpec(
            schema=RulingEvaluation,
            queries=[request.correct_call],
            build_messages=build_messages,
            top_k=self.top_k,
            repair=repair,
            fallback=fallback,
            model=self.model,
            options=self.options,
            name="ruling evaluation",
        )

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _evaluate(self, request: EvaluationRequest) -> EvaluationResult:
        spec = self.build_prompt_spec(request)
        outcome = self.generator.generate_structured_content(spec, listener=self._transition)

        if not outcome.context.has_context:
            logger.warning("No rule context for correct call %r", request.correct_call)

        if outcome.record is None:
            return failed_safe_result(request.user_answer)
        return EvaluationResult.from_model(outcome.record)

    def _transition(self, state: EvaluationState, attempt: int) -> None:
        self.transitions.append((state, attempt))
        if state is EvaluationState.FAILED_SAFE:
            logger.warning("Ruling evaluation -> %s", state)
        else:
            logger.debug("Ruling evaluation -> %s (attempt %d)", state, attempt)
