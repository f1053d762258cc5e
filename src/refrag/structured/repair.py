"""Repairs applied to validated model output.

Option/answer normalization for quiz questions, and the insufficient-context
override for ruling evaluations.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from enum import StrEnum

from refrag.errors import GenerationFormatError
from refrag.structured.schemas import GeneratedQuestion, RulingEvaluation

logger = logging.getLogger(__name__)

INSUFFICIENT_CONTEXT_NOTICE = "Unable to evaluate: insufficient rule context available."

# "Option B - ...", "option c) ...", "A. ...", "(D) ...", "B: ..."
# A bare letter followed only by a space is kept ("A player touches ...").
_OPTION_PREFIX = re.compile(
    r"^\s*(?:option\s+[a-d]\b\s*[-.):]?|\(?[a-d]\s*[-.):])\s*",
    re.IGNORECASE,
)


class AnswerMismatchPolicy(StrEnum):
    """What to do when an answer matches no option even after fuzzy matching."""

    FIRST_OPTION = "first_option"
    RETRY = "retry"


def strip_option_prefix(text: str) -> str:
    """Strip a leading option enumerator and surrounding whitespace."""
    return _OPTION_PREFIX.sub("", text, count=1).strip()


def match_answer_to_options(
    answer: str,
    options: Sequence[str],
    policy: AnswerMismatchPolicy = AnswerMismatchPolicy.FIRST_OPTION,
) -> str:
    """Map ``answer`` onto one of ``options``.

    Exact match first, then case-insensitive containment in either direction
    (first candidate in option order when several qualify), then the
    mismatch policy.

    Returns:
        A member of ``options``.

    Raises:
        GenerationFormatError: When nothing matches and ``policy`` is ``RETRY``.
    """
    if not options:
        raise GenerationFormatError("No options to match the answer against")
    if answer in options:
        return answer

    needle = answer.lower()
    if needle:
        candidates = [
            opt for opt in options
            if needle in opt.lower() or opt.lower() in needle
        ]
        if len(candidates) > 1:
            logger.warning(
                "Answer %r contained in %d options; taking the first", answer, len(candidates)
            )
        if candidates:
            return candidates[0]

    if policy is AnswerMismatchPolicy.RETRY:
        raise GenerationFormatError(f"Answer {answer!r} matches none of the options")

    logger.warning("Answer %r matches no option, falling back to the first option", answer)
    return options[0]


def repair_question(
    question: GeneratedQuestion,
    policy: AnswerMismatchPolicy = AnswerMismatchPolicy.FIRST_OPTION,
) -> GeneratedQuestion:
    """Normalize options and answer so that ``answer`` is one of ``options``."""
    options = [strip_option_prefix(opt) for opt in question.options]
    if not all(options):
        raise GenerationFormatError(f"Option left empty after normalization: {question.options}")

    answer = match_answer_to_options(strip_option_prefix(question.answer), options, policy)
    return question.model_copy(update={"options": options, "answer": answer})


def apply_insufficiency_policy(
    evaluation: RulingEvaluation,
    has_context: bool,
) -> RulingEvaluation:
    """Without grounding context the ruling can never be marked correct."""
    if has_context:
        return evaluation

    explanation = evaluation.explanation
    if not explanation.startswith(INSUFFICIENT_CONTEXT_NOTICE):
        explanation = f"{INSUFFICIENT_CONTEXT_NOTICE} {explanation}"

    if evaluation.is_correct:
        logger.warning("Model marked an ungrounded ruling correct; overriding to incorrect")

    return evaluation.model_copy(update={"is_correct": False, "explanation": explanation})
