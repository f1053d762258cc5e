"""Structured model output — parse, validate, repair."""

from refrag.structured.parser import parse_model_output, strip_code_fences
from refrag.structured.repair import (
    INSUFFICIENT_CONTEXT_NOTICE,
    AnswerMismatchPolicy,
    apply_insufficiency_policy,
    match_answer_to_options,
    repair_question,
    strip_option_prefix,
)
from refrag.structured.schemas import GeneratedQuestion, RulingEvaluation

__all__ = [
    "INSUFFICIENT_CONTEXT_NOTICE",
    "AnswerMismatchPolicy",
    "GeneratedQuestion",
    "RulingEvaluation",
    "apply_insufficiency_policy",
    "match_answer_to_options",
    "parse_model_output",
    "repair_question",
    "strip_code_fences",
    "strip_option_prefix",
]
