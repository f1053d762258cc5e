"""Grounding pipeline — ingest, evaluate rulings, generate questions, tutor."""

from refrag.pipeline.evaluate import RulingEvaluator
from refrag.pipeline.ingest import IngestPipeline
from refrag.pipeline.prompts import format_rule_context
from refrag.pipeline.questions import QuestionGenerator
from refrag.pipeline.schemas import (
    Difficulty,
    EvaluationResult,
    EvaluationState,
    IngestResult,
    PromptSpec,
    QuizQuestion,
    StructuredOutcome,
    TutorResponse,
)
from refrag.pipeline.structured import StructuredGenerator
from refrag.pipeline.tutor import RuleTutor

__all__ = [
    "Difficulty",
    "EvaluationResult",
    "EvaluationState",
    "IngestPipeline",
    "IngestResult",
    "PromptSpec",
    "QuestionGenerator",
    "QuizQuestion",
    "RuleTutor",
    "RulingEvaluator",
    "StructuredGenerator",
    "StructuredOutcome",
    "TutorResponse",
    "format_rule_context",
]
