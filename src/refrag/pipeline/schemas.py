"""Data models for the grounding pipeline."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

from pydantic import BaseModel

from refrag.llm.schemas import ChatMessage, GenerationOptions
from refrag.retrieval.schemas import RetrievedChunk
from refrag.structured.schemas import GeneratedQuestion, RulingEvaluation

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXTREME = "extreme"

    @classmethod
    def coerce(
        cls,
        value: str | Difficulty | None,
        allowed: Sequence[Difficulty] | None = None,
        default: Difficulty | None = None,
    ) -> Difficulty:
        """Parse ``value`` leniently, falling back to ``default`` (medium)."""
        fallback = default or cls.MEDIUM
        permitted = tuple(allowed) if allowed is not None else tuple(cls)
        try:
            parsed = cls(str(value).strip().lower())
        except ValueError:
            logger.warning("Unknown difficulty %r, using %s", value, fallback)
            return fallback
        if parsed not in permitted:
            logger.warning("Difficulty %s not allowed here, using %s", parsed, fallback)
            return fallback
        return parsed


class EvaluationState(StrEnum):
    """Stages of a grounded generation run.

    ``generating``, ``validating`` and ``retrying`` repeat once per attempt;
    every run ends in ``succeeded`` or ``failed_safe``.
    """

    RETRIEVING = "retrieving"
    GENERATING = "generating"
    VALIDATING = "validating"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED_SAFE = "failed_safe"


StateListener = Callable[[EvaluationState, int], None]


@dataclass(frozen=True)
class GroundingContext:
    """Ranked rule chunks and their prompt rendering."""

    chunks: list[RetrievedChunk] = field(default_factory=list)
    text: str = ""

    @property
    def has_context(self) -> bool:
        return bool(self.chunks) and bool(self.text.strip())


@dataclass(frozen=True)
class EvaluationRequest:
    """One submitted ruling to grade."""

    user_answer: str
    correct_call: str
    difficulty: Difficulty = Difficulty.MEDIUM

    def __post_init__(self) -> None:
        trimmed = self.user_answer.strip()
        if not trimmed:
            raise ValueError("user_answer must not be blank")
        object.__setattr__(self, "user_answer", trimmed)
        object.__setattr__(self, "correct_call", self.correct_call.strip())


@dataclass(frozen=True)
class EvaluationResult:
    """Graded ruling handed back across the system boundary."""

    is_correct: bool
    normalized_call: str
    explanation: str
    rule_reference: str

    @classmethod
    def from_model(cls, evaluation: RulingEvaluation) -> EvaluationResult:
        return cls(
            is_correct=evaluation.is_correct,
            normalized_call=evaluation.normalized_call,
            explanation=evaluation.explanation,
            rule_reference=evaluation.rule_reference,
        )

    def to_dict(self) -> dict[str, bool | str]:
        return asdict(self)


@dataclass
class PromptSpec(Generic[T]):
    """Declarative description of one grounded structured-generation call.

    Attributes:
        schema: Pydantic model the output must validate against.
        queries: Retrieval queries; several are searched concurrently.
        build_messages: Builds the chat messages from the grounding context.
        top_k: Results per query.
        select_chunks: Optional post-retrieval selection (shuffle, truncate).
        repair: Optional fix-up of the validated record; may raise
            ``GenerationFormatError`` to request a retry.
        fallback: Deterministic record returned when all attempts fail.
        require_context: Raise ``InsufficientContextError`` when retrieval
            finds nothing, instead of prompting ungrounded.
        model: Model override for the provider.
        options: Sampling parameters.
    """

    schema: type[T]
    queries: list[str]
    build_messages: Callable[[GroundingContext], list[ChatMessage]]
    top_k: int = 5
    select_chunks: Callable[[list[RetrievedChunk]], list[RetrievedChunk]] | None = None
    repair: Callable[[T, GroundingContext], T] | None = None
    fallback: Callable[[GroundingContext], T] | None = None
    require_context: bool = False
    model: str | None = None
    options: GenerationOptions = field(default_factory=GenerationOptions)
    name: str = "structured"


@dataclass
class StructuredOutcome(Generic[T]):
    """Result of a structured generation run."""

    record: T | None
    context: GroundingContext
    attempts: int
    failed_safe: bool = False


@dataclass
class QuizQuestion:
    """A repaired quiz question plus the rule chunks it was grounded on."""

    question: str
    options: list[str]
    answer: str
    explanation: str
    rule_reference: str | None
    difficulty: Difficulty
    context: list[RetrievedChunk] = field(default_factory=list)

    @classmethod
    def from_model(
        cls,
        generated: GeneratedQuestion,
        difficulty: Difficulty,
        context: list[RetrievedChunk],
    ) -> QuizQuestion:
        return cls(
            question=generated.question,
            options=list(generated.options),
            answer=generated.answer,
            explanation=generated.explanation,
            rule_reference=generated.rule_reference,
            difficulty=difficulty,
            context=list(context),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["difficulty"] = self.difficulty.value
        return data


@dataclass
class TutorResponse:
    """Answer from the rules tutor."""

    question: str
    answer: str
    references: list[RetrievedChunk] = field(default_factory=list)
    model: str = ""


@dataclass
class IngestResult:
    """Result of rulebook ingestion."""

    source: str
    chunks_created: int
    chunks_embedded: int
    chunks_stored: int
    warnings: list[str] = field(default_factory=list)
