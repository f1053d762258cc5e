"""Quiz question generation grounded in randomly sampled rule topics.

Each question draws on several topics searched concurrently, so successive
questions cover different parts of the rulebook. All randomness comes from
an injected ``random.Random``; a fixed seed reproduces the same prompts.
"""

from __future__ import annotations

import logging
import random

from refrag.errors import QuestionGenerationError
from refrag.llm.schemas import QUESTION_TEMPERATURE, ChatMessage, GenerationOptions
from refrag.pipeline.prompts import build_question_system_prompt, build_question_user_prompt
from refrag.pipeline.schemas import Difficulty, GroundingContext, PromptSpec, QuizQuestion
from refrag.pipeline.structured import StructuredGenerator
from refrag.retrieval.schemas import RetrievedChunk
from refrag.structured.repair import AnswerMismatchPolicy, repair_question
from refrag.structured.schemas import GeneratedQuestion

logger = logging.getLogger(__name__)

QUESTION_DIFFICULTIES = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)

TOPICS_PER_QUESTION = 3
TOP_K_PER_TOPIC = 4
MAX_CONTEXT_CHUNKS = 5
VARIATION_RANGE = 10_000

REFEREE_TOPICS = [
    # Faults and violations
    "volleyball double contact fault hand signal",
    "volleyball four hits fault team violation",
    "volleyball net touch fault player contact rules",
    "volleyball foot fault service line violation",
    "volleyball back row attack rules fault",
    "volleyball lift carry fault ball handling",
    "volleyball rotation fault positional error",
    "volleyball center line foot crossing violation",
    "volleyball attack hit blocking fault",
    "volleyball ball handling judgment double hit",
    # Service
    "volleyball service rules order procedures",
    "volleyball service fault toss eight seconds",
    "volleyball let serve net service rules",
    "volleyball service screen illegal formation",
    "volleyball serving order rotation violation",
    # Blocking and attack
    "volleyball blocking rules back row player",
    "volleyball simultaneous contact block attack",
    "volleyball attack line three meter rule",
    "volleyball joust ball simultaneous hit",
    "volleyball block touch team hits count",
    # Net play
    "volleyball net contact rules interference",
    "volleyball reaching over net blocking rules",
    "volleyball penetration under net rules",
    "volleyball antenna touch ball out rules",
    # Positioning and rotation
    "volleyball rotation order position fault",
    "volleyball overlap positional rules check",
    "volleyball libero replacement rules substitution",
    "volleyball libero attack restriction rules",
    "volleyball setter position overlap check",
    # Ball in / out
    "volleyball ball in out line decision",
    "volleyball antenna ball contact outside",
    "volleyball ceiling contact rules play",
    "volleyball ball touching boundary lines",
    # Match procedures
    "volleyball timeout rules duration procedure",
    "volleyball substitution rules procedure limits",
    "volleyball injury timeout protocol rules",
    "volleyball delay warning sanction rules",
    "volleyball coin toss first serve choice",
    # Scoring and sets
    "volleyball scoring rally point system",
    "volleyball deciding set rules fifth set",
    "volleyball side switch rules procedures",
    "volleyball point award replay situations",
    # Misconduct and sanctions
    "volleyball misconduct sanctions cards penalties",
    "volleyball yellow card red card rules",
    "volleyball coach conduct sideline rules",
    "volleyball expulsion disqualification rules",
    # Officials
    "volleyball referee hand signals official",
    "volleyball first referee second referee duties",
    "volleyball line judge signals responsibilities",
    "volleyball scoresheet recording procedures",
    # Complex scenarios
    "volleyball replay situations circumstances",
    "volleyball interference external objects rules",
    "volleyball ball becomes dead situations",
    "volleyball rally interruption circumstances",
]

SCENARIO_TYPES = [
    "game situation judgment call",
    "rule interpretation edge case",
    "referee positioning and decision",
    "hand signal identification",
    "fault recognition scenario",
    "sanction and penalty application",
    "procedural knowledge test",
    "complex multi-fault situation",
]


def focus_area_for(topic: str) -> str:
    """``"volleyball net touch fault"`` -> ``"net, touch, fault"``."""
    return ", ".join(topic.replace("volleyball", "").split())


class QuestionGenerator:
    """Generate multiple-choice referee quiz questions."""

    def __init__(
        self,
        generator: StructuredGenerator,
        rng: random.Random | None = None,
        model: str | None = None,
        topics: list[str] | None = None,
        scenario_types: list[str] | None = None,
        topics_per_question: int = TOPICS_PER_QUESTION,
        top_k_per_topic: int = TOP_K_PER_TOPIC,
        max_chunks: int = MAX_CONTEXT_CHUNKS,
        temperature: float = QUESTION_TEMPERATURE,
        mismatch_policy: AnswerMismatchPolicy = AnswerMismatchPolicy.FIRST_OPTION,
    ):
        for name, value in (
            ("topics_per_question", topics_per_question),
            ("top_k_per_topic", top_k_per_topic),
            ("max_chunks", max_chunks),
        ):
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        self.generator = generator
        self.rng = rng or random.Random()
        self.model = model
        self.topics = list(topics or REFEREE_TOPICS)
        self.scenario_types = list(scenario_types or SCENARIO_TYPES)
        self.topics_per_question = min(topics_per_question, len(self.topics))
        self.top_k_per_topic = top_k_per_topic
        self.max_chunks = max_chunks
        self.options = GenerationOptions(temperature=temperature)
        self.mismatch_policy = mismatch_policy

    def generate_question(self, difficulty: str | Difficulty = Difficulty.MEDIUM) -> QuizQuestion:
        """Generate one question at ``difficulty`` (easy, medium or hard).

        Raises:
            RetrievalUnavailableError: If the rule index cannot be searched.
            InsufficientContextError: If no rule chunks were found.
            QuestionGenerationError: If no valid question came back within
                the attempt budget.
        """
        level = Difficulty.coerce(difficulty, allowed=QUESTION_DIFFICULTIES)
        topics = self.rng.sample(self.topics, self.topics_per_question)
        scenario_type = self.rng.choice(self.scenario_types)
        variation = self.rng.randrange(VARIATION_RANGE)

        logger.info(
            "Generating %s question: topics=%s scenario=%r variation=%d",
            level, topics, scenario_type, variation,
        )

        spec = self._build_spec(level, topics, scenario_type, variation)
        outcome = self.generator.generate_structured_content(spec)
        if outcome.record is None:
            raise QuestionGenerationError(
                f"No valid question after {outcome.attempts} attempts"
            )
        return QuizQuestion.from_model(outcome.record, level, outcome.context.chunks)

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _build_spec(
        self,
        difficulty: Difficulty,
        topics: list[str],
        scenario_type: str,
        variation: int,
    ) -> PromptSpec[GeneratedQuestion]:
        system_prompt = build_question_system_prompt(
            difficulty,
            focus_area=focus_area_for(topics[0]),
            scenario_type=scenario_type,
            variation=variation,
        )

        def build_messages(context: GroundingContext) -> list[ChatMessage]:
            return [
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=build_question_user_prompt(difficulty, context)),
            ]

        def repair(record: GeneratedQuestion, context: GroundingContext) -> GeneratedQuestion:
            return repair_question(record, self.mismatch_policy)

        return PromptSpec(
            schema=GeneratedQuestion,
            queries=topics,
            build_messages=build_messages,
            top_k=self.top_k_per_topic,
            select_chunks=self._select_chunks,
            repair=repair,
            require_context=True,
            model=self.model,
            options=self.options,
            name="question generation",
        )

    def _select_chunks(self, chunks: list[RetrievedChunk]) -> list[RetrievedChunk]:
        selected = list(chunks)
        self.rng.shuffle(selected)
        return selected[: self.max_chunks]
