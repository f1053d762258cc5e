"""Tests for quiz question generation — seeded randomness, mocked services."""

from __future__ import annotations

import random

import pytest
from fakes import ScriptedLLM, StubRetriever, question_json

from refrag.errors import InsufficientContextError, QuestionGenerationError
from refrag.pipeline.questions import (
    REFEREE_TOPICS,
    SCENARIO_TYPES,
    QuestionGenerator,
    focus_area_for,
)
from refrag.pipeline.schemas import Difficulty, QuizQuestion
from refrag.pipeline.structured import StructuredGenerator
from refrag.retrieval.schemas import RetrievedChunk
from refrag.structured.repair import AnswerMismatchPolicy


def _chunks(n: int, prefix: str = "rule") -> list[RetrievedChunk]:
    return [RetrievedChunk(f"{prefix} {i} text", 0.9 - i * 0.05) for i in range(n)]


def _question_generator(llm, retriever, seed: int = 7, **kwargs) -> QuestionGenerator:
    generator = StructuredGenerator(retriever=retriever, llm_provider=llm, sleep=lambda _: None)
    return QuestionGenerator(generator, rng=random.Random(seed), **kwargs)


class TestTopicPool:
    def test_pool_sizes(self):
        assert len(REFEREE_TOPICS) == len(set(REFEREE_TOPICS)) >= 50
        assert len(SCENARIO_TYPES) == 8

    def test_focus_area(self):
        assert focus_area_for("volleyball net touch fault player contact rules") == (
            "net, touch, fault, player, contact, rules"
        )


class TestGenerateQuestion:
    def test_returns_repaired_question(self):
        llm = ScriptedLLM([question_json()])
        quiz = _question_generator(llm, StubRetriever(_chunks(4))).generate_question("easy")

        assert isinstance(quiz, QuizQuestion)
        assert quiz.difficulty is Difficulty.EASY
        assert quiz.options == [
            "Play continues",
            "Net fault by the blocker",
            "Replay the rally",
            "Point to the blocking team",
        ]
        assert quiz.answer == "Net fault by the blocker"
        assert quiz.answer in quiz.options
        assert quiz.rule_reference == "Rule 11.3.1 - Contact with the net"

    def test_searches_three_distinct_topics_with_k4(self):
        retriever = StubRetriever(_chunks(4))
        _question_generator(ScriptedLLM([question_json()]), retriever).generate_question()

        topics = [q for q, _ in retriever.queries]
        assert len(topics) == len(set(topics)) == 3
        assert all(t in REFEREE_TOPICS for t in topics)
        assert {k for _, k in retriever.queries} == {4}

    def test_context_deduped_and_capped_at_five(self):
        retriever = StubRetriever(_chunks(4))
        quiz = _question_generator(ScriptedLLM([question_json()]), retriever).generate_question()

        texts = [c.chunk for c in quiz.context]
        assert len(texts) == 4  # the same four chunks came back for every topic
        assert len(set(texts)) == len(texts)

    def test_context_truncated_to_max_chunks(self):
        topics = ["t1", "t2", "t3"]
        retriever = StubRetriever(per_query={
            "t1": _chunks(4, "net"), "t2": _chunks(4, "serve"), "t3": _chunks(4, "libero"),
        })
        quiz = _question_generator(
            ScriptedLLM([question_json()]), retriever, topics=topics,
        ).generate_question()
        assert len(quiz.context) == 5

    def test_model_call_parameters(self):
        llm = ScriptedLLM([question_json()])
        _question_generator(llm, StubRetriever(_chunks(3)), model="gpt-4o").generate_question("hard")

        messages, model, options = llm.calls[0]
        assert model == "gpt-4o"
        assert options.temperature == 0.85
        assert options.max_tokens is None
        assert "Difficulty: hard" in messages[0].content
        assert "Variation number:" in messages[0].content
        assert "Rule Snippet 1" in messages[1].content

    def test_same_seed_same_prompt(self):
        prompts = []
        for _ in range(2):
            llm = ScriptedLLM([question_json()])
            _question_generator(llm, StubRetriever(_chunks(4)), seed=42).generate_question()
            prompts.append([m.content for m in llm.calls[0][0]])
        assert prompts[0] == prompts[1]

    def test_different_seeds_vary_topics(self):
        queries = set()
        for seed in range(5):
            retriever = StubRetriever(_chunks(2))
            _question_generator(ScriptedLLM([question_json()]), retriever, seed=seed) \
                .generate_question()
            queries.add(tuple(q for q, _ in retriever.queries))
        assert len(queries) > 1

    @pytest.mark.parametrize("value", ["extreme", "impossible", ""])
    def test_unsupported_difficulty_becomes_medium(self, value):
        llm = ScriptedLLM([question_json()])
        quiz = _question_generator(llm, StubRetriever(_chunks(2))).generate_question(value)
        assert quiz.difficulty is Difficulty.MEDIUM
        assert "Difficulty: medium" in llm.calls[0][0][0].content

    def test_empty_store_raises_insufficient_context(self):
        llm = ScriptedLLM([question_json()])
        with pytest.raises(InsufficientContextError):
            _question_generator(llm, StubRetriever([])).generate_question()
        assert llm.calls == []

    def test_exhausted_retries_raise(self):
        llm = ScriptedLLM(['{"question": "incomplete"}'])
        with pytest.raises(QuestionGenerationError):
            _question_generator(llm, StubRetriever(_chunks(2))).generate_question()
        assert len(llm.calls) == 3

    def test_unmatched_answer_falls_back_to_first_option(self):
        llm = ScriptedLLM([question_json(answer="Timeout for the receiving team")])
        quiz = _question_generator(llm, StubRetriever(_chunks(2))).generate_question()
        assert quiz.answer == "Play continues"

    def test_retry_policy_regenerates_on_mismatch(self):
        llm = ScriptedLLM([
            question_json(answer="Timeout for the receiving team"),
            question_json(),
        ])
        quiz = _question_generator(
            llm, StubRetriever(_chunks(2)), mismatch_policy=AnswerMismatchPolicy.RETRY,
        ).generate_question()

        assert len(llm.calls) == 2
        assert quiz.answer == "Net fault by the blocker"

    def test_to_dict(self):
        quiz = _question_generator(
            ScriptedLLM([question_json()]), StubRetriever(_chunks(1)),
        ).generate_question("easy")
        data = quiz.to_dict()
        assert data["difficulty"] == "easy"
        assert data["context"][0] == {"chunk": "rule 0 text", "similarity": 0.9}


class TestQuestionGeneratorConfig:
    @pytest.mark.parametrize("field", ["topics_per_question", "top_k_per_topic", "max_chunks"])
    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_counts_rejected(self, field, value):
        with pytest.raises(ValueError, match=field):
            _question_generator(ScriptedLLM([question_json()]), StubRetriever(), **{field: value})

    def test_topics_per_question_capped_by_pool(self):
        retriever = StubRetriever(_chunks(2))
        _question_generator(
            ScriptedLLM([question_json()]), retriever, topics=["t1", "t2"], topics_per_question=5,
        ).generate_question()
        assert sorted(q for q, _ in retriever.queries) == ["t1", "t2"]
