"""Tests for ruling evaluation — fully mocked, no network."""

from __future__ import annotations

import uuid

import pytest
from fakes import DIM, MockEmbedder, ScriptedLLM, StubRetriever, evaluation_json

from refrag.errors import GenerationTransportError, RetrievalUnavailableError
from refrag.pipeline.evaluate import (
    BLANK_ANSWER_EXPLANATION,
    FAILED_SAFE_EXPLANATION,
    FAILED_SAFE_RULE_REFERENCE,
    RulingEvaluator,
    failed_safe_result,
)
from refrag.pipeline.schemas import EvaluationResult, EvaluationState
from refrag.pipeline.structured import StructuredGenerator
from refrag.retrieval.retriever import RuleRetriever
from refrag.retrieval.schemas import RetrievedChunk
from refrag.structured.repair import INSUFFICIENT_CONTEXT_NOTICE
from refrag.vectorstore.faiss_store import FAISSStore
from refrag.vectorstore.schemas import VectorRecord


def _evaluator(llm, retriever) -> RulingEvaluator:
    generator = StructuredGenerator(retriever=retriever, llm_provider=llm, sleep=lambda _: None)
    return RulingEvaluator(generator)


class TestEvaluateRuling:
    def test_correct_ruling(self, rule_chunks):
        llm = ScriptedLLM([evaluation_json(is_correct=True)])
        retriever = StubRetriever(rule_chunks)

        result = _evaluator(llm, retriever).evaluate_ruling(
            "net touch", "Net fault by blocker", "medium",
        )

        assert result == EvaluationResult(
            is_correct=True,
            normalized_call="net touch fault",
            explanation="The blocker contacted the net between the antennae.",
            rule_reference="Rule 11.3.1",
        )

    def test_retrieval_anchored_on_correct_call(self, rule_chunks):
        retriever = StubRetriever(rule_chunks)
        _evaluator(ScriptedLLM([evaluation_json()]), retriever).evaluate_ruling(
            "  the blocker touched it  ", "  Net fault by blocker  ",
        )
        assert retriever.queries == [("Net fault by blocker", 4)]

    def test_model_call_parameters(self, rule_chunks):
        llm = ScriptedLLM([evaluation_json()])
        _evaluator(llm, StubRetriever(rule_chunks)).evaluate_ruling(
            "net touch", "Net fault by blocker", "hard",
        )

        messages, model, options = llm.calls[0]
        assert options.temperature == 0.3
        assert options.max_tokens == 500
        assert messages[0].role == "system"
        assert "ONLY the provided rule snippets" in messages[0].content
        assert "Rule Snippet 1 (sim 0.82): 11.3.1" in messages[1].content
        assert "Difficulty: hard" in messages[1].content

    def test_fenced_output_accepted(self, rule_chunks):
        llm = ScriptedLLM([f"```json\n{evaluation_json()}\n```"])
        result = _evaluator(llm, StubRetriever(rule_chunks)).evaluate_ruling("a", "b")
        assert result.is_correct is True


class TestLiveness:
    def test_always_malformed_makes_exactly_three_attempts(self, rule_chunks):
        llm = ScriptedLLM(["I think the call is correct."])
        result = _evaluator(llm, StubRetriever(rule_chunks)).evaluate_ruling(
            "  net touch ", "Net fault by blocker",
        )

        assert len(llm.calls) == 3
        assert result == failed_safe_result("net touch")
        assert result.is_correct is False
        assert result.normalized_call == "net touch"
        assert result.explanation == FAILED_SAFE_EXPLANATION
        assert result.rule_reference == FAILED_SAFE_RULE_REFERENCE

    def test_always_transport_failure_fails_safe(self, rule_chunks):
        llm = ScriptedLLM([GenerationTransportError("503")])
        result = _evaluator(llm, StubRetriever(rule_chunks)).evaluate_ruling("net touch", "Net fault")

        assert len(llm.calls) == 3
        assert result.rule_reference == "Evaluation unavailable"

    def test_recovers_on_third_attempt(self, rule_chunks):
        llm = ScriptedLLM(["oops", '{"is_correct": "yes"}', evaluation_json()])
        evaluator = _evaluator(llm, StubRetriever(rule_chunks))
        result = evaluator.evaluate_ruling("net touch", "Net fault")

        assert result.is_correct is True
        assert evaluator.state is EvaluationState.SUCCEEDED

    def test_failed_safe_state_recorded(self, rule_chunks):
        evaluator = _evaluator(ScriptedLLM(["bad"]), StubRetriever(rule_chunks))
        evaluator.evaluate_ruling("net touch", "Net fault")

        assert evaluator.state is EvaluationState.FAILED_SAFE
        states = [s for s, _ in evaluator.transitions]
        assert states.count(EvaluationState.GENERATING) == 3
        assert states.count(EvaluationState.RETRYING) == 2


class TestInsufficientContext:
    def test_no_chunks_never_correct(self):
        llm = ScriptedLLM([evaluation_json(is_correct=True, explanation="Looks right.")])
        result = _evaluator(llm, StubRetriever([])).evaluate_ruling("net touch", "Net fault")

        assert result.is_correct is False
        assert result.explanation.startswith(INSUFFICIENT_CONTEXT_NOTICE)
        assert result.explanation.count(INSUFFICIENT_CONTEXT_NOTICE) == 1

    def test_no_chunks_prompt_warns_model(self):
        llm = ScriptedLLM([evaluation_json(is_correct=False)])
        _evaluator(llm, StubRetriever([])).evaluate_ruling("net touch", "Net fault")

        user_prompt = llm.calls[0][0][1].content
        assert "No rule context is available" in user_prompt
        assert "Rule Snippet" not in user_prompt

    def test_notice_not_doubled_when_model_already_says_it(self):
        llm = ScriptedLLM([evaluation_json(
            is_correct=False,
            explanation=f"{INSUFFICIENT_CONTEXT_NOTICE} No rule snippets were provided.",
        )])
        result = _evaluator(llm, StubRetriever([])).evaluate_ruling("net touch", "Net fault")
        assert result.explanation.count(INSUFFICIENT_CONTEXT_NOTICE) == 1


class TestNeverRaises:
    def test_retrieval_failure_fails_safe(self):
        llm = ScriptedLLM([evaluation_json()])
        retriever = StubRetriever(error=RetrievalUnavailableError("vector store offline"))

        result = _evaluator(llm, retriever).evaluate_ruling("net touch", "Net fault")

        assert result == failed_safe_result("net touch")
        assert llm.calls == []

    def test_unexpected_error_fails_safe(self, rule_chunks):
        llm = ScriptedLLM([RuntimeError("boom")])
        result = _evaluator(llm, StubRetriever(rule_chunks)).evaluate_ruling("net touch", "x")
        assert result == failed_safe_result("net touch")

    @pytest.mark.parametrize("answer", ["", "   ", "\n\t"])
    def test_blank_answer_short_circuits(self, answer, rule_chunks):
        llm = ScriptedLLM([evaluation_json()])
        retriever = StubRetriever(rule_chunks)

        result = _evaluator(llm, retriever).evaluate_ruling(answer, "Net fault")

        assert result.is_correct is False
        assert result.normalized_call == ""
        assert result.explanation == BLANK_ANSWER_EXPLANATION
        assert llm.calls == []
        assert retriever.queries == []

    def test_unknown_difficulty_treated_as_medium(self, rule_chunks):
        llm = ScriptedLLM([evaluation_json()])
        _evaluator(llm, StubRetriever(rule_chunks)).evaluate_ruling("a", "b", "impossible")
        assert "Difficulty: medium" in llm.calls[0][0][1].content

    def test_extreme_difficulty_accepted(self, rule_chunks):
        llm = ScriptedLLM([evaluation_json()])
        _evaluator(llm, StubRetriever(rule_chunks)).evaluate_ruling("a", "b", "EXTREME")
        assert "Difficulty: extreme" in llm.calls[0][0][1].content


class TestEndToEnd:
    """Real FAISS search over ingested snippets, scripted model."""

    def test_penetration_ruling_grounded_in_rule_11_2_1(self):
        embedder = MockEmbedder(dim=DIM)
        store = FAISSStore(dimension=DIM)
        snippets = [
            "11.2.1 It is permitted to penetrate into the opponent's space under the net, "
            "provided that this does not interfere with the opponent's play.",
            "12.4.4 The server must hit the ball within 8 seconds after the whistle.",
        ]
        store.add([
            VectorRecord(id=str(uuid.uuid4()), text=t, embedding=e)
            for t, e in zip(snippets, embedder.embed_texts(snippets), strict=True)
        ])
        retriever = RuleRetriever(embedder, store)

        llm = ScriptedLLM([evaluation_json(
            is_correct=False,
            normalized_call="penetration fault",
            explanation="Crossing under the net is allowed unless it interferes.",
            rule_reference="Rule 11.2.1",
        )])
        result = _evaluator(llm, retriever).evaluate_ruling(
            "Penetration fault", snippets[0], "medium",
        )

        assert result.is_correct is False
        assert result.rule_reference == "Rule 11.2.1"
        user_prompt = llm.calls[0][0][1].content
        assert "Rule Snippet 1 (sim 1.00): 11.2.1" in user_prompt

    def test_canned_similarity_in_prompt(self):
        chunk = RetrievedChunk(
            "11.2.1 It is permitted to penetrate into the opponent's space under the net.",
            0.82,
        )
        llm = ScriptedLLM([evaluation_json(rule_reference="Rule 11.2.1")])
        result = _evaluator(llm, StubRetriever([chunk])).evaluate_ruling(
            "no fault", "Legal penetration, play continues",
        )
        assert "Rule Snippet 1 (sim 0.82): 11.2.1" in llm.calls[0][0][1].content
        assert result.rule_reference == "Rule 11.2.1"
