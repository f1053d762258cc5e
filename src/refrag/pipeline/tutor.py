"""Rules tutor — question → retrieve → LLM → answer with rule snippets."""

from __future__ import annotations

import logging

from refrag.llm.base import LLMProvider
from refrag.llm.schemas import DEFAULT_TEMPERATURE, ChatMessage, GenerationOptions
from refrag.pipeline.prompts import TUTOR_SYSTEM_PROMPT, build_grounding_context, build_tutor_prompt
from refrag.pipeline.schemas import TutorResponse
from refrag.retrieval.retriever import RuleRetriever

logger = logging.getLogger(__name__)

TUTOR_TOP_K = 4
NO_RULES_ANSWER = "No relevant rules were found for this question."


class RuleTutor:
    """Answers free-form rules questions from the ingested rulebook."""

    def __init__(
        self,
        retriever: RuleRetriever,
        llm_provider: LLMProvider,
        model: str | None = None,
        top_k: int = TUTOR_TOP_K,
        temperature: float = DEFAULT_TEMPERATURE,
        system_prompt: str = TUTOR_SYSTEM_PROMPT,
    ):
        self.retriever = retriever
        self.llm_provider = llm_provider
        self.model = model
        self.top_k = top_k
        self.options = GenerationOptions(temperature=temperature)
        self.system_prompt = system_prompt

    def ask(self, question: str) -> TutorResponse:
        """Answer ``question`` citing the retrieved rule snippets.

        Raises:
            RetrievalUnavailableError: If the rule index cannot be searched.
            GenerationTransportError: If the model call fails.
        """
        model_name = self.model or getattr(self.llm_provider, "model", "unknown")
        chunks = self.retriever.search(question, self.top_k)

        if not chunks:
            return TutorResponse(question=question, answer=NO_RULES_ANSWER, model=model_name)

        context = build_grounding_context(chunks)
        messages = [
            ChatMessage(role="system", content=self.system_prompt),
            ChatMessage(role="user", content=build_tutor_prompt(question, context)),
        ]
        answer = self.llm_provider.complete(messages, model=self.model, options=self.options)

        logger.info("Tutor answered with %d rule snippets", len(chunks))

        return TutorResponse(
            question=question,
            answer=answer.strip(),
            references=chunks,
            model=model_name,
        )
