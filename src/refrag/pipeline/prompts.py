"""Prompt templates and rule-context formatting.

Every prompt here instructs the model to ground its answer in the supplied
rule snippets only.
"""

from __future__ import annotations

from collections.abc import Sequence

from refrag.pipeline.schemas import Difficulty, GroundingContext
from refrag.retrieval.schemas import RetrievedChunk

# ---------------------------------------------------------------------------
# Context formatting
# ---------------------------------------------------------------------------


def format_rule_context(chunks: Sequence[RetrievedChunk]) -> str:
    """Render ranked chunks as labeled snippets, in input order.

    Args:
        chunks: Retrieved chunks, already sorted and deduplicated.

    Returns:
        ``"Rule Snippet {rank} (sim {similarity:.2f}): {text}"`` blocks
        separated by a blank line; empty string for no chunks.
    """
    return "\n\n".join(
        f"Rule Snippet {rank} (sim {c.similarity:.2f}): {c.chunk}"
        for rank, c in enumerate(chunks, 1)
    )


def build_grounding_context(chunks: Sequence[RetrievedChunk]) -> GroundingContext:
    """Bundle chunks with their rendered context block."""
    return GroundingContext(chunks=list(chunks), text=format_rule_context(chunks))


# ---------------------------------------------------------------------------
# Ruling evaluation
# ---------------------------------------------------------------------------

EVALUATION_SYSTEM_PROMPT = """\
You are a volleyball officiating evaluator. Decide whether a referee trainee's \
ruling on a video clip is correct under the official rules.

Rules:
1. Use ONLY the provided rule snippets as ground truth. Never invent or assume \
rules that are not in the snippets.
2. Compare the trainee's answer with the correct call, allowing for \
equivalent wording.
3. Cite an official rule number from the snippets (e.g. "Rule 11.2.1") in \
rule_reference.
4. If the snippets are missing, insufficient, or ambiguous, set is_correct to \
false, say so in the explanation, and set rule_reference to "No applicable \
rule found".

Respond with ONLY a JSON object, without markdown fences or extra text:
{
  "is_correct": boolean,
  "normalized_call": string,
  "explanation": string,
  "rule_reference": string
}

normalized_call restates what the trainee meant in official terminology \
(e.g. "net touch" becomes "net touch fault").
"""

EVALUATION_USER_TEMPLATE = """\
Evaluate the following ruling.

Trainee's answer: "{user_answer}"
Correct call: "{correct_call}"
Difficulty: {difficulty}

{context_block}

Consider semantic equivalence ("net touch" vs "net contact"), completeness \
(were all faults identified?) and whether the trainee understood the rule.
{no_context_instruction}
Respond with ONLY the JSON object.
"""

NO_CONTEXT_WARNING = (
    "WARNING: No rule context is available. The ruling cannot be properly evaluated."
)

NO_CONTEXT_INSTRUCTION = (
    "\nNo rule context is available: return is_correct false and explain that the "
    "evaluation cannot be completed without rule information.\n"
)


def build_evaluation_prompt(
    user_answer: str,
    correct_call: str,
    difficulty: Difficulty,
    context: GroundingContext,
) -> str:
    """Build the user prompt for grading one ruling."""
    if context.has_context:
        context_block = f"Official rule context:\n{context.text}"
        instruction = ""
    else:
        context_block = NO_CONTEXT_WARNING
        instruction = NO_CONTEXT_INSTRUCTION
    return EVALUATION_USER_TEMPLATE.format(
        user_answer=user_answer,
        correct_call=correct_call,
        difficulty=difficulty.value,
        context_block=context_block,
        no_context_instruction=instruction,
    )


# ---------------------------------------------------------------------------
# Quiz question generation
# ---------------------------------------------------------------------------

DIFFICULTY_GUIDELINES: dict[Difficulty, str] = {
    Difficulty.EASY: (
        "- Fundamental rules every referee must know\n"
        "- Clear-cut situations with one obviously correct answer\n"
        "- Basic terminology: common faults, simple rotation, common hand signals"
    ),
    Difficulty.MEDIUM: (
        "- Intermediate rule application that needs judgment\n"
        "- Options separated by subtle distinctions\n"
        "- Timing and rule interaction: back-row attack, block touches, libero limits"
    ),
    Difficulty.HARD: (
        "- Several rules interacting in one rally\n"
        "- Edge cases that test deep knowledge and rule priority\n"
        "- Simultaneous faults, replay versus point, sanction escalation"
    ),
}

QUESTION_SYSTEM_TEMPLATE = """\
You are an experienced volleyball referee trainer. Write ONE practical \
multiple-choice question that helps referees officiate better.

Requirements:
1. Base the question on a realistic match situation a referee would face, with \
concrete details (player positions, actions, timing, score if relevant).
2. Provide exactly 4 plausible options; wrong options should be mistakes a \
referee could really make.
3. The answer MUST be exactly one of the option strings.
4. The explanation must cite the rule number from the provided rules.
5. Use ONLY the provided rule snippets; never invent rules.

Focus area: {focus_area}
Scenario type: {scenario_type}
Difficulty: {difficulty}
{guidelines}

Variation number: {variation} (use it to vary the angle: team perspective, \
phase of play, type of situation).

Respond with ONLY a JSON object:
{{
  "question": "scenario question",
  "options": ["Option A - ...", "Option B - ...", "Option C - ...", "Option D - ..."],
  "answer": "the full text of exactly one option",
  "explanation": "why it is correct, citing the rule (e.g. Rule 12.4.1)",
  "rule_reference": "Rule X.X.X - short title"
}}
"""

QUESTION_USER_TEMPLATE = """\
Using these official volleyball rules, write a {difficulty} question:

{context}

Respond with ONLY the JSON object. The "answer" must be the complete text of \
one of the options.
"""


def build_question_system_prompt(
    difficulty: Difficulty,
    focus_area: str,
    scenario_type: str,
    variation: int,
) -> str:
    """Build the system prompt for one quiz question."""
    return QUESTION_SYSTEM_TEMPLATE.format(
        focus_area=focus_area,
        scenario_type=scenario_type,
        difficulty=difficulty.value,
        guidelines=DIFFICULTY_GUIDELINES.get(difficulty, DIFFICULTY_GUIDELINES[Difficulty.MEDIUM]),
        variation=variation,
    )


def build_question_user_prompt(difficulty: Difficulty, context: GroundingContext) -> str:
    return QUESTION_USER_TEMPLATE.format(difficulty=difficulty.value, context=context.text)


# ---------------------------------------------------------------------------
# Rules tutor
# ---------------------------------------------------------------------------

TUTOR_SYSTEM_PROMPT = """\
You are a volleyball officiating tutor. Answer concisely and cite rule numbers. \
Treat the provided rule snippets as ground truth; if they do not cover the \
question, say so instead of guessing.
"""

TUTOR_USER_TEMPLATE = """\
Question: {question}

Rule snippets:
{context}
"""


def build_tutor_prompt(question: str, context: GroundingContext) -> str:
    return TUTOR_USER_TEMPLATE.format(question=question, context=context.text)
