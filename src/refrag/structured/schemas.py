"""Schemas for model output that is expected to be structured JSON.

Model output is untrusted input: every field is validated on parse, with
strict types so that e.g. ``"true"`` is not accepted as a boolean.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

NonEmptyStr = Annotated[StrictStr, Field(min_length=1)]

OPTION_COUNT = 4


class _ModelOutput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", frozen=True)


class RulingEvaluation(_ModelOutput):
    """Verdict on a user's ruling, as returned by the evaluation prompt."""

    is_correct: StrictBool
    normalized_call: NonEmptyStr
    explanation: NonEmptyStr
    rule_reference: NonEmptyStr


class GeneratedQuestion(_ModelOutput):
    """A four-option quiz question, as returned by the question prompt."""

    question: NonEmptyStr
    options: Annotated[
        list[NonEmptyStr], Field(min_length=OPTION_COUNT, max_length=OPTION_COUNT)
    ]
    answer: NonEmptyStr
    explanation: NonEmptyStr
    rule_reference: StrictStr | None = None

    @field_validator("rule_reference")
    @classmethod
    def _blank_reference_is_none(cls, value: str | None) -> str | None:
        return value or None
