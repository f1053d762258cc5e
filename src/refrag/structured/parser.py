"""Fence stripping and schema-validated parsing of model output."""

from __future__ import annotations

import logging
import re
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from refrag.errors import GenerationFormatError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_LEADING_FENCE = re.compile(r"^```(?:json)?[ \t]*\r?\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```$")


def strip_code_fences(text: str) -> str:
    """Remove one leading ```` ```json ````/```` ``` ```` marker and one trailing ```` ``` ````.

    Each side is stripped independently of the other.
    """
    cleaned = text.strip()
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_model_output(text: str, schema: type[M]) -> M:
    """Parse raw model text into ``schema``.

    Args:
        text: Raw completion text, possibly fenced.
        schema: Pydantic model describing the expected record.

    Returns:
        The validated record.

    Raises:
        GenerationFormatError: On empty output, invalid JSON, or any schema
            violation (missing field, wrong type, wrong option count).
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise GenerationFormatError("Model returned an empty response", raw=text)

    try:
        return schema.model_validate_json(cleaned)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        logger.debug("Rejected %s output: %s", schema.__name__, problems)
        raise GenerationFormatError(
            f"Model output does not match {schema.__name__}: {problems}", raw=text
        ) from exc
