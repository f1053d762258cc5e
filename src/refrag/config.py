"""Application settings loaded from YAML with a profile override."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

from refrag.structured.repair import AnswerMismatchPolicy

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "openai"
    model: str = "text-embedding-3-small"
    dimension: int = 1536


class VectorStoreSettings(BaseModel):
    backend: str = "faiss"
    path: str = "local_data/rules_index"
    collection: str = "rules_embeddings"
    url: str | None = None


class LLMSettings(BaseModel):
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    # Task-specific overrides of `model`; unset means `model` is used.
    evaluation_model: str | None = None
    question_model: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class ChunkingSettings(BaseModel):
    window_size: int = Field(default=800, gt=0)
    overlap: int = Field(default=80, ge=0)
    batch_size: int = Field(default=64, gt=0)

    @model_validator(mode="after")
    def _overlap_below_window(self) -> ChunkingSettings:
        if self.overlap >= self.window_size:
            raise ValueError(
                f"chunking.overlap ({self.overlap}) must be smaller than "
                f"chunking.window_size ({self.window_size})"
            )
        return self


class RetrievalSettings(BaseModel):
    top_k: int = Field(default=5, ge=1)
    evaluation_top_k: int = Field(default=4, ge=1)
    tutor_top_k: int = Field(default=4, ge=1)
    max_workers: int = Field(default=4, ge=1)


class EvaluationSettings(BaseModel):
    max_retries: int = Field(default=2, ge=0)
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=500, gt=0)
    backoff_base: float = Field(default=0.5, ge=0.0)
    backoff_max: float = Field(default=4.0, ge=0.0)


class QuestionSettings(BaseModel):
    topics_per_question: int = Field(default=3, ge=1)
    top_k_per_topic: int = Field(default=4, ge=1)
    max_chunks: int = Field(default=5, ge=1)
    temperature: float = Field(default=0.85, ge=0.0, le=2.0)
    mismatch_policy: AnswerMismatchPolicy = AnswerMismatchPolicy.FIRST_OPTION


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    evaluation: EvaluationSettings = Field(default_factory=EvaluationSettings)
    questions: QuestionSettings = Field(default_factory=QuestionSettings)


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("REFRAG_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file, falling back to defaults.

    Args:
        path: Explicit settings file. When omitted, the nearest
            ``settings.yaml`` (or profile variant) above the cwd is used.
    """
    settings_path = Path(path) if path is not None else _find_settings_file()
    if settings_path is None:
        return Settings()

    with open(settings_path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    return Settings(**raw)
