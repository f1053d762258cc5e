"""CLI entry point — Typer app for refrag commands.

Usage:
    refrag ingest rules/fivb_rules.pdf
    refrag search "net touch during block"
    refrag evaluate "net touch" "Net fault by blocker" --difficulty hard
    refrag question --difficulty easy
    refrag ask "When is a libero allowed to attack?"
    refrag status
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from refrag import __version__
from refrag.config import Settings, load_settings
from refrag.embeddings.base import EmbeddingProvider
from refrag.errors import RefragError
from refrag.llm.base import LLMProvider
from refrag.retrieval.retriever import RuleRetriever
from refrag.vectorstore.base import VectorStore

app = typer.Typer(
    name="refrag",
    help="Volleyball rule grounding — ingest rulebooks, evaluate rulings, quiz, tutor.",
    no_args_is_help=True,
)

console = Console()

_INGEST_PATH = typer.Argument(..., help="Path to the rulebook (.txt, .md or .pdf)")

# Set by the app callback before any command runs.
_settings: Settings | None = None


@app.callback()
def main(
    settings_file: Path | None = typer.Option(
        None, "--settings", help="Settings YAML (default: nearest settings.yaml)",
    ),
    log_level: str = typer.Option(
        os.getenv("LOG_LEVEL", "WARNING"), "--log-level", help="Python log level",
    ),
) -> None:
    """Load settings and configure logging."""
    global _settings
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )
    _settings = load_settings(settings_file)


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _get_settings() -> Settings:
    return _settings if _settings is not None else load_settings()


def _build_embedding_provider(settings: Settings, provider: str | None) -> EmbeddingProvider:
    from refrag.embeddings.factory import get_embedding_provider

    name = (provider or settings.embedding.provider).lower()
    if name != settings.embedding.provider.lower():
        # Configured model names belong to the configured provider.
        return get_embedding_provider(name)

    kwargs: dict = {"model": settings.embedding.model}
    if name == "openai":
        kwargs["dimensions"] = settings.embedding.dimension
    elif name == "ollama":
        kwargs["dimension"] = settings.embedding.dimension
    return get_embedding_provider(name, **kwargs)


def _build_vector_store(settings: Settings, backend: str | None, dimension: int) -> VectorStore:
    from refrag.vectorstore.factory import get_vector_store

    name = (backend or settings.vectorstore.backend).lower()
    cfg = settings.vectorstore
    if name == "qdrant":
        if cfg.url:
            return get_vector_store(
                name, collection_name=cfg.collection, dimension=dimension, url=cfg.url,
            )
        return get_vector_store(
            name, collection_name=cfg.collection, dimension=dimension, path=cfg.path,
        )
    return get_vector_store(name, dimension=dimension, path=cfg.path)


def _build_llm_provider(settings: Settings, provider: str | None) -> LLMProvider:
    from refrag.llm.factory import get_llm_provider

    name = (provider or settings.llm.provider).lower()
    if name != settings.llm.provider.lower():
        return get_llm_provider(name)
    return get_llm_provider(name, model=settings.llm.model)


def _model_override(settings: Settings, provider: str | None, model: str | None) -> str | None:
    """Use a task-specific model only with the configured provider."""
    if provider and provider.lower() != settings.llm.provider.lower():
        return None
    return model


def _build_retriever(
    settings: Settings,
    embedding: str | None,
    store: str | None,
) -> tuple[RuleRetriever, VectorStore]:
    emb = _build_embedding_provider(settings, embedding)
    vector_store = _build_vector_store(settings, store, emb.dimension)
    retriever = RuleRetriever(
        embedding_provider=emb,
        vector_store=vector_store,
        max_workers=settings.retrieval.max_workers,
    )
    return retriever, vector_store


def _build_generator(settings: Settings, embedding: str | None, store: str | None,
                     llm: str | None):
    from refrag.pipeline.structured import StructuredGenerator

    retriever, _ = _build_retriever(settings, embedding, store)
    return StructuredGenerator(
        retriever=retriever,
        llm_provider=_build_llm_provider(settings, llm),
        max_retries=settings.evaluation.max_retries,
        backoff_base=settings.evaluation.backoff_base,
        backoff_max=settings.evaluation.backoff_max,
    )


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/] {exc}")
    raise typer.Exit(code=1) from exc


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def ingest(
    path: Annotated[Path, _INGEST_PATH],
    embedding: str | None = typer.Option(None, "--embedding", "-e", help="Embedding provider"),
    store: str | None = typer.Option(None, "--store", "-s", help="Vector store backend"),
) -> None:
    """Chunk, embed and store a rulebook."""
    from refrag.chunking.word_chunker import WordWindowChunker
    from refrag.pipeline.ingest import IngestPipeline

    settings = _get_settings()
    try:
        emb = _build_embedding_provider(settings, embedding)
        vector_store = _build_vector_store(settings, store, emb.dimension)
        pipeline = IngestPipeline(
            embedding_provider=emb,
            vector_store=vector_store,
            chunker=WordWindowChunker(settings.chunking.window_size, settings.chunking.overlap),
            batch_size=settings.chunking.batch_size,
        )
        result = pipeline.ingest_file(path)
        if result.chunks_stored:
            try:
                vector_store.save(settings.vectorstore.path)
            except NotImplementedError:
                pass
    except (RefragError, FileNotFoundError) as exc:
        _fail(exc)

    console.print(f"\n[bold green]Ingested:[/] {path.name}")
    console.print(f"  Chunks: {result.chunks_created}")
    console.print(f"  Embedded: {result.chunks_embedded}")
    console.print(f"  Stored: {result.chunks_stored}")

    for w in result.warnings:
        console.print(f"  [yellow]Warning:[/] {w}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Free-text rule query"),
    top_k: int | None = typer.Option(None, "--top-k", "-k", help="Number of results"),
    embedding: str | None = typer.Option(None, "--embedding", "-e", help="Embedding provider"),
    store: str | None = typer.Option(None, "--store", "-s", help="Vector store backend"),
) -> None:
    """Show the rule chunks most similar to a query."""
    settings = _get_settings()
    k = top_k if top_k is not None else settings.retrieval.top_k
    try:
        retriever, _ = _build_retriever(settings, embedding, store)
        results = retriever.search(query, k)
    except RefragError as exc:
        _fail(exc)

    if not results:
        console.print("[yellow]No matching rules. Has a rulebook been ingested?[/]")
        return

    table = Table(title=f"Top {len(results)} rule chunks")
    table.add_column("#", style="cyan")
    table.add_column("Similarity")
    table.add_column("Text")
    for rank, r in enumerate(results, 1):
        table.add_row(str(rank), f"{r.similarity:.2f}", r.chunk[:120])
    console.print(table)


@app.command()
def evaluate(
    user_answer: str = typer.Argument(..., help="The trainee's ruling"),
    correct_call: str = typer.Argument(..., help="The correct ruling"),
    difficulty: str = typer.Option("medium", "--difficulty", "-d",
                                   help="easy, medium, hard or extreme"),
    embedding: str | None = typer.Option(None, "--embedding", "-e", help="Embedding provider"),
    store: str | None = typer.Option(None, "--store", "-s", help="Vector store backend"),
    llm: str | None = typer.Option(None, "--llm", "-l", help="LLM provider"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
) -> None:
    """Grade a ruling against the correct call."""
    from refrag.pipeline.evaluate import RulingEvaluator

    settings = _get_settings()
    try:
        generator = _build_generator(settings, embedding, store, llm)
    except RefragError as exc:
        _fail(exc)

    evaluator = RulingEvaluator(
        generator,
        model=_model_override(settings, llm, settings.llm.evaluation_model),
        top_k=settings.retrieval.evaluation_top_k,
        temperature=settings.evaluation.temperature,
        max_tokens=settings.evaluation.max_tokens,
    )
    result = evaluator.evaluate_ruling(user_answer, correct_call, difficulty)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    verdict = "[bold green]CORRECT[/]" if result.is_correct else "[bold red]INCORRECT[/]"
    console.print(f"\n{verdict}  {result.normalized_call}")
    console.print(f"\n{result.explanation}")
    console.print(f"\n[dim]{result.rule_reference}[/]")


@app.command()
def question(
    difficulty: str = typer.Option("medium", "--difficulty", "-d", help="easy, medium or hard"),
    seed: int | None = typer.Option(None, "--seed", help="Random seed for topic selection"),
    embedding: str | None = typer.Option(None, "--embedding", "-e", help="Embedding provider"),
    store: str | None = typer.Option(None, "--store", "-s", help="Vector store backend"),
    llm: str | None = typer.Option(None, "--llm", "-l", help="LLM provider"),
) -> None:
    """Generate a multiple-choice quiz question."""
    import random

    from refrag.pipeline.questions import QuestionGenerator

    settings = _get_settings()
    cfg = settings.questions
    try:
        generator = QuestionGenerator(
            _build_generator(settings, embedding, store, llm),
            rng=random.Random(seed),
            model=_model_override(settings, llm, settings.llm.question_model),
            topics_per_question=cfg.topics_per_question,
            top_k_per_topic=cfg.top_k_per_topic,
            max_chunks=cfg.max_chunks,
            temperature=cfg.temperature,
            mismatch_policy=cfg.mismatch_policy,
        )
        quiz = generator.generate_question(difficulty)
    except RefragError as exc:
        _fail(exc)

    console.print(f"\n[bold]{quiz.question}[/]\n")
    for letter, option in zip("ABCD", quiz.options, strict=False):
        console.print(f"  {letter}. {option}")
    console.print(f"\n[bold green]Answer:[/] {quiz.answer}")
    console.print(f"\n{quiz.explanation}")
    if quiz.rule_reference:
        console.print(f"\n[dim]{quiz.rule_reference}[/]")


@app.command()
def ask(
    question_text: str = typer.Argument(..., metavar="QUESTION", help="Rules question"),
    embedding: str | None = typer.Option(None, "--embedding", "-e", help="Embedding provider"),
    store: str | None = typer.Option(None, "--store", "-s", help="Vector store backend"),
    llm: str | None = typer.Option(None, "--llm", "-l", help="LLM provider"),
) -> None:
    """Ask the rules tutor a question."""
    from refrag.pipeline.tutor import RuleTutor

    settings = _get_settings()
    try:
        retriever, _ = _build_retriever(settings, embedding, store)
        tutor = RuleTutor(
            retriever,
            _build_llm_provider(settings, llm),
            top_k=settings.retrieval.tutor_top_k,
            temperature=settings.llm.temperature,
        )
        response = tutor.ask(question_text)
    except RefragError as exc:
        _fail(exc)

    console.print(f"\n[bold]Q:[/] {response.question}")
    console.print(f"\n[bold green]A:[/] {response.answer}")
    console.print(
        f"\n[dim]Model: {response.model} | Rule snippets: {len(response.references)}[/]",
    )


@app.command()
def status() -> None:
    """Show installed providers and the active settings."""
    from refrag.embeddings.factory import available_providers as emb_providers
    from refrag.llm.factory import available_providers as llm_providers
    from refrag.vectorstore.factory import available_stores

    settings = _get_settings()
    console.print(f"\n[bold green]referee-rag[/] v{__version__}\n")

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_column("Configured")

    table.add_row(
        "Chunking", "word windows",
        f"{settings.chunking.window_size} words, overlap {settings.chunking.overlap}",
    )
    table.add_row(
        "Embedding Providers", ", ".join(emb_providers()),
        f"{settings.embedding.provider} ({settings.embedding.model})",
    )
    table.add_row(
        "Vector Stores", ", ".join(available_stores()),
        f"{settings.vectorstore.backend} ({settings.vectorstore.path})",
    )
    table.add_row(
        "LLM Providers", ", ".join(llm_providers()),
        f"{settings.llm.provider} ({settings.llm.model})",
    )

    console.print(table)


if __name__ == "__main__":
    app()
