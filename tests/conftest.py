"""Shared fixtures for tests — synthetic rulebook text, no network calls."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
from fakes import MockEmbedder

from refrag.retrieval.schemas import RetrievedChunk

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def embedder() -> MockEmbedder:
    return MockEmbedder()


@pytest.fixture
def rule_chunks() -> list[RetrievedChunk]:
    return [
        RetrievedChunk(
            chunk="11.3.1 Contact with the net by a player between the antennae, "
                  "during the action of playing the ball, is a fault.",
            similarity=0.82,
        ),
        RetrievedChunk(
            chunk="11.2.1 It is permitted to penetrate into the opponent's space "
                  "under the net, provided that this does not interfere.",
            similarity=0.71,
        ),
    ]


@pytest.fixture
def sample_rules_text() -> str:
    return textwrap.dedent("""\
        OFFICIAL VOLLEYBALL RULES

        11.2 PENETRATION UNDER THE NET
        11.2.1 It is permitted to penetrate into the opponent's space under the
        net, provided that this does not interfere with the opponent's play.

        11.3 CONTACT WITH THE NET
        11.3.1 Contact with the net by a player between the antennae, during the
        action of playing the ball, is a fault.

        12.4 EXECUTION OF THE SERVICE
        12.4.4 The server must hit the ball within 8 seconds after the first
        referee whistles for service.
    """)


@pytest.fixture
def sample_txt_file(tmp_path: Path, sample_rules_text: str) -> Path:
    p = tmp_path / "rules.txt"
    p.write_text(sample_rules_text, encoding="utf-8")
    return p


@pytest.fixture
def sample_pdf_file(tmp_path: Path) -> Path:
    """Create a minimal two-page rulebook PDF using fpdf2."""
    from fpdf import FPDF

    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_font("Helvetica", size=12)

    pdf.add_page()
    pdf.multi_cell(0, 10, text=(
        "11.3 CONTACT WITH THE NET\n\n"
        "11.3.1 Contact with the net by a player between the antennae, "
        "during the action of playing the ball, is a fault."
    ))

    pdf.add_page()
    pdf.multi_cell(0, 10, text=(
        "12.4 EXECUTION OF THE SERVICE\n\n"
        "12.4.4 The server must hit the ball within 8 seconds after the "
        "first referee whistles for service."
    ))

    p = tmp_path / "rules.pdf"
    pdf.output(str(p))
    return p
