"""
Shared pytest fixtures for fulgorstats tests.

Provides reusable report, dump and annotation files plus in-memory
joined tables for unit and integration testing.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import polars as pl
import pytest

from tests.factories import make_joined


# =============================================================================
# Tabulate Test Data Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Path:
    """Create temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def dump_lines() -> list[str]:
    """Filename dump with a metadata header and three references."""
    return [
        "# fulgor filenames dump\n",
        "num_references 3\n",
        "0\t/data/refs/geneZ.fna\n",
        "1\t/data/refs/geneB.fna\n",
        "10\t/data/refs/geneA.fna\n",
    ]


@pytest.fixture
def dump_file(temp_dir: Path, dump_lines: list[str]) -> Path:
    """Filename dump written to disk."""
    path = temp_dir / "filenames.txt"
    path.write_text("".join(dump_lines))
    return path


@pytest.fixture
def report_text() -> str:
    """Match report with two query blocks and an ignored metadata line."""
    return (
        "num_queries = 2\n"
        ">g1_c1\n"
        "chunk_id = 5:0 10:0 \n"
        ">g1_c2\n"
        "chunk_id = 0:0 1:0  0:0\n"
        "chunk_id = 1:3 10:1\n"
    )


@pytest.fixture
def report_file(temp_dir: Path, report_text: str) -> Path:
    """Match report written to disk."""
    path = temp_dir / "report.txt"
    path.write_text(report_text)
    return path


# =============================================================================
# Stats Test Data Fixtures
# =============================================================================
#
# Genome g1 has one annotated chunk (c1:1) with four ranked matches and two
# unannotated chunks. Genome g2 has no annotated chunk, so its negatives are
# never sampled. Expected counts with the default multiplier:
#
#   class        pos  neg  fold_change (count mode)
#   transport     1    1    0.0
#   resistance    1    2   -1.0
#   toxin         1    0    null
#   <null>        1    0    null


MATCH_TABLE_TEXT = (
    "query\tchunk\ttop\tmatch\n"
    "g1_c1\t1\t1\tmA\n"
    "g1_c1\t1\t2\tmB\n"
    "g1_c1\t1\t3\tmD\n"
    "g1_c1\t1\t4\t\n"
    "g1_c1\t2\t1\tmA\n"
    "g1_c1\t2\t2\tmC\n"
    "g1_c1\t3\t1\tmA\n"
    "g2_c1\t1\t1\tmA\n"
)

CHUNK_ANNOTATION_TEXT = (
    "query_genome_id\tquery_contig_id\tchunk\tchunk_annotation\n"
    "g1\tc1\t1\tAMR\n"
    "g1\tc1\t3\t\n"
)

MATCH_ANNOTATION_TEXT = (
    "match_genome_id\tmatch_annotation\n"
    "mA\tresistance\n"
    "mB\ttransport\n"
    "mC\ttransport\n"
    "mD\ttoxin\n"
    "mE\t\n"
)


@pytest.fixture
def match_table_file(temp_dir: Path) -> Path:
    """Match table as written by the tabulate command."""
    path = temp_dir / "matches.tsv"
    path.write_text(MATCH_TABLE_TEXT)
    return path


@pytest.fixture
def chunk_annotation_file(temp_dir: Path) -> Path:
    """Chunk annotation table marking g1_c1 chunk 1 as AMR."""
    path = temp_dir / "chunk_annotation.tsv"
    path.write_text(CHUNK_ANNOTATION_TEXT)
    return path


@pytest.fixture
def match_annotation_file(temp_dir: Path) -> Path:
    """Match annotation table for the matched sequences."""
    path = temp_dir / "match_annotation.tsv"
    path.write_text(MATCH_ANNOTATION_TEXT)
    return path


@pytest.fixture
def imbalanced_joined() -> pl.LazyFrame:
    """Joined rows: g1 has 1 positive and 10 negatives, g2 has 2 and 2, g3 has 0 and 5."""
    rows: list[tuple[str, str | None, str | None]] = [("g1", "AMR", "resistance")]
    rows += [("g1", None, f"class{i % 3}") for i in range(10)]
    rows += [("g2", "AMR", "resistance"), ("g2", "AMR", "transport")]
    rows += [("g2", None, "resistance"), ("g2", None, "transport")]
    rows += [("g3", None, "resistance") for _ in range(5)]
    return make_joined(rows)
