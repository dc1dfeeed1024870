"""
E2E test fixtures for fulgorstats CLI testing.

Provides fixtures that combine the dataset factory with CLI invocation
helpers for running the full tabulate and stats pipeline.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable

import pytest
from typer.testing import CliRunner

from fulgorstats.cli.main import app
from tests.factories import PipelineDataset, PipelineFiles

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def e2e_runner() -> CliRunner:
    """Provide a CLI runner for E2E tests."""
    return CliRunner()


@pytest.fixture
def e2e_temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for E2E test files."""
    return tmp_path


@pytest.fixture
def pipeline_files(e2e_temp_dir: Path) -> PipelineFiles:
    """Create a seeded synthetic dataset for the whole pipeline."""
    return PipelineDataset(e2e_temp_dir, seed=42).create_dataset()


@pytest.fixture
def run_tabulate(e2e_runner: CliRunner, e2e_temp_dir: Path) -> Callable[..., Result]:
    """Invoke 'fulgorstats tabulate' with the given inputs."""

    def _run(
        report: Path,
        dump: Path,
        output_name: str = "matches.tsv",
        extra_args: list[str] | None = None,
    ) -> Result:
        args = ["tabulate", str(report), str(dump), str(e2e_temp_dir / output_name), "-q"]
        return e2e_runner.invoke(app, args + (extra_args or []))

    return _run


@pytest.fixture
def run_stats(e2e_runner: CliRunner, e2e_temp_dir: Path) -> Callable[..., Result]:
    """Invoke 'fulgorstats stats' with the given inputs."""

    def _run(
        match_table: Path,
        chunk_annotation: Path,
        match_annotation: Path,
        output_name: str = "enrichment.tsv",
        extra_args: list[str] | None = None,
    ) -> Result:
        args = [
            "stats",
            str(match_table),
            str(chunk_annotation),
            str(match_annotation),
            str(e2e_temp_dir / output_name),
            "-q",
        ]
        return e2e_runner.invoke(app, args + (extra_args or []))

    return _run
