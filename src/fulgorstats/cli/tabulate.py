"""
Tabulate command: Fulgor top-K report to match table.

Resolves the numeric sequence indices of a report through the filename
dump of the same index and writes one row per ranked match.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console

from fulgorstats.cli.utils import QuietConsole, spinner_progress
from fulgorstats.core.exceptions import FulgorStatsError
from fulgorstats.core.identifier_index import IdentifierIndex
from fulgorstats.core.io_utils import require_input_files, write_match_table
from fulgorstats.core.report_parser import MatchReportParser
from fulgorstats.models.config import TabulateConfig

logger = logging.getLogger(__name__)

console = Console()


def tabulate(
    report: Annotated[
        Path,
        typer.Argument(
            help="Path to the Fulgor top-K output file",
            dir_okay=False,
        ),
    ],
    dump: Annotated[
        Path,
        typer.Argument(
            help="Path to the Fulgor filename dump",
            dir_okay=False,
        ),
    ],
    output: Annotated[
        Path,
        typer.Argument(
            help="Output path for the match table (TSV)",
            dir_okay=False,
        ),
    ],
    suffix: Annotated[
        str,
        typer.Argument(
            help="Suffix to strip from file paths",
        ),
    ] = ".fna",
    batch_size: Annotated[
        int,
        typer.Option(
            "--batch-size",
            help="Rows buffered per write batch",
            min=1,
        ),
    ] = 100_000,
    summary: Annotated[
        Path | None,
        typer.Option(
            "--summary",
            "-s",
            help="Output path for tabulation summary (JSON)",
            dir_okay=False,
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """
    Convert a Fulgor top-K report into a tab-separated match table.

    Every ranked match of every chunk becomes a row
    (query, chunk, top, match); ranks without a match are kept with an
    empty match field.

    Example:

        fulgorstats tabulate report.txt filenames.txt matches.tsv

        # Genomes stored as .fa files:
        fulgorstats tabulate report.txt filenames.txt matches.tsv .fa
    """
    out = QuietConsole(console, quiet=quiet)

    try:
        config = TabulateConfig(suffix=suffix, batch_size=batch_size)
    except ValidationError as e:
        console.print(f"[red]Error: Invalid options: {e}[/red]")
        raise typer.Exit(code=1) from None

    out.print(f"[bold]Tabulating report:[/bold] {report}")

    try:
        require_input_files((report, "Match report"), (dump, "Identifier dump"))

        with spinner_progress("Loading identifier dump...", console, quiet):
            index = IdentifierIndex.from_dump(dump, suffix=config.suffix)

        out.print(f"[dim]Loaded {len(index):,} sequence identifiers[/dim]")

        parser = MatchReportParser(report, index)
        with spinner_progress("Parsing report...", console, quiet):
            result = write_match_table(parser, output, batch_size=config.batch_size)

    except FulgorStatsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    out.print(
        f"[green]Wrote {result.num_rows:,} rows[/green] "
        f"({result.num_queries:,} queries, {result.num_chunks:,} chunks, "
        f"{result.num_empty_matches:,} empty matches)"
    )
    out.print(f"[dim]Output:[/dim] {output}")

    if summary:
        try:
            result.to_json(summary)
        except OSError as e:
            console.print(f"[red]Error: Cannot write summary {summary}: {e}[/red]")
            raise typer.Exit(code=1) from None
        out.print(f"[dim]Summary:[/dim] {summary}")
