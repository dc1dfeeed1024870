"""
Utility commands for fulgorstats.

Provides helper commands for inspecting inputs and troubleshooting
mismatched report and dump pairs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from fulgorstats.cli.utils import QuietConsole, spinner_progress
from fulgorstats.core.exceptions import FulgorStatsError
from fulgorstats.core.identifier_index import DEFAULT_SUFFIX, IdentifierIndex

app = typer.Typer(
    name="util",
    help="Utility commands for inspecting inputs",
    no_args_is_help=True,
)

console = Console()


@app.command(name="export-index")
def export_index(
    dump: Annotated[
        Path,
        typer.Argument(
            help="Path to the Fulgor filename dump",
            dir_okay=False,
        ),
    ],
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output TSV file (index, identifier)",
            dir_okay=False,
        ),
    ],
    suffix: Annotated[
        str,
        typer.Option(
            "--suffix",
            help="Suffix to strip from file paths",
        ),
    ] = DEFAULT_SUFFIX,
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
    Export the index-to-identifier mapping of a filename dump.

    Shows exactly which identifier each report index resolves to, which
    helps diagnosing unknown-index failures in 'fulgorstats tabulate'.

    Example:
        fulgorstats util export-index filenames.txt --output index.tsv
    """
    qc = QuietConsole(console, quiet)

    try:
        with spinner_progress("Reading filename dump...", console, quiet):
            index = IdentifierIndex.from_dump(dump, suffix=suffix)
        index.to_tsv(output)
    except FulgorStatsError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(1) from e
    except OSError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(1) from e

    qc.print(f"[green]Success![/green] Exported {len(index):,} identifiers")
    qc.print(f"[dim]Output:[/dim] {output}")

    sample_entries = list(index.items())[:5]
    if sample_entries:
        qc.print("\n[bold]Sample entries:[/bold]")
        for position, identifier in sample_entries:
            qc.print(f"  {position} -> {identifier}")
