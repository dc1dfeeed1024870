"""
Main CLI entry point for fulgorstats.

Provides the two pipeline stages as subcommands:
- tabulate: Convert a Fulgor top-K report into a match table
- stats: Compute annotation fold-change enrichment from a match table
- util: Helper commands for inspecting inputs
"""

from __future__ import annotations

import logging

import typer
from rich import print as rprint

from fulgorstats import __version__

app = typer.Typer(
    name="fulgorstats",
    help="Tabulate Fulgor top-K reports and compute annotation enrichment",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"fulgorstats version {__version__}")
        raise typer.Exit


def configure_logging(verbose: bool) -> None:
    """Send library log records to stderr at DEBUG level when verbose."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
) -> None:
    """
    fulgorstats: Fulgor top-K report tabulation and enrichment statistics.

    Run 'tabulate' on a report and its filename dump, then 'stats' on the
    resulting match table with chunk and match annotation tables.
    """
    configure_logging(verbose)


# Import subcommands
from fulgorstats.cli import stats, tabulate, util

# Register subcommands
app.command(name="tabulate")(tabulate.tabulate)
app.command(name="stats")(stats.stats)
app.add_typer(util.app, name="util")


if __name__ == "__main__":
    app()
