"""
Console helpers shared by the tabulate, stats and util commands.

Spinners, quiet-mode printing and the Rich rendering of enrichment tables.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import polars as pl
from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table


@contextmanager
def spinner_progress(
    description: str,
    console: Console | None = None,
    quiet: bool = False,
) -> Generator[Progress, None, None]:
    """Show an indeterminate spinner with elapsed time while a step runs.

    Args:
        description: Label shown next to the spinner.
        console: Console to render on.
        quiet: Disable rendering. A task is still registered so callers
            can treat the yielded Progress the same either way.

    Example:
        >>> with spinner_progress("Parsing report...", console, quiet):
        ...     records = list(parser)
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        disable=quiet,
    ) as progress:
        progress.add_task(description, total=None)
        yield progress


def format_fold_change(value: float | None) -> str:
    """Render a fold-change for display; undefined values show as 'NA'."""
    if value is None:
        return "NA"
    return f"{value:+.3f}"


def enrichment_rich_table(table: pl.DataFrame, limit: int = 15) -> Table:
    """Build a Rich table from the leading rows of an enrichment table."""
    rich_table = Table(title="Top enriched annotation classes")
    rich_table.add_column("match_annotation", style="cyan")
    rich_table.add_column("pos_count", justify="right")
    rich_table.add_column("neg_count", justify="right")
    rich_table.add_column("fold_change", justify="right", style="green")

    for row in table.head(limit).iter_rows(named=True):
        rich_table.add_row(
            row["match_annotation"] if row["match_annotation"] is not None else "[dim]none[/dim]",
            f"{row['pos_count']:,}",
            f"{row['neg_count']:,}",
            format_fold_change(row["fold_change"]),
        )
    return rich_table


class QuietConsole:
    """Drop ``print`` calls when ``--quiet`` is set.

    Error messages are printed on the wrapped console directly so they are
    never hidden. Any other attribute is looked up on the wrapped console.
    """

    def __init__(self, console: Console, quiet: bool = False) -> None:
        self._console = console
        self._quiet = quiet

    @property
    def console(self) -> Console:
        return self._console

    def print(self, *args: Any, **kwargs: Any) -> None:
        if self._quiet:
            return
        self._console.print(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._console, name)
