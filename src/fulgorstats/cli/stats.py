"""
Stats command for annotation fold-change enrichment.

Joins a match table with chunk and match annotation tables, samples
unannotated chunks per query genome and ranks match annotation classes by
log2 fold-change between annotated and unannotated chunks.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import polars as pl
import typer
from pydantic import ValidationError
from rich.console import Console

from fulgorstats.cli.utils import QuietConsole, enrichment_rich_table, spinner_progress
from fulgorstats.core.enrichment import EnrichmentAnalyzer
from fulgorstats.core.exceptions import FulgorStatsError
from fulgorstats.core.io_utils import write_dataframe
from fulgorstats.models.config import EnrichmentConfig

logger = logging.getLogger(__name__)

console = Console()


def load_enrichment_config(
    config_path: Path | None,
    multiplier: int | None,
    seed: int | None,
    mode: str | None,
) -> EnrichmentConfig:
    """
    Build the enrichment config from an optional YAML file and CLI overrides.

    Raises:
        ConfigurationError: If the YAML file is invalid.
        ValidationError: If an override is out of range.
    """
    base = EnrichmentConfig.from_yaml(config_path) if config_path else EnrichmentConfig()
    return base.with_overrides(
        sample_multiplier=multiplier,
        seed=seed,
        fold_change_mode=mode.lower() if mode else None,
    )


def stats(
    tabular_file: Annotated[
        Path,
        typer.Argument(
            help="Path to the match table from 'fulgorstats tabulate'",
            dir_okay=False,
        ),
    ],
    chunk_annotation_file: Annotated[
        Path,
        typer.Argument(
            help="Chunk annotation TSV (query_genome_id, query_contig_id, chunk, chunk_annotation)",
            dir_okay=False,
        ),
    ],
    match_annotation_file: Annotated[
        Path,
        typer.Argument(
            help="Match annotation TSV (match_genome_id, match_annotation)",
            dir_okay=False,
        ),
    ],
    output: Annotated[
        Path,
        typer.Argument(
            help="Output path for the enrichment table",
            dir_okay=False,
        ),
    ],
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="YAML file with sampling and fold-change settings",
            dir_okay=False,
        ),
    ] = None,
    multiplier: Annotated[
        int | None,
        typer.Option(
            "--multiplier",
            "-m",
            help="Negatives sampled per positive row of a query genome (default: 100)",
        ),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option(
            "--seed",
            help="Seed for negative sampling (default: 12345)",
        ),
    ] = None,
    mode: Annotated[
        str | None,
        typer.Option(
            "--mode",
            help=(
                "Fold-change formula: 'count' compares raw class counts (default), "
                "'normalized' compares class fractions of each set"
            ),
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: 'tsv' or 'parquet'",
        ),
    ] = "tsv",
    summary: Annotated[
        Path | None,
        typer.Option(
            "--summary",
            "-s",
            help="Output path for run summary (JSON)",
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
    Rank match annotation classes by fold-change enrichment.

    Rows of annotated query chunks form the positive set. Rows of
    unannotated chunks are sampled per query genome (at most
    multiplier x positives) to form the negative set. Each match annotation
    class gets fold_change = log2(positive / negative); classes without
    negatives get an empty fold_change and are listed last.

    Example:

        fulgorstats stats matches.tsv chunk_anno.tsv match_anno.tsv enrichment.tsv

        # Normalized fold-change with a custom seed:
        fulgorstats stats matches.tsv chunk_anno.tsv match_anno.tsv enrichment.tsv \\
            --mode normalized --seed 7 --summary enrichment.json
    """
    out = QuietConsole(console, quiet=quiet)

    output_format = output_format.lower()
    if output_format not in ("tsv", "parquet"):
        console.print(
            f"[red]Error: Invalid format '{output_format}'. "
            f"Use 'tsv' or 'parquet'.[/red]"
        )
        raise typer.Exit(code=1) from None

    try:
        config = load_enrichment_config(config_file, multiplier, seed, mode)
    except FulgorStatsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None
    except ValidationError as e:
        console.print(f"[red]Error: Invalid options: {e}[/red]")
        raise typer.Exit(code=1) from None

    logger.debug("Enrichment config: %s", config.model_dump())
    out.print("\n[bold blue]fulgorstats enrichment[/bold blue]\n")
    out.print(
        f"[dim]Mode: {config.fold_change_mode}, multiplier: "
        f"{config.sample_multiplier}, seed: {config.seed}[/dim]"
    )

    try:
        with spinner_progress("Computing fold-changes...", console, quiet):
            analyzer = EnrichmentAnalyzer(config)
            result = analyzer.analyze_files(
                tabular_file, chunk_annotation_file, match_annotation_file
            )
            write_dataframe(result.table, output, output_format)

    except FulgorStatsError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None
    except pl.exceptions.PolarsError as e:
        console.print(f"\n[red]Data processing error: {e}[/red]")
        console.print(
            "[dim]This may indicate a malformed match or annotation table.[/dim]"
        )
        raise typer.Exit(code=1) from None

    run_summary = result.summary
    out.print(
        f"[green]Ranked {run_summary.num_classes:,} annotation classes[/green] "
        f"({run_summary.positive_rows:,} positive rows, "
        f"{run_summary.sampled_negative_rows:,} of "
        f"{run_summary.negative_rows:,} negative rows sampled)"
    )
    if not quiet and not result.table.is_empty():
        console.print(enrichment_rich_table(result.table))
    out.print(f"[dim]Output:[/dim] {output}")

    if summary:
        try:
            run_summary.to_json(summary)
        except OSError as e:
            console.print(f"[red]Error: Cannot write summary {summary}: {e}[/red]")
            raise typer.Exit(code=1) from None
        out.print(f"[dim]Summary:[/dim] {summary}")
