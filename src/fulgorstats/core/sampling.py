"""
Stratified negative sampling.

Unannotated chunks vastly outnumber annotated ones, so their rows would
dominate the enrichment counts. Each query genome may therefore contribute
at most ``positive rows x multiplier`` negative rows. Genomes without any
annotated chunk contribute none.

Rows are chosen by a seeded hash of their input position, ranked within
the genome. The choice depends only on the input and the seed, never on
the physical row order produced by joins or parallel execution.
"""

from __future__ import annotations

import logging

import polars as pl

from fulgorstats.core.annotation import ROW_INDEX, negative_rows, positive_rows

logger = logging.getLogger(__name__)

GROUP_COLUMN = "query_genome_id"
TARGET_COLUMN = "sample_target_size"
RANK_COLUMN = "_sample_rank"


def sample_target_sizes(joined: pl.LazyFrame, multiplier: int) -> pl.LazyFrame:
    """
    Number of negatives to keep per query genome.

    Args:
        joined: Joined match rows.
        multiplier: Negatives allowed per positive row.

    Returns:
        LazyFrame with columns query_genome_id and sample_target_size.
    """
    return (
        positive_rows(joined)
        .group_by(GROUP_COLUMN)
        .agg((pl.len().cast(pl.Int64) * multiplier).alias(TARGET_COLUMN))
    )


def random_rank_expr(seed: int) -> pl.Expr:
    """
    Seeded 0-based rank of each row within its query genome.

    The rank orders rows by a seeded hash of their input position, which
    is a reproducible pseudo-random permutation of the group.
    """
    rank = (
        pl.col(ROW_INDEX)
        .hash(seed=seed)
        .rank(method="min")
        .over(GROUP_COLUMN)
        .cast(pl.Int64)
    )
    return (rank - 1).alias(RANK_COLUMN)


def sample_negatives(
    joined: pl.LazyFrame,
    multiplier: int = 100,
    seed: int = 12345,
) -> pl.LazyFrame:
    """
    Subsample unannotated rows per query genome.

    A row is kept when its seeded rank is below the largest target size
    seen for its genome. The target is a cap: genomes with fewer negatives
    keep all of them.

    Args:
        joined: Joined match rows with a ``_row`` input position column.
        multiplier: Negatives allowed per positive row of the same genome.
        seed: Seed for the pseudo-random row order.

    Returns:
        LazyFrame with the kept negative rows, same columns as ``joined``.
    """
    if ROW_INDEX not in joined.collect_schema().names():
        msg = f"Joined rows need a '{ROW_INDEX}' column for seeded sampling"
        raise ValueError(msg)

    targets = sample_target_sizes(joined, multiplier)

    return (
        negative_rows(joined)
        .join(targets, on=GROUP_COLUMN, how="left")
        .with_columns(
            pl.col(TARGET_COLUMN).fill_null(0),
            random_rank_expr(seed),
        )
        .filter(
            pl.col(RANK_COLUMN) < pl.col(TARGET_COLUMN).max().over(GROUP_COLUMN)
        )
        .drop([TARGET_COLUMN, RANK_COLUMN])
    )
