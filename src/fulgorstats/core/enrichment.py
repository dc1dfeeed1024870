"""
Fold-change enrichment of match annotation classes.

Positive rows (annotated query chunks) and sampled negative rows
(unannotated chunks) are counted per ``match_annotation``. Each class gets
a log2 fold-change of its positive measure over its negative measure, and
classes are ranked from most to least enriched.

The whole computation is a Polars lazy query; it is collected once at the
end so Polars can plan and parallelize the joins and aggregations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import polars as pl

from fulgorstats.core.annotation import (
    join_annotations,
    positive_rows,
    read_chunk_annotation,
    read_match_annotation,
    read_match_table,
)
from fulgorstats.core.io_utils import require_input_files
from fulgorstats.core.sampling import sample_negatives
from fulgorstats.models.config import EnrichmentConfig, FoldChangeMode
from fulgorstats.models.summary import EnrichmentSummary

logger = logging.getLogger(__name__)

ENRICHMENT_COLUMNS = ["match_annotation", "pos_count", "neg_count", "fold_change"]

TOP_CLASSES_IN_SUMMARY = 10


def count_by_annotation(rows: pl.LazyFrame, prefix: str) -> pl.LazyFrame:
    """
    Count rows per match annotation class.

    Args:
        rows: Positive or negative rows.
        prefix: 'pos' or 'neg'.

    Returns:
        LazyFrame with match_annotation, {prefix}_count and
        {prefix}_measure (the class's fraction of all rows in the set).
    """
    count_col = f"{prefix}_count"
    return (
        rows.group_by("match_annotation")
        .agg(pl.len().cast(pl.UInt64).alias(count_col))
        .with_columns(
            (
                pl.col(count_col).cast(pl.Float64) / pl.col(count_col).sum().cast(pl.Float64)
            ).alias(f"{prefix}_measure")
        )
    )


def fold_change_expr(mode: FoldChangeMode = "count") -> pl.Expr:
    """
    log2 fold-change of positive over negative rows.

    In 'count' mode the raw counts are compared; in 'normalized' mode the
    per-set fractions are. The result is null whenever a count is zero or
    missing, so it is never infinite.
    """
    if mode == "normalized":
        ratio = pl.col("pos_measure") / pl.col("neg_measure")
    else:
        ratio = pl.col("pos_count").cast(pl.Float64) / pl.col("neg_count").cast(pl.Float64)

    defined = (pl.col("pos_count") > 0) & (pl.col("neg_count") > 0)
    return (
        pl.when(defined)
        .then(ratio.log(2))
        .otherwise(None)
        .cast(pl.Float32)
        .alias("fold_change")
    )


def rank_enrichment(table: pl.LazyFrame | pl.DataFrame) -> pl.LazyFrame | pl.DataFrame:
    """
    Sort by fold_change descending with nulls last.

    Ties are broken by match_annotation so the order is fully determined.
    """
    return table.sort(
        ["fold_change", "match_annotation"],
        descending=[True, False],
        nulls_last=True,
    )


def enrichment_table(
    positives: pl.LazyFrame,
    negatives: pl.LazyFrame,
    mode: FoldChangeMode = "count",
) -> pl.LazyFrame:
    """
    Build the ranked enrichment table from positive and sampled negative rows.

    Classes only seen among negatives are not reported. A positive class
    without negatives gets neg_count 0 and a null fold_change. Rows without
    a match annotation form their own (null) class; it never pairs with
    negatives and so always has a null fold_change.
    """
    pos = count_by_annotation(positives, "pos")
    neg = count_by_annotation(negatives, "neg")

    table = (
        pos.join(neg, on="match_annotation", how="left")
        .with_columns(pl.col("neg_count").fill_null(0))
        .with_columns(fold_change_expr(mode))
        .select(ENRICHMENT_COLUMNS)
    )
    return rank_enrichment(table)


@dataclass
class EnrichmentResult:
    """Ranked enrichment table and the statistics of the run that made it."""

    table: pl.DataFrame
    summary: EnrichmentSummary


def compute_enrichment(
    joined: pl.LazyFrame,
    config: EnrichmentConfig | None = None,
) -> EnrichmentResult:
    """
    Compute fold-change enrichment from joined match rows.

    Args:
        joined: Output of join_annotations().
        config: Sampling and fold-change settings (defaults if None).

    Returns:
        EnrichmentResult with the ranked table and a run summary.
    """
    config = config or EnrichmentConfig()

    # Joined rows feed four branches; cache so the inputs are scanned once
    joined = joined.cache()
    positives = positive_rows(joined)
    negatives = sample_negatives(
        joined,
        multiplier=config.sample_multiplier,
        seed=config.seed,
    )

    table, counts = pl.collect_all([
        enrichment_table(positives, negatives, config.fold_change_mode),
        joined.select(
            pl.len().alias("total_rows"),
            pl.col("chunk_annotation").is_not_null().sum().alias("positive_rows"),
        ).join(
            negatives.select(pl.len().alias("sampled_negative_rows")),
            how="cross",
        ),
    ])

    totals = counts.row(0, named=True)
    summary = EnrichmentSummary(
        total_rows=totals["total_rows"],
        positive_rows=totals["positive_rows"],
        negative_rows=totals["total_rows"] - totals["positive_rows"],
        sampled_negative_rows=totals["sampled_negative_rows"],
        num_classes=table.height,
        num_enriched=table.filter(pl.col("fold_change") > 0).height,
        num_undefined=table["fold_change"].null_count(),
        fold_change_mode=config.fold_change_mode,
        sample_multiplier=config.sample_multiplier,
        seed=config.seed,
        top_classes=EnrichmentSummary.rows_from_dataframe(table, TOP_CLASSES_IN_SUMMARY),
    )

    logger.info(
        "Enrichment over %d positive and %d sampled negative rows: %d classes",
        summary.positive_rows,
        summary.sampled_negative_rows,
        summary.num_classes,
    )

    return EnrichmentResult(table=table, summary=summary)


class EnrichmentAnalyzer:
    """
    File-level entry point for the stats pipeline.

    Reads the match table and both annotation tables, joins them, samples
    negatives and computes the ranked enrichment table.

    Example:
        analyzer = EnrichmentAnalyzer(EnrichmentConfig(seed=7))
        result = analyzer.analyze_files(
            Path("matches.tsv"), Path("chunks.tsv"), Path("matches_anno.tsv")
        )
        print(result.table)
    """

    def __init__(self, config: EnrichmentConfig | None = None) -> None:
        self.config = config or EnrichmentConfig()

    def join_files(
        self,
        match_table: Path,
        chunk_annotation: Path,
        match_annotation: Path,
    ) -> pl.LazyFrame:
        """Read the three inputs and return the joined rows."""
        require_input_files(
            (match_table, "Match table"),
            (chunk_annotation, "Chunk annotation table"),
            (match_annotation, "Match annotation table"),
        )
        return join_annotations(
            read_match_table(match_table),
            read_chunk_annotation(chunk_annotation),
            read_match_annotation(match_annotation),
        )

    def analyze_files(
        self,
        match_table: Path,
        chunk_annotation: Path,
        match_annotation: Path,
    ) -> EnrichmentResult:
        """
        Run the full stats pipeline on input files.

        Raises:
            InputNotFoundError: If an input file is missing.
            MalformedQueryIdentifierError: If a query cannot be split.
            DuplicateAnnotationKeyError: If an annotation key repeats.
        """
        joined = self.join_files(match_table, chunk_annotation, match_annotation)
        return compute_enrichment(joined, self.config)
