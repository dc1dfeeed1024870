"""
Annotation tables and their join onto the match table.

Three tab-separated tables take part in a stats run:

- the match table written by ``fulgorstats tabulate``
  (query, chunk, top, match),
- the chunk annotation table, labelling query chunks
  (query_genome_id, query_contig_id, chunk, chunk_annotation),
- the match annotation table, labelling matched sequences
  (match_genome_id, match_annotation).

The join is a pair of left joins on unique keys, so every match row comes
out exactly once with its two labels attached (or null when unlabelled).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar

import polars as pl

from fulgorstats.core.exceptions import (
    DuplicateAnnotationKeyError,
    InputNotFoundError,
    MalformedQueryIdentifierError,
)

logger = logging.getLogger(__name__)

ROW_INDEX = "_row"


class AnnotationTables:
    """Schemas and readers for the stats inputs."""

    MATCH_TABLE_SCHEMA: ClassVar[dict[str, pl.DataType]] = {
        "query": pl.Utf8,
        "chunk": pl.UInt64,
        "top": pl.UInt32,
        "match": pl.Utf8,
    }

    CHUNK_ANNOTATION_SCHEMA: ClassVar[dict[str, pl.DataType]] = {
        "query_genome_id": pl.Utf8,
        "query_contig_id": pl.Utf8,
        "chunk": pl.UInt64,
        "chunk_annotation": pl.Utf8,
    }

    MATCH_ANNOTATION_SCHEMA: ClassVar[dict[str, pl.DataType]] = {
        "match_genome_id": pl.Utf8,
        "match_annotation": pl.Utf8,
    }

    CHUNK_KEY: ClassVar[list[str]] = ["query_genome_id", "query_contig_id", "chunk"]
    MATCH_KEY: ClassVar[list[str]] = ["match_genome_id"]


def _scan_table(path: Path, schema: dict[str, pl.DataType], description: str) -> pl.LazyFrame:
    if not path.is_file():
        raise InputNotFoundError(path, description)

    # The header row is skipped; columns are named by the schema, in order
    return pl.scan_csv(
        path,
        separator="\t",
        has_header=True,
        schema=schema,
    )


def read_match_table(path: Path) -> pl.LazyFrame:
    """
    Scan a match table produced by ``fulgorstats tabulate``.

    A ``_row`` column holding the input position is added; it gives each
    row a stable identity for seeded sampling regardless of join order.

    Raises:
        InputNotFoundError: If the file does not exist.
    """
    return _scan_table(
        path, AnnotationTables.MATCH_TABLE_SCHEMA, "Match table"
    ).with_row_index(ROW_INDEX)


def read_chunk_annotation(path: Path) -> pl.DataFrame:
    """
    Read a chunk annotation table and check its key is unique.

    Raises:
        InputNotFoundError: If the file does not exist.
        DuplicateAnnotationKeyError: If a (genome, contig, chunk) key repeats.
    """
    df = _scan_table(
        path, AnnotationTables.CHUNK_ANNOTATION_SCHEMA, "Chunk annotation table"
    ).collect()
    validate_unique_key(df, AnnotationTables.CHUNK_KEY, path)
    logger.info("Loaded %d chunk annotations from %s", df.height, path)
    return df


def read_match_annotation(path: Path) -> pl.DataFrame:
    """
    Read a match annotation table and check its key is unique.

    Raises:
        InputNotFoundError: If the file does not exist.
        DuplicateAnnotationKeyError: If a match_genome_id repeats.
    """
    df = _scan_table(
        path, AnnotationTables.MATCH_ANNOTATION_SCHEMA, "Match annotation table"
    ).collect()
    validate_unique_key(df, AnnotationTables.MATCH_KEY, path)
    logger.info("Loaded %d match annotations from %s", df.height, path)
    return df


def validate_unique_key(df: pl.DataFrame, key: list[str], source: Path | str) -> None:
    """
    Ensure ``key`` identifies at most one row of ``df``.

    Raises:
        DuplicateAnnotationKeyError: With up to five duplicated keys.
    """
    duplicated = (
        df.group_by(key, maintain_order=True)
        .len()
        .filter(pl.col("len") > 1)
    )
    if not duplicated.is_empty():
        examples = duplicated.select(key).head(5).rows()
        raise DuplicateAnnotationKeyError(source, key, examples)


def split_query_expr() -> list[pl.Expr]:
    """
    Expressions splitting ``query`` on its first '_'.

    Returns:
        Expressions producing query_genome_id and query_contig_id.
        The contig part is null when the query has no '_'.

    Example:
        >>> df = pl.DataFrame({"query": ["g1_c1", "g2_c_7"]})
        >>> df.select(split_query_expr())["query_contig_id"].to_list()
        ['c1', 'c_7']
    """
    parts = pl.col("query").str.splitn("_", 2)
    return [
        parts.struct.field("field_0").alias("query_genome_id"),
        parts.struct.field("field_1").alias("query_contig_id"),
    ]


def validate_queries(lf: pl.LazyFrame) -> None:
    """
    Fail on the first query that does not split into two non-empty parts.

    Raises:
        MalformedQueryIdentifierError: Naming the offending query.
    """
    malformed = (
        lf.select(["query", *split_query_expr()])
        .filter(
            pl.col("query_contig_id").is_null()
            | (pl.col("query_contig_id") == "")
            | (pl.col("query_genome_id") == "")
        )
        .select("query")
        .head(1)
        .collect()
    )
    if not malformed.is_empty():
        raise MalformedQueryIdentifierError(malformed["query"][0] or "")


def join_annotations(
    matches: pl.LazyFrame,
    chunk_annotations: pl.DataFrame,
    match_annotations: pl.DataFrame,
) -> pl.LazyFrame:
    """
    Attach chunk and match labels to every match row.

    Args:
        matches: Match table from read_match_table().
        chunk_annotations: Table from read_chunk_annotation().
        match_annotations: Table from read_match_annotation().

    Returns:
        LazyFrame with columns query_genome_id, query_contig_id, chunk, top,
        match_genome_id, chunk_annotation, match_annotation (plus ``_row``
        when present on the input), one row per input row.

    Raises:
        MalformedQueryIdentifierError: If a query has no genome/contig split.
        DuplicateAnnotationKeyError: If an annotation key is not unique.
    """
    validate_queries(matches)
    validate_unique_key(chunk_annotations, AnnotationTables.CHUNK_KEY, "chunk annotations")
    validate_unique_key(match_annotations, AnnotationTables.MATCH_KEY, "match annotations")

    return (
        matches
        .with_columns(split_query_expr())
        .drop("query")
        .rename({"match": "match_genome_id"})
        .join(
            chunk_annotations.lazy(),
            on=AnnotationTables.CHUNK_KEY,
            how="left",
        )
        .join(
            match_annotations.lazy(),
            on=AnnotationTables.MATCH_KEY,
            how="left",
        )
    )


def positive_rows(joined: pl.LazyFrame) -> pl.LazyFrame:
    """Rows whose chunk carries an annotation."""
    return joined.filter(pl.col("chunk_annotation").is_not_null())


def negative_rows(joined: pl.LazyFrame) -> pl.LazyFrame:
    """Rows whose chunk has no annotation."""
    return joined.filter(pl.col("chunk_annotation").is_null())
