"""
Pydantic models for run summaries and enrichment results.

Summaries are written as JSON next to the output tables so a run can be
audited without re-reading the inputs.
"""

from __future__ import annotations

import json
from pathlib import Path

import polars as pl
from pydantic import BaseModel, Field


class TabulationSummary(BaseModel):
    """Counts collected while converting a match report to a table."""

    num_queries: int = Field(ge=0, description="Query blocks with at least one row")
    num_chunks: int = Field(ge=0, description="Chunks with at least one row")
    num_rows: int = Field(ge=0, description="Rows written")
    num_empty_matches: int = Field(ge=0, description="Rows without a match")

    @property
    def matched_fraction(self) -> float:
        """Fraction of rows carrying a match."""
        if self.num_rows == 0:
            return 0.0
        return (self.num_rows - self.num_empty_matches) / self.num_rows

    def to_json(self, path: Path) -> None:
        """Write summary to JSON file."""
        path.write_text(json.dumps(self.model_dump(), indent=2))

    model_config = {"frozen": True}


class EnrichmentRow(BaseModel):
    """One annotation class of the enrichment table."""

    match_annotation: str | None = Field(description="Annotation class of the matched sequence")
    pos_count: int = Field(ge=0, description="Rows in the positive set")
    neg_count: int = Field(ge=0, description="Rows in the sampled negative set")
    fold_change: float | None = Field(
        default=None,
        description="log2 enrichment; None when a count is zero",
    )

    model_config = {"frozen": True}


class EnrichmentSummary(BaseModel):
    """
    Aggregate statistics for a stats run.

    Attributes:
        total_rows: Rows in the joined match table
        positive_rows: Rows whose chunk carries an annotation
        negative_rows: Rows whose chunk is unannotated, before sampling
        sampled_negative_rows: Negative rows kept by stratified sampling
        num_classes: Annotation classes present in the positive set
        num_enriched: Classes with a positive fold-change
        num_undefined: Classes whose fold-change is undefined
        fold_change_mode: Formula used for the fold-change
        sample_multiplier: Negatives allowed per positive row
        seed: Sampling seed
        top_classes: Highest ranked classes
    """

    total_rows: int = Field(ge=0)
    positive_rows: int = Field(ge=0)
    negative_rows: int = Field(ge=0)
    sampled_negative_rows: int = Field(ge=0)
    num_classes: int = Field(ge=0)
    num_enriched: int = Field(ge=0)
    num_undefined: int = Field(ge=0)
    fold_change_mode: str
    sample_multiplier: int = Field(ge=1)
    seed: int = Field(ge=0)
    top_classes: list[EnrichmentRow] = Field(default_factory=list)

    @property
    def sampling_fraction(self) -> float:
        """Fraction of negative rows kept by sampling."""
        if self.negative_rows == 0:
            return 0.0
        return self.sampled_negative_rows / self.negative_rows

    @staticmethod
    def rows_from_dataframe(table: pl.DataFrame, limit: int | None = None) -> list[EnrichmentRow]:
        """Convert the leading rows of an enrichment table to models."""
        if limit is not None:
            table = table.head(limit)
        return [EnrichmentRow(**row) for row in table.iter_rows(named=True)]

    def to_json(self, path: Path) -> None:
        """Write summary to JSON file."""
        path.write_text(json.dumps(self.model_dump(), indent=2))

    model_config = {"frozen": True}
