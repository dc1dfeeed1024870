"""
Pydantic configuration models for fulgorstats.

These models hold the tunable parameters of the tabulate and stats
commands. Enrichment settings can be loaded from YAML files and are
overridden by CLI arguments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from fulgorstats.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

FoldChangeMode = Literal["count", "normalized"]


class TabulateConfig(BaseModel):
    """Configuration for converting a match report into a tabular file."""

    suffix: str = Field(
        default=".fna",
        description="Literal suffix stripped from path-derived sequence identifiers",
    )
    batch_size: int = Field(
        default=100_000,
        ge=1,
        le=10_000_000,
        description="Rows buffered per write batch",
    )

    model_config = {"frozen": True}


class EnrichmentConfig(BaseModel):
    """
    Configuration for the fold-change statistics engine.

    Negative sampling:
        Every query genome may contribute at most
        ``positive rows x sample_multiplier`` negative rows. Rows are
        picked with a seeded pseudo-random order, so the same input and
        seed always produce the same sample.

    Fold-change modes:
        - count: log2(pos_count / neg_count)
        - normalized: log2((pos_count / positives) / (neg_count / negatives)),
          each count divided by the total row count of its own set
    """

    sample_multiplier: int = Field(
        default=100,
        ge=1,
        description="Negatives sampled per positive row of the same query genome",
    )
    seed: int = Field(
        default=12345,
        ge=0,
        description="Seed for negative sampling",
    )
    fold_change_mode: FoldChangeMode = Field(
        default="count",
        description=(
            "'count' compares raw class counts; 'normalized' compares each "
            "class's fraction of its set so runs of different size are comparable."
        ),
    )

    model_config = {"frozen": True}

    def with_overrides(self, **overrides: Any) -> EnrichmentConfig:
        """Return a copy with the non-None overrides applied and validated."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return EnrichmentConfig(**values)

    @classmethod
    def from_yaml(cls, path: Path) -> EnrichmentConfig:
        """
        Load enrichment configuration from a YAML file.

        Expected layout:

            sampling:
              multiplier: 100
              seed: 12345
            fold_change:
              mode: count

        Missing keys keep their defaults.

        Raises:
            ConfigurationError: If the file is missing or holds invalid values.
        """
        import yaml

        if not path.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                suggestion="Pass an existing YAML file to --config.",
            )

        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Configuration file is not valid YAML: {path}",
                suggestion=str(e),
            ) from e

        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {path}",
            )

        try:
            return cls(**_flatten_yaml_config(raw))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration in {path}",
                suggestion=str(e),
            ) from e

    def to_yaml(self, path: Path) -> None:
        """Save enrichment configuration to a YAML file."""
        path.write_text(self.to_yaml_str())

    def to_yaml_str(self) -> str:
        """Serialize enrichment configuration to a YAML string."""
        import yaml

        data = {
            "sampling": {
                "multiplier": self.sample_multiplier,
                "seed": self.seed,
            },
            "fold_change": {
                "mode": self.fold_change_mode,
            },
        }
        return yaml.dump(data, default_flow_style=False, sort_keys=False)


def _flatten_yaml_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Map the nested YAML layout onto EnrichmentConfig keyword arguments."""
    flat: dict[str, Any] = {}

    sampling = raw.get("sampling") or {}
    _map_if_present(sampling, "multiplier", flat, "sample_multiplier")
    _map_if_present(sampling, "seed", flat, "seed")

    fold_change = raw.get("fold_change") or {}
    _map_if_present(fold_change, "mode", flat, "fold_change_mode")

    unknown = set(raw) - {"sampling", "fold_change"}
    if unknown:
        logger.warning("Ignoring unknown configuration sections: %s", sorted(unknown))

    return flat


def _map_if_present(
    source: dict[str, Any],
    source_key: str,
    target: dict[str, Any],
    target_key: str,
) -> None:
    """Copy value from source dict to target dict if key exists."""
    if source_key in source and source[source_key] is not None:
        target[target_key] = source[source_key]
