"""Testing utilities for fulgorstats."""

from tests.utils.assertions import (
    CLIAssertions,
    EnrichmentAssertions,
    MatchTableAssertions,
)

__all__ = [
    "CLIAssertions",
    "EnrichmentAssertions",
    "MatchTableAssertions",
]
