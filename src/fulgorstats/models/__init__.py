"""
Pydantic data models for fulgorstats.

Provides type-safe models for configuration and run summaries.
"""

from fulgorstats.models.config import EnrichmentConfig, TabulateConfig
from fulgorstats.models.summary import (
    EnrichmentRow,
    EnrichmentSummary,
    TabulationSummary,
)

__all__ = [
    "EnrichmentConfig",
    "EnrichmentRow",
    "EnrichmentSummary",
    "TabulateConfig",
    "TabulationSummary",
]
