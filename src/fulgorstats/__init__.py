"""
fulgorstats: tabulation and annotation enrichment of Fulgor top-K match reports.

Converts a ranked-match report into a tab-separated match table, then
measures which functional classes of matched sequences are enriched among
annotated query chunks relative to unannotated ones (log2 fold-change).
"""

__version__ = "0.1.0"
__author__ = "fulgorstats Team"

from fulgorstats.core.enrichment import EnrichmentAnalyzer, compute_enrichment
from fulgorstats.core.identifier_index import IdentifierIndex
from fulgorstats.core.report_parser import MatchRecord, MatchReportParser
from fulgorstats.models.config import EnrichmentConfig, TabulateConfig

__all__ = [
    "EnrichmentAnalyzer",
    "EnrichmentConfig",
    "IdentifierIndex",
    "MatchRecord",
    "MatchReportParser",
    "TabulateConfig",
    "__version__",
    "compute_enrichment",
]
