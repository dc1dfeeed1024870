"""
Core algorithms for match report tabulation and enrichment statistics.

This module contains the streaming report parser, the annotation join,
stratified negative sampling and the fold-change aggregation.
"""

from fulgorstats.core.identifier_index import IdentifierIndex
from fulgorstats.core.report_parser import (
    MatchRecord,
    MatchReportParser,
    iter_match_records,
)

__all__ = [
    "IdentifierIndex",
    "MatchRecord",
    "MatchReportParser",
    "iter_match_records",
]
