"""
CLI commands for fulgorstats.

Provides command-line interface for report tabulation, enrichment
statistics and input utilities.
"""

__all__ = ["main", "stats", "tabulate", "util"]
