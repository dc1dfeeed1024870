"""
Custom exceptions with actionable guidance.

Every failure in the tabulate and stats pipelines is an input-contract
violation: nothing is retried or recovered locally. Each error names the
offending value and carries a suggestion for resolving it.
"""

from __future__ import annotations

from pathlib import Path


class FulgorStatsError(Exception):
    """Base exception for fulgorstats errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class InputNotFoundError(FulgorStatsError):
    """Raised when a required input file is missing or unreadable."""

    def __init__(self, path: Path | str, description: str = "Input file"):
        super().__init__(
            message=f"{description} not found: {path}",
            suggestion="Check the path and file permissions before rerunning.",
        )
        self.path = Path(path)


class ParseError(FulgorStatsError):
    """Base class for malformed input content."""


class MalformedIndexError(ParseError):
    """Raised when an identifier dump row does not start with an integer index."""

    def __init__(self, path: Path | str, line_num: int, value: str):
        super().__init__(
            message=(
                f"Malformed identifier dump '{path}' at line {line_num}: "
                f"index '{value}' is not a non-negative integer"
            ),
            suggestion=(
                "The filename dump must list one sequence per line as "
                "'<index>\\t<path>', starting with index 0. Regenerate it "
                "from the same index used to produce the match report."
            ),
        )
        self.line_num = line_num
        self.value = value


class MalformedReportLineError(ParseError):
    """Raised when a chunk line in the match report cannot be parsed."""

    def __init__(self, line_num: int, value: str, reason: str):
        super().__init__(
            message=f"Malformed match report at line {line_num}: {reason}: '{value}'",
            suggestion=(
                "Chunk lines must look like 'chunk_id = <chunk>:<...> "
                "<index>:<...> ...'. Check that the report was not truncated."
            ),
        )
        self.line_num = line_num
        self.value = value


class InputEncodingError(ParseError):
    """Raised when a text input is not valid UTF-8."""

    def __init__(self, path: Path | str, line_num: int | None, value: bytes):
        location = f" at line {line_num}" if line_num is not None else ""
        super().__init__(
            message=f"Cannot decode '{path}'{location} as UTF-8: bytes {value!r}",
            suggestion="Inputs must be UTF-8 text. Check that the file is not compressed or binary.",
        )
        self.path = Path(path)
        self.line_num = line_num
        self.value = value


class MalformedQueryIdentifierError(ParseError):
    """Raised when a query cannot be split into genome and contig parts."""

    def __init__(self, query: str):
        super().__init__(
            message=(
                f"Query identifier '{query}' cannot be split into "
                "query_genome_id and query_contig_id on '_'"
            ),
            suggestion=(
                "Query headers must be formatted as '<genome>_<contig>'. "
                "Rename the query sequences before building the report."
            ),
        )
        self.query = query


class UnknownSequenceIndexError(FulgorStatsError):
    """Raised when the report references an index absent from the identifier dump."""

    def __init__(self, index: int, chunk: int, query: str):
        super().__init__(
            message=(
                f"Sequence index {index} (query '{query}', chunk {chunk}) "
                "is absent from the identifier dump"
            ),
            suggestion=(
                "The match report and the filename dump were produced from "
                "different indexes. Dump the filenames of the index that "
                "generated this report."
            ),
        )
        self.index = index
        self.chunk = chunk
        self.query = query


class DuplicateAnnotationKeyError(FulgorStatsError):
    """Raised when an annotation table has a non-unique join key."""

    def __init__(self, path: Path | str, key_columns: list[str], examples: list[tuple]):
        example_str = ", ".join(str(e) for e in examples[:5])
        super().__init__(
            message=(
                f"Annotation table '{path}' has duplicate keys on "
                f"({', '.join(key_columns)}): {example_str}"
            ),
            suggestion=(
                "Each key must appear once so the join keeps one row per match. "
                "Collapse duplicate annotations into a single label."
            ),
        )
        self.key_columns = key_columns
        self.examples = examples


class OutputWriteError(FulgorStatsError):
    """Raised when an output file cannot be created or written."""

    def __init__(self, path: Path | str, reason: str):
        super().__init__(
            message=f"Cannot write output '{path}': {reason}",
            suggestion="Check that the output directory exists and is writable.",
        )
        self.path = Path(path)


class ConfigurationError(FulgorStatsError):
    """Raised when configuration is invalid."""
