"""
Streaming parser for Fulgor ranked-match (top-K) reports.

A report is a sequence of query blocks. A block opens with a '>' header
line carrying the query identifier and is followed by one line per query
chunk:

    >genome1_contig7
    chunk_id = 0:0 12:0 4:0
    chunk_id = 1:0 12:0

The first token of a chunk line is the chunk id; every following token is
a ranked match whose leading number is a sequence index. Empty tokens are
ranks without a match and are kept as rows with an empty match.

Parsing is a single forward pass with one piece of state (the current query
identifier), so memory use does not grow with the report size.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import NamedTuple

from fulgorstats.core.exceptions import (
    InputEncodingError,
    InputNotFoundError,
    MalformedReportLineError,
    UnknownSequenceIndexError,
)

logger = logging.getLogger(__name__)

QUERY_PREFIX = ">"
CHUNK_PREFIX = "chunk_id"
CHUNK_FIELD_PREFIX = "chunk_id = "


class MatchRecord(NamedTuple):
    """One ranked match of a query chunk.

    An empty ``match`` means the report had no match at that rank.
    """

    query: str
    chunk: int
    rank: int
    match: str


class ReportState(NamedTuple):
    """Parse state carried from one report line to the next."""

    identifier: str = ""


def _parse_unsigned(token: str) -> int | None:
    if token.isascii() and token.isdigit():
        return int(token)
    return None


def parse_chunk_id(token: str, line_num: int = 0) -> int:
    """
    Parse the chunk id from the first token of a chunk line.

    The id is the text before the first ':'. Tokens without ':' are used
    whole, minus any trailing ':' characters.

    Raises:
        MalformedReportLineError: If the id is not a non-negative integer.
    """
    if ":" in token:
        head = token.split(":", 1)[0]
    else:
        head = token.rstrip(":")
    chunk = _parse_unsigned(head)
    if chunk is None:
        raise MalformedReportLineError(line_num, token, "chunk id is not an integer")
    return chunk


def parse_match_index(token: str, line_num: int = 0) -> int:
    """
    Parse the sequence index from a match token such as '12:0'.

    Raises:
        MalformedReportLineError: If the index is not a non-negative integer.
    """
    index = _parse_unsigned(token.split(":", 1)[0])
    if index is None:
        raise MalformedReportLineError(line_num, token, "match index is not an integer")
    return index


def extract_chunk_records(
    line: str,
    query: str,
    index: Mapping[int, str],
    line_num: int = 0,
) -> list[MatchRecord]:
    """
    Expand one chunk line into ranked match records.

    Args:
        line: Chunk line without its line terminator.
        query: Identifier of the enclosing query block.
        index: Sequence index to identifier mapping.
        line_num: 1-based line number, used in error messages.

    Returns:
        One MatchRecord per match token, ranks 1..N in token order.

    Raises:
        MalformedReportLineError: If the chunk id or a match index is not numeric.
        UnknownSequenceIndexError: If a match index is absent from ``index``.
    """
    tokens = line.removeprefix(CHUNK_FIELD_PREFIX).split(" ")
    chunk = parse_chunk_id(tokens[0], line_num)

    records = []
    for rank, token in enumerate(tokens[1:], start=1):
        if not token:
            records.append(MatchRecord(query, chunk, rank, ""))
            continue

        match_index = parse_match_index(token, line_num)
        identifier = index.get(match_index)
        if identifier is None:
            raise UnknownSequenceIndexError(match_index, chunk, query)
        records.append(MatchRecord(query, chunk, rank, identifier))

    return records


def process_line(
    state: ReportState,
    line: str,
    index: Mapping[int, str],
    line_num: int = 0,
) -> tuple[ReportState, list[MatchRecord]]:
    """
    Advance the parse state by one report line.

    Returns:
        The next state and the records produced by this line.
    """
    if line.startswith(QUERY_PREFIX):
        return ReportState(identifier=line[len(QUERY_PREFIX):]), []
    if line.startswith(CHUNK_PREFIX):
        return state, extract_chunk_records(line, state.identifier, index, line_num)
    return state, []


def iter_match_records(
    lines: Iterable[str],
    index: Mapping[int, str],
) -> Iterator[MatchRecord]:
    """
    Lazily yield match records from report lines, in input order.

    Args:
        lines: Report lines, with or without trailing line terminators.
        index: Sequence index to identifier mapping.

    Yields:
        MatchRecord objects.

    Example:
        >>> lines = [">g1_c1", "chunk_id = 5:0 10:0 "]
        >>> list(iter_match_records(lines, {10: "geneA"}))
        [MatchRecord(query='g1_c1', chunk=5, rank=1, match='geneA'), \
MatchRecord(query='g1_c1', chunk=5, rank=2, match='')]
    """
    state = ReportState()
    for line_num, raw in enumerate(lines, start=1):
        state, records = process_line(state, raw.rstrip("\r\n"), index, line_num)
        yield from records


class MatchReportParser:
    """
    Single-pass streaming parser for a match report file.

    Iterating the parser opens the report and yields MatchRecord objects
    one line at a time. The parser keeps track of how many query blocks and
    chunk lines it has seen for run summaries.

    Example:
        index = IdentifierIndex.from_dump(Path("filenames.txt"))
        parser = MatchReportParser(Path("report.txt"), index)
        for record in parser:
            print(record.query, record.chunk, record.rank, record.match)
    """

    def __init__(self, report_path: Path, index: Mapping[int, str]) -> None:
        """
        Initialize the parser.

        Args:
            report_path: Path to the match report.
            index: Sequence index to identifier mapping.

        Raises:
            InputNotFoundError: If the report does not exist.
        """
        self.report_path = report_path
        self.index = index
        self.num_queries = 0
        self.num_chunks = 0
        self._validate_path()

    def _validate_path(self) -> None:
        """Ensure the report exists."""
        if not self.report_path.is_file():
            raise InputNotFoundError(self.report_path, "Match report")

    def __iter__(self) -> Iterator[MatchRecord]:
        state = ReportState()
        with self.report_path.open("rb") as handle:
            for line_num, raw in enumerate(handle, start=1):
                try:
                    line = raw.decode("utf-8").rstrip("\r\n")
                except UnicodeDecodeError as e:
                    raise InputEncodingError(
                        self.report_path, line_num, e.object[e.start : e.end]
                    ) from e
                if line.startswith(QUERY_PREFIX):
                    self.num_queries += 1
                elif line.startswith(CHUNK_PREFIX):
                    self.num_chunks += 1
                state, records = process_line(state, line, self.index, line_num)
                yield from records

        logger.info(
            "Parsed %d query blocks and %d chunk lines from %s",
            self.num_queries,
            self.num_chunks,
            self.report_path,
        )
