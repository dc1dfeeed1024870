"""
Unit tests for the streaming match report parser.

Tests chunk line expansion, query state tracking, empty match handling
and error reporting.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fulgorstats.core.exceptions import (
    InputEncodingError,
    InputNotFoundError,
    ParseError,
    MalformedReportLineError,
    UnknownSequenceIndexError,
)
from fulgorstats.core.identifier_index import IdentifierIndex
from fulgorstats.core.report_parser import (
    MatchRecord,
    MatchReportParser,
    ReportState,
    extract_chunk_records,
    iter_match_records,
    parse_chunk_id,
    parse_match_index,
    process_line,
)


@pytest.fixture
def index() -> dict[int, str]:
    return {0: "geneZ", 1: "geneB", 10: "geneA"}


class TestParseChunkId:
    """Tests for chunk id extraction."""

    def test_text_before_colon(self):
        assert parse_chunk_id("5:0") == 5

    def test_token_without_colon(self):
        assert parse_chunk_id("17") == 17

    def test_trailing_colons_stripped(self):
        assert parse_chunk_id("17::") == 17

    def test_non_numeric_raises(self):
        with pytest.raises(MalformedReportLineError) as exc_info:
            parse_chunk_id("abc:0", line_num=9)

        assert exc_info.value.line_num == 9
        assert exc_info.value.value == "abc:0"

    def test_empty_raises(self):
        with pytest.raises(MalformedReportLineError):
            parse_chunk_id("")


class TestParseMatchIndex:
    """Tests for match token index extraction."""

    def test_index_before_colon(self):
        assert parse_match_index("12:0") == 12

    def test_index_without_colon(self):
        assert parse_match_index("12") == 12

    def test_non_numeric_raises(self):
        with pytest.raises(MalformedReportLineError):
            parse_match_index("x:0")


class TestExtractChunkRecords:
    """Tests for expanding one chunk line into ranked records."""

    def test_trailing_space_yields_empty_match(self, index: dict[int, str]):
        """A trailing space is a final rank without a match."""
        records = extract_chunk_records("chunk_id = 5:0 10:0 ", "g1_c1", index)

        assert records == [
            MatchRecord("g1_c1", 5, 1, "geneA"),
            MatchRecord("g1_c1", 5, 2, ""),
        ]

    def test_ranks_follow_token_positions(self, index: dict[int, str]):
        """Empty tokens keep their rank so later matches are not renumbered."""
        records = extract_chunk_records("chunk_id = 0:0 1:0  0:0", "q_1", index)

        assert [(r.rank, r.match) for r in records] == [
            (1, "geneB"),
            (2, ""),
            (3, "geneZ"),
        ]

    def test_chunk_without_matches(self, index: dict[int, str]):
        """A chunk line with only its id yields no records."""
        assert extract_chunk_records("chunk_id = 3:0", "q_1", index) == []

    def test_unknown_index_raises(self, index: dict[int, str]):
        """Indices absent from the dump fail with the query and chunk named."""
        with pytest.raises(UnknownSequenceIndexError) as exc_info:
            extract_chunk_records("chunk_id = 2:0 99:0", "g1_c1", index)

        err = exc_info.value
        assert err.index == 99
        assert err.chunk == 2
        assert err.query == "g1_c1"
        assert "99" in str(err)

    def test_malformed_match_token_raises(self, index: dict[int, str]):
        with pytest.raises(MalformedReportLineError):
            extract_chunk_records("chunk_id = 2:0 foo:0", "g1_c1", index, line_num=3)


class TestProcessLine:
    """Tests for the per-line state transition."""

    def test_header_sets_identifier(self, index: dict[int, str]):
        state, records = process_line(ReportState(), ">g7_c2", index)

        assert state.identifier == "g7_c2"
        assert records == []

    def test_header_keeps_text_verbatim(self, index: dict[int, str]):
        """Everything after '>' is the identifier, spaces included."""
        state, _ = process_line(ReportState(), ">g7_c2 plasmid", index)
        assert state.identifier == "g7_c2 plasmid"

    def test_other_lines_ignored(self, index: dict[int, str]):
        state = ReportState(identifier="g1_c1")
        new_state, records = process_line(state, "num_queries = 2", index)

        assert new_state == state
        assert records == []

    def test_chunk_line_uses_current_query(self, index: dict[int, str]):
        state = ReportState(identifier="g1_c1")
        _, records = process_line(state, "chunk_id = 4:0 1:0", index)

        assert records == [MatchRecord("g1_c1", 4, 1, "geneB")]


class TestIterMatchRecords:
    """Tests for the streaming generator."""

    def test_records_in_input_order(self, report_text: str, index: dict[int, str]):
        records = list(iter_match_records(report_text.splitlines(keepends=True), index))

        assert records == [
            MatchRecord("g1_c1", 5, 1, "geneA"),
            MatchRecord("g1_c1", 5, 2, ""),
            MatchRecord("g1_c2", 0, 1, "geneB"),
            MatchRecord("g1_c2", 0, 2, ""),
            MatchRecord("g1_c2", 0, 3, "geneZ"),
            MatchRecord("g1_c2", 1, 1, "geneA"),
        ]

    def test_chunk_before_any_header(self, index: dict[int, str]):
        """Chunk lines before the first header get an empty query."""
        records = list(iter_match_records(["chunk_id = 1:0 0:0"], index))
        assert records == [MatchRecord("", 1, 1, "geneZ")]

    def test_is_lazy(self, index: dict[int, str]):
        """Records before a bad line are produced before the error is raised."""
        lines = iter([">g1_c1", "chunk_id = 1:0 0:0", "chunk_id = 2:0 42:0"])
        records = iter_match_records(lines, index)

        assert next(records) == MatchRecord("g1_c1", 1, 1, "geneZ")
        with pytest.raises(UnknownSequenceIndexError):
            next(records)

    def test_error_line_number(self, index: dict[int, str]):
        lines = [">g1_c1", "chunk_id = 1:0 0:0", "chunk_id = x:0 0:0"]

        with pytest.raises(MalformedReportLineError) as exc_info:
            list(iter_match_records(lines, index))

        assert exc_info.value.line_num == 3


class TestMatchReportParser:
    """Tests for file-level parsing."""

    def test_parses_file(self, report_file: Path, dump_file: Path):
        index = IdentifierIndex.from_dump(dump_file)
        parser = MatchReportParser(report_file, index)

        records = list(parser)

        assert len(records) == 6
        assert records[0] == MatchRecord("g1_c1", 5, 1, "geneA")
        assert parser.num_queries == 2
        assert parser.num_chunks == 3

    def test_handles_crlf(self, temp_dir: Path, index: dict[int, str]):
        report = temp_dir / "report.txt"
        report.write_bytes(b">g1_c1\r\nchunk_id = 1:0 0:0\r\n")

        records = list(MatchReportParser(report, index))

        assert records == [MatchRecord("g1_c1", 1, 1, "geneZ")]

    def test_missing_report_raises(self, temp_dir: Path, index: dict[int, str]):
        with pytest.raises(InputNotFoundError):
            MatchReportParser(temp_dir / "missing.txt", index)

    def test_invalid_utf8_reports_line(self, temp_dir: Path, index: dict[int, str]):
        report = temp_dir / "report.txt"
        report.write_bytes(b">g1_c1\nchunk_id = 1:0 0:0\n>g1_\xfe\n")

        with pytest.raises(InputEncodingError) as exc_info:
            list(MatchReportParser(report, index))

        assert isinstance(exc_info.value, ParseError)
        assert exc_info.value.line_num == 3
        assert "line 3" in str(exc_info.value)

    def test_empty_report(self, temp_dir: Path, index: dict[int, str]):
        report = temp_dir / "empty.txt"
        report.write_text("")

        assert list(MatchReportParser(report, index)) == []
