"""
Sequence index to identifier mapping built from a Fulgor filename dump.

The dump lists the reference files of an index, one per line, prefixed by
their numeric position. Match reports refer to references by that number,
so the mapping is needed to turn report rows into readable identifiers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import polars as pl

from fulgorstats.core.exceptions import (
    InputEncodingError,
    InputNotFoundError,
    MalformedIndexError,
)

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".fna"

# Data starts at the first line beginning with this character. The leading
# metadata block never does, and the first entry is index 0.
DATA_START_CHAR = "0"


def parse_dump_line(
    line: str,
    suffix: str = DEFAULT_SUFFIX,
    *,
    path: Path | str = "<dump>",
    line_num: int = 0,
) -> tuple[int, str]:
    """Parse one data line of the filename dump.

    Args:
        line: Raw line without its line terminator.
        suffix: Literal suffix removed from path-derived identifiers.
        path: Source path, used in error messages.
        line_num: 1-based line number, used in error messages.

    Returns:
        Tuple of (index, identifier).

    Raises:
        MalformedIndexError: If the first field is not a non-negative integer.

    Example:
        >>> parse_dump_line("3\\t/refs/genome_a.fna")
        (3, 'genome_a')
        >>> parse_dump_line("4\\tgenome_b")
        (4, '4\\tgenome_b')
    """
    raw_index = line.split("\t", 1)[0]
    if not (raw_index.isascii() and raw_index.isdigit()):
        raise MalformedIndexError(path, line_num, raw_index)
    index = int(raw_index)

    if "/" in line:
        name = line.rsplit("/", 1)[-1]
        if suffix and name.endswith(suffix):
            name = name[: -len(suffix)]
        return index, name

    # No path component: the whole line is kept as the identifier
    return index, line


@dataclass
class IdentifierIndex(Mapping[int, str]):
    """Read-only mapping from sequence index to sequence identifier.

    Duplicate indices in the source resolve to the last occurrence; the
    duplicated indices are reported through a warning.

    Example:
        >>> index = IdentifierIndex.from_lines(["0\\t/refs/a.fna", "1\\t/refs/b.fna"])
        >>> index[1]
        'b'
    """

    index_to_id: dict[int, str] = field(default_factory=dict)

    @classmethod
    def from_lines(
        cls,
        lines: Iterable[str],
        suffix: str = DEFAULT_SUFFIX,
        *,
        source: Path | str = "<dump>",
    ) -> IdentifierIndex:
        """Build the index from dump lines.

        Lines before the first line starting with '0' are treated as
        metadata and skipped. Blank lines in the data section are ignored.

        Args:
            lines: Dump lines, with or without trailing line terminators.
            suffix: Literal suffix removed from path-derived identifiers.
            source: Name of the source, used in messages.

        Returns:
            IdentifierIndex instance.

        Raises:
            MalformedIndexError: If a data line has a non-integer index.
            InputEncodingError: If the dump is not valid UTF-8.
        """
        mapping: dict[int, str] = {}
        duplicates: list[int] = []
        started = False

        for line_num, raw in enumerate(lines, start=1):
            line = raw.rstrip("\r\n")
            if not started:
                if not line.startswith(DATA_START_CHAR):
                    continue
                started = True
            if not line:
                continue

            index, identifier = parse_dump_line(
                line, suffix, path=source, line_num=line_num
            )
            if index in mapping:
                duplicates.append(index)
            mapping[index] = identifier

        if duplicates:
            logger.warning(
                "Found %d duplicate sequence indices in %s (last entry wins): %s",
                len(duplicates),
                source,
                duplicates[:5],
            )

        logger.info("Loaded %d sequence identifiers from %s", len(mapping), source)

        return cls(index_to_id=mapping)

    @classmethod
    def from_dump(cls, path: Path, suffix: str = DEFAULT_SUFFIX) -> IdentifierIndex:
        """Build the index from a filename dump file.

        Args:
            path: Path to the filename dump.
            suffix: Literal suffix removed from path-derived identifiers.

        Returns:
            IdentifierIndex instance.

        Raises:
            InputNotFoundError: If the dump file does not exist.
            MalformedIndexError: If a data line has a non-integer index.
            InputEncodingError: If the dump is not valid UTF-8.
        """
        if not path.is_file():
            raise InputNotFoundError(path, "Identifier dump")

        with path.open("r", encoding="utf-8") as handle:
            try:
                return cls.from_lines(handle, suffix, source=path)
            except UnicodeDecodeError as e:
                raise InputEncodingError(path, None, e.object[e.start : e.end]) from e

    def to_tsv(self, path: Path) -> None:
        """Save the mapping as a two-column TSV (index, identifier)."""
        df = pl.DataFrame(
            {
                "index": list(self.index_to_id.keys()),
                "identifier": list(self.index_to_id.values()),
            },
            schema={"index": pl.UInt64, "identifier": pl.Utf8},
        )
        df.sort("index").write_csv(path, separator="\t")
        logger.info("Saved %d sequence identifiers to %s", len(df), path)

    def __getitem__(self, index: int) -> str:
        return self.index_to_id[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.index_to_id)

    def __len__(self) -> int:
        return len(self.index_to_id)

    def __contains__(self, index: object) -> bool:
        return index in self.index_to_id
