"""
I/O utilities for table serialization.

All outputs are written to a temporary file next to the destination and
moved into place only once writing has finished, so a failed run never
leaves a partial table behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Literal

import polars as pl

from fulgorstats.core.annotation import AnnotationTables
from fulgorstats.core.exceptions import InputNotFoundError, OutputWriteError
from fulgorstats.core.report_parser import MatchRecord
from fulgorstats.models.summary import TabulationSummary

logger = logging.getLogger(__name__)

OutputFormat = Literal["tsv", "parquet"]


def require_input_files(*inputs: tuple[Path, str]) -> None:
    """
    Check that every ``(path, description)`` input is an existing file.

    Run before any input is read, so a missing file is reported even when
    another input is malformed.

    Raises:
        InputNotFoundError: For the first missing input.
    """
    for path, description in inputs:
        if not path.is_file():
            raise InputNotFoundError(path, description)


def _current_umask() -> int:
    # os.umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


@contextmanager
def atomic_output(path: Path, mode: str = "w") -> Generator[IO, None, None]:
    """Open a temporary file that replaces ``path`` when the block succeeds.

    On any exception the temporary file is removed and ``path`` is left
    untouched. Filesystem errors are raised as OutputWriteError.

    Example:
        >>> with atomic_output(Path("out.tsv")) as handle:
        ...     handle.write("a\\tb\\n")
    """
    try:
        tmp = tempfile.NamedTemporaryFile(
            mode=mode,
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
    except OSError as e:
        raise OutputWriteError(path, e.strerror or str(e)) from e

    tmp_path = Path(tmp.name)
    try:
        with tmp:
            yield tmp
        # mkstemp creates 0600 files; give the output the usual umask mode
        os.chmod(tmp_path, 0o666 & ~_current_umask())
        tmp_path.replace(path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise OutputWriteError(path, e.strerror or str(e)) from e
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def write_dataframe(
    df: pl.DataFrame,
    path: Path,
    output_format: OutputFormat = "tsv",
) -> None:
    """
    Write DataFrame to file in specified format.

    Args:
        df: Polars DataFrame to write.
        path: Output file path.
        output_format: Output format - 'tsv' or 'parquet' (zstd compressed).

    Raises:
        OutputWriteError: If the destination cannot be written.
    """
    with atomic_output(path, mode="wb") as handle:
        if output_format == "parquet":
            df.write_parquet(handle, compression="zstd")
        else:
            df.write_csv(handle, separator="\t")

    logger.info("Wrote %d rows to %s", df.height, path)


def _records_frame(batch: list[MatchRecord]) -> pl.DataFrame:
    # Empty matches are written as bare empty fields, not quoted ""
    return pl.DataFrame(
        batch,
        schema=AnnotationTables.MATCH_TABLE_SCHEMA,
        orient="row",
    ).with_columns(
        pl.when(pl.col("match") == "")
        .then(None)
        .otherwise(pl.col("match"))
        .alias("match")
    )


def write_match_table(
    records: Iterable[MatchRecord],
    path: Path,
    batch_size: int = 100_000,
) -> TabulationSummary:
    """
    Stream match records into a tab-separated table.

    Records are buffered in batches of ``batch_size`` rows and appended
    through Polars, keeping memory bounded regardless of report size.
    The header is always written, even when there are no records.

    Args:
        records: MatchRecord iterable, typically a MatchReportParser.
        path: Output TSV path.
        batch_size: Rows per write batch.

    Returns:
        TabulationSummary with row counts.

    Raises:
        OutputWriteError: If the destination cannot be written.
    """
    queries = 0
    chunks = 0
    rows = 0
    empty_rows = 0
    last_query: str | None = None
    last_chunk: tuple[str, int] | None = None

    with atomic_output(path, mode="wb") as handle:
        batch: list[MatchRecord] = []
        is_first = True
        for record in records:
            batch.append(record)
            rows += 1
            if not record.match:
                empty_rows += 1
            if record.query != last_query:
                queries += 1
                last_query = record.query
            if last_chunk != (record.query, record.chunk):
                chunks += 1
                last_chunk = (record.query, record.chunk)

            if len(batch) >= batch_size:
                _records_frame(batch).write_csv(
                    handle, separator="\t", include_header=is_first
                )
                is_first = False
                batch = []

        if batch or is_first:
            _records_frame(batch).write_csv(
                handle, separator="\t", include_header=is_first
            )

    logger.info("Wrote %d match rows to %s", rows, path)

    return TabulationSummary(
        num_queries=queries,
        num_chunks=chunks,
        num_rows=rows,
        num_empty_matches=empty_rows,
    )
