"""
Bulk exporter for mft-stream.

Drains an ``MftParser`` in Object mode and writes every entry as one
row of the flat layout (``renderers.flat.FLAT_COLUMNS``) to the output
directory.

Output file naming convention:
  ``entries.{format}``  -- one row per non-empty entry
  ``_errors.{format}``  -- one row per slot that failed to decode or
                           render (entry_id, error_type, message)

Formats:
- ``parquet`` (via pyarrow): keeps dtypes and allows column pruning and
  predicate pushdown on read-back.  Best for large images.
- ``csv``: the same rows the CSV renderer streams, for spreadsheets and
  grep.
- ``jsonl``: one JSON object per line.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import pandas as pd

from mft_stream.exceptions import ExportError, MftStreamError
from mft_stream.parser import MftParser
from mft_stream.renderers.flat import FLAT_COLUMNS, flatten_record

logger = logging.getLogger(__name__)

_SUPPORTED_FORMATS = {"csv", "parquet", "jsonl"}

ENTRIES_TABLE = "entries"
ERRORS_TABLE = "_errors"
ERROR_COLUMNS = ["entry_id", "error_type", "message"]


def _write_dataframe(
    df: pd.DataFrame,
    path: Path,
    output_format: str,
) -> None:
    """Write a single DataFrame to disk in the specified format.

    Raises:
        ExportError: If writing fails for any reason.
    """
    try:
        if output_format == "csv":
            df.to_csv(path, index=False, encoding="utf-8")
        elif output_format == "jsonl":
            df.to_json(path, orient="records", lines=True, force_ascii=False)
        else:  # parquet
            df.to_parquet(path, index=False, engine="pyarrow")
    except Exception as exc:
        raise ExportError(
            f"Failed to write {path.name} as {output_format}: {exc}"
        ) from exc


def collect_rows(parser: MftParser) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Drain *parser* into an entries frame and an errors frame.

    Consumes the parser.  Empty slots produce no row.
    """
    rows: list[dict] = []
    errors: list[dict] = []

    with parser.entries() as iterator:
        for value in iterator:
            if isinstance(value, MftStreamError):
                errors.append({
                    "entry_id": getattr(value, "entry_id", None),
                    "error_type": type(value).__name__,
                    "message": str(value),
                })
                continue
            rows.append(flatten_record(value))

    entries_df = pd.DataFrame(rows, columns=FLAT_COLUMNS)
    errors_df = pd.DataFrame(errors, columns=ERROR_COLUMNS)
    errors_df["entry_id"] = errors_df["entry_id"].astype("Int64")
    return entries_df, errors_df


def export_entries(
    parser: MftParser,
    output_dir: str | Path,
    output_format: Literal["csv", "parquet", "jsonl"] = "csv",
    write_errors: bool = True,
) -> list[str]:
    """Write all entries of *parser* (and optionally its errors) to disk.

    The output directory is created recursively if it does not exist.

    Args:
        parser: A parser that has not been iterated yet.  It is
            consumed.
        output_dir: Directory to write files into (created if needed).
        output_format: ``"csv"``, ``"parquet"`` or ``"jsonl"``.
        write_errors: Also write ``_errors.{format}``.

    Returns:
        Paths written, ``entries`` first.

    Raises:
        ExportError: If *output_format* is unsupported, or if any write
            fails.
    """
    if output_format not in _SUPPORTED_FORMATS:
        raise ExportError(
            f"Unsupported output format: '{output_format}'. "
            f"Supported formats: {sorted(_SUPPORTED_FORMATS)}"
        )

    out = Path(output_dir)
    try:
        out.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExportError(f"Cannot create output directory {out}: {exc}") from exc

    entries_df, errors_df = collect_rows(parser)
    written: list[str] = []

    entries_path = out / f"{ENTRIES_TABLE}.{output_format}"
    _write_dataframe(entries_df, entries_path, output_format)
    written.append(str(entries_path))
    logger.info(
        "Exported %d entries -> %s",
        len(entries_df),
        entries_path.name,
    )

    if write_errors:
        errors_path = out / f"{ERRORS_TABLE}.{output_format}"
        _write_dataframe(errors_df, errors_path, output_format)
        written.append(str(errors_path))
        logger.info(
            "Exported %d errors -> %s",
            len(errors_df),
            errors_path.name,
        )
    elif len(errors_df):
        logger.warning("%d slots failed; errors not written", len(errors_df))

    return written
