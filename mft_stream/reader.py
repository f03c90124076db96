"""
Read-back of exported MFT tables.

Counterpart to ``export.py``: loads ``entries.{format}`` and
``_errors.{format}`` from an output directory into DataFrames, with
optional column selection and row filters.

Filtering strategy:
- **Parquet**: PyArrow column pruning (``columns``) and predicate
  pushdown (``filters``) for ``deleted``; the path prefix is applied
  after load since it is not an equality test.
- **CSV / JSON lines**: full read, then pandas-level filtering.  Same
  interface, lower performance on large files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import pyarrow.parquet as pq

from mft_stream.export import ENTRIES_TABLE, ERRORS_TABLE

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def read_entries(
    output_dir: str | Path,
    output_format: str,
    *,
    columns: list[str] | None = None,
    deleted: bool | None = None,
    path_prefix: str | None = None,
) -> pd.DataFrame:
    """Read exported entries with optional filtering.

    Args:
        output_dir: Directory containing the output files.
        output_format: ``"parquet"``, ``"csv"`` or ``"jsonl"``.
        columns: Columns to return; all columns when ``None``.
        deleted: ``True`` for deleted entries only, ``False`` for
            allocated entries only, ``None`` for both.
        path_prefix: Keep only rows whose ``full_path`` starts with
            this string.

    Returns:
        Filtered ``pandas.DataFrame`` with a fresh index.

    Raises:
        FileNotFoundError: If the entries file does not exist.
        ValueError: If *output_format* is unsupported.
    """
    path = _resolve_table_path(output_dir, ENTRIES_TABLE, output_format)

    # Filter columns must be loaded even if the caller did not ask for them
    load_columns = columns
    if columns is not None:
        extra = [
            name for name, wanted in (("is_deleted", deleted), ("full_path", path_prefix))
            if wanted is not None and name not in columns
        ]
        load_columns = list(columns) + extra

    if output_format == "parquet":
        filters = [("is_deleted", "==", deleted)] if deleted is not None else None
        logger.debug(
            "Reading Parquet %s (columns=%s, filters=%s)",
            path.name, load_columns, filters,
        )
        df = pq.read_table(path, columns=load_columns, filters=filters).to_pandas()
    else:
        df = _read_text_table(path, output_format)
        if load_columns is not None:
            df = df[load_columns]
        if deleted is not None:
            df = df[df["is_deleted"] == deleted]

    if path_prefix is not None:
        df = df[df["full_path"].fillna("").astype(str).str.startswith(path_prefix)]

    if columns is not None:
        df = df[columns]
    return df.reset_index(drop=True)


def read_errors(output_dir: str | Path, output_format: str) -> pd.DataFrame:
    """Read the ``_errors`` table.

    Raises:
        FileNotFoundError: If the errors file does not exist.
        ValueError: If *output_format* is unsupported.
    """
    path = _resolve_table_path(output_dir, ERRORS_TABLE, output_format)
    if output_format == "parquet":
        return pd.read_parquet(path)
    return _read_text_table(path, output_format)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _resolve_table_path(
    output_dir: str | Path,
    table_name: str,
    output_format: str,
) -> Path:
    """Build and validate the file path for a table."""
    if output_format not in ("csv", "parquet", "jsonl"):
        raise ValueError(
            f"Unsupported output format: '{output_format}'. "
            "Supported formats: ['csv', 'jsonl', 'parquet']"
        )
    path = Path(output_dir) / f"{table_name}.{output_format}"
    if not path.exists():
        raise FileNotFoundError(
            f"Table file not found: {path}. "
            f"Has the export been run? Check output_dir='{output_dir}'."
        )
    return path


def _read_text_table(path: Path, output_format: str) -> pd.DataFrame:
    """Load a CSV or JSON lines table, keeping empty strings as-is."""
    if output_format == "csv":
        return pd.read_csv(path, encoding="utf-8", keep_default_na=False)

    if not path.read_text(encoding="utf-8").strip():
        return pd.DataFrame()
    # Timestamp columns stay ISO text, as in the other formats
    return pd.read_json(path, lines=True, convert_dates=False, dtype=False)
