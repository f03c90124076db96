"""
Flat row layout shared by the CSV renderer and the bulk exporter.

One row per entry, columns in ``FLAT_COLUMNS`` order.  Timestamps are
ISO-8601 text (empty when unset) and flag sets use ``"A | B"`` names,
so the same row can go to a CSV stream, a DataFrame or Parquet without
further conversion.  The $FILE_NAME columns come from the entry's best
name (Win32 over POSIX over DOS).
"""

from __future__ import annotations

from typing import Any

from mft_stream.entry import MftEntry
from mft_stream.header import flag_names
from mft_stream.renderers.to_object import MftRecord
from mft_stream.timestamps import format_timestamp

FLAT_COLUMNS: list[str] = [
    "signature",
    "entry_id",
    "sequence",
    "base_reference_entry",
    "base_reference_sequence",
    "hard_link_count",
    "flags",
    "used_entry_size",
    "total_entry_size",
    "file_size",
    "is_a_directory",
    "is_deleted",
    "has_alternate_data_streams",
    "standard_info_flags",
    "standard_info_last_modified",
    "standard_info_last_access",
    "standard_info_created",
    "file_name_flags",
    "file_name_last_modified",
    "file_name_last_access",
    "file_name_created",
    "full_path",
]


def flatten_record(record: MftRecord) -> dict[str, Any]:
    """Flatten an ``MftRecord`` into a ``FLAT_COLUMNS`` row."""
    entry = MftEntry(
        entry_id=record.entry_id,
        header=record.header,
        attributes=record.attributes,
    )
    row: dict[str, Any] = {
        "signature": record.signature,
        "entry_id": record.entry_id,
        "sequence": record.sequence,
        "base_reference_entry": record.base_entry_id,
        "base_reference_sequence": record.base_entry_sequence,
        "hard_link_count": record.hard_link_count,
        "flags": flag_names(record.flags),
        "used_entry_size": record.used_entry_size,
        "total_entry_size": record.total_entry_size,
        "file_size": record.file_size,
        "is_a_directory": record.is_directory,
        "is_deleted": record.is_deleted,
        "has_alternate_data_streams": entry.has_alternate_data_streams(),
        "full_path": record.full_path or "",
    }

    si = entry.standard_info()
    row["standard_info_flags"] = flag_names(si.file_flags) if si else ""
    row["standard_info_last_modified"] = format_timestamp(si.modified if si else None)
    row["standard_info_last_access"] = format_timestamp(si.accessed if si else None)
    row["standard_info_created"] = format_timestamp(si.created if si else None)

    fn = entry.find_best_name_attribute()
    row["file_name_flags"] = flag_names(fn.flags) if fn else ""
    row["file_name_last_modified"] = format_timestamp(fn.modified if fn else None)
    row["file_name_last_access"] = format_timestamp(fn.accessed if fn else None)
    row["file_name_created"] = format_timestamp(fn.created if fn else None)

    return {column: row[column] for column in FLAT_COLUMNS}
