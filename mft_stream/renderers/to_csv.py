"""CSV-mode renderer: one ``FLAT_COLUMNS`` row per entry, as UTF-8 bytes."""

from __future__ import annotations

import csv
import io

from mft_stream.entry import MftEntry
from mft_stream.exceptions import SerializationError
from mft_stream.renderers.flat import FLAT_COLUMNS, flatten_record
from mft_stream.renderers.to_object import render_object
from mft_stream.table import MftTable


def render_csv(entry: MftEntry, table: MftTable, include_header: bool) -> bytes:
    """Render *entry* as a CSV row, preceded by the header row on request.

    Lines end with ``\\n``.  Whether the header has already been written
    is the caller's state; this function only does what it is told.

    Raises:
        SerializationError: If the row cannot be encoded.
    """
    row = flatten_record(render_object(entry, table))
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    try:
        if include_header:
            writer.writerow(FLAT_COLUMNS)
        writer.writerow([row[column] for column in FLAT_COLUMNS])
        return buffer.getvalue().encode("utf-8")
    except (csv.Error, UnicodeEncodeError) as exc:
        raise SerializationError(
            f"Entry {entry.entry_id}: CSV encoding failed: {exc}",
            entry_id=entry.entry_id,
        ) from exc
