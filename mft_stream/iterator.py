"""
Streaming record iterator for mft-stream.

``EntriesIterator`` owns an ``MftTable`` and walks its slots in order,
one slot per step, never looking ahead:

- zeroed slots are skipped without producing a value;
- a decoded entry is rendered in the iterator's ``OutputFormat``;
- a slot that fails to decode or render produces the exception
  instance as its value, and the walk continues with the next slot;
- a truncated slot produces a ``TruncatedEntryError`` and ends the
  walk, since nothing after it can be read.

Once ``current_record`` reaches ``total_number_of_records`` every
further ``next()`` raises ``StopIteration`` without side effects.

One iterator must not be advanced from several threads at once; the
caller serializes access.
"""

from __future__ import annotations

import logging
from enum import Enum

from mft_stream.entry import MftEntry
from mft_stream.exceptions import DecodeError, SerializationError, TruncatedEntryError
from mft_stream.renderers.to_csv import render_csv
from mft_stream.renderers.to_json import render_json
from mft_stream.renderers.to_object import MftRecord, render_object
from mft_stream.table import MftTable

logger = logging.getLogger(__name__)

EntryResult = MftRecord | str | bytes | DecodeError | SerializationError


class OutputFormat(Enum):
    OBJECT = "object"
    JSON = "json"
    CSV = "csv"


class EntriesIterator:
    """Iterator over the entries of one MFT.

    Obtained from ``MftParser.entries()``, ``entries_json()`` or
    ``entries_csv()``; not usually built directly.

    Attributes:
        current_record: Index of the next slot to read.
        total_number_of_records: Number of slots, fixed at creation.
        output_format: How entries are rendered.
        csv_header_written: Whether a CSV header row has been emitted.
    """

    def __init__(self, table: MftTable, output_format: OutputFormat) -> None:
        self._table = table
        self.output_format = output_format
        self.current_record = 0
        self.total_number_of_records = table.entry_count
        self.csv_header_written = False

    def __iter__(self) -> EntriesIterator:
        return self

    def __next__(self) -> EntryResult:
        while self.current_record < self.total_number_of_records:
            entry_id = self.current_record
            try:
                entry = self._table.get_entry(entry_id)
            except TruncatedEntryError as exc:
                logger.warning("%s; stopping after %d entries", exc, entry_id)
                self.current_record = self.total_number_of_records
                return exc
            except DecodeError as exc:
                logger.debug("Entry %d failed to decode: %s", entry_id, exc)
                self.current_record += 1
                return exc

            self.current_record += 1
            if entry.header.is_zero:
                continue

            try:
                return self._render(entry)
            except SerializationError as exc:
                logger.debug("Entry %d failed to render: %s", entry_id, exc)
                return exc

        raise StopIteration

    def _render(self, entry: MftEntry) -> MftRecord | str | bytes:
        if self.output_format is OutputFormat.OBJECT:
            return render_object(entry, self._table)
        if self.output_format is OutputFormat.JSON:
            return render_json(entry)

        row = render_csv(entry, self._table, include_header=not self.csv_header_written)
        self.csv_header_written = True
        return row

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        """Release the byte source; the iterator is exhausted afterwards."""
        self.current_record = self.total_number_of_records
        self._table.close()

    def __enter__(self) -> EntriesIterator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"EntriesIterator(format={self.output_format.value}, "
            f"position={self.current_record}/{self.total_number_of_records})"
        )
