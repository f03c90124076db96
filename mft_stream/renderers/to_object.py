"""Object-mode renderer: decoded entry -> ``MftRecord``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from mft_stream.attributes.base import MftAttribute
from mft_stream.entry import MftEntry
from mft_stream.header import EntryFlags, EntryHeader
from mft_stream.table import MftTable

logger = logging.getLogger(__name__)


@dataclass
class MftRecord:
    """One rendered MFT entry.

    The scalar fields mirror the entry header; ``header`` and
    ``attributes`` are the decoded structures themselves.  ``full_path``
    is resolved through the table when the record is rendered.  If the
    parent chain is broken, ``full_path`` holds the ``[Unknown]/...``
    fallback and ``full_path_error`` says why.
    """

    entry_id: int
    signature: str
    sequence: int
    base_entry_id: int
    base_entry_sequence: int
    hard_link_count: int
    flags: EntryFlags
    used_entry_size: int
    total_entry_size: int
    file_size: int
    is_allocated: bool
    is_directory: bool
    header: EntryHeader
    attributes: list[MftAttribute] = field(default_factory=list)
    full_path: str | None = None
    full_path_error: str | None = None

    @property
    def is_deleted(self) -> bool:
        return not self.is_allocated


def render_object(entry: MftEntry, table: MftTable) -> MftRecord:
    """Build the ``MftRecord`` for *entry*.

    May read further entries from *table* to resolve the path.
    """
    header = entry.header
    resolution = table.resolve_full_path(entry)
    if resolution.error:
        logger.debug("Entry %d: path fallback %r", entry.entry_id, resolution.path)

    return MftRecord(
        entry_id=entry.entry_id,
        signature=header.signature.decode("ascii", errors="replace"),
        sequence=header.sequence,
        base_entry_id=header.base_reference.entry,
        base_entry_sequence=header.base_reference.sequence,
        hard_link_count=header.hard_link_count,
        flags=header.flags,
        used_entry_size=header.used_entry_size,
        total_entry_size=header.total_entry_size,
        file_size=entry.file_size(),
        is_allocated=entry.is_allocated(),
        is_directory=entry.is_dir(),
        header=header,
        attributes=list(entry.attributes),
        full_path=resolution.path,
        full_path_error=resolution.error,
    )
