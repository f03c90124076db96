"""
Table handle for mft-stream.

``MftTable`` owns the byte source of one $MFT and everything derived
from it once at construction:

- ``entry_size``: the fixed slot size, from ``ParserConfig.entry_size``
  or the first entry header's ``total_entry_size``.
- ``entry_count``: ``size // entry_size``.  Streams of unknown size are
  measured by seeking to their end.

It decodes entries by index and resolves full paths by walking
$FILE_NAME parent references, keeping recently resolved directory
paths in a small LRU cache.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass

from mft_stream.config import SECTOR_SIZE, ParserConfig
from mft_stream.entry import MftEntry, decode_entry
from mft_stream.exceptions import (
    DecodeError,
    InitializationError,
    PathResolutionError,
    TruncatedEntryError,
)
from mft_stream.header import HEADER_SIZE, parse_header
from mft_stream.source import ByteSource

logger = logging.getLogger(__name__)

ROOT_ENTRY_ID = 5
DEFAULT_ENTRY_SIZE = 1024
PATH_SEPARATOR = "/"
UNKNOWN_PATH_PREFIX = "[Unknown]"


@dataclass
class PathResolution:
    """Outcome of a full path lookup.

    Attributes:
        path: The resolved path, ``[Unknown]/...`` when the chain breaks
            before the root, or ``None`` when the entry has no name.
        error: Why the chain broke, if it broke because of a damaged or
            looping parent.  ``None`` for clean resolutions and plain
            orphans.
    """

    path: str | None
    error: str | None = None


class MftTable:
    """Owns one $MFT byte source and decodes its entries.

    Use ``MftTable.open()`` to build one from a path or stream; the
    constructor expects an already opened ``ByteSource``.

    Attributes:
        entry_size: Slot size in bytes.
        entry_count: Number of whole slots in the source.
    """

    def __init__(self, source: ByteSource, config: ParserConfig | None = None) -> None:
        config = config or ParserConfig()
        self.source = source
        try:
            detected = self._detect_entry_size()
            self.entry_size = config.entry_size or detected
            size = source.stream_size()
        except OSError as exc:
            raise InitializationError(f"Cannot read {source.name}: {exc}") from exc

        self.entry_count = size // self.entry_size
        self._path_cache: OrderedDict[int, str] = OrderedDict()
        self._path_cache_size = config.path_cache_size
        logger.info(
            "Opened MFT %s: %d entries of %d bytes",
            source.name, self.entry_count, self.entry_size,
        )

    @classmethod
    def open(cls, path_or_file_like: object, config: ParserConfig | None = None) -> MftTable:
        """Open a path or wrap a stream and size the table.

        Raises:
            InitializationError: If the source cannot be opened or read, the
                first entry header cannot be read, or it is not an MFT
                entry.
        """
        config = config or ParserConfig()
        try:
            source = ByteSource.open(path_or_file_like, buffer_size=config.buffer_size)
        except (OSError, TypeError) as exc:
            raise InitializationError(f"Cannot open MFT source: {exc}") from exc

        try:
            return cls(source, config)
        except InitializationError:
            source.close()
            raise
        except (ValueError, TypeError) as exc:
            # Closed or text-mode streams fail on the first read
            source.close()
            raise InitializationError(f"Cannot read {source.name}: {exc}") from exc

    # -- Entries ------------------------------------------------------------

    def get_entry(self, entry_id: int) -> MftEntry:
        """Read and decode the entry in slot *entry_id*.

        Raises:
            TruncatedEntryError: If the source ends inside the slot.
            DecodeError: If the slot is out of range, unreadable, or
                malformed.
        """
        if entry_id < 0 or entry_id >= self.entry_count:
            raise DecodeError(
                f"Entry {entry_id} is outside the table (0..{self.entry_count - 1})",
                entry_id=entry_id,
            )
        try:
            buffer = self.source.read_at(entry_id * self.entry_size, self.entry_size)
        except OSError as exc:
            raise DecodeError(f"Entry {entry_id}: read failed: {exc}", entry_id=entry_id) from exc

        if len(buffer) < self.entry_size:
            raise TruncatedEntryError(
                f"Entry {entry_id}: expected {self.entry_size} bytes, "
                f"source returned {len(buffer)}",
                entry_id=entry_id,
            )
        return decode_entry(buffer, entry_id)

    # -- Paths --------------------------------------------------------------

    def resolve_full_path(self, entry: MftEntry) -> PathResolution:
        """Build the full path of *entry* from its parent chain.

        The walk is iterative and stops at the root (entry 5), at a
        cached ancestor, or where the chain breaks.  Extension records
        (no $FILE_NAME of their own) are resolved through their base
        record.  A broken chain never raises: the partial path and the
        reason come back in the ``PathResolution``.
        """
        try:
            prefix, names, chain = self._walk_parents(entry)
        except PathResolutionError as exc:
            logger.warning("Entry %d: %s", entry.entry_id, exc)
            return PathResolution(path=exc.partial_path, error=str(exc))

        if not names:
            return PathResolution(path=None)
        self._remember(entry, prefix, names, chain)
        return PathResolution(path=_join(prefix, names))

    def _walk_parents(self, entry: MftEntry) -> tuple[str, list[str], list[int]]:
        """Collect names leaf first until the root, the cache, or an orphan.

        Returns:
            ``(prefix, names, chain)``: the path the names hang under
            (``""`` for the root), the names leaf first, and the ids of
            the entries that contributed them.

        Raises:
            PathResolutionError: On a loop or an undecodable parent.
        """
        names: list[str] = []
        chain: list[int] = []
        visited: set[int] = set()
        current = entry

        while True:
            if current.entry_id in visited:
                raise PathResolutionError(
                    f"Loop in parent chain at entry {current.entry_id}",
                    entry_id=entry.entry_id,
                    partial_path=_join(UNKNOWN_PATH_PREFIX, names) if names else None,
                )
            visited.add(current.entry_id)

            if current is not entry:
                cached = self._cache_get(current.entry_id)
                if cached is not None:
                    return cached, names, chain

            name_attr = current.find_best_name_attribute()
            if name_attr is None:
                base = current.header.base_reference.entry
                if base == 0:
                    # Orphan: the chain ends at an entry without a name.
                    return UNKNOWN_PATH_PREFIX, names, chain
                current = self._follow(base, "Base", entry, names)
                continue

            names.append(name_attr.name)
            chain.append(current.entry_id)

            parent = name_attr.parent.entry
            if parent == ROOT_ENTRY_ID:
                return "", names, chain
            if parent == current.entry_id:
                logger.warning("Entry %d: self-referential parent", current.entry_id)
                return "", names, chain
            if parent == 0:
                return UNKNOWN_PATH_PREFIX, names, chain
            current = self._follow(parent, "Parent", entry, names)

    def _follow(self, entry_id: int, role: str, origin: MftEntry, names: list[str]) -> MftEntry:
        try:
            return self.get_entry(entry_id)
        except DecodeError as exc:
            raise PathResolutionError(
                f"{role} entry {entry_id}: {exc}",
                entry_id=origin.entry_id,
                partial_path=_join(UNKNOWN_PATH_PREFIX, names) if names else None,
            ) from exc

    def _remember(
        self,
        entry: MftEntry,
        prefix: str,
        names: list[str],
        chain: list[int],
    ) -> None:
        """Cache the paths of the directories met during a walk."""
        if self._path_cache_size == 0:
            return
        for index, entry_id in enumerate(chain):
            if index == 0 and not entry.is_dir():
                continue
            self._cache_put(entry_id, _join(prefix, names[index:]))

    def _cache_get(self, entry_id: int) -> str | None:
        path = self._path_cache.get(entry_id)
        if path is not None:
            self._path_cache.move_to_end(entry_id)
        return path

    def _cache_put(self, entry_id: int, path: str) -> None:
        self._path_cache[entry_id] = path
        self._path_cache.move_to_end(entry_id)
        while len(self._path_cache) > self._path_cache_size:
            self._path_cache.popitem(last=False)

    # -- Lifecycle ----------------------------------------------------------

    def _detect_entry_size(self) -> int:
        """Read the first header and return its declared slot size."""
        first = self.source.read_at(0, HEADER_SIZE)
        if len(first) < HEADER_SIZE:
            raise InitializationError(
                f"{self.source.name} is too short for an MFT entry header "
                f"({len(first)} bytes)"
            )
        try:
            header = parse_header(first, entry_id=0)
        except DecodeError as exc:
            raise InitializationError(f"{self.source.name} is not an MFT: {exc}") from exc

        if header.is_zero:
            logger.warning(
                "First entry of %s is zeroed; assuming %d-byte entries",
                self.source.name, DEFAULT_ENTRY_SIZE,
            )
            return DEFAULT_ENTRY_SIZE

        size = header.total_entry_size
        if size <= 0 or size % SECTOR_SIZE != 0:
            raise InitializationError(
                f"{self.source.name}: invalid entry size {size} in first header"
            )
        return size

    def close(self) -> None:
        self.source.close()

    def __repr__(self) -> str:
        return (
            f"MftTable(source={self.source.name!r}, entry_size={self.entry_size}, "
            f"entry_count={self.entry_count})"
        )


def _join(prefix: str, names_leaf_first: list[str]) -> str:
    parts = list(reversed(names_leaf_first))
    if prefix:
        parts.insert(0, prefix)
    return PATH_SEPARATOR.join(parts)
