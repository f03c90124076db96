"""
MFT entry decoding for mft-stream.

``decode_entry()`` turns one raw slot into an ``MftEntry``:

1. Parse the header (``header.parse_header``).  A zeroed slot stops
   here and comes back as an entry with a zero signature and no
   attributes; the iterator skips those.
2. Apply the update sequence fixups (FILE entries only; BAAD entries
   are decoded as they are, since their fixups are known to be bad).
3. Walk attribute records from ``first_attribute_record_offset`` to the
   end marker, decoding resident content with the parser registered
   for its type code.

Any inconsistency raises ``DecodeError`` carrying the entry index.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from typing import Iterator

from mft_stream.attributes.base import (
    END_OF_ATTRIBUTES,
    AttributeHeader,
    AttributeParser,
    AttributeType,
    MftAttribute,
    NonResidentHeader,
    RawAttr,
    parse_attribute_header,
)
from mft_stream.attributes.data import DataAttr, NonResidentAttr, decode_data_runs
from mft_stream.attributes.file_name import FileNameAttr, FileNamespace
from mft_stream.attributes.standard_info import StandardInfoAttr
from mft_stream.exceptions import DecodeError
from mft_stream.header import (
    FILE_SIGNATURE,
    HEADER_SIZE,
    EntryFlags,
    EntryHeader,
    apply_fixups,
    parse_header,
)

logger = logging.getLogger(__name__)

# Maps attribute type code to its content parser
_PARSER_MAP: dict[int, AttributeParser] = {}

# Namespaces holding the long name, best first
_NAMESPACE_PREFERENCE = (
    FileNamespace.WIN32,
    FileNamespace.WIN32_AND_DOS,
    FileNamespace.POSIX,
    FileNamespace.DOS,
)


def _get_parser_map() -> dict[int, AttributeParser]:
    """Lazily build the parser map."""
    if not _PARSER_MAP:
        from mft_stream.attributes.attribute_list import AttributeListParser
        from mft_stream.attributes.data import DataParser
        from mft_stream.attributes.file_name import FileNameParser
        from mft_stream.attributes.index_root import IndexRootParser
        from mft_stream.attributes.object_id import ObjectIdParser
        from mft_stream.attributes.standard_info import StandardInfoParser

        for parser in (
            StandardInfoParser(),
            AttributeListParser(),
            FileNameParser(),
            ObjectIdParser(),
            DataParser(),
            IndexRootParser(),
        ):
            _PARSER_MAP[int(parser.type_code)] = parser
    return _PARSER_MAP


@dataclass
class MftEntry:
    """A decoded MFT entry.

    Attributes:
        entry_id: Slot index in the table.
        header: The decoded record header.
        attributes: Attributes in on-disk order.
    """

    entry_id: int
    header: EntryHeader
    attributes: list[MftAttribute] = field(default_factory=list)

    def is_allocated(self) -> bool:
        return bool(self.header.flags & EntryFlags.ALLOCATED)

    def is_dir(self) -> bool:
        return bool(self.header.flags & EntryFlags.INDEX_PRESENT)

    def iter_attributes(self, type_code: int | None = None) -> Iterator[MftAttribute]:
        """Yield attributes, optionally only those of one type."""
        for attribute in self.attributes:
            if type_code is None or attribute.header.type_code == type_code:
                yield attribute

    def standard_info(self) -> StandardInfoAttr | None:
        for attribute in self.iter_attributes(AttributeType.STANDARD_INFORMATION):
            if isinstance(attribute.data, StandardInfoAttr):
                return attribute.data
        return None

    def file_names(self) -> list[FileNameAttr]:
        return [
            attribute.data
            for attribute in self.iter_attributes(AttributeType.FILE_NAME)
            if isinstance(attribute.data, FileNameAttr)
        ]

    def find_best_name_attribute(self) -> FileNameAttr | None:
        """Pick the $FILE_NAME most likely to hold the long name.

        Win32 names win over POSIX names, which win over DOS 8.3
        aliases.  Ties keep on-disk order.
        """
        names = self.file_names()
        for namespace in _NAMESPACE_PREFERENCE:
            for name in names:
                if name.namespace == namespace:
                    return name
        return names[0] if names else None

    def file_size(self) -> int:
        """Size of the unnamed $DATA stream, 0 if there is none."""
        for attribute in self.iter_attributes(AttributeType.DATA):
            if attribute.header.name:
                continue
            residential = attribute.header.residential_header
            if isinstance(residential, NonResidentHeader):
                return residential.file_size
            if isinstance(attribute.data, DataAttr):
                return len(attribute.data.data)
            return residential.data_size
        return 0

    def has_alternate_data_streams(self) -> bool:
        return any(
            attribute.header.name
            for attribute in self.iter_attributes(AttributeType.DATA)
        )


def decode_entry(buffer: bytes, entry_id: int) -> MftEntry:
    """Decode one MFT slot.

    Args:
        buffer: Exactly one slot's bytes.
        entry_id: Index of the slot (used for error reporting).

    Returns:
        The decoded entry.  Zeroed slots return an entry whose header
        has ``is_zero == True`` and no attributes.

    Raises:
        DecodeError: On a bad signature, fixup mismatch or malformed
            attribute.
    """
    header = parse_header(buffer, entry_id)
    if header.is_zero:
        return MftEntry(entry_id=entry_id, header=header)

    data = bytearray(buffer)
    if header.signature == FILE_SIGNATURE:
        apply_fixups(data, header, entry_id)
    else:
        logger.debug("Entry %d has signature %r; fixups not applied", entry_id, header.signature)

    attributes = _decode_attributes(data, header, entry_id)
    return MftEntry(entry_id=entry_id, header=header, attributes=attributes)


def _decode_attributes(
    data: bytearray,
    header: EntryHeader,
    entry_id: int,
) -> list[MftAttribute]:
    """Walk the attribute records of a fixed-up entry."""
    offset = header.first_attribute_record_offset
    if offset < HEADER_SIZE or offset >= len(data):
        raise DecodeError(
            f"Entry {entry_id}: first attribute offset {offset} out of range",
            entry_id=entry_id,
        )

    limit = len(data)
    if 0 < header.used_entry_size < limit:
        limit = header.used_entry_size

    attributes: list[MftAttribute] = []
    while offset + 4 <= limit:
        (type_code,) = struct.unpack_from("<I", data, offset)
        if type_code == END_OF_ATTRIBUTES:
            break
        # Parsers may still hit struct.error on values shorter than their layout
        try:
            attr_header = parse_attribute_header(data, offset)
            content = _decode_content(data, offset, attr_header)
        except (DecodeError, struct.error) as exc:
            raise DecodeError(f"Entry {entry_id}: {exc}", entry_id=entry_id) from exc
        attributes.append(MftAttribute(header=attr_header, data=content))
        offset += attr_header.record_length

    return attributes


def _decode_content(
    data: bytearray,
    offset: int,
    attr_header: AttributeHeader,
) -> object:
    """Decode the resident value or the data runs of one attribute."""
    residential = attr_header.residential_header
    if isinstance(residential, NonResidentHeader):
        if residential.datarun_offset >= attr_header.record_length:
            raise DecodeError(
                f"Data run offset {residential.datarun_offset} outside attribute"
            )
        start = offset + residential.datarun_offset
        end = offset + attr_header.record_length
        return NonResidentAttr(data_runs=decode_data_runs(bytes(data[start:end])))

    start = offset + residential.data_offset
    value = bytes(data[start : start + residential.data_size])
    parser = _get_parser_map().get(attr_header.type_code)
    if parser is None:
        return RawAttr(data=value)
    return parser.parse(value)
