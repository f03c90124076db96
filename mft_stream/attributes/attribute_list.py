"""
$ATTRIBUTE_LIST (0x20) parser.

Present when an entry's attributes spill over into extension records.
Each list entry::

    0x00  attribute_type   I
    0x04  record_length    H
    0x06  name_length      B
    0x07  name_offset      B
    0x08  first_vcn        Q
    0x10  base_reference   Q   entry holding the attribute
    0x18  attribute_id     H
    0x1A  name             UTF-16LE
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field

from mft_stream.attributes.base import AttributeParser, AttributeType, read_utf16
from mft_stream.header import MftReference

logger = logging.getLogger(__name__)

_ENTRY_STRUCT = struct.Struct("<IHBBQQH")


@dataclass
class AttributeListEntry:
    attribute_type: int
    record_length: int
    first_vcn: int
    base_reference: MftReference
    attribute_id: int
    name: str


@dataclass
class AttributeListAttr:
    entries: list[AttributeListEntry] = field(default_factory=list)


class AttributeListParser(AttributeParser):
    type_code = AttributeType.ATTRIBUTE_LIST

    def parse(self, data: bytes) -> AttributeListAttr:
        result = AttributeListAttr()
        offset = 0
        while offset + _ENTRY_STRUCT.size <= len(data):
            (
                attribute_type,
                record_length,
                name_length,
                name_offset,
                first_vcn,
                base_reference,
                attribute_id,
            ) = _ENTRY_STRUCT.unpack_from(data, offset)

            if record_length < _ENTRY_STRUCT.size or offset + record_length > len(data):
                logger.debug(
                    "Attribute list entry at offset %d has bad length %d; stopping",
                    offset, record_length,
                )
                break

            name = ""
            if name_length:
                name = read_utf16(data, offset + name_offset, name_length)

            result.entries.append(
                AttributeListEntry(
                    attribute_type=attribute_type,
                    record_length=record_length,
                    first_vcn=first_vcn,
                    base_reference=MftReference.from_int(base_reference),
                    attribute_id=attribute_id,
                    name=name,
                )
            )
            offset += record_length

        return result
