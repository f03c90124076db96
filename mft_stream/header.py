"""
FILE record header decoding for mft-stream.

Every MFT slot starts with a multi-sector header followed by the file
record segment header::

    0x00  signature            4s   b"FILE", b"BAAD" or zeros
    0x04  usa_offset           H
    0x06  usa_size             H    1 + number of 512-byte strides
    0x08  LSN                  Q
    0x10  sequence             H
    0x12  hard_link_count      H
    0x14  first_attribute      H
    0x16  flags                H
    0x18  used_entry_size      I
    0x1C  total_entry_size     I
    0x20  base_reference       Q    48-bit entry + 16-bit sequence
    0x28  first_attribute_id   H
    0x2A  (padding)            H
    0x2C  record_number        I

The update sequence array (USA) at ``usa_offset`` protects the last two
bytes of every 512-byte stride; ``apply_fixups`` restores them.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from enum import IntFlag

from mft_stream.exceptions import DecodeError

logger = logging.getLogger(__name__)

FILE_SIGNATURE = b"FILE"
BAAD_SIGNATURE = b"BAAD"
ZERO_SIGNATURE = b"\x00\x00\x00\x00"
VALID_SIGNATURES = (FILE_SIGNATURE, BAAD_SIGNATURE)

UPDATE_SEQUENCE_STRIDE = 512
HEADER_SIZE = 48

_HEADER_STRUCT = struct.Struct("<4sHHQHHHHIIQHHI")


class EntryFlags(IntFlag):
    """Flags of the file record segment header."""

    ALLOCATED = 0x01
    INDEX_PRESENT = 0x02
    UNKNOWN_1 = 0x04
    UNKNOWN_2 = 0x08


class FileAttributeFlags(IntFlag):
    """DOS-style file attribute flags ($STANDARD_INFORMATION / $FILE_NAME)."""

    FILE_ATTRIBUTE_READONLY = 0x0000_0001
    FILE_ATTRIBUTE_HIDDEN = 0x0000_0002
    FILE_ATTRIBUTE_SYSTEM = 0x0000_0004
    FILE_ATTRIBUTE_DIRECTORY = 0x0000_0010
    FILE_ATTRIBUTE_ARCHIVE = 0x0000_0020
    FILE_ATTRIBUTE_DEVICE = 0x0000_0040
    FILE_ATTRIBUTE_NORMAL = 0x0000_0080
    FILE_ATTRIBUTE_TEMPORARY = 0x0000_0100
    FILE_ATTRIBUTE_SPARSE_FILE = 0x0000_0200
    FILE_ATTRIBUTE_REPARSE_POINT = 0x0000_0400
    FILE_ATTRIBUTE_COMPRESSED = 0x0000_0800
    FILE_ATTRIBUTE_OFFLINE = 0x0000_1000
    FILE_ATTRIBUTE_NOT_CONTENT_INDEXED = 0x0000_2000
    FILE_ATTRIBUTE_ENCRYPTED = 0x0000_4000
    FILE_ATTRIBUTE_IS_DIRECTORY = 0x1000_0000
    FILE_ATTRIBUTE_INDEX_VIEW = 0x2000_0000


def flag_names(flags: IntFlag) -> str:
    """Render set flags as ``"A | B"`` in bit order; unknown bits as hex."""
    names: list[str] = []
    remaining = int(flags)
    for member in type(flags):
        if remaining & member.value:
            names.append(member.name)
            remaining &= ~member.value
    if remaining:
        names.append(f"0x{remaining:X}")
    return " | ".join(names)


@dataclass(frozen=True)
class MftReference:
    """A reference to another MFT entry (48-bit index, 16-bit sequence)."""

    entry: int
    sequence: int

    @classmethod
    def from_int(cls, value: int) -> MftReference:
        return cls(entry=value & 0xFFFF_FFFF_FFFF, sequence=(value >> 48) & 0xFFFF)


@dataclass
class EntryHeader:
    """Decoded file record segment header."""

    signature: bytes
    usa_offset: int
    usa_size: int
    metadata_transaction_journal: int
    sequence: int
    hard_link_count: int
    first_attribute_record_offset: int
    flags: EntryFlags
    used_entry_size: int
    total_entry_size: int
    base_reference: MftReference
    first_attribute_id: int
    record_number: int

    @classmethod
    def zero(cls) -> EntryHeader:
        """Header of an unused, zero-filled slot."""
        return cls(
            signature=ZERO_SIGNATURE,
            usa_offset=0,
            usa_size=0,
            metadata_transaction_journal=0,
            sequence=0,
            hard_link_count=0,
            first_attribute_record_offset=0,
            flags=EntryFlags(0),
            used_entry_size=0,
            total_entry_size=0,
            base_reference=MftReference(0, 0),
            first_attribute_id=0,
            record_number=0,
        )

    @property
    def is_zero(self) -> bool:
        return self.signature == ZERO_SIGNATURE


def parse_header(buffer: bytes, entry_id: int | None = None) -> EntryHeader:
    """Decode the header at the start of *buffer*.

    A zeroed signature returns ``EntryHeader.zero()`` without looking at
    the remaining fields.

    Raises:
        DecodeError: If the buffer is too short or the signature is
            neither FILE, BAAD nor zero.
    """
    if len(buffer) < HEADER_SIZE:
        raise DecodeError(
            f"Entry header needs {HEADER_SIZE} bytes, got {len(buffer)}",
            entry_id=entry_id,
        )

    signature = bytes(buffer[:4])
    if signature == ZERO_SIGNATURE:
        return EntryHeader.zero()
    if signature not in VALID_SIGNATURES:
        raise DecodeError(
            f"Invalid entry signature {signature!r}", entry_id=entry_id
        )

    (
        signature,
        usa_offset,
        usa_size,
        lsn,
        sequence,
        hard_link_count,
        first_attribute,
        flags,
        used_entry_size,
        total_entry_size,
        base_reference,
        first_attribute_id,
        _padding,
        record_number,
    ) = _HEADER_STRUCT.unpack_from(buffer, 0)

    return EntryHeader(
        signature=signature,
        usa_offset=usa_offset,
        usa_size=usa_size,
        metadata_transaction_journal=lsn,
        sequence=sequence,
        hard_link_count=hard_link_count,
        first_attribute_record_offset=first_attribute,
        flags=EntryFlags(flags),
        used_entry_size=used_entry_size,
        total_entry_size=total_entry_size,
        base_reference=MftReference.from_int(base_reference),
        first_attribute_id=first_attribute_id,
        record_number=record_number,
    )


def apply_fixups(buffer: bytearray, header: EntryHeader, entry_id: int | None = None) -> int:
    """Restore the protected bytes of each 512-byte stride in place.

    Returns the number of strides fixed up.  A stride whose trailing
    bytes do not match the update sequence number means a torn write:
    inside the used part of the entry that is a decode error, past it
    the remaining strides are left untouched.

    Raises:
        DecodeError: If the update sequence array lies outside the
            buffer or a used stride fails the check.
    """
    usa_offset = header.usa_offset
    usa_end = usa_offset + header.usa_size * 2
    if header.usa_size < 1 or usa_end > len(buffer):
        raise DecodeError(
            f"Update sequence array out of bounds (offset={usa_offset}, "
            f"size={header.usa_size})",
            entry_id=entry_id,
        )

    update_sequence = bytes(buffer[usa_offset : usa_offset + 2])
    applied = 0
    for stride in range(1, header.usa_size):
        end = stride * UPDATE_SEQUENCE_STRIDE
        if end > len(buffer):
            break
        if bytes(buffer[end - 2 : end]) != update_sequence:
            if end - UPDATE_SEQUENCE_STRIDE < header.used_entry_size:
                raise DecodeError(
                    f"Fixup mismatch at offset {end - 2}", entry_id=entry_id
                )
            logger.debug(
                "Entry %s: fixup mismatch past used size at offset %d",
                entry_id, end - 2,
            )
            break
        saved = usa_offset + stride * 2
        buffer[end - 2 : end] = buffer[saved : saved + 2]
        applied += 1
    return applied
