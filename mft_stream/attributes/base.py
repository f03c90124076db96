"""
Attribute record headers and the content parser ABC for mft-stream.

Every attribute record starts with a 16-byte common header, followed by
either a resident sub-header (content stored inline) or a non-resident
sub-header (content stored in clusters described by data runs).

All type-specific content parsers implement ``AttributeParser``.  The
contract is:
1. ``parse()`` takes the resident value bytes of one attribute.
2. It returns a content dataclass, or raises ``DecodeError`` if the
   value is too short or inconsistent.
"""

from __future__ import annotations

import struct
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum

from mft_stream.exceptions import DecodeError

END_OF_ATTRIBUTES = 0xFFFF_FFFF

FORM_CODE_RESIDENT = 0
FORM_CODE_NONRESIDENT = 1

_COMMON_STRUCT = struct.Struct("<IIBBHHH")
_RESIDENT_STRUCT = struct.Struct("<IHBB")
_NONRESIDENT_STRUCT = struct.Struct("<QQHB5sQQQ")


class AttributeType(IntEnum):
    """Attribute type codes defined in $AttrDef."""

    STANDARD_INFORMATION = 0x10
    ATTRIBUTE_LIST = 0x20
    FILE_NAME = 0x30
    OBJECT_ID = 0x40
    SECURITY_DESCRIPTOR = 0x50
    VOLUME_NAME = 0x60
    VOLUME_INFORMATION = 0x70
    DATA = 0x80
    INDEX_ROOT = 0x90
    INDEX_ALLOCATION = 0xA0
    BITMAP = 0xB0
    REPARSE_POINT = 0xC0
    EA_INFORMATION = 0xD0
    EA = 0xE0
    PROPERTY_SET = 0xF0
    LOGGED_UTILITY_STREAM = 0x100


def attribute_type_name(type_code: int) -> str:
    """``$FILE_NAME``-style name for a type code, hex for unknown codes."""
    try:
        return f"${AttributeType(type_code).name}"
    except ValueError:
        return f"0x{type_code:X}"


@dataclass
class ResidentHeader:
    data_size: int
    data_offset: int
    index_flag: int


@dataclass
class NonResidentHeader:
    vnc_first: int
    vnc_last: int
    datarun_offset: int
    unit_compression_size: int
    allocated_length: int
    file_size: int
    valid_data_length: int
    total_allocated: int | None = None


@dataclass
class AttributeHeader:
    """Common attribute record header plus its form-specific part."""

    type_code: int
    record_length: int
    form_code: int
    name_size: int
    name_offset: int
    data_flags: int
    instance: int
    name: str
    residential_header: ResidentHeader | NonResidentHeader

    @property
    def is_resident(self) -> bool:
        return self.form_code == FORM_CODE_RESIDENT


@dataclass
class RawAttr:
    """Content of a resident attribute type without a dedicated parser."""

    data: bytes


@dataclass
class MftAttribute:
    """One decoded attribute: header plus typed content.

    ``data`` is a content dataclass (``StandardInfoAttr``,
    ``FileNameAttr``, ...), ``RawAttr`` for unparsed resident types, or
    ``NonResidentAttr`` for non-resident attributes.
    """

    header: AttributeHeader
    data: object

    @property
    def type_code(self) -> int:
        return self.header.type_code

    @property
    def type_name(self) -> str:
        return attribute_type_name(self.header.type_code)


class AttributeParser(ABC):
    """Abstract base class for resident attribute content parsers.

    Subclasses set ``type_code`` and implement ``parse()``.
    """

    type_code: int

    @abstractmethod
    def parse(self, data: bytes) -> object:
        """Decode the resident value of one attribute.

        Args:
            data: The attribute value (``data_size`` bytes at
                ``data_offset``).

        Returns:
            A content dataclass.

        Raises:
            DecodeError: If the value is malformed.
        """


# ---------------------------------------------------------------------------
# Shared field helpers
# ---------------------------------------------------------------------------

def require_length(data: bytes, minimum: int, what: str) -> None:
    """Raise ``DecodeError`` if *data* is shorter than *minimum*."""
    if len(data) < minimum:
        raise DecodeError(f"{what} needs {minimum} bytes, got {len(data)}")


def read_utf16(buffer: bytes, offset: int, length_chars: int) -> str:
    """Decode a UTF-16LE name of *length_chars* characters."""
    end = offset + length_chars * 2
    if end > len(buffer):
        raise DecodeError(f"Name at offset {offset} runs past the buffer")
    return bytes(buffer[offset:end]).decode("utf-16-le", errors="replace")


def format_guid(raw: bytes) -> str:
    """Upper-case GUID text from its 16-byte little-endian form."""
    return str(uuid.UUID(bytes_le=bytes(raw))).upper()


def parse_attribute_header(buffer: bytes, offset: int) -> AttributeHeader:
    """Decode the attribute record header at *offset* in an entry buffer.

    Raises:
        DecodeError: If the header, its name, or its declared length
            does not fit in the buffer, or the form code is unknown.
    """
    if offset + _COMMON_STRUCT.size > len(buffer):
        raise DecodeError(f"Attribute header at offset {offset} is truncated")

    (
        type_code,
        record_length,
        form_code,
        name_size,
        name_offset,
        data_flags,
        instance,
    ) = _COMMON_STRUCT.unpack_from(buffer, offset)

    if record_length < _COMMON_STRUCT.size or record_length % 8 != 0:
        raise DecodeError(
            f"Invalid attribute record length {record_length} at offset {offset}"
        )
    if offset + record_length > len(buffer):
        raise DecodeError(
            f"Attribute at offset {offset} runs past the entry "
            f"(record_length={record_length})"
        )

    residential_header: ResidentHeader | NonResidentHeader
    if form_code == FORM_CODE_RESIDENT:
        if record_length < _COMMON_STRUCT.size + _RESIDENT_STRUCT.size:
            raise DecodeError(
                f"Resident attribute at offset {offset} is too short "
                f"({record_length} bytes)"
            )
        data_size, data_offset, index_flag, _padding = _RESIDENT_STRUCT.unpack_from(
            buffer, offset + _COMMON_STRUCT.size
        )
        if data_offset + data_size > record_length:
            raise DecodeError(
                f"Resident value ({data_offset}+{data_size}) exceeds attribute "
                f"record length {record_length}"
            )
        residential_header = ResidentHeader(
            data_size=data_size,
            data_offset=data_offset,
            index_flag=index_flag,
        )
    elif form_code == FORM_CODE_NONRESIDENT:
        if record_length < _COMMON_STRUCT.size + _NONRESIDENT_STRUCT.size:
            raise DecodeError(
                f"Non-resident attribute at offset {offset} is too short "
                f"({record_length} bytes)"
            )
        (
            vnc_first,
            vnc_last,
            datarun_offset,
            unit_compression_size,
            _reserved,
            allocated_length,
            file_size,
            valid_data_length,
        ) = _NONRESIDENT_STRUCT.unpack_from(buffer, offset + _COMMON_STRUCT.size)

        total_allocated = None
        if unit_compression_size > 0 and record_length >= 72:
            (total_allocated,) = struct.unpack_from("<Q", buffer, offset + 64)

        residential_header = NonResidentHeader(
            vnc_first=vnc_first,
            vnc_last=vnc_last,
            datarun_offset=datarun_offset,
            unit_compression_size=unit_compression_size,
            allocated_length=allocated_length,
            file_size=file_size,
            valid_data_length=valid_data_length,
            total_allocated=total_allocated,
        )
    else:
        raise DecodeError(f"Unknown attribute form code {form_code} at offset {offset}")

    name = ""
    if name_size > 0:
        name = read_utf16(buffer, offset + name_offset, name_size)

    return AttributeHeader(
        type_code=type_code,
        record_length=record_length,
        form_code=form_code,
        name_size=name_size,
        name_offset=name_offset,
        data_flags=data_flags,
        instance=instance,
        name=name,
        residential_header=residential_header,
    )
