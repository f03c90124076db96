"""
$FILE_NAME (0x30) parser.

Layout of the resident value::

    0x00  parent           Q   MFT reference of the parent directory
    0x08  created          FILETIME
    0x10  modified         FILETIME
    0x18  mft_modified     FILETIME
    0x20  accessed         FILETIME
    0x28  physical_size    Q   allocated size
    0x30  logical_size     Q   real size
    0x38  flags            I
    0x3C  reparse_value    I
    0x40  name_length      B   in UTF-16 code units
    0x41  namespace        B
    0x42  name             UTF-16LE

An entry may carry several $FILE_NAME attributes (a DOS 8.3 alias next
to the long name, or one per hard link).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum

from mft_stream.attributes.base import (
    AttributeParser,
    AttributeType,
    read_utf16,
    require_length,
)
from mft_stream.header import FileAttributeFlags, MftReference
from mft_stream.timestamps import filetime_to_datetime

_FIXED_STRUCT = struct.Struct("<QQQQQQQIIBB")


class FileNamespace(IntEnum):
    POSIX = 0
    WIN32 = 1
    DOS = 2
    WIN32_AND_DOS = 3


@dataclass
class FileNameAttr:
    parent: MftReference
    created: datetime | None
    modified: datetime | None
    mft_modified: datetime | None
    accessed: datetime | None
    logical_size: int
    physical_size: int
    flags: FileAttributeFlags
    reparse_value: int
    name_length: int
    namespace: FileNamespace | int
    name: str


class FileNameParser(AttributeParser):
    type_code = AttributeType.FILE_NAME

    def parse(self, data: bytes) -> FileNameAttr:
        require_length(data, _FIXED_STRUCT.size, "$FILE_NAME")
        (
            parent,
            created,
            modified,
            mft_modified,
            accessed,
            physical_size,
            logical_size,
            flags,
            reparse_value,
            name_length,
            namespace,
        ) = _FIXED_STRUCT.unpack_from(data, 0)

        name = read_utf16(data, _FIXED_STRUCT.size, name_length)

        try:
            namespace = FileNamespace(namespace)
        except ValueError:
            pass

        return FileNameAttr(
            parent=MftReference.from_int(parent),
            created=filetime_to_datetime(created),
            modified=filetime_to_datetime(modified),
            mft_modified=filetime_to_datetime(mft_modified),
            accessed=filetime_to_datetime(accessed),
            logical_size=logical_size,
            physical_size=physical_size,
            flags=FileAttributeFlags(flags),
            reparse_value=reparse_value,
            name_length=name_length,
            namespace=namespace,
            name=name,
        )
