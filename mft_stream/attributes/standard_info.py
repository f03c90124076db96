"""
$STANDARD_INFORMATION (0x10) parser.

Layout of the resident value::

    0x00  created        FILETIME
    0x08  modified       FILETIME
    0x10  mft_modified   FILETIME
    0x18  accessed       FILETIME
    0x20  file_flags     I
    0x24  max_version    I
    0x28  version        I
    0x2C  class_id       I
    --- NTFS 3.0+ only (72-byte form) ---
    0x30  owner_id       I
    0x34  security_id    I
    0x38  quota          Q
    0x40  usn            Q

The SI timestamps are the ones user-mode code can change, which is why
forensic timelines compare them against the $FILE_NAME set.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import datetime

from mft_stream.attributes.base import AttributeParser, AttributeType, require_length
from mft_stream.header import FileAttributeFlags
from mft_stream.timestamps import filetime_to_datetime

_V1_STRUCT = struct.Struct("<QQQQIIII")
_V3_STRUCT = struct.Struct("<IIQQ")


@dataclass
class StandardInfoAttr:
    created: datetime | None
    modified: datetime | None
    mft_modified: datetime | None
    accessed: datetime | None
    file_flags: FileAttributeFlags
    max_version: int
    version: int
    class_id: int
    owner_id: int | None = None
    security_id: int | None = None
    quota: int | None = None
    usn: int | None = None


class StandardInfoParser(AttributeParser):
    type_code = AttributeType.STANDARD_INFORMATION

    def parse(self, data: bytes) -> StandardInfoAttr:
        require_length(data, _V1_STRUCT.size, "$STANDARD_INFORMATION")
        (
            created,
            modified,
            mft_modified,
            accessed,
            file_flags,
            max_version,
            version,
            class_id,
        ) = _V1_STRUCT.unpack_from(data, 0)

        attr = StandardInfoAttr(
            created=filetime_to_datetime(created),
            modified=filetime_to_datetime(modified),
            mft_modified=filetime_to_datetime(mft_modified),
            accessed=filetime_to_datetime(accessed),
            file_flags=FileAttributeFlags(file_flags),
            max_version=max_version,
            version=version,
            class_id=class_id,
        )

        if len(data) >= _V1_STRUCT.size + _V3_STRUCT.size:
            owner_id, security_id, quota, usn = _V3_STRUCT.unpack_from(
                data, _V1_STRUCT.size
            )
            attr.owner_id = owner_id
            attr.security_id = security_id
            attr.quota = quota
            attr.usn = usn

        return attr
