"""
Synthetic MFT builders for mft-stream tests.

Builds real FILE records byte for byte: header, update sequence array
(with the protected stride tails swapped in, as on disk), attribute
records and the end marker.  No input files are needed; every test
image is assembled in memory from these helpers.
"""

from __future__ import annotations

import struct
from datetime import datetime, timedelta, timezone

ENTRY_SIZE = 1024
USA_OFFSET = 48
END_MARKER = b"\xff\xff\xff\xff\x00\x00\x00\x00"

FLAG_ALLOCATED = 0x01
FLAG_INDEX_PRESENT = 0x02

FILE_ATTRIBUTE_ARCHIVE = 0x20
FILE_ATTRIBUTE_IS_DIRECTORY = 0x1000_0000

NAMESPACE_POSIX = 0
NAMESPACE_WIN32 = 1
NAMESPACE_DOS = 2

_HEADER_STRUCT = struct.Struct("<4sHHQHHHHIIQHHI")
_FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)

CREATED = datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
MODIFIED = datetime(2022, 8, 9, 10, 11, 12, tzinfo=timezone.utc)
ACCESSED = datetime(2023, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def filetime(value: datetime) -> int:
    """FILETIME ticks for a UTC datetime."""
    return (value - _FILETIME_EPOCH) // timedelta(microseconds=1) * 10


def reference(entry: int, sequence: int) -> int:
    return entry | (sequence << 48)


def _align8(value: int) -> int:
    return (value + 7) & ~7


def first_attribute_offset(entry_size: int = ENTRY_SIZE) -> int:
    """Where ``build_entry`` places the first attribute record."""
    return _align8(USA_OFFSET + (entry_size // 512 + 1) * 2)


# ---------------------------------------------------------------------------
# Attribute records
# ---------------------------------------------------------------------------

def resident_attribute(type_code: int, value: bytes, name: str = "", instance: int = 0) -> bytes:
    """A resident attribute record holding *value*."""
    name_bytes = name.encode("utf-16-le")
    data_offset = _align8(24 + len(name_bytes))
    record_length = _align8(data_offset + len(value))

    record = bytearray(record_length)
    struct.pack_into("<IIBBHHH", record, 0, type_code, record_length, 0, len(name), 24, 0, instance)
    struct.pack_into("<IHBB", record, 16, len(value), data_offset, 0, 0)
    record[24 : 24 + len(name_bytes)] = name_bytes
    record[data_offset : data_offset + len(value)] = value
    return bytes(record)


def nonresident_attribute(
    type_code: int,
    runs: bytes,
    file_size: int,
    name: str = "",
    last_vcn: int = 0,
) -> bytes:
    """A non-resident attribute record with mapping pairs *runs*."""
    name_bytes = name.encode("utf-16-le")
    name_offset = 64
    datarun_offset = _align8(name_offset + len(name_bytes))
    record_length = _align8(datarun_offset + len(runs))

    record = bytearray(record_length)
    struct.pack_into(
        "<IIBBHHH", record, 0, type_code, record_length, 1, len(name), name_offset, 0, 0
    )
    allocated = _align8(file_size) if file_size else 0
    struct.pack_into(
        "<QQHB5sQQQ", record, 16,
        0, last_vcn, datarun_offset, 0, b"\x00" * 5, allocated, file_size, file_size,
    )
    record[name_offset : name_offset + len(name_bytes)] = name_bytes
    record[datarun_offset : datarun_offset + len(runs)] = runs
    return bytes(record)


def standard_information(
    created: datetime = CREATED,
    modified: datetime = MODIFIED,
    mft_modified: datetime = MODIFIED,
    accessed: datetime = ACCESSED,
    file_flags: int = FILE_ATTRIBUTE_ARCHIVE,
    extended: bool = True,
) -> bytes:
    """Resident $STANDARD_INFORMATION attribute (72-byte form by default)."""
    value = struct.pack(
        "<QQQQIIII",
        filetime(created), filetime(modified), filetime(mft_modified), filetime(accessed),
        file_flags, 0, 0, 0,
    )
    if extended:
        value += struct.pack("<IIQQ", 0, 256, 0, 4242)
    return resident_attribute(0x10, value)


def file_name(
    name: str,
    parent: int = 5,
    parent_sequence: int = 5,
    namespace: int = NAMESPACE_WIN32,
    flags: int = FILE_ATTRIBUTE_ARCHIVE,
    logical_size: int = 0,
    physical_size: int = 0,
    created: datetime = CREATED,
    modified: datetime = MODIFIED,
    accessed: datetime = ACCESSED,
) -> bytes:
    """Resident $FILE_NAME attribute."""
    encoded = name.encode("utf-16-le")
    value = struct.pack(
        "<QQQQQQQIIBB",
        reference(parent, parent_sequence),
        filetime(created), filetime(modified), filetime(modified), filetime(accessed),
        physical_size, logical_size,
        flags, 0, len(name), namespace,
    ) + encoded
    return resident_attribute(0x30, value)


def data(value: bytes = b"", name: str = "") -> bytes:
    """Resident $DATA attribute."""
    return resident_attribute(0x80, value, name=name)


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

def build_entry(
    attributes: list[bytes],
    *,
    flags: int = FLAG_ALLOCATED,
    sequence: int = 1,
    hard_link_count: int = 1,
    base_reference: int = 0,
    record_number: int = 0,
    signature: bytes = b"FILE",
    update_sequence: int = 0x0101,
    entry_size: int = ENTRY_SIZE,
    protect: bool = True,
    end_marker: bool = True,
) -> bytes:
    """One FILE record with *attributes* and, unless disabled, the end marker.

    With ``protect=True`` the last two bytes of every 512-byte stride are
    moved into the update sequence array and replaced with
    *update_sequence*, as NTFS writes them.
    """
    usa_size = entry_size // 512 + 1
    first_attribute = first_attribute_offset(entry_size)
    body = b"".join(attributes) + (END_MARKER if end_marker else b"")
    used = first_attribute + len(body)
    if used > entry_size:
        raise ValueError(f"Attributes need {used} bytes, entry has {entry_size}")

    record = bytearray(entry_size)
    _HEADER_STRUCT.pack_into(
        record, 0,
        signature, USA_OFFSET, usa_size, 0, sequence, hard_link_count,
        first_attribute, flags, used, entry_size, base_reference, 0, 0, record_number,
    )
    record[first_attribute : first_attribute + len(body)] = body

    if protect:
        usn = struct.pack("<H", update_sequence)
        record[USA_OFFSET : USA_OFFSET + 2] = usn
        for stride in range(1, usa_size):
            end = stride * 512
            slot = USA_OFFSET + stride * 2
            record[slot : slot + 2] = record[end - 2 : end]
            record[end - 2 : end] = usn
    return bytes(record)


def file_entry(
    name: str,
    parent: int = 5,
    *,
    directory: bool = False,
    allocated: bool = True,
    content: bytes = b"",
    streams: dict[str, bytes] | None = None,
    record_number: int = 0,
    sequence: int = 1,
    dos_name: str | None = None,
) -> bytes:
    """A typical entry: $STANDARD_INFORMATION, $FILE_NAME(s), $DATA."""
    flags = FLAG_ALLOCATED if allocated else 0
    fn_flags = FILE_ATTRIBUTE_ARCHIVE
    if directory:
        flags |= FLAG_INDEX_PRESENT
        fn_flags = FILE_ATTRIBUTE_IS_DIRECTORY

    attributes = [standard_information()]
    if dos_name is not None:
        attributes.append(file_name(dos_name, parent, namespace=NAMESPACE_DOS, flags=fn_flags))
    attributes.append(
        file_name(name, parent, flags=fn_flags, logical_size=len(content))
    )
    if not directory:
        attributes.append(data(content))
    for stream_name, stream_value in (streams or {}).items():
        attributes.append(data(stream_value, name=stream_name))

    return build_entry(
        attributes, flags=flags, record_number=record_number, sequence=sequence
    )


def zero_entry(entry_size: int = ENTRY_SIZE) -> bytes:
    return bytes(entry_size)


def junk_entry(entry_size: int = ENTRY_SIZE) -> bytes:
    """A slot with a foreign signature; fails to decode."""
    return b"JUNK" + bytes(entry_size - 4)


def clipped_attribute_entry(entry_size: int = ENTRY_SIZE) -> bytes:
    """A FILE record whose last attribute is a bare 16-byte resident header.

    A filler attribute pushes the header to the final 16 bytes of the
    slot, so its resident sub-header would lie past the slot's end.
    """
    header_only = struct.pack("<IIBBHHH", 0x80, 16, 0, 0, 0, 0, 0)
    filler_length = entry_size - len(header_only) - first_attribute_offset(entry_size)
    filler = resident_attribute(0xC0, bytes(filler_length - 24))
    return build_entry([filler, header_only], entry_size=entry_size, end_marker=False)


def build_image(entries: list[bytes]) -> bytes:
    return b"".join(entries)


def sample_image() -> bytes:
    """A small volume-like table.

    ====  ===========================================================
    slot  content
    ====  ===========================================================
    0     $MFT, in the root
    1-4   zeroed
    5     root directory "." (its own parent)
    6     directory "Users" in the root
    7     "notes.txt" in Users, 5 bytes of data, one named stream
    8     deleted "old.log" in Users
    9     "lost.bin" whose parent (slot 3) is zeroed -> orphan
    10    "broken.txt" whose parent (slot 11) does not decode
    11    junk signature
    ====  ===========================================================
    """
    return build_image([
        file_entry("$MFT", 5, record_number=0),
        zero_entry(),
        zero_entry(),
        zero_entry(),
        zero_entry(),
        file_entry(".", 5, directory=True, record_number=5, sequence=5),
        file_entry("Users", 5, directory=True, record_number=6),
        file_entry(
            "notes.txt", 6, content=b"hello", streams={"Zone.Identifier": b"[ZoneTransfer]"},
            record_number=7, dos_name="NOTES~1.TXT",
        ),
        file_entry("old.log", 6, allocated=False, record_number=8),
        file_entry("lost.bin", 3, record_number=9),
        file_entry("broken.txt", 11, record_number=10),
        junk_entry(),
    ])
