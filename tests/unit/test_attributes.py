"""
Unit tests for the attribute parsers (mft_stream.attributes).

Each parser is fed a hand-built resident value; the attribute header
decoder is fed records from ``tests.builders``.
"""

from __future__ import annotations

import struct
import uuid

import pytest

from mft_stream.attributes.attribute_list import AttributeListParser
from mft_stream.attributes.base import (
    NonResidentHeader,
    ResidentHeader,
    attribute_type_name,
    format_guid,
    parse_attribute_header,
)
from mft_stream.attributes.data import DataParser, decode_data_runs
from mft_stream.attributes.file_name import FileNameParser, FileNamespace
from mft_stream.attributes.index_root import IndexRootParser
from mft_stream.attributes.object_id import ObjectIdParser
from mft_stream.attributes.standard_info import StandardInfoParser
from mft_stream.exceptions import DecodeError
from mft_stream.header import FileAttributeFlags, MftReference
from tests.builders import (
    ACCESSED,
    CREATED,
    MODIFIED,
    file_name,
    nonresident_attribute,
    reference,
    resident_attribute,
    standard_information,
)

_RUNS = b"\x21\x18\x34\x56" + b"\x11\x10\xf0" + b"\x01\x08" + b"\x00"


def _value(record: bytes) -> bytes:
    """The resident value of an attribute record."""
    header = parse_attribute_header(record, 0)
    start = header.residential_header.data_offset
    return record[start : start + header.residential_header.data_size]


# ---------------------------------------------------------------------------
# Attribute headers
# ---------------------------------------------------------------------------

class TestAttributeHeader:
    def test_resident_header(self):
        record = resident_attribute(0x80, b"hello", instance=3)
        header = parse_attribute_header(record, 0)
        assert header.type_code == 0x80
        assert header.record_length == 32
        assert header.is_resident
        assert header.instance == 3
        assert header.name == ""
        assert header.residential_header == ResidentHeader(data_size=5, data_offset=24, index_flag=0)

    def test_named_resident_header(self):
        record = resident_attribute(0x80, b"x", name="Zone.Identifier")
        assert parse_attribute_header(record, 0).name == "Zone.Identifier"

    def test_nonresident_header(self):
        record = nonresident_attribute(0x80, _RUNS, file_size=70_000, last_vcn=47)
        header = parse_attribute_header(record, 0)
        assert not header.is_resident
        residential = header.residential_header
        assert isinstance(residential, NonResidentHeader)
        assert residential.vnc_last == 47
        assert residential.datarun_offset == 64
        assert residential.file_size == 70_000
        assert residential.total_allocated is None

    def test_header_at_offset(self):
        """Headers are read relative to their offset in the entry."""
        buffer = bytes(40) + resident_attribute(0x10, bytes(48))
        assert parse_attribute_header(buffer, 40).type_code == 0x10

    def test_length_past_buffer_raises(self):
        record = resident_attribute(0x80, b"hello")
        with pytest.raises(DecodeError, match="runs past"):
            parse_attribute_header(record[:24], 0)

    def test_misaligned_length_raises(self):
        record = bytearray(resident_attribute(0x80, b"hello"))
        struct.pack_into("<I", record, 4, 30)
        with pytest.raises(DecodeError, match="record length"):
            parse_attribute_header(bytes(record), 0)

    def test_unknown_form_code_raises(self):
        record = bytearray(resident_attribute(0x80, b"hello"))
        record[8] = 7
        with pytest.raises(DecodeError, match="form code"):
            parse_attribute_header(bytes(record), 0)

    def test_value_past_record_raises(self):
        record = bytearray(resident_attribute(0x80, b"hello"))
        struct.pack_into("<I", record, 16, 500)
        with pytest.raises(DecodeError, match="exceeds"):
            parse_attribute_header(bytes(record), 0)

    def test_type_names(self):
        assert attribute_type_name(0x30) == "$FILE_NAME"
        assert attribute_type_name(0x1234) == "0x1234"


# ---------------------------------------------------------------------------
# Content parsers
# ---------------------------------------------------------------------------

class TestStandardInfo:
    def test_extended_form(self):
        attr = StandardInfoParser().parse(_value(standard_information()))
        assert attr.created == CREATED
        assert attr.modified == MODIFIED
        assert attr.accessed == ACCESSED
        assert attr.file_flags == FileAttributeFlags.FILE_ATTRIBUTE_ARCHIVE
        assert attr.security_id == 256
        assert attr.usn == 4242

    def test_short_form_has_no_v3_fields(self):
        attr = StandardInfoParser().parse(_value(standard_information(extended=False)))
        assert attr.created == CREATED
        assert attr.owner_id is None
        assert attr.usn is None

    def test_too_short_raises(self):
        with pytest.raises(DecodeError, match=r"\$STANDARD_INFORMATION"):
            StandardInfoParser().parse(bytes(40))


class TestFileName:
    def test_fields(self):
        value = _value(file_name("report.docx", parent=38, parent_sequence=2, logical_size=1234))
        attr = FileNameParser().parse(value)
        assert attr.name == "report.docx"
        assert attr.name_length == 11
        assert attr.parent == MftReference(entry=38, sequence=2)
        assert attr.namespace is FileNamespace.WIN32
        assert attr.logical_size == 1234
        assert attr.created == CREATED

    def test_unicode_name(self):
        attr = FileNameParser().parse(_value(file_name("данные.txt")))
        assert attr.name == "данные.txt"

    def test_name_past_value_raises(self):
        value = _value(file_name("report.docx"))
        with pytest.raises(DecodeError, match="runs past"):
            FileNameParser().parse(value[:70])


class TestObjectId:
    def test_single_guid(self):
        guid = uuid.UUID("12345678-1234-5678-9abc-def012345678")
        attr = ObjectIdParser().parse(guid.bytes_le)
        assert attr.object_id == "12345678-1234-5678-9ABC-DEF012345678"
        assert attr.birth_volume_id is None
        assert attr.domain_id is None

    def test_all_guids(self):
        guids = [uuid.uuid4() for _ in range(4)]
        attr = ObjectIdParser().parse(b"".join(g.bytes_le for g in guids))
        assert attr.domain_id == str(guids[3]).upper()
        assert format_guid(guids[1].bytes_le) == attr.birth_volume_id


class TestAttributeList:
    @staticmethod
    def _item(attribute_type: int, entry: int, name: str = "") -> bytes:
        encoded = name.encode("utf-16-le")
        length = (26 + len(encoded) + 7) & ~7
        item = bytearray(length)
        struct.pack_into(
            "<IHBBQQH", item, 0,
            attribute_type, length, len(name), 26, 0, reference(entry, 1), 4,
        )
        item[26 : 26 + len(encoded)] = encoded
        return bytes(item)

    def test_entries(self):
        value = self._item(0x10, 40) + self._item(0x80, 41, name="ads")
        attr = AttributeListParser().parse(value)
        assert [e.attribute_type for e in attr.entries] == [0x10, 0x80]
        assert attr.entries[1].base_reference.entry == 41
        assert attr.entries[1].name == "ads"

    def test_bad_length_stops(self):
        value = self._item(0x10, 40) + struct.pack("<IH", 0x30, 2) + bytes(20)
        assert len(AttributeListParser().parse(value).entries) == 1


class TestData:
    def test_resident_bytes_kept(self):
        assert DataParser().parse(b"\x00\x01\x02").data == b"\x00\x01\x02"

    def test_data_runs(self):
        runs = decode_data_runs(_RUNS)
        assert [(r.lcn_offset, r.lcn_length, r.run_type) for r in runs] == [
            (0x5634, 0x18, "Standard"),
            (0x5634 - 16, 0x10, "Standard"),
            (0, 8, "Sparse"),
        ]

    def test_unterminated_runs_raise(self):
        with pytest.raises(DecodeError, match="not terminated"):
            decode_data_runs(b"\x11\x10\x20")

    def test_invalid_run_header_raises(self):
        with pytest.raises(DecodeError, match="Invalid data run header"):
            decode_data_runs(b"\x90\x01\x00")


class TestIndexRoot:
    def test_fields(self):
        value = struct.pack("<IIIB3x", 0x30, 1, 4096, 1) + struct.pack("<IIIB3x", 16, 88, 88, 1)
        attr = IndexRootParser().parse(value)
        assert attr.attribute_type == 0x30
        assert attr.index_entry_size == 4096
        assert attr.length_of_index_node == 88
        assert attr.is_large_index

    def test_too_short_raises(self):
        with pytest.raises(DecodeError):
            IndexRootParser().parse(bytes(16))
