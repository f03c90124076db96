"""
$DATA (0x80) content and non-resident data runs.

Resident $DATA is kept verbatim.  Non-resident attributes of any type
store their content in clusters; the mapping pairs at ``datarun_offset``
describe where.  Each pair starts with a header byte whose low nibble is
the size of the run length field and whose high nibble is the size of
the (signed, relative) LCN offset field.  An offset size of zero marks a
sparse run; a zero header byte ends the list.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mft_stream.attributes.base import AttributeParser, AttributeType
from mft_stream.exceptions import DecodeError


@dataclass
class DataAttr:
    data: bytes


@dataclass
class DataRun:
    lcn_offset: int
    lcn_length: int
    run_type: str


@dataclass
class NonResidentAttr:
    data_runs: list[DataRun] = field(default_factory=list)


class DataParser(AttributeParser):
    type_code = AttributeType.DATA

    def parse(self, data: bytes) -> DataAttr:
        return DataAttr(data=bytes(data))


def decode_data_runs(buffer: bytes) -> list[DataRun]:
    """Decode mapping pairs into absolute cluster runs.

    Raises:
        DecodeError: If a field size is invalid or the list is cut short.
    """
    runs: list[DataRun] = []
    position = 0
    current_lcn = 0
    while True:
        if position >= len(buffer):
            raise DecodeError("Data run list is not terminated")
        header = buffer[position]
        if header == 0:
            break
        position += 1

        length_size = header & 0x0F
        offset_size = header >> 4
        if length_size == 0 or length_size > 8 or offset_size > 8:
            raise DecodeError(f"Invalid data run header 0x{header:02X}")
        if position + length_size + offset_size > len(buffer):
            raise DecodeError("Data run runs past the attribute")

        length = int.from_bytes(
            buffer[position : position + length_size], "little", signed=False
        )
        position += length_size

        if offset_size == 0:
            runs.append(DataRun(lcn_offset=0, lcn_length=length, run_type="Sparse"))
            continue

        relative = int.from_bytes(
            buffer[position : position + offset_size], "little", signed=True
        )
        position += offset_size
        current_lcn += relative
        runs.append(DataRun(lcn_offset=current_lcn, lcn_length=length, run_type="Standard"))

    return runs
