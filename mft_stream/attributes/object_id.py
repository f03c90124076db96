"""$OBJECT_ID (0x40) parser: one mandatory GUID, three optional ones."""

from __future__ import annotations

from dataclasses import dataclass

from mft_stream.attributes.base import (
    AttributeParser,
    AttributeType,
    format_guid,
    require_length,
)

_GUID_SIZE = 16


@dataclass
class ObjectIdAttr:
    object_id: str
    birth_volume_id: str | None = None
    birth_object_id: str | None = None
    domain_id: str | None = None


class ObjectIdParser(AttributeParser):
    type_code = AttributeType.OBJECT_ID

    def parse(self, data: bytes) -> ObjectIdAttr:
        require_length(data, _GUID_SIZE, "$OBJECT_ID")
        guids: list[str | None] = []
        for start in range(0, 4 * _GUID_SIZE, _GUID_SIZE):
            chunk = data[start : start + _GUID_SIZE]
            guids.append(format_guid(chunk) if len(chunk) == _GUID_SIZE else None)
        return ObjectIdAttr(
            object_id=guids[0],
            birth_volume_id=guids[1],
            birth_object_id=guids[2],
            domain_id=guids[3],
        )
