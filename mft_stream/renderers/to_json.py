"""
JSON-mode renderer.

Layout, keys in this order::

    {
      "header": {<EntryHeader fields>},
      "attributes": [
        {"header": {<AttributeHeader fields>}, "data": {<content>}},
        ...
      ]
    }

Value conventions:

- timestamps: ISO-8601 with offset, ``null`` when unset
- bytes: lowercase hex (the entry signature is kept as text)
- flag sets: ``"A | B"`` member names, ``""`` when no bit is set
- enums: member name
- MFT references: ``{"entry": n, "sequence": n}``

No cross-reference resolution happens here; the full path is an
Object and CSV concern.
"""

from __future__ import annotations

import dataclasses
import json
from datetime import datetime
from enum import Enum, IntFlag
from typing import Any

from mft_stream.entry import MftEntry
from mft_stream.exceptions import SerializationError
from mft_stream.header import EntryHeader, flag_names


def to_jsonable(value: Any) -> Any:
    """Convert a decoded structure into plain JSON types.

    Raises:
        SerializationError: If a value has no JSON representation.
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, IntFlag):
        return flag_names(value)
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    raise SerializationError(f"Cannot represent {type(value).__name__} as JSON")


def header_to_jsonable(header: EntryHeader) -> dict[str, Any]:
    """JSON form of an entry header, signature as text."""
    data = to_jsonable(header)
    data["signature"] = header.signature.decode("ascii", errors="replace")
    return data


def render_json(entry: MftEntry) -> str:
    """Serialize *entry* to JSON text.

    Raises:
        SerializationError: If any field cannot be represented.
    """
    try:
        document = {
            "header": header_to_jsonable(entry.header),
            "attributes": to_jsonable(entry.attributes),
        }
        return json.dumps(document, allow_nan=False)
    except SerializationError as exc:
        raise SerializationError(
            f"Entry {entry.entry_id}: {exc}", entry_id=entry.entry_id
        ) from exc
    except (TypeError, ValueError) as exc:
        raise SerializationError(
            f"Entry {entry.entry_id}: JSON encoding failed: {exc}",
            entry_id=entry.entry_id,
        ) from exc
