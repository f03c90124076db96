"""
Attribute parsers sub-package for mft-stream.

Converts the resident value of an attribute record into a typed
dataclass.

Design: Strategy Pattern
- base.py defines the AttributeParser ABC, the attribute headers and
  the shared field helpers.
- standard_info.py  -> $STANDARD_INFORMATION (0x10)
- attribute_list.py -> $ATTRIBUTE_LIST (0x20)
- file_name.py      -> $FILE_NAME (0x30)
- object_id.py      -> $OBJECT_ID (0x40)
- data.py           -> $DATA (0x80) and non-resident data runs
- index_root.py     -> $INDEX_ROOT (0x90)

The entry decoder (entry.py) picks the parser by type code at runtime;
types without a parser are kept as raw bytes.
"""
