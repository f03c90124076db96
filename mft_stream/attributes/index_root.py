"""
$INDEX_ROOT (0x90) parser.

Only the fixed part is decoded: the index root header and the node
header that follows it.  Index entries themselves are not walked.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from mft_stream.attributes.base import AttributeParser, AttributeType, require_length

_ROOT_STRUCT = struct.Struct("<IIIB3x")
_NODE_STRUCT = struct.Struct("<IIIB3x")

LARGE_INDEX_FLAG = 0x01


@dataclass
class IndexRootAttr:
    attribute_type: int
    collation_rule: int
    index_entry_size: int
    index_entry_number_of_cluster_blocks: int
    relative_offset_to_index_node: int
    length_of_index_node: int
    allocated_size_of_index_node: int
    is_large_index: bool


class IndexRootParser(AttributeParser):
    type_code = AttributeType.INDEX_ROOT

    def parse(self, data: bytes) -> IndexRootAttr:
        require_length(data, _ROOT_STRUCT.size + _NODE_STRUCT.size, "$INDEX_ROOT")
        attribute_type, collation_rule, entry_size, blocks = _ROOT_STRUCT.unpack_from(data, 0)
        node_offset, node_length, node_allocated, flags = _NODE_STRUCT.unpack_from(
            data, _ROOT_STRUCT.size
        )
        return IndexRootAttr(
            attribute_type=attribute_type,
            collation_rule=collation_rule,
            index_entry_size=entry_size,
            index_entry_number_of_cluster_blocks=blocks,
            relative_offset_to_index_node=node_offset,
            length_of_index_node=node_length,
            allocated_size_of_index_node=node_allocated,
            is_large_index=bool(flags & LARGE_INDEX_FLAG),
        )
