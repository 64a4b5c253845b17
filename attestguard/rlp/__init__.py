"""
RLP decoding for attestguard.

Decode-only: items are views into caller-owned bytes, leaves are extracted
with bounded, typed readers.
"""
from .reader import (
    RLPItem,
    to_rlp_item,
    item_length,
    payload_location,
    is_list,
    iter_items,
    num_items,
    to_list,
    to_raw_bytes,
    to_bytes,
    to_uint,
    to_uint_strict,
    to_address,
    to_boolean,
    to_bytes32,
)
from .header import encode_list_header, encode_uint

__all__ = [
    "RLPItem",
    "to_rlp_item",
    "item_length",
    "payload_location",
    "is_list",
    "iter_items",
    "num_items",
    "to_list",
    "to_raw_bytes",
    "to_bytes",
    "to_uint",
    "to_uint_strict",
    "to_address",
    "to_boolean",
    "to_bytes32",
    "encode_list_header",
    "encode_uint",
]
