"""
Decode-only reader for the recursive-length-prefix (RLP) format.

An ``RLPItem`` is a view (buffer, offset, length) into bytes owned by the
caller. Nothing is copied until a leaf value is extracted, and every function
here is a pure function of its input view.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

from ..exceptions import LengthError, StructuralDecodeError
from ..models import normalize_address

logger = logging.getLogger(__name__)

STRING_SHORT_START = 0x80
STRING_LONG_START = 0xB8
LIST_SHORT_START = 0xC0
LIST_LONG_START = 0xF8
MAX_SHORT_PAYLOAD = 55
WORD_SIZE = 32


@dataclass(frozen=True)
class RLPItem:
    """A borrowed view of one encoded item inside ``buffer``."""
    buffer: bytes = field(repr=False)
    offset: int
    length: int

    def __len__(self) -> int:
        return self.length

    @property
    def prefix(self) -> int:
        return self.buffer[self.offset]


def _read_length_of_length(buffer: bytes, start: int, size: int, end: int) -> int:
    """Read a big-endian length of ``size`` bytes that must stay within ``end``."""
    if start + size > end:
        raise LengthError(start + size, end, "RLP length-of-length")
    raw = buffer[start:start + size]
    if raw[0] == 0:
        raise StructuralDecodeError("RLP long length has a leading zero byte")
    value = int.from_bytes(raw, "big")
    if value <= MAX_SHORT_PAYLOAD:
        raise StructuralDecodeError(f"RLP long form used for a {value}-byte payload")
    return value


def _header(buffer: bytes, offset: int, end: int) -> Tuple[int, int]:
    """
    Parse the prefix at ``offset``

    Returns:
        Tuple of (prefix size, payload length)

    Raises:
        LengthError: If the prefix or its length bytes run past ``end``
        StructuralDecodeError: If the prefix uses a non-canonical long form
    """
    if offset >= end:
        raise LengthError(offset + 1, end, "RLP item")
    prefix = buffer[offset]
    if prefix < STRING_SHORT_START:
        return 0, 1
    if prefix < STRING_LONG_START:
        return 1, prefix - STRING_SHORT_START
    if prefix < LIST_SHORT_START:
        size = prefix - (STRING_LONG_START - 1)
        return 1 + size, _read_length_of_length(buffer, offset + 1, size, end)
    if prefix < LIST_LONG_START:
        return 1, prefix - LIST_SHORT_START
    size = prefix - (LIST_LONG_START - 1)
    return 1 + size, _read_length_of_length(buffer, offset + 1, size, end)


def _item_at(buffer: bytes, offset: int, end: int) -> RLPItem:
    prefix_size, payload_length = _header(buffer, offset, end)
    total = prefix_size + payload_length
    if offset + total > end:
        raise LengthError(offset + total, end, "RLP item")
    return RLPItem(buffer, offset, total)


def to_rlp_item(data: bytes, strict: bool = True) -> RLPItem:
    """
    Wrap ``data`` as the top-level item it encodes

    Args:
        data: Encoded bytes
        strict: Reject bytes trailing the top-level item

    Returns:
        View of the top-level item

    Raises:
        LengthError: If the buffer is empty or shorter than the declared length
        StructuralDecodeError: If ``strict`` and bytes follow the item
    """
    buffer = bytes(data)
    item = _item_at(buffer, 0, len(buffer))
    if strict and item.length != len(buffer):
        raise StructuralDecodeError(
            f"{len(buffer) - item.length} trailing byte(s) after RLP item"
        )
    return item


def item_length(item: RLPItem) -> int:
    """Declared length of the item, prefix included."""
    prefix_size, payload_length = _header(item.buffer, item.offset, item.offset + item.length)
    return prefix_size + payload_length


def payload_location(item: RLPItem) -> Tuple[int, int]:
    """Return (absolute payload offset, payload length)."""
    prefix_size, payload_length = _header(item.buffer, item.offset, item.offset + item.length)
    return item.offset + prefix_size, payload_length


def is_list(item: RLPItem) -> bool:
    return item.length > 0 and item.prefix >= LIST_SHORT_START


def iter_items(item: RLPItem) -> Iterator[RLPItem]:
    """
    Iterate the children of a list item without copying

    Raises:
        StructuralDecodeError: If the item is not a list
        LengthError: If a child runs past the end of the list payload
    """
    if not is_list(item):
        raise StructuralDecodeError("RLP item is not a list")
    cursor, payload_length = payload_location(item)
    end = cursor + payload_length
    while cursor < end:
        child = _item_at(item.buffer, cursor, end)
        yield child
        cursor += child.length


def num_items(item: RLPItem) -> int:
    return sum(1 for _ in iter_items(item))


def to_list(item: RLPItem) -> List[RLPItem]:
    return list(iter_items(item))


def to_raw_bytes(item: RLPItem) -> bytes:
    """Full encoding of the item, prefix included."""
    return item.buffer[item.offset:item.offset + item.length]


def to_bytes(item: RLPItem) -> bytes:
    if is_list(item):
        raise StructuralDecodeError("Expected an RLP string, found a list")
    start, payload_length = payload_location(item)
    return item.buffer[start:start + payload_length]


def to_uint(item: RLPItem) -> int:
    """Unsigned integer of at most 32 bytes; the empty string is zero."""
    payload = to_bytes(item)
    if len(payload) > WORD_SIZE:
        raise StructuralDecodeError(f"RLP integer of {len(payload)} bytes exceeds 32")
    return int.from_bytes(payload, "big") if payload else 0


def to_uint_strict(item: RLPItem) -> int:
    """Unsigned integer in canonical form: no leading zero byte, no wrapped single byte."""
    payload = to_bytes(item)
    if payload[:1] == b"\x00":
        raise StructuralDecodeError("RLP integer has a leading zero byte")
    if len(payload) == 1 and item.length == 2 and payload[0] < STRING_SHORT_START:
        raise StructuralDecodeError("RLP single byte wrapped in a string prefix")
    return to_uint(item)


def to_address(item: RLPItem) -> str:
    payload = to_bytes(item)
    if len(payload) != 20:
        raise StructuralDecodeError(f"RLP address must be 20 bytes, got {len(payload)}")
    return normalize_address(payload)


def to_boolean(item: RLPItem) -> bool:
    if item.length != 1:
        raise StructuralDecodeError(f"RLP boolean must be a single byte, got {item.length}")
    value = item.prefix
    if value == 0x01:
        return True
    if value in (0x00, STRING_SHORT_START):
        return False
    raise StructuralDecodeError(f"RLP boolean byte 0x{value:02x} is neither true nor false")


def to_bytes32(item: RLPItem) -> bytes:
    payload = to_bytes(item)
    if len(payload) != WORD_SIZE:
        raise StructuralDecodeError(f"RLP word must be 32 bytes, got {len(payload)}")
    return payload
