"""
Bounds-checked helpers for reading ABI-encoded calldata.
"""
import logging
from typing import Any, Sequence, Tuple

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from ..exceptions import LengthError, StructuralDecodeError
from ..models import normalize_address

logger = logging.getLogger(__name__)

SELECTOR_SIZE = 4
WORD_SIZE = 32


def selector_for(signature: str) -> bytes:
    """4-byte function selector of a canonical signature such as ``transfer(address,uint256)``."""
    return function_signature_to_4byte_selector(signature)


def min_calldata_length(head_words: int) -> int:
    """Selector plus one head word per argument (a pointer for dynamic ones)."""
    return SELECTOR_SIZE + head_words * WORD_SIZE


class CalldataView:
    """
    Immutable, bounds-checked view over a call's bytes.

    Offsets passed to the readers are relative to the first argument word,
    i.e. they skip the selector.
    """

    def __init__(self, data: bytes):
        self.data = bytes(data)

    def __len__(self) -> int:
        return len(self.data)

    def require_length(self, required: int, what: str = "calldata") -> "CalldataView":
        if len(self.data) < required:
            raise LengthError(required, len(self.data), what)
        return self

    @property
    def selector(self) -> bytes:
        self.require_length(SELECTOR_SIZE)
        return self.data[:SELECTOR_SIZE]

    @property
    def args(self) -> bytes:
        return self.data[SELECTOR_SIZE:]

    def span(self, offset: int, size: int) -> bytes:
        start = SELECTOR_SIZE + offset
        self.require_length(start + size)
        return self.data[start:start + size]

    def word(self, offset: int) -> bytes:
        return self.span(offset, WORD_SIZE)

    def uint(self, offset: int) -> int:
        return int.from_bytes(self.word(offset), "big")

    def address(self, offset: int) -> str:
        raw = self.word(offset)
        if any(raw[:12]):
            raise StructuralDecodeError(f"Address word at offset {offset} has dirty upper bytes")
        return normalize_address(raw[12:])

    def decode(self, types: Sequence[str]) -> Tuple[Any, ...]:
        """
        ABI-decode the arguments after the selector

        Raises:
            StructuralDecodeError: If the bytes do not parse as ``types``
        """
        try:
            return abi_decode(list(types), self.args)
        except (DecodingError, UnicodeDecodeError) as e:
            raise StructuralDecodeError(f"Failed to decode {', '.join(types)}: {e}") from e
