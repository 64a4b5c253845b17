"""
Minimal RLP emitters used to rebuild a signing payload from decoded fields.

Only list headers and unsigned integers are produced; everything else is
copied from the original encoding byte for byte.
"""
from .reader import LIST_SHORT_START, LIST_LONG_START, STRING_SHORT_START, MAX_SHORT_PAYLOAD

EMPTY_STRING = bytes([STRING_SHORT_START])


def _big_endian(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def encode_list_header(payload_length: int) -> bytes:
    if payload_length <= MAX_SHORT_PAYLOAD:
        return bytes([LIST_SHORT_START + payload_length])
    length_bytes = _big_endian(payload_length)
    return bytes([LIST_LONG_START - 1 + len(length_bytes)]) + length_bytes


def encode_uint(value: int) -> bytes:
    """Canonical encoding of a non-negative integer small enough for a short string."""
    if value < 0:
        raise ValueError("RLP cannot encode negative integers")
    if value == 0:
        return EMPTY_STRING
    raw = _big_endian(value)
    if len(raw) == 1 and raw[0] < STRING_SHORT_START:
        return raw
    return bytes([STRING_SHORT_START + len(raw)]) + raw
