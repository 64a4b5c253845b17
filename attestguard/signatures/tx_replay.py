"""
Raw-transaction replay channel.

A signed transaction whose calldata ends with the attestation commitment is
proof that the signer endorsed that commitment. The transaction is never
broadcast: it is decoded, its signing hash rebuilt from the decoded fields,
and the signer recovered from its signature.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from eth_utils import keccak

from ..exceptions import (
    CommitmentMismatchError, LengthError, SignatureError, StructuralDecodeError,
    UnsupportedShapeError,
)
from ..models import normalize_address
from ..rlp import (
    RLPItem, encode_list_header, encode_uint, to_bytes, to_list, to_raw_bytes,
    to_rlp_item, to_uint,
)
from ..rlp.header import EMPTY_STRING
from ..rlp.reader import LIST_SHORT_START
from .recovery import RecoveryConvention, split_v, verify_signer

logger = logging.getLogger(__name__)

COMMITMENT_SIZE = 32


@dataclass(frozen=True)
class TxLayout:
    """Field layout of one transaction envelope."""
    tx_type: int
    field_count: int
    data_index: int


LEGACY_LAYOUT = TxLayout(tx_type=0, field_count=9, data_index=5)
ACCESS_LIST_LAYOUT = TxLayout(tx_type=1, field_count=11, data_index=6)
FEE_MARKET_LAYOUT = TxLayout(tx_type=2, field_count=12, data_index=7)
TYPED_LAYOUTS = {layout.tx_type: layout for layout in (ACCESS_LIST_LAYOUT, FEE_MARKET_LAYOUT)}


@dataclass(frozen=True)
class TxData:
    """Signature-relevant content of a signed transaction."""
    tx_type: int
    v: int
    r: int
    s: int
    unsigned_hash: bytes
    embedded_commitment: bytes
    chain_id: Optional[int] = None


def _split_envelope(raw_tx: bytes):
    if not raw_tx:
        raise LengthError(1, 0, "transaction")
    first = raw_tx[0]
    if first >= LIST_SHORT_START:
        return LEGACY_LAYOUT, raw_tx
    if first in TYPED_LAYOUTS:
        return TYPED_LAYOUTS[first], raw_tx[1:]
    raise UnsupportedShapeError(bytes([first]))


def _unsigned_payload(layout: TxLayout, fields: List[RLPItem], v: int):
    """
    Rebuild the exact bytes the signer hashed

    Returns:
        Tuple of (payload, recovery id, chain id)
    """
    body = b"".join(to_raw_bytes(item) for item in fields[:-3])
    if layout is LEGACY_LAYOUT:
        recovery_id, chain_id = split_v(v)
        if chain_id is not None:
            # EIP-155: chain id and two empty fields replace the signature
            body += encode_uint(chain_id) + EMPTY_STRING + EMPTY_STRING
        elif v not in (27, 28):
            raise StructuralDecodeError(f"Legacy transaction has invalid v {v}")
        return encode_list_header(len(body)) + body, recovery_id, chain_id

    if v not in (0, 1):
        raise StructuralDecodeError(f"Typed transaction has invalid y-parity {v}")
    chain_id = to_uint(fields[0])
    payload = bytes([layout.tx_type]) + encode_list_header(len(body)) + body
    return payload, v, chain_id


def parse_signed_transaction(raw_tx: bytes) -> TxData:
    """
    Decode a signed legacy or typed transaction

    Args:
        raw_tx: Signed transaction bytes, optionally led by a type byte

    Returns:
        Parsed transaction with its rebuilt signing hash

    Raises:
        UnsupportedShapeError: If the leading type byte is unknown
        LengthError: If the RLP is truncated or the calldata has no room for a commitment
        StructuralDecodeError: If the RLP does not hold the layout's fields
    """
    raw_tx = bytes(raw_tx)
    layout, body = _split_envelope(raw_tx)
    fields = to_list(to_rlp_item(body))
    if len(fields) != layout.field_count:
        raise StructuralDecodeError(
            f"Type {layout.tx_type} transaction needs {layout.field_count} fields, got {len(fields)}"
        )

    data = to_bytes(fields[layout.data_index])
    if len(data) < COMMITMENT_SIZE:
        raise LengthError(COMMITMENT_SIZE, len(data), "transaction data")

    v, r, s = (to_uint(item) for item in fields[-3:])
    payload, recovery_id, chain_id = _unsigned_payload(layout, fields, v)

    return TxData(
        tx_type=layout.tx_type,
        v=recovery_id,
        r=r,
        s=s,
        unsigned_hash=keccak(payload),
        embedded_commitment=data[-COMMITMENT_SIZE:],
        chain_id=chain_id,
    )


def validate_signed_transaction(raw_tx: bytes, expected_hash: bytes, expected_signer: str) -> TxData:
    """
    Check that a signed transaction commits to ``expected_hash`` and was signed by ``expected_signer``

    The signer is recovered under the personal-message convention first and
    the raw signing-hash convention second; either match is accepted.

    Args:
        raw_tx: Signed transaction bytes
        expected_hash: Attestation commitment the calldata must end with
        expected_signer: Address that must have signed

    Returns:
        The parsed transaction

    Raises:
        CommitmentMismatchError: If the calldata does not end with ``expected_hash``
        SignatureError: If neither convention recovers ``expected_signer``
        (plus any error raised by ``parse_signed_transaction``)
    """
    tx = parse_signed_transaction(raw_tx)
    if tx.embedded_commitment != bytes(expected_hash):
        raise CommitmentMismatchError(bytes(expected_hash), tx.embedded_commitment)

    expected = normalize_address(expected_signer)
    matched, recovered = verify_signer(
        [
            (tx.unsigned_hash, RecoveryConvention.PERSONAL_MESSAGE),
            (tx.unsigned_hash, RecoveryConvention.RAW_HASH),
        ],
        tx.v, tx.r, tx.s, expected,
    )
    if not matched:
        raise SignatureError(expected, recovered)

    logger.debug("Type %d transaction signed by %s commits to expected hash", tx.tx_type, expected)
    return tx
