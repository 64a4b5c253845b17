"""
ECDSA signer recovery under the conventions attestations are signed with.
"""
import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError

from ..exceptions import StructuralDecodeError
from ..models import normalize_address

logger = logging.getLogger(__name__)

EIP155_V_OFFSET = 35
LEGACY_V_OFFSET = 27


class RecoveryConvention(str, Enum):
    """How the signed digest was derived from the message hash."""
    PERSONAL_MESSAGE = "PERSONAL_MESSAGE"  # "\x19Ethereum Signed Message:\n32" prefix
    RAW_HASH = "RAW_HASH"                  # the hash itself, e.g. a tx signing hash


def split_v(v: int) -> Tuple[int, Optional[int]]:
    """
    Normalize a signature's v to a recovery id

    Args:
        v: 0/1 (y-parity), 27/28 (pre-EIP-155) or ``chain_id * 2 + 35 + y``

    Returns:
        Tuple of (recovery id, chain id encoded in v or None)

    Raises:
        StructuralDecodeError: If v is not a recognized encoding
    """
    if v in (0, 1):
        return v, None
    if v in (LEGACY_V_OFFSET, LEGACY_V_OFFSET + 1):
        return v - LEGACY_V_OFFSET, None
    if v >= EIP155_V_OFFSET:
        return (v - EIP155_V_OFFSET) % 2, (v - EIP155_V_OFFSET) // 2
    raise StructuralDecodeError(f"Unrecognized signature v value {v}")


def recover_signer(
    msg_hash: bytes, recovery_id: int, r: int, s: int, convention: RecoveryConvention
) -> Optional[str]:
    """
    Recover the address that signed ``msg_hash`` under ``convention``

    Returns:
        Checksummed signer address, or None when the signature components do
        not describe a recoverable signature
    """
    try:
        if convention is RecoveryConvention.PERSONAL_MESSAGE:
            message = encode_defunct(primitive=msg_hash)
            return normalize_address(
                Account.recover_message(message, vrs=(recovery_id + LEGACY_V_OFFSET, r, s))
            )
        signature = keys.Signature(vrs=(recovery_id, r, s))
        return signature.recover_public_key_from_msg_hash(msg_hash).to_checksum_address()
    except (BadSignature, KeyValidationError) as e:
        logger.debug("Recovery under %s failed: %s", convention.value, e)
        return None


def verify_signer(
    attempts: Sequence[Tuple[bytes, RecoveryConvention]],
    recovery_id: int,
    r: int,
    s: int,
    expected_signer: str,
) -> Tuple[bool, List[Optional[str]]]:
    """
    Try each (digest, convention) attempt in order until one yields the expected signer

    Returns:
        Tuple of (matched, addresses recovered by the attempts that ran)
    """
    expected = normalize_address(expected_signer)
    recovered: List[Optional[str]] = []
    for digest, convention in attempts:
        signer = recover_signer(digest, recovery_id, r, s, convention)
        recovered.append(signer)
        if signer == expected:
            logger.debug("Signer %s recovered under %s", signer, convention.value)
            return True, recovered
    return False, recovered
