"""
Signature-based attestation channels.

Two independent artifacts can prove that a signer endorsed a commitment:
a signed raw transaction whose calldata ends with it, and an ERC-2612 permit
carrying it in the deadline slot.
"""
from .recovery import RecoveryConvention, recover_signer, split_v, verify_signer
from .tx_replay import TxData, parse_signed_transaction, validate_signed_transaction
from .permit_replay import (
    PermitReplayValidator, PermitVerification, TokenPermitMetadata,
    permit_struct_hash, typed_data_digest,
)

__all__ = [
    "RecoveryConvention",
    "recover_signer",
    "split_v",
    "verify_signer",
    "TxData",
    "parse_signed_transaction",
    "validate_signed_transaction",
    "PermitReplayValidator",
    "PermitVerification",
    "TokenPermitMetadata",
    "permit_struct_hash",
    "typed_data_digest",
]
