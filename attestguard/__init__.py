"""
attestguard - verify that on-chain executions honor signed attestations.
"""
from .version import __version__
from .models import (
    ExecutionInfo, DecodedRelayData, RelayCall, RelayCallKind, BridgeData, SwapData,
    DecodedPermitSig, TxReceipt, ZERO_ADDRESS,
)
from .exceptions import (
    AttestGuardError, DecodeError, LengthError, StructuralDecodeError, ValidityError,
    UnsupportedShapeError, ReconciliationError, ArityError, NoMatchError, AmountBoundError,
    SignatureError, CommitmentMismatchError, PermitSubmissionError,
)
from .config import NetworkConfig, RelayAddresses
from .decoders import (
    BridgeCallLayout, DecodedBridgeCall, decode_bridge_call, decode_relay_call,
    infer_relay_transfers, DecodedCCTPCall, decode_cctp_call,
)
from .reconcile import (
    AmountDirection, Arity, MatchKey, ReconciliationRule, ReconciliationResult, Match,
    BRIDGE_RULE, CCTP_RULE, RELAY_RULE, reconcile, reconcile_relay,
)
from .signatures import (
    TxData, parse_signed_transaction, validate_signed_transaction,
    PermitReplayValidator, PermitVerification,
)
from .verifier import AttestationVerifier

__all__ = [
    "__version__",
    "ExecutionInfo",
    "DecodedRelayData",
    "RelayCall",
    "RelayCallKind",
    "BridgeData",
    "SwapData",
    "DecodedPermitSig",
    "TxReceipt",
    "ZERO_ADDRESS",
    "AttestGuardError",
    "DecodeError",
    "LengthError",
    "StructuralDecodeError",
    "ValidityError",
    "UnsupportedShapeError",
    "ReconciliationError",
    "ArityError",
    "NoMatchError",
    "AmountBoundError",
    "SignatureError",
    "CommitmentMismatchError",
    "PermitSubmissionError",
    "NetworkConfig",
    "RelayAddresses",
    "BridgeCallLayout",
    "DecodedBridgeCall",
    "decode_bridge_call",
    "decode_relay_call",
    "infer_relay_transfers",
    "DecodedCCTPCall",
    "decode_cctp_call",
    "AmountDirection",
    "Arity",
    "MatchKey",
    "ReconciliationRule",
    "ReconciliationResult",
    "Match",
    "BRIDGE_RULE",
    "CCTP_RULE",
    "RELAY_RULE",
    "reconcile",
    "reconcile_relay",
    "TxData",
    "parse_signed_transaction",
    "validate_signed_transaction",
    "PermitReplayValidator",
    "PermitVerification",
    "AttestationVerifier",
]
