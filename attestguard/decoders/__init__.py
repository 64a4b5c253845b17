"""
Calldata decoders for the supported integrations.

Each decoder turns the raw bytes of a call into a structured record of the
asset movement it performs, without executing it.
"""
from .abi import CalldataView, selector_for
from .bridge import BridgeCallLayout, DecodedBridgeCall, decode_bridge_call
from .relay import decode_relay_call, infer_relay_transfers, attributed_receiver
from .cctp import DecodedCCTPCall, decode_cctp_call, DEPOSIT_FOR_BURN_WITH_HOOK_SELECTOR

__all__ = [
    "CalldataView",
    "selector_for",
    "BridgeCallLayout",
    "DecodedBridgeCall",
    "decode_bridge_call",
    "decode_relay_call",
    "infer_relay_transfers",
    "attributed_receiver",
    "DecodedCCTPCall",
    "decode_cctp_call",
    "DEPOSIT_FOR_BURN_WITH_HOOK_SELECTOR",
]
