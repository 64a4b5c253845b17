"""
Decoder for relay deposit calls.

Relay deposits come in a handful of fixed shapes recognized by exact length
and selector. Each shape is an attempt that returns ``None`` when the call
does not have its shape; the first attempt that recognizes the call wins.
"""
import logging
from typing import Callable, Iterable, List, Optional, Sequence

from ..config import RelayAddresses
from ..exceptions import UnsupportedShapeError
from ..models import DecodedRelayData, RelayCall, RelayCallKind, ZERO_ADDRESS, ZERO_BYTES32
from .abi import CalldataView, SELECTOR_SIZE, WORD_SIZE, selector_for

logger = logging.getLogger(__name__)

TRANSFER_SELECTOR = selector_for("transfer(address,uint256)")
APPROVE_SELECTOR = selector_for("approve(address,uint256)")
FORWARD_SELECTOR = selector_for("forward(bytes)")

NATIVE_TRANSFER_LENGTH = WORD_SIZE
TRANSFER_WITH_REQUEST_LENGTH = SELECTOR_SIZE + 3 * WORD_SIZE
APPROVE_LENGTH = SELECTOR_SIZE + 2 * WORD_SIZE
FORWARD_LENGTH = SELECTOR_SIZE + 3 * WORD_SIZE

RelayAttempt = Callable[[RelayCall, RelayAddresses], Optional[DecodedRelayData]]


def attributed_receiver(receiver: str, addresses: RelayAddresses) -> str:
    """Transfers into the receiver contract are credited to the solver behind it."""
    if receiver == addresses.receiver:
        return addresses.solver
    return receiver


def _native_transfer(call: RelayCall, addresses: RelayAddresses) -> Optional[DecodedRelayData]:
    if len(call.data) != NATIVE_TRANSFER_LENGTH:
        return None
    return DecodedRelayData(
        request_id=call.data,
        token=ZERO_ADDRESS,
        amount=call.value,
        receiver=attributed_receiver(call.to, addresses),
        kind=RelayCallKind.NATIVE_TRANSFER,
    )


def _erc20_transfer(call: RelayCall, addresses: RelayAddresses) -> Optional[DecodedRelayData]:
    if len(call.data) != TRANSFER_WITH_REQUEST_LENGTH or call.data[:SELECTOR_SIZE] != TRANSFER_SELECTOR:
        return None
    view = CalldataView(call.data)
    return DecodedRelayData(
        request_id=view.word(2 * WORD_SIZE),
        token=call.to,
        amount=view.uint(WORD_SIZE),
        receiver=attributed_receiver(view.address(0), addresses),
        kind=RelayCallKind.ERC20_TRANSFER,
    )


def _erc20_approve(call: RelayCall, addresses: RelayAddresses) -> Optional[DecodedRelayData]:
    if len(call.data) != APPROVE_LENGTH or call.data[:SELECTOR_SIZE] != APPROVE_SELECTOR:
        return None
    view = CalldataView(call.data)
    return DecodedRelayData(
        request_id=ZERO_BYTES32,
        token=call.to,
        amount=view.uint(WORD_SIZE),
        receiver=view.address(0),
        kind=RelayCallKind.ERC20_APPROVE,
    )


def _forward(call: RelayCall, addresses: RelayAddresses) -> Optional[DecodedRelayData]:
    if len(call.data) != FORWARD_LENGTH or call.data[:SELECTOR_SIZE] != FORWARD_SELECTOR:
        return None
    view = CalldataView(call.data)
    # forward(bytes) with a single 32-byte request id as the inner payload
    if view.uint(0) != WORD_SIZE or view.uint(WORD_SIZE) != WORD_SIZE:
        return None
    return DecodedRelayData(
        request_id=view.word(2 * WORD_SIZE),
        token=ZERO_ADDRESS,
        amount=call.value,
        receiver=attributed_receiver(call.to, addresses),
        kind=RelayCallKind.FORWARD,
    )


RELAY_ATTEMPTS: Sequence[RelayAttempt] = (
    _native_transfer,
    _erc20_transfer,
    _erc20_approve,
    _forward,
)


def first_success(
    attempts: Iterable[RelayAttempt], call: RelayCall, addresses: RelayAddresses
) -> Optional[DecodedRelayData]:
    for attempt in attempts:
        decoded = attempt(call, addresses)
        if decoded is not None:
            return decoded
    return None


def decode_relay_call(call: RelayCall, addresses: RelayAddresses) -> DecodedRelayData:
    """
    Decode one relay call

    Args:
        call: Target, native value and calldata of the call
        addresses: Trusted relay receiver and solver on this chain

    Returns:
        Decoded relay record

    Raises:
        UnsupportedShapeError: If the call matches none of the known shapes
        StructuralDecodeError: If a recognized shape carries a malformed address word
    """
    decoded = first_success(RELAY_ATTEMPTS, call, addresses)
    if decoded is None:
        shape = call.data[:SELECTOR_SIZE] if len(call.data) >= SELECTOR_SIZE else call.data
        raise UnsupportedShapeError(shape)
    logger.debug("Decoded relay %s call to %s", decoded.kind.value, call.to)
    return decoded


def infer_relay_transfers(
    calls: Sequence[RelayCall], addresses: RelayAddresses
) -> List[DecodedRelayData]:
    """Decode a call batch, keeping only value-moving calls (approvals are dropped)."""
    decoded = [decode_relay_call(call, addresses) for call in calls]
    return [record for record in decoded if record.is_transfer]
