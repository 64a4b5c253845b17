"""
Decoder for bridge/swap facet calls.

The caller declares which of the four known argument layouts the call uses;
the decoder checks the minimum length, decodes exactly that shape and then
runs the shape's validity checks. Nothing is defaulted on failure.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..exceptions import UnsupportedShapeError, ValidityError
from ..models import BridgeData, SwapData, ExecutionInfo, ZERO_BYTES32, is_zero_address, normalize_address
from .abi import CalldataView, min_calldata_length

logger = logging.getLogger(__name__)

BRIDGE_DATA_TYPE = "(bytes32,string,string,address,address,address,uint256,uint256,bool,bool)"
SWAP_DATA_TYPE = "(address,address,address,address,uint256,bytes,bool)"
GENERIC_PREFIX_TYPES = ("bytes32", "string", "string", "address", "uint256")


class BridgeCallLayout(str, Enum):
    """
    Argument layouts of bridge/swap calls.

    BRIDGE_WITH_SWAPS:    (BridgeData, SwapData[])
    BRIDGE_ONLY:          (BridgeData)
    GENERIC_SWAPS:        (txId, integrator, referrer, receiver, minAmountOut, SwapData[])
    GENERIC_SINGLE_SWAP:  (txId, integrator, referrer, receiver, minAmountOut, SwapData)
    """
    BRIDGE_WITH_SWAPS = "BRIDGE_WITH_SWAPS"
    BRIDGE_ONLY = "BRIDGE_ONLY"
    GENERIC_SWAPS = "GENERIC_SWAPS"
    GENERIC_SINGLE_SWAP = "GENERIC_SINGLE_SWAP"

    @property
    def types(self) -> Tuple[str, ...]:
        if self is BridgeCallLayout.BRIDGE_WITH_SWAPS:
            return (BRIDGE_DATA_TYPE, SWAP_DATA_TYPE + "[]")
        if self is BridgeCallLayout.BRIDGE_ONLY:
            return (BRIDGE_DATA_TYPE,)
        if self is BridgeCallLayout.GENERIC_SWAPS:
            return GENERIC_PREFIX_TYPES + (SWAP_DATA_TYPE + "[]",)
        return GENERIC_PREFIX_TYPES + (SWAP_DATA_TYPE,)

    @property
    def min_length(self) -> int:
        # every argument contributes one head word: a value or a pointer
        return min_calldata_length(len(self.types))

    @property
    def is_bridge(self) -> bool:
        return self in (BridgeCallLayout.BRIDGE_WITH_SWAPS, BridgeCallLayout.BRIDGE_ONLY)


@dataclass(frozen=True)
class DecodedBridgeCall:
    """Structured content of a bridge/swap call."""
    selector: bytes
    layout: BridgeCallLayout
    swaps: Tuple[SwapData, ...]
    bridge_data: Optional[BridgeData] = None
    transaction_id: bytes = ZERO_BYTES32
    receiver: Optional[str] = None
    min_amount_out: int = 0

    def to_execution_info(self, chain_id: int) -> ExecutionInfo:
        """
        Promote the call to the asset movement it performs on ``chain_id``

        Args:
            chain_id: Chain executing the call, tagged as the origin side

        Returns:
            Inferred execution record
        """
        if self.bridge_data is not None:
            if self.bridge_data.has_source_swaps:
                token = self.swaps[0].sending_asset_id
                amount = self.swaps[0].from_amount
            else:
                token = self.bridge_data.sending_asset_id
                amount = self.bridge_data.min_amount
            destination = self.bridge_data.destination_chain_id
        else:
            token = self.swaps[0].sending_asset_id
            amount = self.swaps[0].from_amount
            destination = chain_id
        return ExecutionInfo(
            origin_token=token,
            amount=amount,
            origin_chain_id=chain_id,
            destination_chain_id=destination,
        )


def _swap_from_tuple(values) -> SwapData:
    call_to, approve_to, sending, receiving, from_amount, call_data, requires_deposit = values
    return SwapData(
        call_to=call_to,
        approve_to=approve_to,
        sending_asset_id=sending,
        receiving_asset_id=receiving,
        from_amount=from_amount,
        call_data=call_data,
        requires_deposit=requires_deposit,
    )


def _bridge_from_tuple(values) -> BridgeData:
    (transaction_id, bridge, integrator, referrer, sending, receiver,
     min_amount, destination_chain_id, has_source_swaps, has_destination_call) = values
    return BridgeData(
        transaction_id=transaction_id,
        bridge=bridge,
        integrator=integrator,
        referrer=referrer,
        sending_asset_id=sending,
        receiver=receiver,
        min_amount=min_amount,
        destination_chain_id=destination_chain_id,
        has_source_swaps=has_source_swaps,
        has_destination_call=has_destination_call,
    )


def _validate_swaps(swaps: Tuple[SwapData, ...]) -> None:
    for index, swap in enumerate(swaps):
        if not swap.is_valid():
            raise ValidityError(
                f"swap {index} has no call target, no approval target and zero amount", swap
            )


def _validate_bridge(bridge_data: BridgeData, swaps: Tuple[SwapData, ...]) -> None:
    reason = bridge_data.invalid_reason()
    if reason:
        raise ValidityError(reason, bridge_data)
    _validate_swaps(swaps)
    if bridge_data.has_source_swaps != bool(swaps):
        raise ValidityError(
            f"hasSourceSwaps={bridge_data.has_source_swaps} but {len(swaps)} swap(s) present",
            bridge_data,
        )


def decode_bridge_call(calldata: bytes, layout: BridgeCallLayout) -> DecodedBridgeCall:
    """
    Decode a bridge/swap call under the declared layout

    Args:
        calldata: Selector followed by ABI-encoded arguments
        layout: Which argument layout the call uses

    Returns:
        Decoded call

    Raises:
        LengthError: If the buffer is shorter than the layout's head
        StructuralDecodeError: If the arguments do not decode as the layout
        ValidityError: If a decoded record fails its validity checks
        UnsupportedShapeError: If ``layout`` is not a known layout
    """
    try:
        layout = BridgeCallLayout(layout)
    except ValueError:
        raise UnsupportedShapeError(layout) from None
    view = CalldataView(calldata).require_length(layout.min_length)
    decoded = view.decode(layout.types)

    if layout.is_bridge:
        bridge_data = _bridge_from_tuple(decoded[0])
        swaps = tuple(_swap_from_tuple(s) for s in decoded[1]) if len(decoded) > 1 else ()
        _validate_bridge(bridge_data, swaps)
        logger.debug(
            "Decoded %s call: bridge=%s swaps=%d", layout.value, bridge_data.bridge, len(swaps)
        )
        return DecodedBridgeCall(
            selector=view.selector,
            layout=layout,
            swaps=swaps,
            bridge_data=bridge_data,
            transaction_id=bridge_data.transaction_id,
            receiver=bridge_data.receiver,
            min_amount_out=bridge_data.min_amount,
        )

    transaction_id, _integrator, _referrer, receiver, min_amount_out, swap_arg = decoded
    if layout is BridgeCallLayout.GENERIC_SWAPS:
        swaps = tuple(_swap_from_tuple(s) for s in swap_arg)
    else:
        swaps = (_swap_from_tuple(swap_arg),)
    if not swaps:
        raise ValidityError("generic swap call carries no swaps")
    _validate_swaps(swaps)
    receiver = normalize_address(receiver)
    if is_zero_address(receiver):
        raise ValidityError("generic swap call has zero receiver")
    logger.debug("Decoded %s call: swaps=%d", layout.value, len(swaps))
    return DecodedBridgeCall(
        selector=view.selector,
        layout=layout,
        swaps=swaps,
        transaction_id=transaction_id,
        receiver=receiver,
        min_amount_out=min_amount_out,
    )
