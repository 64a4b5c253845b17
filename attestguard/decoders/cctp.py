"""
Decoder for CCTP burn-and-mint transfers.
"""
import logging
from dataclasses import dataclass
from typing import Mapping

from ..exceptions import UnsupportedShapeError, ValidityError
from ..models import ExecutionInfo, ZERO_BYTES32, is_zero_address, normalize_address
from .abi import CalldataView, min_calldata_length, selector_for

logger = logging.getLogger(__name__)

DEPOSIT_FOR_BURN_WITH_HOOK_SIGNATURE = (
    "depositForBurnWithHook(uint256,uint32,bytes32,address,bytes32,uint256,uint32,bytes)"
)
DEPOSIT_FOR_BURN_WITH_HOOK_TYPES = (
    "uint256", "uint32", "bytes32", "address", "bytes32", "uint256", "uint32", "bytes",
)
MIN_LENGTH = min_calldata_length(len(DEPOSIT_FOR_BURN_WITH_HOOK_TYPES))

DEPOSIT_FOR_BURN_WITH_HOOK_SELECTOR = selector_for(DEPOSIT_FOR_BURN_WITH_HOOK_SIGNATURE)


@dataclass(frozen=True)
class DecodedCCTPCall:
    amount: int
    destination_domain: int
    destination_chain_id: int
    mint_recipient: bytes
    burn_token: str
    destination_caller: bytes
    max_fee: int
    min_finality_threshold: int
    hook_data: bytes

    def to_execution_info(self, chain_id: int) -> ExecutionInfo:
        return ExecutionInfo(
            origin_token=self.burn_token,
            amount=self.amount,
            origin_chain_id=chain_id,
            destination_chain_id=self.destination_chain_id,
        )


def decode_cctp_call(calldata: bytes, domains: Mapping[int, int]) -> DecodedCCTPCall:
    """
    Decode a ``depositForBurnWithHook`` call

    Args:
        calldata: Selector followed by ABI-encoded arguments
        domains: CCTP domain to chain id table

    Returns:
        Decoded call

    Raises:
        UnsupportedShapeError: If the selector is not ``depositForBurnWithHook``
            or the destination domain is unknown
        LengthError: If the buffer is shorter than the eight-word head
        StructuralDecodeError: If the arguments do not decode
        ValidityError: If amount, token, recipient or fee are unusable
    """
    view = CalldataView(calldata)
    if view.selector != DEPOSIT_FOR_BURN_WITH_HOOK_SELECTOR:
        raise UnsupportedShapeError(view.selector)
    view.require_length(MIN_LENGTH)

    (amount, domain, mint_recipient, burn_token, destination_caller,
     max_fee, min_finality_threshold, hook_data) = view.decode(DEPOSIT_FOR_BURN_WITH_HOOK_TYPES)

    if domain not in domains:
        raise UnsupportedShapeError(f"cctp domain {domain}")
    burn_token = normalize_address(burn_token)

    if amount == 0:
        raise ValidityError("cctp transfer has zero amount")
    if is_zero_address(burn_token):
        raise ValidityError("cctp transfer has zero burn token")
    if mint_recipient == ZERO_BYTES32:
        raise ValidityError("cctp transfer has zero mint recipient")
    if max_fee >= amount:
        raise ValidityError(f"cctp max fee {max_fee} is not below amount {amount}")

    logger.debug("Decoded cctp burn of %d to domain %d", amount, domain)
    return DecodedCCTPCall(
        amount=amount,
        destination_domain=domain,
        destination_chain_id=domains[domain],
        mint_recipient=mint_recipient,
        burn_token=burn_token,
        destination_caller=destination_caller,
        max_fee=max_fee,
        min_finality_threshold=min_finality_threshold,
        hook_data=hook_data,
    )
