"""
Data models for attestguard.

Attested records arrive from the signed quote and are trusted; inferred
records are produced by the calldata decoders and stay untrusted until the
reconciliation engine matches them.
"""
from enum import Enum
from typing import Dict, Any, Optional, List, Tuple, Union

from pydantic import BaseModel, Field, field_validator
from web3 import Web3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = b"\x00" * 32


def normalize_address(value: Union[str, bytes]) -> str:
    """
    Normalize an address to its EIP-55 checksum form

    Args:
        value: Hex string (any case) or 20 raw bytes

    Returns:
        Checksummed address string

    Raises:
        ValueError: If the value is not a 20-byte address
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise ValueError(f"Address must be 20 bytes, got {len(value)}")
        value = "0x" + bytes(value).hex()
    if not isinstance(value, str) or not Web3.is_address(value.lower()):
        raise ValueError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(value.lower())


def is_zero_address(address: str) -> bool:
    return int(address, 16) == 0


class ExecutionInfo(BaseModel):
    """Canonical asset movement, either attested or inferred from calldata"""
    origin_token: str
    amount: int = Field(..., ge=0)
    origin_chain_id: int = Field(..., ge=0)
    destination_chain_id: int = Field(..., ge=0)

    class Config:
        frozen = True

    @field_validator("origin_token", mode="before")
    @classmethod
    def _checksum_token(cls, value):
        return normalize_address(value)

    def route_key(self) -> Tuple[int, int, str]:
        return (self.origin_chain_id, self.destination_chain_id, self.origin_token)

    def token_key(self) -> Tuple[str]:
        return (self.origin_token,)


class RelayCallKind(str, Enum):
    """Call shapes recognized by the relay decoder."""
    NATIVE_TRANSFER = "NATIVE_TRANSFER"
    ERC20_TRANSFER = "ERC20_TRANSFER"
    ERC20_APPROVE = "ERC20_APPROVE"
    FORWARD = "FORWARD"


class DecodedRelayData(BaseModel):
    """Relay deposit recovered from a single call"""
    request_id: bytes
    token: str
    amount: int = Field(..., ge=0)
    receiver: str
    kind: RelayCallKind = RelayCallKind.ERC20_TRANSFER

    class Config:
        frozen = True

    @field_validator("token", "receiver", mode="before")
    @classmethod
    def _checksum_address(cls, value):
        return normalize_address(value)

    @property
    def is_transfer(self) -> bool:
        return self.kind != RelayCallKind.ERC20_APPROVE

    def to_execution_info(self, chain_id: int) -> ExecutionInfo:
        """Relay deposits settle through the solver, so both sides are tagged with the local chain."""
        return ExecutionInfo(
            origin_token=self.token,
            amount=self.amount,
            origin_chain_id=chain_id,
            destination_chain_id=chain_id,
        )


class RelayCall(BaseModel):
    """One call of a relay execution batch: target, native value and calldata"""
    to: str
    value: int = Field(0, ge=0)
    data: bytes = b""

    class Config:
        frozen = True

    @field_validator("to", mode="before")
    @classmethod
    def _checksum_to(cls, value):
        return normalize_address(value)


class SwapData(BaseModel):
    """One swap step of a bridge/swap call"""
    call_to: str
    approve_to: str
    sending_asset_id: str
    receiving_asset_id: str
    from_amount: int
    call_data: bytes = b""
    requires_deposit: bool = False

    class Config:
        frozen = True

    @field_validator("call_to", "approve_to", "sending_asset_id", "receiving_asset_id", mode="before")
    @classmethod
    def _checksum_address(cls, value):
        return normalize_address(value)

    def is_valid(self) -> bool:
        return (
            not is_zero_address(self.call_to)
            or not is_zero_address(self.approve_to)
            or self.from_amount > 0
        )


class BridgeData(BaseModel):
    """Bridge record carried as the first argument of bridge calls"""
    transaction_id: bytes
    bridge: str
    integrator: str
    referrer: str
    sending_asset_id: str
    receiver: str
    min_amount: int
    destination_chain_id: int
    has_source_swaps: bool
    has_destination_call: bool

    class Config:
        frozen = True

    @field_validator("referrer", "sending_asset_id", "receiver", mode="before")
    @classmethod
    def _checksum_address(cls, value):
        return normalize_address(value)

    def invalid_reason(self) -> Optional[str]:
        """Return why the record is invalid, or None when it is usable."""
        if self.transaction_id == ZERO_BYTES32:
            return "bridge record has zero transaction id"
        if not self.bridge:
            return "bridge record has empty bridge name"
        if is_zero_address(self.receiver):
            return "bridge record has zero receiver"
        if self.min_amount <= 0:
            return "bridge record has zero amount"
        if self.destination_chain_id == 0:
            return "bridge record has zero destination chain"
        return None


class DecodedPermitSig(BaseModel):
    """Permit artifact whose deadline slot carries the attestation commitment"""
    token: str
    amount: int = Field(..., ge=0)
    chain_id: int
    nonce: int = Field(..., ge=0)
    execute: bool = False
    commitment: bytes
    v: int
    r: int
    s: int

    class Config:
        frozen = True

    @field_validator("token", mode="before")
    @classmethod
    def _checksum_token(cls, value):
        return normalize_address(value)

    @field_validator("commitment")
    @classmethod
    def _commitment_is_word(cls, value: bytes):
        if len(value) != 32:
            raise ValueError(f"commitment must be 32 bytes, got {len(value)}")
        return value

    @property
    def deadline(self) -> int:
        return int.from_bytes(self.commitment, "big")


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]]

    class Config:
        populate_by_name = True
