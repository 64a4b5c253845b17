"""
Calldata builders and constants shared by the attestguard tests.
"""
from typing import List, Optional, Sequence

from eth_abi import encode
from eth_keys import keys
from eth_utils import keccak
from web3 import Web3

from attestguard.decoders.bridge import BRIDGE_DATA_TYPE, SWAP_DATA_TYPE, GENERIC_PREFIX_TYPES
from attestguard.decoders.cctp import DEPOSIT_FOR_BURN_WITH_HOOK_SELECTOR, DEPOSIT_FOR_BURN_WITH_HOOK_TYPES
from attestguard.decoders.relay import APPROVE_SELECTOR, FORWARD_SELECTOR, TRANSFER_SELECTOR
from attestguard.models import DecodedPermitSig
from attestguard.signatures import permit_struct_hash, typed_data_digest

# Test constants used throughout tests
CHAIN_ID = 1
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
OTHER_PRIV_KEY = "0xfedcba9876543210fedcba9876543210fedcba9876543210fedcba9876543210"
BRIDGE_SELECTOR = bytes.fromhex("ae328590")

RECEIVER = Web3.to_checksum_address("0x" + "aa" * 20)
TOKEN = Web3.to_checksum_address("0x" + "bb" * 20)
OTHER_TOKEN = Web3.to_checksum_address("0x" + "cc" * 20)
DEX = Web3.to_checksum_address("0x" + "dd" * 20)
REFERRER = Web3.to_checksum_address("0x" + "ee" * 20)
RELAY_RECEIVER = Web3.to_checksum_address("0xa5f565650890fba1824ee0f21ebbbf660a179934")
RELAY_SOLVER = Web3.to_checksum_address("0xf70da97812cb96acdf810712aa562db8dfa3dbef")
SPENDER = Web3.to_checksum_address("0x" + "12" * 20)
ZERO = "0x0000000000000000000000000000000000000000"

COMMITMENT = bytes.fromhex("c0ffee" * 10 + "beef")
REQUEST_ID = bytes.fromhex("ab" * 32)

PERMIT_TYPEHASH = keccak(
    text="Permit(address owner,address spender,uint256 value,uint256 nonce,uint256 deadline)"
)
DOMAIN_SEPARATOR = keccak(text="attestguard-test-token-domain")


def bridge_tuple(
    transaction_id: bytes = (1).to_bytes(32, "big"),
    bridge: str = "across",
    integrator: str = "attestguard",
    referrer: str = REFERRER,
    sending_asset_id: str = TOKEN,
    receiver: str = RECEIVER,
    min_amount: int = 10**18,
    destination_chain_id: int = 10,
    has_source_swaps: bool = False,
    has_destination_call: bool = False,
) -> tuple:
    return (
        transaction_id, bridge, integrator, referrer, sending_asset_id, receiver,
        min_amount, destination_chain_id, has_source_swaps, has_destination_call,
    )


def swap_tuple(
    call_to: str = DEX,
    approve_to: str = DEX,
    sending_asset_id: str = OTHER_TOKEN,
    receiving_asset_id: str = TOKEN,
    from_amount: int = 5 * 10**17,
    call_data: bytes = b"\x12\x34\x56",
    requires_deposit: bool = True,
) -> tuple:
    return (call_to, approve_to, sending_asset_id, receiving_asset_id, from_amount, call_data, requires_deposit)


def bridge_with_swaps_calldata(bridge: tuple, swaps: Sequence[tuple], trailing: bytes = b"") -> bytes:
    return BRIDGE_SELECTOR + encode([BRIDGE_DATA_TYPE, SWAP_DATA_TYPE + "[]"], [bridge, list(swaps)]) + trailing


def bridge_only_calldata(bridge: tuple) -> bytes:
    return BRIDGE_SELECTOR + encode([BRIDGE_DATA_TYPE], [bridge])


def generic_prefix(receiver: str = RECEIVER, min_amount_out: int = 10**18) -> list:
    return [(7).to_bytes(32, "big"), "attestguard", "referrer", receiver, min_amount_out]


def generic_swaps_calldata(swaps: Sequence[tuple], receiver: str = RECEIVER) -> bytes:
    types = list(GENERIC_PREFIX_TYPES) + [SWAP_DATA_TYPE + "[]"]
    return BRIDGE_SELECTOR + encode(types, generic_prefix(receiver) + [list(swaps)])


def generic_single_swap_calldata(swap: tuple, receiver: str = RECEIVER) -> bytes:
    types = list(GENERIC_PREFIX_TYPES) + [SWAP_DATA_TYPE]
    return BRIDGE_SELECTOR + encode(types, generic_prefix(receiver) + [swap])


def transfer_with_request_calldata(receiver: str, amount: int, request_id: bytes = REQUEST_ID) -> bytes:
    return TRANSFER_SELECTOR + encode(["address", "uint256", "bytes32"], [receiver, amount, request_id])


def approve_calldata(spender: str, amount: int) -> bytes:
    return APPROVE_SELECTOR + encode(["address", "uint256"], [spender, amount])


def forward_calldata(inner: bytes) -> bytes:
    return FORWARD_SELECTOR + encode(["bytes"], [inner])


def cctp_calldata(
    amount: int = 10**9,
    domain: int = 3,
    mint_recipient: bytes = bytes(12) + bytes.fromhex("aa" * 20),
    burn_token: str = TOKEN,
    destination_caller: bytes = bytes(32),
    max_fee: int = 10**6,
    min_finality_threshold: int = 1000,
    hook_data: bytes = b"",
) -> bytes:
    return DEPOSIT_FOR_BURN_WITH_HOOK_SELECTOR + encode(
        list(DEPOSIT_FOR_BURN_WITH_HOOK_TYPES),
        [amount, domain, mint_recipient, burn_token, destination_caller,
         max_fee, min_finality_threshold, hook_data],
    )


def signed_transaction(account, tx_type: int = 0, data: bytes = b"\x12\x34" + COMMITMENT,
                       chain_id: Optional[int] = CHAIN_ID) -> bytes:
    """Sign a transaction to TOKEN whose calldata ends with ``data``"""
    fields = {"nonce": 3, "gas": 100000, "to": TOKEN, "value": 0, "data": data}
    if chain_id is not None:
        fields["chainId"] = chain_id
    if tx_type == 2:
        fields.update(type=2, maxFeePerGas=2 * 10**9, maxPriorityFeePerGas=10**9)
    else:
        fields["gasPrice"] = 10**9
        if tx_type == 1:
            fields.update(type=1, accessList=[])
    return bytes(account.sign_transaction(fields).raw_transaction)


def signed_permit(key: str = TEST_PRIV_KEY, v_offset: int = 27, sign_struct_hash: bool = False,
                  **overrides) -> DecodedPermitSig:
    """Sign a permit of 1000 TOKEN from the test account to SPENDER, carrying COMMITMENT"""
    fields = dict(token=TOKEN, amount=1000, chain_id=CHAIN_ID, nonce=0, execute=False, commitment=COMMITMENT)
    fields.update(overrides)
    owner = keys.PrivateKey(bytes.fromhex(TEST_PRIV_KEY[2:])).public_key.to_checksum_address()
    struct_hash = permit_struct_hash(
        PERMIT_TYPEHASH, owner, SPENDER, fields["amount"], fields["nonce"],
        int.from_bytes(fields["commitment"], "big"),
    )
    signed_hash = struct_hash if sign_struct_hash else typed_data_digest(DOMAIN_SEPARATOR, struct_hash)
    signature = keys.PrivateKey(bytes.fromhex(key[2:])).sign_msg_hash(signed_hash)
    return DecodedPermitSig(v=signature.v + v_offset, r=signature.r, s=signature.s, **fields)
