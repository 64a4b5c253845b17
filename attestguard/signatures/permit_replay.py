"""
Token-permit replay channel.

An ERC-2612 permit whose deadline slot carries the attestation commitment is
proof that the owner endorsed that commitment. The token's type hash and
domain separator are read live because they differ from token to token.
When the permit asks to be executed and every check passes, it is forwarded
to the token.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_abi import encode as abi_encode
from eth_account.signers.base import BaseAccount
from eth_utils import keccak
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import TxReceipt as Web3TxReceipt

from ..exceptions import (
    CommitmentMismatchError, PermitSubmissionError, SignatureError, ValidityError,
)
from ..models import DecodedPermitSig, TxReceipt, normalize_address
from .recovery import RecoveryConvention, split_v, verify_signer

logger = logging.getLogger(__name__)

EIP712_PREFIX = b"\x19\x01"
DEFAULT_PERMIT_GAS = 120000


@dataclass(frozen=True)
class TokenPermitMetadata:
    """Permit parameters published by the token itself."""
    permit_typehash: bytes
    domain_separator: bytes
    nonce: int


@dataclass(frozen=True)
class PermitVerification:
    """Outcome of an accepted permit validation."""
    owner: str
    spender: str
    struct_hash: bytes
    digest: bytes
    receipt: Optional[TxReceipt] = None


def permit_struct_hash(
    typehash: bytes, owner: str, spender: str, value: int, nonce: int, deadline: int
) -> bytes:
    return keccak(abi_encode(
        ["bytes32", "address", "address", "uint256", "uint256", "uint256"],
        [typehash, owner, spender, value, nonce, deadline],
    ))


def typed_data_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    return keccak(EIP712_PREFIX + domain_separator + struct_hash)


class PermitReplayValidator:
    """
    Validates permit artifacts against live token metadata.

    Submitting executable permits requires ``account``; validation alone
    only reads from the chain.
    """

    ERC20_PERMIT_ABI = [
        {
            "inputs": [],
            "name": "DOMAIN_SEPARATOR",
            "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [],
            "name": "PERMIT_TYPEHASH",
            "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [{"internalType": "address", "name": "owner", "type": "address"}],
            "name": "nonces",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [
                {"internalType": "address", "name": "owner", "type": "address"},
                {"internalType": "address", "name": "spender", "type": "address"},
                {"internalType": "uint256", "name": "value", "type": "uint256"},
                {"internalType": "uint256", "name": "deadline", "type": "uint256"},
                {"internalType": "uint8", "name": "v", "type": "uint8"},
                {"internalType": "bytes32", "name": "r", "type": "bytes32"},
                {"internalType": "bytes32", "name": "s", "type": "bytes32"}
            ],
            "name": "permit",
            "outputs": [],
            "stateMutability": "nonpayable",
            "type": "function"
        }
    ]

    def __init__(
        self,
        w3: Web3,
        spender: str,
        account: Optional[BaseAccount] = None,
        receipt_timeout: int = 120,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the validator

        Args:
            w3: Web3 instance connected to the verifying chain
            spender: Address the permit grants an allowance to
            account: Account that pays for forwarding executable permits
            receipt_timeout: Seconds to wait for a forwarded permit's receipt
            logger: Optional logger instance
        """
        self.w3 = w3
        self.spender = normalize_address(spender)
        self.account = account
        self.receipt_timeout = receipt_timeout
        self.logger = logger or logging.getLogger(__name__)

    def _token(self, token: str):
        return self.w3.eth.contract(address=token, abi=self.ERC20_PERMIT_ABI)

    def read_token_metadata(self, token: str, owner: str) -> TokenPermitMetadata:
        """Read the permit type hash, domain separator and the owner's nonce from the token."""
        contract = self._token(token)
        return TokenPermitMetadata(
            permit_typehash=bytes(contract.functions.PERMIT_TYPEHASH().call()),
            domain_separator=bytes(contract.functions.DOMAIN_SEPARATOR().call()),
            nonce=int(contract.functions.nonces(owner).call()),
        )

    def validate(self, permit: DecodedPermitSig, expected_hash: bytes, owner: str) -> PermitVerification:
        """
        Validate a permit artifact and forward it when it asks to be executed

        Args:
            permit: Decoded permit with the commitment in its deadline slot
            expected_hash: Attestation commitment the permit must carry
            owner: Address that must have signed the permit

        Returns:
            Verification outcome, including the receipt of a forwarded permit

        Raises:
            ValidityError: If the permit targets another chain or a stale nonce
            CommitmentMismatchError: If the deadline slot differs from ``expected_hash``
            SignatureError: If neither the typed-data nor the raw convention recovers ``owner``
            PermitSubmissionError: If forwarding an executable permit fails
        """
        owner = normalize_address(owner)
        metadata = self.read_token_metadata(permit.token, owner)

        chain_id = self.w3.eth.chain_id
        if permit.chain_id != chain_id:
            raise ValidityError(
                f"permit signed for chain {permit.chain_id}, verifying on {chain_id}", permit
            )
        if permit.commitment != bytes(expected_hash):
            raise CommitmentMismatchError(bytes(expected_hash), permit.commitment)
        if permit.nonce != metadata.nonce:
            raise ValidityError(
                f"permit nonce {permit.nonce} does not match token nonce {metadata.nonce}", permit
            )

        struct_hash = permit_struct_hash(
            metadata.permit_typehash, owner, self.spender,
            permit.amount, permit.nonce, permit.deadline,
        )
        digest = typed_data_digest(metadata.domain_separator, struct_hash)

        recovery_id, _ = split_v(permit.v)
        matched, recovered = verify_signer(
            [
                (digest, RecoveryConvention.RAW_HASH),
                (struct_hash, RecoveryConvention.RAW_HASH),
            ],
            recovery_id, permit.r, permit.s, owner,
        )
        if not matched:
            raise SignatureError(owner, recovered)

        receipt = None
        if permit.execute:
            receipt = self.submit_permit(permit, owner, recovery_id)

        self.logger.info(
            "Permit on %s by %s validated (executed=%s)", permit.token, owner, permit.execute
        )
        return PermitVerification(
            owner=owner,
            spender=self.spender,
            struct_hash=struct_hash,
            digest=digest,
            receipt=receipt,
        )

    def submit_permit(self, permit: DecodedPermitSig, owner: str, recovery_id: int) -> TxReceipt:
        """
        Forward a validated permit to its token

        Raises:
            PermitSubmissionError: If no account is configured, or signing,
                sending or execution fails
            Web3Exception: Re-raised as-is from web3
        """
        if self.account is None:
            raise PermitSubmissionError("No account configured to forward permits")

        call = self._token(permit.token).functions.permit(
            owner,
            self.spender,
            permit.amount,
            permit.deadline,
            recovery_id + 27,
            permit.r.to_bytes(32, "big"),
            permit.s.to_bytes(32, "big"),
        )
        try:
            tx = call.build_transaction({
                "from": self.account.address,
                "nonce": self.w3.eth.get_transaction_count(self.account.address),
                "gas": DEFAULT_PERMIT_GAS,
                "gasPrice": self.w3.eth.gas_price,
            })
            signed_tx = self.account.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            self.logger.info(f"Permit transaction sent: {tx_hash.hex()}")
            web3_receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Web3Exception as e:
            self.logger.error(f"Web3 error while forwarding permit: {e}")
            raise
        except Exception as e:
            self.logger.error(f"Failed to forward permit: {e}")
            raise PermitSubmissionError(f"Failed to forward permit: {str(e)}") from e

        receipt = self._convert_receipt(web3_receipt)
        if receipt.status != 1:
            raise PermitSubmissionError(f"Permit transaction {receipt.tx_hash} reverted")
        return receipt

    def _convert_receipt(self, web3_receipt: Web3TxReceipt) -> TxReceipt:
        """Convert a Web3 receipt to our TxReceipt model."""
        receipt_dict: Dict[str, Any] = dict(web3_receipt)

        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = '0x' + value.hex()
        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs", [])]

        return TxReceipt.model_validate(receipt_dict)
