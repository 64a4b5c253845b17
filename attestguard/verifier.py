"""
AttestationVerifier - entry point wiring decoders, reconciliation and signature channels.
"""
import logging
import urllib.parse
from typing import Mapping, Optional, Sequence, Union

from web3 import Web3
from eth_account import Account
from eth_account.signers.base import BaseAccount

from .config import NetworkConfig, RelayAddresses
from .decoders import BridgeCallLayout, decode_bridge_call, decode_cctp_call, infer_relay_transfers
from .exceptions import AttestGuardError, CommitmentMismatchError, SignatureError
from .models import DecodedPermitSig, ExecutionInfo, RelayCall, normalize_address
from .reconcile import BRIDGE_RULE, CCTP_RULE, RELAY_RULE, ReconciliationResult, reconcile, reconcile_relay
from .signatures import PermitReplayValidator, PermitVerification, TxData, validate_signed_transaction


class AttestationVerifier:
    """
    Verifies executions against signed attestations on one chain.

    Calldata verification is pure and needs no RPC connection. Permit
    verification reads token metadata live and therefore needs ``rpc_url``
    or ``w3``; forwarding executable permits additionally needs
    ``relayer_key``.
    """

    def __init__(
        self,
        chain_id: int,
        rpc_url: Optional[str] = None,
        w3: Optional[Web3] = None,
        relayer_key: Optional[str] = None,
        permit_spender: Optional[str] = None,
        relay_addresses: Optional[RelayAddresses] = None,
        cctp_domains: Optional[Mapping[int, int]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the AttestationVerifier

        Args:
            chain_id: Chain executing the verification
            rpc_url: RPC endpoint for live token reads (https unless localhost)
            w3: Pre-built Web3 instance, used instead of ``rpc_url``
            relayer_key: Private key of the account forwarding executable permits
            permit_spender: Spender permits must grant (defaults to network config)
            relay_addresses: Trusted relay receiver/solver (defaults to network config)
            cctp_domains: CCTP domain to chain id table (defaults to network config)
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If ``rpc_url`` is not https and not local
        """
        if rpc_url:
            parsed = urllib.parse.urlparse(rpc_url)
            host = parsed.netloc.split(':')[0]
            is_local = host in ('localhost', '127.0.0.1')
            if parsed.scheme != 'https' and not is_local:
                raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")

        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self.logger = logger or logging.getLogger(__name__)

        self.w3 = w3
        if self.w3 is None and rpc_url:
            self.w3 = Web3(Web3.HTTPProvider(rpc_url))

        self.account: Optional[BaseAccount] = None
        if relayer_key:
            self.account = Account.from_key(relayer_key)

        self._permit_spender = normalize_address(permit_spender) if permit_spender else None
        self._relay_addresses = relay_addresses
        self._cctp_domains = cctp_domains

    @property
    def relay_addresses(self) -> RelayAddresses:
        if self._relay_addresses is None:
            self._relay_addresses = NetworkConfig.relay_addresses(self.chain_id)
        return self._relay_addresses

    @property
    def cctp_domains(self) -> Mapping[int, int]:
        if self._cctp_domains is None:
            self._cctp_domains = NetworkConfig.cctp_domains()
        return self._cctp_domains

    @property
    def permit_spender(self) -> str:
        if self._permit_spender is None:
            spender = NetworkConfig.permit_spender(self.chain_id)
            if spender is None:
                raise ValueError(f"No permit spender configured for chain id {self.chain_id}")
            self._permit_spender = spender
        return self._permit_spender

    def _rejected(self, channel: str, error: AttestGuardError) -> None:
        self.logger.warning(f"{channel} verification rejected: {type(error).__name__}: {error}")

    def verify_bridge_call(
        self,
        attested: Sequence[ExecutionInfo],
        calldata: bytes,
        layout: Union[BridgeCallLayout, str],
    ) -> ReconciliationResult:
        """
        Verify a bridge/swap call against its attested executions

        Raises:
            DecodeError: If the calldata cannot be decoded under ``layout``
            ReconciliationError: If the call does not honor the attestation
        """
        try:
            decoded = decode_bridge_call(calldata, layout)
            inferred = [decoded.to_execution_info(self.chain_id)]
            result = reconcile(attested, inferred, chain_id=self.chain_id, rule=BRIDGE_RULE)
        except AttestGuardError as e:
            self._rejected("bridge", e)
            raise
        self.logger.info(f"Bridge call verified: {len(result.matches)} attested execution(s) matched")
        return result

    def verify_relay_calls(
        self, attested: Sequence[ExecutionInfo], calls: Sequence[RelayCall]
    ) -> ReconciliationResult:
        """
        Verify a relay call batch against its attested deposits

        Raises:
            DecodeError: If a call has an unsupported shape
            ReconciliationError: If the deposits do not honor the attestation
        """
        try:
            transfers = infer_relay_transfers(calls, self.relay_addresses)
            result = reconcile_relay(attested, transfers, chain_id=self.chain_id, rule=RELAY_RULE)
        except AttestGuardError as e:
            self._rejected("relay", e)
            raise
        self.logger.info(f"Relay batch verified: {len(result.matches)} attested deposit(s) matched")
        return result

    def verify_cctp_call(self, attested: Sequence[ExecutionInfo], calldata: bytes) -> ReconciliationResult:
        """
        Verify a CCTP burn against its attested transfer

        Raises:
            DecodeError: If the call is not a decodable ``depositForBurnWithHook``
            ReconciliationError: If the burn does not honor the attestation
        """
        try:
            decoded = decode_cctp_call(calldata, self.cctp_domains)
            inferred = [decoded.to_execution_info(self.chain_id)]
            result = reconcile(attested, inferred, chain_id=self.chain_id, rule=CCTP_RULE)
        except AttestGuardError as e:
            self._rejected("cctp", e)
            raise
        self.logger.info(f"CCTP burn verified: {len(result.matches)} attested transfer(s) matched")
        return result

    def verify_signed_transaction(self, raw_tx: bytes, expected_hash: bytes, signer: str) -> TxData:
        try:
            tx = validate_signed_transaction(raw_tx, expected_hash, signer)
        except AttestGuardError as e:
            self._rejected("signed transaction", e)
            raise
        self.logger.info(f"Signed transaction attestation verified for {normalize_address(signer)}")
        return tx

    def verify_permit(self, permit: DecodedPermitSig, expected_hash: bytes, owner: str) -> PermitVerification:
        """
        Verify a permit attestation, forwarding it to the token when it is executable

        Raises:
            ValueError: If no RPC connection is configured
        """
        if self.w3 is None:
            raise ValueError("Permit verification requires rpc_url or w3")
        validator = PermitReplayValidator(
            self.w3, self.permit_spender, account=self.account, logger=self.logger
        )
        try:
            return validator.validate(permit, expected_hash, owner)
        except AttestGuardError as e:
            self._rejected("permit", e)
            raise

    def verify_signed_artifact(
        self,
        expected_hash: bytes,
        signer: str,
        raw_tx: Optional[bytes] = None,
        permit: Optional[DecodedPermitSig] = None,
    ) -> Union[TxData, PermitVerification]:
        """
        Verify whichever signed artifact is available, trying the raw transaction first

        A raw transaction that fails on its signature or commitment falls
        back to the permit when one is supplied; any other failure propagates.

        Raises:
            ValueError: If neither artifact is supplied
        """
        if raw_tx is None and permit is None:
            raise ValueError("Either raw_tx or permit must be provided")
        if raw_tx is not None:
            try:
                return self.verify_signed_transaction(raw_tx, expected_hash, signer)
            except (SignatureError, CommitmentMismatchError):
                if permit is None:
                    raise
                self.logger.info("Falling back to permit attestation")
        return self.verify_permit(permit, expected_hash, signer)
