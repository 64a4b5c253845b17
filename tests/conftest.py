"""
Pytest fixtures for the attestguard tests.
"""
import pytest
from unittest.mock import MagicMock
from eth_account import Account

from attestguard.config import NetworkConfig, RelayAddresses
from attestguard.models import ExecutionInfo

from helpers import (
    CHAIN_ID, DOMAIN_SEPARATOR, OTHER_PRIV_KEY, PERMIT_TYPEHASH, RELAY_RECEIVER, RELAY_SOLVER,
    TEST_PRIV_KEY, TOKEN,
)


@pytest.fixture(autouse=True)
def _reset_network_cache():
    """Every test starts from the bundled network file."""
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def account():
    """Create a deterministic test account"""
    return Account.from_key(TEST_PRIV_KEY)


@pytest.fixture
def other_account():
    return Account.from_key(OTHER_PRIV_KEY)


@pytest.fixture
def relay_addresses():
    return RelayAddresses(receiver=RELAY_RECEIVER, solver=RELAY_SOLVER)


@pytest.fixture
def cctp_domains():
    return {0: 1, 2: 10, 3: 42161, 6: 8453}


@pytest.fixture
def execution():
    """Factory for execution records on the test chain"""
    def _make(amount=100, token=TOKEN, origin=CHAIN_ID, destination=10):
        return ExecutionInfo(
            origin_token=token,
            amount=amount,
            origin_chain_id=origin,
            destination_chain_id=destination,
        )
    return _make


@pytest.fixture
def token_contract():
    """Mock of an ERC-2612 token exposing its permit metadata"""
    contract = MagicMock()
    contract.functions.PERMIT_TYPEHASH.return_value.call.return_value = PERMIT_TYPEHASH
    contract.functions.DOMAIN_SEPARATOR.return_value.call.return_value = DOMAIN_SEPARATOR
    contract.functions.nonces.return_value.call.return_value = 0
    contract.functions.permit.return_value.build_transaction.side_effect = (
        lambda params: {**params, "to": TOKEN, "data": "0xd505accf"}
    )
    return contract


@pytest.fixture
def mock_w3(token_contract):
    """Mock Web3 instance connected to the test chain"""
    w3 = MagicMock()
    w3.eth.chain_id = CHAIN_ID
    w3.eth.gas_price = 10**9
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.contract.return_value = token_contract
    w3.eth.send_raw_transaction.return_value = bytes.fromhex("ab" * 32)
    w3.eth.wait_for_transaction_receipt.return_value = {
        "transactionHash": bytes.fromhex("ab" * 32),
        "blockNumber": 12345,
        "blockHash": bytes.fromhex("abcdef1234567890" * 4),
        "status": 1,
        "gasUsed": 55000,
        "from": "0x1234567890123456789012345678901234567890",
        "to": TOKEN,
        "logs": [],
    }
    return w3
