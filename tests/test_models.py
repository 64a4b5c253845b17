"""
Tests for data models and exception payloads.
"""
import pytest
from pydantic import ValidationError

from attestguard.exceptions import (
    AmountBoundError, ArityError, CommitmentMismatchError, DecodeError, LengthError,
    ReconciliationError, UnsupportedShapeError,
)
from attestguard.models import (
    DecodedPermitSig, DecodedRelayData, ExecutionInfo, RelayCallKind, is_zero_address, normalize_address,
)
from attestguard.reconcile import AmountDirection

from helpers import CHAIN_ID, COMMITMENT, RECEIVER, REQUEST_ID, TOKEN, ZERO


class TestNormalizeAddress:
    def test_from_lowercase(self):
        assert normalize_address(TOKEN.lower()) == TOKEN

    def test_from_bytes(self):
        assert normalize_address(bytes.fromhex("bb" * 20)) == TOKEN

    @pytest.mark.parametrize("value", ["0x1234", b"\x01" * 19, 42, "not an address"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            normalize_address(value)

    def test_is_zero_address(self):
        assert is_zero_address(ZERO)
        assert not is_zero_address(TOKEN)


class TestExecutionInfo:
    def test_keys(self):
        info = ExecutionInfo(origin_token=TOKEN.lower(), amount=5, origin_chain_id=1, destination_chain_id=10)
        assert info.route_key() == (1, 10, TOKEN)
        assert info.token_key() == (TOKEN,)

    def test_frozen(self):
        info = ExecutionInfo(origin_token=TOKEN, amount=5, origin_chain_id=1, destination_chain_id=10)
        with pytest.raises(ValidationError):
            info.amount = 6

    def test_negative_amount(self):
        with pytest.raises(ValidationError):
            ExecutionInfo(origin_token=TOKEN, amount=-1, origin_chain_id=1, destination_chain_id=10)

    def test_hashable(self):
        info = ExecutionInfo(origin_token=TOKEN, amount=5, origin_chain_id=1, destination_chain_id=10)
        assert len({info, info.model_copy()}) == 1


def test_relay_approval_is_not_a_transfer():
    record = DecodedRelayData(
        request_id=REQUEST_ID, token=TOKEN, amount=1, receiver=RECEIVER, kind=RelayCallKind.ERC20_APPROVE
    )
    assert not record.is_transfer
    assert record.to_execution_info(CHAIN_ID).destination_chain_id == CHAIN_ID


def test_permit_commitment_must_be_a_word():
    with pytest.raises(ValidationError):
        DecodedPermitSig(
            token=TOKEN, amount=1, chain_id=1, nonce=0, commitment=COMMITMENT[:31], v=27, r=1, s=1
        )


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(LengthError, DecodeError)
        assert issubclass(ArityError, ReconciliationError)

    def test_length_error(self):
        error = LengthError(100, 99, "calldata")
        assert (error.required, error.actual) == (100, 99)
        assert "need at least 100 bytes, got 99" in str(error)

    def test_amount_bound_error_names_direction(self):
        error = AmountBoundError(50, 100, AmountDirection.AT_LEAST_ATTESTED)
        assert "AT_LEAST_ATTESTED" in str(error)

    def test_long_values_are_shortened(self):
        error = CommitmentMismatchError(bytes(32), COMMITMENT)
        assert "0x00000000…00000000" in str(error)

    def test_unsupported_shape_keeps_shape(self):
        assert UnsupportedShapeError(b"\x05").shape == b"\x05"
        assert "0x05" in str(UnsupportedShapeError(b"\x05"))
