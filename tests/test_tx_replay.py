"""
Tests for the raw-transaction replay channel.
"""
import pytest
import rlp
from eth_account import Account
from eth_account.messages import encode_defunct

from attestguard.exceptions import (
    CommitmentMismatchError, LengthError, SignatureError, StructuralDecodeError,
    UnsupportedShapeError,
)
from attestguard.signatures import parse_signed_transaction, validate_signed_transaction

from helpers import CHAIN_ID, COMMITMENT, signed_transaction


def _resign_as_personal_message(raw_tx: bytes, account) -> bytes:
    """Replace the signature with one over the personal-message form of the signing hash"""
    tx = parse_signed_transaction(raw_tx)
    signed = Account.sign_message(encode_defunct(primitive=tx.unsigned_hash), account.key)
    recovery_id = signed.v - 27

    typed = raw_tx[0] < 0xc0
    fields = list(rlp.decode(raw_tx[1:] if typed else raw_tx))
    if typed:
        v = recovery_id
    else:
        v = tx.chain_id * 2 + 35 + recovery_id
    fields = list(fields[:-3]) + [v, signed.r, signed.s]
    encoded = rlp.encode(fields)
    return raw_tx[:1] + encoded if typed else encoded


@pytest.mark.parametrize("tx_type", [0, 1, 2])
def test_signing_hash_recovers_signer(tx_type, account):
    tx = validate_signed_transaction(signed_transaction(account, tx_type), COMMITMENT, account.address)

    assert tx.tx_type == tx_type
    assert tx.chain_id == CHAIN_ID
    assert tx.embedded_commitment == COMMITMENT
    assert tx.v in (0, 1)


def test_unprotected_legacy_transaction(account):
    raw_tx = signed_transaction(account, chain_id=None)

    tx = validate_signed_transaction(raw_tx, COMMITMENT, account.address)

    assert tx.chain_id is None


@pytest.mark.parametrize("tx_type", [0, 1, 2])
def test_personal_message_signature(tx_type, account):
    raw_tx = _resign_as_personal_message(signed_transaction(account, tx_type), account)
    tx = validate_signed_transaction(raw_tx, COMMITMENT, account.address)
    assert tx.tx_type == tx_type


def test_lowercase_expected_signer(account):
    validate_signed_transaction(signed_transaction(account), COMMITMENT, account.address.lower())


def test_wrong_commitment(account):
    other = bytes(32)
    with pytest.raises(CommitmentMismatchError) as exc_info:
        validate_signed_transaction(signed_transaction(account), other, account.address)
    assert exc_info.value.expected == other
    assert exc_info.value.actual == COMMITMENT


def test_commitment_must_be_the_trailing_word(account):
    raw_tx = signed_transaction(account, data=COMMITMENT + b"\x00")
    with pytest.raises(CommitmentMismatchError):
        validate_signed_transaction(raw_tx, COMMITMENT, account.address)


def test_wrong_signer(account, other_account):
    with pytest.raises(SignatureError) as exc_info:
        validate_signed_transaction(signed_transaction(account), COMMITMENT, other_account.address)
    assert exc_info.value.expected == other_account.address
    assert account.address in exc_info.value.recovered


def test_tampered_field_breaks_recovery(account):
    fields = list(rlp.decode(signed_transaction(account)))
    fields[0] = b"\x04"
    with pytest.raises(SignatureError):
        validate_signed_transaction(rlp.encode(fields), COMMITMENT, account.address)


def test_data_shorter_than_commitment(account):
    with pytest.raises(LengthError) as exc_info:
        parse_signed_transaction(signed_transaction(account, data=b"\x01" * 31))
    assert exc_info.value.required == 32
    assert exc_info.value.actual == 31


@pytest.mark.parametrize("tag", [b"\x03", b"\x04", b"\x7f"])
def test_unsupported_type(tag, account):
    raw_tx = signed_transaction(account, tx_type=2)
    with pytest.raises(UnsupportedShapeError):
        parse_signed_transaction(tag + raw_tx[1:])


def test_empty_transaction():
    with pytest.raises(LengthError):
        parse_signed_transaction(b"")


def test_wrong_field_count(account):
    fields = list(rlp.decode(signed_transaction(account)))
    with pytest.raises(StructuralDecodeError, match="9 fields"):
        parse_signed_transaction(rlp.encode(fields[:8]))


def test_truncated_transaction(account):
    raw_tx = signed_transaction(account)
    with pytest.raises(LengthError):
        parse_signed_transaction(raw_tx[:-1])


def test_invalid_legacy_v(account):
    fields = list(rlp.decode(signed_transaction(account)))
    fields[6] = 29
    with pytest.raises(StructuralDecodeError):
        parse_signed_transaction(rlp.encode(fields))


def test_invalid_typed_parity(account):
    raw_tx = signed_transaction(account, tx_type=2)
    fields = list(rlp.decode(raw_tx[1:]))
    fields[-3] = 27
    with pytest.raises(StructuralDecodeError, match="y-parity"):
        parse_signed_transaction(raw_tx[:1] + rlp.encode(fields))
