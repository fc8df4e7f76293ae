import pytest

from wavelet.common import (
    SIZE_ACCOUNT_ID,
    ZERO_ACCOUNT_ID,
    ZERO_TRANSACTION_ID,
    account_id,
    transaction_id,
)

GENESIS_ACCOUNT = "400056ee68a7cc2695222df05ea76875bc27ec6e61e8e62317c336157019c405"


def test_account_id_from_hex():
    assert account_id(GENESIS_ACCOUNT) == bytes.fromhex(GENESIS_ACCOUNT)


def test_account_id_from_bytes_roundtrip():
    raw = bytes(range(32))
    assert account_id(bytearray(raw)) == raw
    assert account_id(raw.hex()) == raw


def test_zero_ids_are_valid_ids():
    assert account_id(ZERO_ACCOUNT_ID) == bytes(SIZE_ACCOUNT_ID)
    assert transaction_id(ZERO_TRANSACTION_ID) == ZERO_TRANSACTION_ID


@pytest.mark.parametrize("bad", [b"", bytes(31), bytes(33), "abcd"])
def test_account_id_wrong_length(bad):
    with pytest.raises(ValueError):
        account_id(bad)


def test_transaction_id_invalid_hex():
    with pytest.raises(ValueError):
        transaction_id("zz" * 32)