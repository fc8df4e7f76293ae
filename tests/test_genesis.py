import pytest

from wavelet.db import (
    MemoryTree,
    read_account_balance,
    read_account_nonce,
    read_account_reward,
    read_account_stake,
    read_accounts_len,
    write_accounts_len,
)
from wavelet.genesis import GenesisError, load_genesis

FIRST = bytes.fromhex("400056ee68a7cc2695222df05ea76875bc27ec6e61e8e62317c336157019c405")
SECOND = bytes.fromhex("696937c2c8df35dba0169de72990b80761e51dd9e2411fa1fce147f68ade830a")
THIRD = bytes.fromhex("f03bb6f98c4dfd31f3d448c7ec79fa3eaa92250112ada43471812f4b1ace6467")

ID_A = "aa" * 32
ID_B = "bb" * 32


def test_default_genesis_accounts():
    tree = MemoryTree()
    ids = load_genesis(tree)
    assert ids == [FIRST, SECOND, THIRD]
    assert read_accounts_len(tree) == 3
    for account in ids:
        assert read_account_balance(tree, account) == 10000000000000000000
        assert read_account_nonce(tree, account) == 1
    assert read_account_reward(tree, FIRST) == 5000000
    assert read_account_reward(tree, SECOND) is None
    assert read_account_stake(tree, FIRST) is None


def test_custom_genesis_fields():
    tree = MemoryTree()
    doc = f'{{"{ID_A}": {{"balance": 10, "stake": 20, "reward": 30, "other": "x"}}}}'
    ids = load_genesis(tree, doc)
    account = bytes.fromhex(ID_A)
    assert ids == [account]
    assert read_account_balance(tree, account) == 10
    assert read_account_stake(tree, account) == 20
    assert read_account_reward(tree, account) == 30
    assert read_account_nonce(tree, account) == 1


def test_account_without_fields_still_counted():
    tree = MemoryTree()
    load_genesis(tree, f'{{"{ID_A}": {{}}, "{ID_B}": {{"balance": 5}}}}')
    assert read_accounts_len(tree) == 2
    assert read_account_balance(tree, bytes.fromhex(ID_A)) is None
    assert read_account_nonce(tree, bytes.fromhex(ID_A)) == 1


def test_accounts_len_adds_to_existing_count():
    tree = MemoryTree()
    write_accounts_len(tree, 5)
    load_genesis(tree, f'{{"{ID_A}": {{"balance": 1}}}}')
    assert read_accounts_len(tree) == 6


def test_accepts_bytes_input():
    tree = MemoryTree()
    ids = load_genesis(tree, f'{{"{ID_B}": {{"balance": 7}}}}'.encode())
    assert read_account_balance(tree, ids[0]) == 7


def test_duplicate_accounts_rejected():
    doc = f'{{"{ID_A}": {{"balance": 1}}, "{ID_A}": {{"balance": 2}}}}'
    tree = MemoryTree()
    with pytest.raises(GenesisError, match="duplicate"):
        load_genesis(tree, doc)
    assert read_accounts_len(tree) == 0


def test_max_u64_balance_accepted():
    tree = MemoryTree()
    load_genesis(tree, f'{{"{ID_A}": {{"balance": 18446744073709551615}}}}')
    assert read_account_balance(tree, bytes.fromhex(ID_A)) == 18446744073709551615