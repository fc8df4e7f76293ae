"""Loading of the initial account state of a ledger from genesis JSON."""

from __future__ import annotations

import binascii
import json

from .common import SIZE_ACCOUNT_ID
from .db import (
    MemoryTree,
    read_accounts_len,
    write_account_balance,
    write_account_nonce,
    write_account_reward,
    write_account_stake,
    write_accounts_len,
)

DEFAULT_GENESIS = """
{
  "400056ee68a7cc2695222df05ea76875bc27ec6e61e8e62317c336157019c405": {
    "balance": 10000000000000000000,
    "reward": 5000000
  },
  "696937c2c8df35dba0169de72990b80761e51dd9e2411fa1fce147f68ade830a": {
    "balance": 10000000000000000000
  },
  "f03bb6f98c4dfd31f3d448c7ec79fa3eaa92250112ada43471812f4b1ace6467": {
    "balance": 10000000000000000000
  }
}
"""

_WRITERS = {
    "balance": write_account_balance,
    "stake": write_account_stake,
    "reward": write_account_reward,
}

_MAX_U64 = (1 << 64) - 1


class GenesisError(ValueError):
    """Raised when genesis data is malformed."""


def _decode_account(key: str) -> bytes:
    try:
        raw = binascii.unhexlify(key)
    except (binascii.Error, ValueError) as exc:
        raise GenesisError(f"got an invalid account ID: {key}") from exc
    if len(raw) != SIZE_ACCOUNT_ID:
        raise GenesisError(f"got an invalid account ID: {key}")
    return raw


def _as_u64(key: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _MAX_U64:
        raise GenesisError(f"failed to cast type for key {key!r}")
    return value


def load_genesis(tree: MemoryTree, genesis: str | bytes | None = None) -> list[bytes]:
    """Write the genesis accounts into ``tree`` and return their IDs in document order.

    Each account gets its listed balance, stake and reward, a nonce of 1, and
    increments the stored accounts count.
    """
    text = DEFAULT_GENESIS if genesis is None else genesis
    try:
        # Objects are kept as key/value pair lists so duplicate keys stay visible.
        document = json.loads(text, object_pairs_hook=list)
    except (ValueError, UnicodeDecodeError) as exc:
        raise GenesisError(f"invalid genesis JSON: {exc}") from exc

    if not isinstance(document, list):
        raise GenesisError("genesis must be a JSON object")

    seen: set[bytes] = set()
    accounts: list[tuple[bytes, list[tuple[str, int]]]] = []

    for key, value in document:
        account = _decode_account(key)
        if account in seen:
            raise GenesisError(
                f"found duplicate entries for account ID {account.hex()} in genesis file"
            )
        seen.add(account)

        if not isinstance(value, list):
            raise GenesisError(f"fields of account {key} must be a JSON object")

        fields = [
            (name, _as_u64(name, field)) for name, field in value if name in _WRITERS
        ]
        accounts.append((account, fields))

    for account, fields in accounts:
        for name, amount in fields:
            _WRITERS[name](tree, account, amount)
        write_accounts_len(tree, read_accounts_len(tree) + 1)
        write_account_nonce(tree, account, 1)

    return [account for account, _ in accounts]