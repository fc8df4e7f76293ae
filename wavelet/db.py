"""Ledger state layout: account fields, contract pages, rounds and reward withdrawals."""

from __future__ import annotations

import bisect
import struct
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from .common import SIZE_ACCOUNT_ID, account_id
from .snappy import SnappyError, decode, encode

KEY_ACCOUNTS = b"\x01"
KEY_ACCOUNTS_LEN = b"\x02"
KEY_ACCOUNT_NONCE = b"\x03"
KEY_ACCOUNT_BALANCE = b"\x04"
KEY_ACCOUNT_STAKE = b"\x05"
KEY_ACCOUNT_REWARD = b"\x06"

KEY_ACCOUNT_CONTRACT_CODE = b"\x07"
KEY_ACCOUNT_CONTRACT_NUM_PAGES = b"\x08"
KEY_ACCOUNT_CONTRACT_PAGES = b"\x09"

KEY_ROUNDS = b"\x10"
KEY_ROUND_LATEST_IX = b"\x11"
KEY_ROUND_OLDEST_IX = b"\x12"
KEY_ROUND_STORED_COUNT = b"\x13"

KEY_REWARD_WITHDRAWALS = b"\x14"

T = TypeVar("T")


class KV(Protocol):
    def get(self, key: bytes) -> bytes | None: ...

    def put(self, key: bytes, value: bytes) -> Any: ...


class MemoryTree:
    """An in-memory ordered key/value tree."""

    def __init__(self) -> None:
        self._data: dict[bytes, bytes] = {}
        self._keys: list[bytes] = []

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def lookup(self, key: bytes) -> bytes | None:
        """Return the value under ``key``, or None if absent."""
        return self._data.get(bytes(key))

    def insert(self, key: bytes, value: bytes) -> None:
        key = bytes(key)
        if key not in self._data:
            bisect.insort(self._keys, key)
        self._data[key] = bytes(value)

    def iterate_prefix(self, prefix: bytes) -> Iterator[tuple[bytes, bytes]]:
        """Yield ``(key, value)`` pairs whose key starts with ``prefix``, in key order."""
        prefix = bytes(prefix)
        start = bisect.bisect_left(self._keys, prefix)
        for key in self._keys[start:]:
            if not key.startswith(prefix):
                break
            yield key, self._data[key]


def _u64(value: int, fmt: str) -> bytes:
    try:
        return struct.pack(fmt, value)
    except struct.error as exc:
        raise ValueError(f"value {value!r} does not fit in an unsigned 64-bit integer") from exc


@dataclass(frozen=True)
class RewardWithdrawalRequest:
    account: bytes
    amount: int
    round: int

    def key(self) -> bytes:
        return KEY_REWARD_WITHDRAWALS + _u64(self.round, ">Q") + account_id(self.account)

    def marshal(self) -> bytes:
        return account_id(self.account) + _u64(self.amount, ">Q") + _u64(self.round, ">Q")

    @classmethod
    def unmarshal(cls, data: bytes) -> "RewardWithdrawalRequest":
        data = bytes(data)
        if len(data) < SIZE_ACCOUNT_ID:
            raise ValueError("failed to decode reward withdrawal account ID")
        account = data[:SIZE_ACCOUNT_ID]
        rest = data[SIZE_ACCOUNT_ID:]
        if len(rest) < 8:
            raise ValueError("failed to decode reward withdrawal amount")
        (amount,) = struct.unpack_from(">Q", rest)
        if len(rest) < 16:
            raise ValueError("failed to decode reward withdrawal round")
        (round_,) = struct.unpack_from(">Q", rest, 8)
        return cls(account=account, amount=amount, round=round_)


def _account_key(field: bytes, account: bytes) -> bytes:
    return KEY_ACCOUNTS + field + account_id(account)


def _read_under_accounts(tree: MemoryTree, account: bytes, field: bytes) -> bytes | None:
    return tree.lookup(_account_key(field, account))


def _write_under_accounts(tree: MemoryTree, account: bytes, field: bytes, value: bytes) -> None:
    tree.insert(_account_key(field, account), value)


def _read_u64(tree: MemoryTree, account: bytes, field: bytes) -> int | None:
    buf = _read_under_accounts(tree, account, field)
    if not buf:
        return None
    return struct.unpack_from("<Q", buf)[0]


def _write_u64(tree: MemoryTree, account: bytes, field: bytes, value: int) -> None:
    _write_under_accounts(tree, account, field, _u64(value, "<Q"))


def read_account_nonce(tree: MemoryTree, account: bytes) -> int | None:
    return _read_u64(tree, account, KEY_ACCOUNT_NONCE)


def write_account_nonce(tree: MemoryTree, account: bytes, nonce: int) -> None:
    _write_u64(tree, account, KEY_ACCOUNT_NONCE, nonce)


def read_account_balance(tree: MemoryTree, account: bytes) -> int | None:
    return _read_u64(tree, account, KEY_ACCOUNT_BALANCE)


def write_account_balance(tree: MemoryTree, account: bytes, balance: int) -> None:
    _write_u64(tree, account, KEY_ACCOUNT_BALANCE, balance)


def read_account_stake(tree: MemoryTree, account: bytes) -> int | None:
    return _read_u64(tree, account, KEY_ACCOUNT_STAKE)


def write_account_stake(tree: MemoryTree, account: bytes, stake: int) -> None:
    _write_u64(tree, account, KEY_ACCOUNT_STAKE, stake)


def read_account_reward(tree: MemoryTree, account: bytes) -> int | None:
    return _read_u64(tree, account, KEY_ACCOUNT_REWARD)


def write_account_reward(tree: MemoryTree, account: bytes, reward: int) -> None:
    _write_u64(tree, account, KEY_ACCOUNT_REWARD, reward)


def read_account_contract_code(tree: MemoryTree, account: bytes) -> bytes | None:
    buf = _read_under_accounts(tree, account, KEY_ACCOUNT_CONTRACT_CODE)
    return buf if buf else None


def write_account_contract_code(tree: MemoryTree, account: bytes, code: bytes) -> None:
    _write_under_accounts(tree, account, KEY_ACCOUNT_CONTRACT_CODE, bytes(code))


def read_account_contract_num_pages(tree: MemoryTree, account: bytes) -> int | None:
    return _read_u64(tree, account, KEY_ACCOUNT_CONTRACT_NUM_PAGES)


def write_account_contract_num_pages(tree: MemoryTree, account: bytes, num_pages: int) -> None:
    _write_u64(tree, account, KEY_ACCOUNT_CONTRACT_NUM_PAGES, num_pages)


def _page_field(index: int) -> bytes:
    return KEY_ACCOUNT_CONTRACT_PAGES + _u64(index, "<Q")


def read_account_contract_page(tree: MemoryTree, account: bytes, index: int) -> bytes | None:
    """Return the decompressed page, or None if absent or corrupt."""
    buf = _read_under_accounts(tree, account, _page_field(index))
    if not buf:
        return None
    try:
        return decode(buf)
    except SnappyError:
        return None


def write_account_contract_page(tree: MemoryTree, account: bytes, index: int, page: bytes) -> None:
    _write_under_accounts(tree, account, _page_field(index), encode(page))


def read_accounts_len(tree: MemoryTree) -> int:
    buf = tree.lookup(KEY_ACCOUNTS_LEN)
    if buf is None:
        return 0
    return struct.unpack_from(">Q", buf)[0]


def write_accounts_len(tree: MemoryTree, size: int) -> None:
    tree.insert(KEY_ACCOUNTS_LEN, _u64(size, ">Q"))


def _round_key(index: int) -> bytes:
    return KEY_ROUNDS + str(index).encode("ascii")


def store_round(
    kv: KV, round_bytes: bytes, current_ix: int, oldest_ix: int, stored_count: int
) -> None:
    """Persist a marshalled round together with the round ring indices."""
    if not 0 <= stored_count <= 0xFF:
        raise ValueError(f"stored rounds count {stored_count} does not fit in a byte")
    try:
        oldest = struct.pack(">I", oldest_ix)
        current = struct.pack(">I", current_ix)
    except struct.error as exc:
        raise ValueError("round index does not fit in an unsigned 32-bit integer") from exc

    kv.put(KEY_ROUND_STORED_COUNT, bytes([stored_count]))
    kv.put(KEY_ROUND_OLDEST_IX, oldest)
    kv.put(KEY_ROUND_LATEST_IX, current)
    kv.put(_round_key(current_ix), bytes(round_bytes))


def _get(kv: KV, key: bytes, what: str) -> bytes:
    value = kv.get(key)
    if value is None:
        raise KeyError(f"error loading {what}")
    return bytes(value)


def load_rounds(kv: KV, unmarshal: Callable[[bytes], T]) -> tuple[list[T], int, int]:
    """Load stored rounds; return ``(rounds, latest_ix, oldest_ix)``."""
    latest = _get(kv, KEY_ROUND_LATEST_IX, "latest round index")
    (latest_ix,) = struct.unpack_from(">I", latest)

    oldest = _get(kv, KEY_ROUND_OLDEST_IX, "oldest round index")
    (oldest_ix,) = struct.unpack_from(">I", oldest)

    stored = _get(kv, KEY_ROUND_STORED_COUNT, "stored rounds count")
    if not stored:
        raise ValueError("stored rounds count is empty")
    stored_count = stored[0]

    rounds = [
        unmarshal(_get(kv, _round_key(i), f"round - {i}")) for i in range(stored_count)
    ]
    return rounds, latest_ix, oldest_ix


def get_reward_withdrawal_requests(
    tree: MemoryTree, round_limit: int
) -> list[RewardWithdrawalRequest]:
    """Return withdrawal requests made at or before ``round_limit``, ordered by round."""
    requests = []
    for _, value in tree.iterate_prefix(KEY_REWARD_WITHDRAWALS):
        try:
            request = RewardWithdrawalRequest.unmarshal(value)
        except ValueError:
            continue
        if request.round <= round_limit:
            requests.append(request)
    return requests


def store_reward_withdrawal_request(tree: MemoryTree, request: RewardWithdrawalRequest) -> None:
    tree.insert(request.key(), request.marshal())