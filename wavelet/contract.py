"""Smart contract state helpers: memory page snapshots, call payloads and host hash functions."""

from __future__ import annotations

import hashlib
import struct
from collections.abc import Callable
from typing import Any

from .common import SIZE_ACCOUNT_ID, SIZE_TRANSACTION_ID, ZERO_ACCOUNT_ID, ZERO_TRANSACTION_ID
from .db import (
    MemoryTree,
    read_account_contract_num_pages,
    read_account_contract_page,
    write_account_contract_num_pages,
    write_account_contract_page,
)

PAGE_SIZE = 65536

_EMPTY_PAGE = bytes(PAGE_SIZE)


class ContractError(Exception):
    """Raised when a smart contract cannot be run or a host function is unknown."""


NOT_SMART_CONTRACT = "contract: specified account ID is not a smart contract"
FUNCTION_NOT_FOUND = "contract: smart contract func not found"


def load_contract_memory_snapshot(tree: MemoryTree, account: bytes) -> bytes | None:
    """Rebuild a contract's linear memory from its stored pages.

    Returns None when the account has no stored memory.
    """
    num_pages = read_account_contract_num_pages(tree, account)
    if num_pages is None:
        return None

    memory = bytearray(PAGE_SIZE * num_pages)
    for index in range(num_pages):
        page = read_account_contract_page(tree, account, index)
        if page:
            chunk = page[:PAGE_SIZE]
            start = index * PAGE_SIZE
            memory[start : start + len(chunk)] = chunk
    return bytes(memory)


def save_contract_memory_snapshot(tree: MemoryTree, account: bytes, memory: bytes) -> None:
    """Store a contract's memory page by page, writing only pages that changed.

    A page that is entirely zero is stored as an empty page.
    """
    memory = bytes(memory)
    num_pages = len(memory) // PAGE_SIZE
    write_account_contract_num_pages(tree, account, num_pages)

    for index in range(num_pages):
        chunk = memory[index * PAGE_SIZE : (index + 1) * PAGE_SIZE]
        old = read_account_contract_page(tree, account, index)

        if old:
            identical = chunk == old
        else:
            identical = chunk == _EMPTY_PAGE

        if identical:
            continue

        if chunk == _EMPTY_PAGE:
            write_account_contract_page(tree, account, index, b"")
        else:
            write_account_contract_page(tree, account, index, chunk)


def _fixed_field(value: Any, size: int, default: bytes) -> bytes:
    raw = bytes(value) if value is not None else default
    if len(raw) != size:
        raise ValueError(f"expected a {size}-byte identifier, got {len(raw)} bytes")
    return raw


def build_contract_payload(round: Any, tx: Any, amount: int, params: bytes) -> bytes:
    """Build the payload a contract reads: round index and ID, transaction ID and creator,
    amount, then the call parameters.

    ``round`` needs ``index`` and ``id``; ``tx`` needs ``id`` and ``creator``. Either may be None.
    """
    try:
        amount_buf = struct.pack("<Q", amount)
        index_buf = struct.pack("<Q", round.index if round is not None else 0)
    except struct.error as exc:
        raise ValueError("value does not fit in an unsigned 64-bit integer") from exc

    parts = [index_buf]
    if round is not None:
        parts.append(_fixed_field(round.id, SIZE_ACCOUNT_ID, ZERO_ACCOUNT_ID))
    else:
        parts.append(ZERO_ACCOUNT_ID)

    if tx is not None:
        parts.append(_fixed_field(tx.id, SIZE_TRANSACTION_ID, ZERO_TRANSACTION_ID))
        parts.append(_fixed_field(tx.creator, SIZE_ACCOUNT_ID, ZERO_ACCOUNT_ID))
    else:
        parts.append(ZERO_TRANSACTION_ID)
        parts.append(ZERO_ACCOUNT_ID)

    parts.append(amount_buf)
    parts.append(bytes(params))
    return b"".join(parts)


_HASHES: dict[str, Callable[[bytes], bytes]] = {
    "blake2b_256": lambda data: hashlib.blake2b(data, digest_size=32).digest(),
    "blake2b_512": lambda data: hashlib.blake2b(data, digest_size=64).digest(),
    "sha256": lambda data: hashlib.sha256(data).digest(),
    "sha512": lambda data: hashlib.sha512(data).digest(),
}


def host_hash(name: str, data: bytes) -> bytes:
    """Compute the digest a contract host hash import produces.

    ``name`` is one of blake2b_256, blake2b_512, sha256 or sha512, optionally
    prefixed with ``_hash_`` as the import field is named.
    """
    key = name[len("_hash_") :] if name.startswith("_hash_") else name
    try:
        func = _HASHES[key]
    except KeyError:
        raise ContractError(f"unknown hash function: {name!r}") from None
    return func(bytes(data))