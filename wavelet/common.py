"""Identifier sizes, zero values and helpers for fixed-size ledger identifiers."""

from __future__ import annotations

SIZE_TRANSACTION_ID = 32
SIZE_ROUND_ID = 32
SIZE_MERKLE_NODE_ID = 16
SIZE_ACCOUNT_ID = 32
SIZE_SIGNATURE = 64

ZERO_TRANSACTION_ID = bytes(SIZE_TRANSACTION_ID)
ZERO_ROUND_ID = bytes(SIZE_ROUND_ID)
ZERO_MERKLE_NODE_ID = bytes(SIZE_MERKLE_NODE_ID)
ZERO_ACCOUNT_ID = bytes(SIZE_ACCOUNT_ID)
ZERO_SIGNATURE = bytes(SIZE_SIGNATURE)


def _fixed(data: bytes | bytearray | memoryview | str, size: int, what: str) -> bytes:
    if isinstance(data, str):
        try:
            raw = bytes.fromhex(data)
        except ValueError as exc:
            raise ValueError(f"{what} is not valid hex: {data!r}") from exc
    else:
        raw = bytes(data)
    if len(raw) != size:
        raise ValueError(f"{what} must be {size} bytes long, got {len(raw)}")
    return raw


def account_id(data: bytes | bytearray | memoryview | str) -> bytes:
    """Return a 32-byte account ID from raw bytes or a hex string."""
    return _fixed(data, SIZE_ACCOUNT_ID, "account ID")


def transaction_id(data: bytes | bytearray | memoryview | str) -> bytes:
    """Return a 32-byte transaction ID from raw bytes or a hex string."""
    return _fixed(data, SIZE_TRANSACTION_ID, "transaction ID")