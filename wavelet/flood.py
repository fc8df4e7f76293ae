"""Batch transaction payloads used to flood a node with stake transactions."""

from __future__ import annotations

import struct
from collections.abc import Iterable

DEFAULT_BATCH_SIZE = 40


def encode_batch(entries: Iterable[tuple[int, bytes]]) -> bytes:
    """Encode ``(tag, payload)`` pairs as a batch payload.

    The batch is a count byte followed, for each entry, by the tag byte, the
    payload length as a big-endian uint32 and the payload.
    """
    body = bytearray()
    count = 0
    for tag, payload in entries:
        if not 0 <= tag <= 0xFF:
            raise ValueError(f"tag {tag} does not fit in a byte")
        payload = bytes(payload)
        if len(payload) > 0xFFFFFFFF:
            raise ValueError("payload too large for a batch entry")
        body.append(tag)
        body += struct.pack(">I", len(payload))
        body += payload
        count += 1
    if count > 0xFF:
        raise ValueError(f"a batch holds at most 255 entries, got {count}")
    return bytes([count]) + bytes(body)


def build_stake_batch(tag: int, op: int, worker: int, count: int = DEFAULT_BATCH_SIZE) -> bytes:
    """Build a batch of ``count`` identical stake entries placing ``worker`` units."""
    if not 0 <= op <= 0xFF:
        raise ValueError(f"stake operation {op} does not fit in a byte")
    try:
        base = bytes([op]) + struct.pack("<Q", worker)
    except struct.error as exc:
        raise ValueError("stake amount does not fit in an unsigned 64-bit integer") from exc
    return encode_batch((tag, base) for _ in range(count))