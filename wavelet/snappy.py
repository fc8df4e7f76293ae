"""Snappy block-format compression used for contract memory pages."""

from __future__ import annotations

_TAG_LITERAL = 0
_TAG_COPY1 = 1
_TAG_COPY2 = 2
_TAG_COPY4 = 3

_MAX_OFFSET = 65535


class SnappyError(ValueError):
    """Raised when a snappy block is corrupt."""


def _put_varint(out: bytearray, value: int) -> None:
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)


def _emit_literal(out: bytearray, literal: bytes) -> None:
    n = len(literal) - 1
    if n < 0:
        return
    if n < 60:
        out.append((n << 2) | _TAG_LITERAL)
    elif n < 1 << 8:
        out.append((60 << 2) | _TAG_LITERAL)
        out.append(n)
    elif n < 1 << 16:
        out.append((61 << 2) | _TAG_LITERAL)
        out += n.to_bytes(2, "little")
    elif n < 1 << 24:
        out.append((62 << 2) | _TAG_LITERAL)
        out += n.to_bytes(3, "little")
    else:
        out.append((63 << 2) | _TAG_LITERAL)
        out += n.to_bytes(4, "little")
    out += literal


def _emit_copy2(out: bytearray, offset: int, length: int) -> None:
    out.append(((length - 1) << 2) | _TAG_COPY2)
    out += offset.to_bytes(2, "little")


def _emit_copy(out: bytearray, offset: int, length: int) -> None:
    while length >= 68:
        _emit_copy2(out, offset, 64)
        length -= 64
    if length > 64:
        _emit_copy2(out, offset, 60)
        length -= 60
    if length >= 12 or offset >= 2048:
        _emit_copy2(out, offset, length)
    else:
        out.append(((offset >> 8) << 5) | ((length - 4) << 2) | _TAG_COPY1)
        out.append(offset & 0xFF)


def encode(data: bytes) -> bytes:
    """Compress ``data`` into a snappy block."""
    data = bytes(data)
    n = len(data)
    out = bytearray()
    _put_varint(out, n)

    table: dict[bytes, int] = {}
    literal_start = 0
    i = 0
    while i + 4 <= n:
        window = data[i : i + 4]
        candidate = table.get(window)
        table[window] = i
        if candidate is None or i - candidate > _MAX_OFFSET:
            i += 1
            continue

        length = 4
        while i + length < n and data[candidate + length] == data[i + length]:
            length += 1

        _emit_literal(out, data[literal_start:i])
        _emit_copy(out, i - candidate, length)
        i += length
        literal_start = i

    _emit_literal(out, data[literal_start:])
    return bytes(out)


def _read_varint(data: bytes) -> tuple[int, int]:
    value = 0
    for pos, byte in enumerate(data[:5]):
        value |= (byte & 0x7F) << (7 * pos)
        if byte < 0x80:
            if value >= 1 << 32:
                raise SnappyError("snappy: decoded length too large")
            return value, pos + 1
    raise SnappyError("snappy: corrupt input (bad length header)")


def decode(data: bytes) -> bytes:
    """Decompress a snappy block, raising SnappyError if it is corrupt."""
    data = bytes(data)
    expected, pos = _read_varint(data)
    out = bytearray()
    end = len(data)

    while pos < end:
        tag = data[pos]
        kind = tag & 0x03

        if kind == _TAG_LITERAL:
            n = tag >> 2
            pos += 1
            if n >= 60:
                extra = n - 59
                if pos + extra > end:
                    raise SnappyError("snappy: corrupt input (truncated literal length)")
                n = int.from_bytes(data[pos : pos + extra], "little")
                pos += extra
            n += 1
            if pos + n > end:
                raise SnappyError("snappy: corrupt input (truncated literal)")
            out += data[pos : pos + n]
            pos += n
            continue

        if kind == _TAG_COPY1:
            if pos + 2 > end:
                raise SnappyError("snappy: corrupt input (truncated copy)")
            length = 4 + ((tag >> 2) & 0x07)
            offset = ((tag >> 5) << 8) | data[pos + 1]
            pos += 2
        elif kind == _TAG_COPY2:
            if pos + 3 > end:
                raise SnappyError("snappy: corrupt input (truncated copy)")
            length = 1 + (tag >> 2)
            offset = int.from_bytes(data[pos + 1 : pos + 3], "little")
            pos += 3
        else:
            if pos + 5 > end:
                raise SnappyError("snappy: corrupt input (truncated copy)")
            length = 1 + (tag >> 2)
            offset = int.from_bytes(data[pos + 1 : pos + 5], "little")
            pos += 5

        if offset == 0 or offset > len(out):
            raise SnappyError("snappy: corrupt input (bad copy offset)")

        start = len(out) - offset
        if offset >= length:
            out += out[start : start + length]
        else:
            for k in range(length):
                out.append(out[start + k])

        if len(out) > expected:
            raise SnappyError("snappy: corrupt input (output overrun)")

    if len(out) != expected:
        raise SnappyError("snappy: corrupt input (length mismatch)")
    return bytes(out)