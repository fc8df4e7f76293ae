"""Parsing of shell command lines and encoding of the transaction payloads they send."""

from __future__ import annotations

import re
import struct
from collections.abc import Iterable
from typing import NamedTuple

from .common import SIZE_ACCOUNT_ID

DEFAULT_CONTRACT_FUNC = "on_money_received"
DEFAULT_SPAWN_GAS_FEE = 100_000_000

_MAX_U64 = (1 << 64) - 1

_EXACT = {
    "l": "status",
    "status": "status",
    "": "help",
    "help": "help",
}

_PREFIXES = (
    ("p ", "pay"),
    ("pay ", "pay"),
    ("c ", "call"),
    ("call ", "call"),
    ("f ", "find"),
    ("find ", "find"),
    ("s ", "spawn"),
    ("spawn ", "spawn"),
    ("ps ", "place-stake"),
    ("place-stake ", "place-stake"),
    ("ws ", "withdraw-stake"),
    ("withdraw-stake ", "withdraw-stake"),
    ("wr ", "withdraw-reward"),
    ("withdraw-reward ", "withdraw-reward"),
)

_UINT = re.compile(r"\s*\+?([0-9]+)")

_INT_WIDTHS = {"1": "<B", "2": "<H", "4": "<I", "8": "<Q"}


class PayloadError(ValueError):
    """Raised when a command or its arguments cannot be turned into a payload."""


class Command(NamedTuple):
    name: str
    args: list[str]


def split_command(line: str) -> Command:
    """Split a shell line into its canonical command name and its arguments.

    Short aliases map to their long names; an empty line means ``help``.
    """
    name = _EXACT.get(line)
    if name is not None:
        return Command(name, [])

    for prefix, name in _PREFIXES:
        if line.startswith(prefix):
            rest = line[len(prefix) :].strip()
            return Command(name, rest.split(" ") if rest else [])

    raise PayloadError(f"unrecognised command :'{line}'")


def _recipient(recipient: bytes | str) -> bytes:
    if isinstance(recipient, str):
        try:
            raw = bytes.fromhex(recipient)
        except ValueError as exc:
            raise PayloadError(f"the recipient you specified is invalid: {recipient!r}") from exc
    else:
        raw = bytes(recipient)
    if len(raw) != SIZE_ACCOUNT_ID:
        raise PayloadError(f"you have specified an invalid account ID (length {len(raw)})")
    return raw


def _u64(value: int, what: str) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _MAX_U64:
        raise PayloadError(f"{what} must be an unsigned 64-bit integer, got {value!r}")
    return struct.pack("<Q", value)


def _u32_len(data: bytes, what: str) -> bytes:
    if len(data) > 0xFFFFFFFF:
        raise PayloadError(f"{what} is too long")
    return struct.pack("<I", len(data))


def _parse_uint(text: str) -> int:
    match = _UINT.match(text)
    if match is None:
        raise PayloadError(f"Got an error parsing integer: {text}")
    value = int(match.group(1))
    if value > _MAX_U64:
        raise PayloadError(f"Got an error parsing integer: {text}")
    return value


def encode_call_params(args: Iterable[str]) -> bytes:
    """Encode smart contract call parameters.

    Each argument starts with a type letter: ``S`` a NUL-terminated string,
    ``B`` length-prefixed bytes, ``1``/``2``/``4``/``8`` a little-endian
    unsigned integer of that many bytes (truncated to fit), ``H`` hex bytes.
    """
    params = bytearray()
    for arg in args:
        if not arg:
            raise PayloadError("Invalid argument specified: empty argument")
        kind, body = arg[0], arg[1:]
        if kind == "S":
            params += body.encode("utf-8") + b"\x00"
        elif kind == "B":
            raw = body.encode("utf-8")
            params += _u32_len(raw, "byte parameter") + raw
        elif kind in _INT_WIDTHS:
            fmt = _INT_WIDTHS[kind]
            mask = (1 << (8 * struct.calcsize(fmt))) - 1
            params += struct.pack(fmt, _parse_uint(body) & mask)
        elif kind == "H":
            try:
                params += bytes.fromhex(body)
            except ValueError as exc:
                raise PayloadError(f"Cannot decode hex: {body}") from exc
        else:
            raise PayloadError(f"Invalid argument specified: {arg}")
    return bytes(params)


def build_transfer_payload(
    recipient: bytes | str,
    amount: int,
    gas_limit: int | None = None,
    func_name: str | None = None,
    params: bytes | None = None,
) -> bytes:
    """Build a transfer payload: recipient and amount, then optionally a contract call.

    A call adds the gas limit and the length-prefixed function name; when
    ``params`` is given it follows, also length-prefixed.
    """
    payload = bytearray(_recipient(recipient))
    payload += _u64(amount, "amount")

    if gas_limit is None:
        if func_name is not None or params is not None:
            raise PayloadError("a contract call needs a gas limit")
        return bytes(payload)

    if func_name is None:
        raise PayloadError("a contract call needs a function name")

    payload += _u64(gas_limit, "gas limit")
    name = func_name.encode("utf-8")
    payload += _u32_len(name, "function name") + name

    if params is not None:
        raw = bytes(params)
        payload += _u32_len(raw, "function parameters") + raw

    return bytes(payload)


def build_pay_payload(
    recipient: bytes | str, amount: int, balance: int, is_contract: bool
) -> bytes:
    """Build a payment payload, checking that ``balance`` covers ``amount``.

    Paying a contract invokes its default function with the whole balance as gas limit.
    """
    if balance < amount:
        raise PayloadError(
            f"You do not have enough PERLs to send (balance {balance}, amount {amount})."
        )
    if is_contract:
        return build_transfer_payload(recipient, amount, balance, DEFAULT_CONTRACT_FUNC)
    return build_transfer_payload(recipient, amount)


def build_spawn_payload(code: bytes, gas_fee: int = DEFAULT_SPAWN_GAS_FEE) -> bytes:
    """Build a contract creation payload: gas fee, an empty parameter block, then the code."""
    return _u64(gas_fee, "gas fee") + struct.pack("<I", 0) + bytes(code)


def build_stake_payload(op: int, amount: int) -> bytes:
    """Build a stake payload: the operation byte followed by the amount."""
    if isinstance(op, bool) or not isinstance(op, int) or not 0 <= op <= 0xFF:
        raise PayloadError(f"stake operation {op!r} does not fit in a byte")
    return bytes([op]) + _u64(amount, "amount")