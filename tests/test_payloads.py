import struct

import pytest

from wavelet.payloads import (
    DEFAULT_CONTRACT_FUNC,
    PayloadError,
    build_pay_payload,
    build_spawn_payload,
    build_stake_payload,
    build_transfer_payload,
    encode_call_params,
    split_command,
)

RECIPIENT = bytes(range(32))


def test_split_command_aliases():
    assert split_command("p abc 5") == ("pay", ["abc", "5"])
    assert split_command("pay abc 5") == ("pay", ["abc", "5"])
    assert split_command("ps 10") == ("place-stake", ["10"])
    assert split_command("withdraw-reward 7") == ("withdraw-reward", ["7"])
    assert split_command("spawn x.wasm") == ("spawn", ["x.wasm"])


def test_split_command_exact_and_help():
    assert split_command("l") == ("status", [])
    assert split_command("status") == ("status", [])
    assert split_command("") == ("help", [])
    assert split_command("help") == ("help", [])


def test_split_command_trims_and_empty_args():
    assert split_command("f   ") == ("find", [])
    assert split_command("c  a b ") == ("call", ["a", "b"])


def test_split_command_unrecognised():
    with pytest.raises(PayloadError):
        split_command("bogus")
    with pytest.raises(PayloadError):
        split_command("p")


def test_encode_string_and_bytes():
    out = encode_call_params(["Shello"])
    assert out.endswith(b"\x00")
    assert out[:-1] == b"hello"

    out = encode_call_params(["Babc"])
    assert struct.unpack_from("<I", out)[0] == len(b"abc")
    assert out[4:] == b"abc"


def test_encode_integers():
    assert encode_call_params(["18"]) == bytes([8])
    out = encode_call_params(["2513"])
    assert len(out) == 2
    assert struct.unpack("<H", out)[0] == 513
    out = encode_call_params(["4" + "70000"])
    assert struct.unpack("<I", out)[0] == 70000
    out = encode_call_params(["8" + "10000000000000000000"])
    assert struct.unpack("<Q", out)[0] == 10000000000000000000


def test_encode_integer_truncates_to_width():
    out = encode_call_params(["1256"])
    assert len(out) == 1
    assert out[0] == 0


def test_encode_hex_and_concatenation():
    out = encode_call_params(["Hdeadbeef", "Sx"])
    assert out.startswith(bytes.fromhex("deadbeef"))
    assert out[4:] == b"x\x00"


def test_encode_errors():
    with pytest.raises(PayloadError):
        encode_call_params(["Hzz"])
    with pytest.raises(PayloadError):
        encode_call_params(["Xfoo"])
    with pytest.raises(PayloadError):
        encode_call_params([""])
    with pytest.raises(PayloadError):
        encode_call_params(["8abc"])


def test_transfer_plain():
    out = build_transfer_payload(RECIPIENT, 1234)
    assert out[:32] == RECIPIENT
    assert struct.unpack("<Q", out[32:])[0] == 1234
    assert len(out) == 40


def test_transfer_accepts_hex_recipient():
    assert build_transfer_payload(RECIPIENT.hex(), 5) == build_transfer_payload(RECIPIENT, 5)


def test_transfer_call_layout():
    params = encode_call_params(["Sabc"])
    out = build_transfer_payload(RECIPIENT, 7, 500, "fn", params)
    assert out[:32] == RECIPIENT
    amount, gas = struct.unpack_from("<QQ", out, 32)
    assert (amount, gas) == (7, 500)
    (name_len,) = struct.unpack_from("<I", out, 48)
    assert out[52 : 52 + name_len] == b"fn"
    rest = out[52 + name_len :]
    assert struct.unpack_from("<I", rest)[0] == len(params)
    assert rest[4:] == params


def test_transfer_errors():
    with pytest.raises(PayloadError):
        build_transfer_payload(RECIPIENT[:31], 1)
    with pytest.raises(PayloadError):
        build_transfer_payload("not-hex", 1)
    with pytest.raises(PayloadError):
        build_transfer_payload(RECIPIENT, -1)
    with pytest.raises(PayloadError):
        build_transfer_payload(RECIPIENT, 1, func_name="fn")
    with pytest.raises(PayloadError):
        build_transfer_payload(RECIPIENT, 1, 10)


def test_pay_non_contract():
    out = build_pay_payload(RECIPIENT, 10, 100, False)
    assert out == build_transfer_payload(RECIPIENT, 10)


def test_pay_contract_uses_balance_as_gas():
    out = build_pay_payload(RECIPIENT, 10, 100, True)
    amount, gas = struct.unpack_from("<QQ", out, 32)
    assert (amount, gas) == (10, 100)
    (name_len,) = struct.unpack_from("<I", out, 48)
    assert out[52:] == DEFAULT_CONTRACT_FUNC.encode()
    assert name_len == len(DEFAULT_CONTRACT_FUNC)


def test_pay_insufficient_balance():
    with pytest.raises(PayloadError):
        build_pay_payload(RECIPIENT, 101, 100, False)


def test_spawn_payload():
    code = b"\x00asm\x01\x00\x00\x00"
    out = build_spawn_payload(code)
    assert struct.unpack_from("<Q", out)[0] == 100000000
    assert out[8:12] == bytes(4)
    assert out[12:] == code

    custom = build_spawn_payload(code, 42)
    assert struct.unpack_from("<Q", custom)[0] == 42
    assert custom[8:] == out[8:]


def test_stake_payload():
    out = build_stake_payload(2, 5000)
    assert out[0] == 2
    assert struct.unpack("<Q", out[1:])[0] == 5000
    with pytest.raises(PayloadError):
        build_stake_payload(256, 1)
    with pytest.raises(PayloadError):
        build_stake_payload(0, -5)