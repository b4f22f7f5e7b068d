import pytest

from lsmkv.encode import (
    decode32,
    decode64,
    decode_with_prelen,
    encode32,
    encode_with_prelen,
)
from lsmkv.errors import FormatError


def test_encode32_is_little_endian():
    assert encode32(1) == b"\x01\x00\x00\x00"


def test_encode32_negative_is_twos_complement():
    assert encode32(-1) == b"\xff" * 4


@pytest.mark.parametrize("value", [0, 1, -1, 123456, -(2**31), 2**31 - 1])
def test_encode32_round_trip(value):
    assert decode32(encode32(value)) == value


def test_decode32_at_offset():
    data = b"xx" + encode32(77) + b"yy"
    assert decode32(data, 2) == 77


def test_encode32_rejects_out_of_range():
    with pytest.raises(ValueError):
        encode32(2**31)


def test_decode32_short_data_raises():
    with pytest.raises(FormatError):
        decode32(b"\x01\x02\x03")


def test_decode64_round_trip_via_struct_layout():
    data = (2**40 + 5).to_bytes(8, "little", signed=True)
    assert decode64(b"a" + data, 1) == 2**40 + 5


def test_decode64_short_data_raises():
    with pytest.raises(FormatError):
        decode64(b"\x00" * 7)


def test_prelen_round_trip_reports_consumed():
    encoded = encode_with_prelen(b"hello") + b"rest"
    value, consumed = decode_with_prelen(encoded)
    assert value == b"hello"
    assert encoded[consumed:] == b"rest"


def test_prelen_layout():
    assert encode_with_prelen(b"ab") == encode32(2) + b"ab"


def test_prelen_empty_round_trip():
    assert decode_with_prelen(encode_with_prelen(b"")) == (b"", 4)


def test_prelen_truncated_raises():
    with pytest.raises(FormatError):
        decode_with_prelen(encode32(10) + b"abc")