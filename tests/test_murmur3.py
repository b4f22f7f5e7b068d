import pytest

from lsmkv.murmur3 import murmur3_hash


def test_empty_input_with_zero_seed_is_zero():
    assert murmur3_hash(0, b"") == 0


def test_empty_input_with_seed_one_matches_reference():
    assert murmur3_hash(1, b"") == 0x514E28B7


@pytest.mark.parametrize(
    "data", [b"a", b"ab", b"abc", b"abcd", b"abcde", b"\xff\x80\x01", b"\x90" * 9]
)
def test_result_is_deterministic_and_32_bit(data):
    first = murmur3_hash(0xE2C6928A, data)
    assert first == murmur3_hash(0xE2C6928A, data)
    assert 0 <= first <= 0xFFFFFFFF


def test_bytearray_and_bytes_hash_the_same():
    data = b"some key \xfe\x01"
    assert murmur3_hash(7, bytearray(data)) == murmur3_hash(7, data)


def test_seed_is_truncated_to_32_bits():
    assert murmur3_hash(1 + (1 << 32), b"key") == murmur3_hash(1, b"key")


def test_seeds_lead_to_different_hashes():
    h1 = murmur3_hash(0xE2C6928A, b"hello")
    h2 = murmur3_hash(0xBAEA8A8F, b"hello")
    assert 0 <= h1 <= 0xFFFFFFFF
    assert h1 != h2