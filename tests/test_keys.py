from functools import cmp_to_key

import pytest

from lsmkv.errors import FormatError, NotFoundError
from lsmkv.keys import (
    MemKey,
    OpType,
    cmp_inner_key,
    cmp_key_and_user_key,
    cmp_user_key_of_inner_key,
    decode_kv_pair,
    easy_cmp,
    easy_save_value,
    encode_kv_pair,
    inner_key_op_type,
    inner_key_seq,
    inner_key_to_user_key,
    new_min_inner_key,
    save_result_if_user_key_match,
)


def test_to_key_layout():
    key = MemKey(b"ab", 1, OpType.PUT).to_key()
    assert key == b"ab" + b"\x01" + b"\x00" * 7 + b"\x00"


def test_to_key_delete_trailer():
    assert MemKey(b"k", 0, OpType.DELETE).to_key()[-1] == OpType.DELETE


@pytest.mark.parametrize(
    "memkey",
    [MemKey(b"", 0), MemKey(b"user", 42, OpType.DELETE), MemKey(b"\xff\x00", 2**62)],
)
def test_from_key_round_trip(memkey):
    assert MemKey.from_key(memkey.to_key()) == memkey


def test_str_user_key_is_encoded():
    assert MemKey("abc", 3).user_key == b"abc"


def test_size_matches_encoded_length():
    memkey = MemKey(b"hello", 9)
    assert memkey.size() == len(memkey.to_key())


def test_from_key_too_short():
    with pytest.raises(FormatError):
        MemKey.from_key(b"short")


def test_ordering():
    keys = [
        MemKey(b"b", 1),
        MemKey(b"a", 1),
        MemKey(b"a", 7),
        MemKey(b"a", 7, OpType.DELETE),
    ]
    assert sorted(keys) == [
        MemKey(b"a", 7, OpType.DELETE),
        MemKey(b"a", 7),
        MemKey(b"a", 1),
        MemKey(b"b", 1),
    ]


def test_cmp_inner_key_agrees_with_memkey_order():
    keys = [
        MemKey(b"c", 2),
        MemKey(b"a", 1),
        MemKey(b"a", 9, OpType.DELETE),
        MemKey(b"a", 9),
        MemKey(b"b", 5),
    ]
    encoded = sorted((k.to_key() for k in keys), key=cmp_to_key(cmp_inner_key))
    assert [MemKey.from_key(k) for k in encoded] == sorted(keys)


def test_cmp_inner_key_newer_first():
    newer = MemKey(b"a", 5).to_key()
    older = MemKey(b"a", 3).to_key()
    assert cmp_inner_key(newer, older) < 0
    assert cmp_inner_key(older, newer) > 0
    assert cmp_inner_key(newer, newer) == 0


def test_cmp_user_key_of_inner_key_ignores_seq():
    assert cmp_user_key_of_inner_key(MemKey(b"x", 1).to_key(), MemKey(b"x", 99).to_key()) == 0
    assert cmp_user_key_of_inner_key(MemKey(b"x", 1).to_key(), MemKey(b"y", 1).to_key()) < 0


def test_cmp_key_and_user_key():
    key = MemKey(b"mid", 4).to_key()
    assert cmp_key_and_user_key(key, b"mid") == 0
    assert cmp_key_and_user_key(key, b"a") > 0
    assert cmp_key_and_user_key(key, b"z") < 0


def test_inner_key_accessors():
    key = MemKey(b"user", 12345, OpType.DELETE).to_key()
    assert inner_key_to_user_key(key) == b"user"
    assert inner_key_seq(key) == 12345
    assert inner_key_op_type(key) is OpType.DELETE


def test_new_min_inner_key_sorts_before_all_versions():
    minimum = new_min_inner_key(b"k")
    assert inner_key_seq(minimum) == 2**63 - 1
    assert cmp_inner_key(minimum, MemKey(b"k", 10**9).to_key()) < 0
    assert MemKey.new_min(b"k") < MemKey(b"k", 0, OpType.DELETE)


def test_save_result_match():
    found = MemKey(b"k", 3).to_key()
    target = new_min_inner_key(b"k")
    assert save_result_if_user_key_match(found, b"v", target) == (found, b"v")


def test_save_result_other_key():
    with pytest.raises(NotFoundError):
        save_result_if_user_key_match(MemKey(b"j", 3).to_key(), b"v", new_min_inner_key(b"k"))


def test_save_result_deleted():
    with pytest.raises(NotFoundError):
        save_result_if_user_key_match(
            MemKey(b"k", 3, OpType.DELETE).to_key(), b"", new_min_inner_key(b"k")
        )


def test_easy_cmp():
    assert easy_cmp(b"a", b"b") < 0
    assert easy_cmp(b"b", b"a") > 0
    assert easy_cmp(b"a", b"a") == 0


def test_easy_save_value_keeps_value_only():
    assert easy_save_value(b"rk", b"value", b"tk") == (b"", b"value")


def test_kv_pair_round_trip():
    memkey = MemKey(b"key", 17, OpType.DELETE)
    assert decode_kv_pair(encode_kv_pair(memkey, b"value")) == (memkey, b"value")