"""Internal keys: user key followed by sequence number and operation type."""

import enum
import struct
from dataclasses import dataclass
from functools import total_ordering
from typing import Union

from .encode import decode_with_prelen, encode_with_prelen
from .errors import FormatError, NotFoundError

INT64_MAX = 2**63 - 1
_SEQ = struct.Struct("<q")
_TRAILER_LEN = _SEQ.size + 1


class OpType(enum.IntEnum):
    """Kind of write recorded under a key."""

    PUT = 0
    DELETE = 1


def _cmp(a: bytes, b: bytes) -> int:
    return (a > b) - (a < b)


def _check_inner_key(inner_key: bytes) -> bytes:
    inner_key = bytes(inner_key)
    if len(inner_key) < _TRAILER_LEN:
        raise FormatError(f"inner key too short: {inner_key!r}")
    return inner_key


@total_ordering
@dataclass(frozen=True)
class MemKey:
    """A user key tagged with a sequence number and an operation."""

    user_key: bytes
    seq: int = 0
    op_type: OpType = OpType.PUT

    def __post_init__(self) -> None:
        user_key: Union[bytes, str] = self.user_key
        if isinstance(user_key, str):
            user_key = user_key.encode()
        object.__setattr__(self, "user_key", bytes(user_key))
        object.__setattr__(self, "op_type", OpType(self.op_type))

    def __lt__(self, other: "MemKey") -> bool:
        """User keys ascending, then newer sequence and higher op first."""
        if not isinstance(other, MemKey):
            return NotImplemented
        if self.user_key != other.user_key:
            return self.user_key < other.user_key
        if self.seq != other.seq:
            return self.seq > other.seq
        return self.op_type > other.op_type

    def __str__(self) -> str:
        op_name = "OP_DELETE" if self.op_type else "OP_PUT"
        return (
            f"@MemKey [user_key:{self.user_key!r} seq:{self.seq} "
            f"op_type:{op_name}]"
        )

    def to_key(self) -> bytes:
        """Encode as user key, 8-byte sequence and 1-byte op type."""
        return self.user_key + _SEQ.pack(self.seq) + bytes([self.op_type])

    @classmethod
    def from_key(cls, key: bytes) -> "MemKey":
        """Decode an inner key produced by :meth:`to_key`."""
        key = _check_inner_key(key)
        return cls(key[:-_TRAILER_LEN], inner_key_seq(key), inner_key_op_type(key))

    @classmethod
    def new_min(cls, user_key: bytes) -> "MemKey":
        """The smallest key for ``user_key``: maximal sequence, PUT."""
        return cls(user_key, INT64_MAX, OpType.PUT)

    def size(self) -> int:
        """Length of the encoded inner key."""
        return len(self.user_key) + _TRAILER_LEN


def inner_key_to_user_key(inner_key: bytes) -> bytes:
    """Strip the sequence and op trailer from an inner key."""
    return _check_inner_key(inner_key)[:-_TRAILER_LEN]


def inner_key_seq(inner_key: bytes) -> int:
    """Sequence number stored in an inner key."""
    inner_key = _check_inner_key(inner_key)
    return _SEQ.unpack_from(inner_key, len(inner_key) - _TRAILER_LEN)[0]


def inner_key_op_type(inner_key: bytes) -> OpType:
    """Operation type stored in an inner key."""
    raw = _check_inner_key(inner_key)[-1]
    try:
        return OpType(raw)
    except ValueError as exc:
        raise FormatError(f"unknown op type {raw}") from exc


def cmp_user_key_of_inner_key(k1: bytes, k2: bytes) -> int:
    """Compare the user-key parts of two inner keys."""
    return _cmp(inner_key_to_user_key(k1), inner_key_to_user_key(k2))


def cmp_inner_key(k1: bytes, k2: bytes) -> int:
    """Order inner keys: user key ascending, then newer sequence first."""
    result = cmp_user_key_of_inner_key(k1, k2)
    if result:
        return result
    seq1, seq2 = inner_key_seq(k1), inner_key_seq(k2)
    if seq1 == seq2:
        return bytes(k2)[-1] - bytes(k1)[-1]
    return 1 if seq2 > seq1 else -1


def cmp_key_and_user_key(key: bytes, user_key: bytes) -> int:
    """Compare the user-key part of an inner key with a plain user key."""
    return _cmp(inner_key_to_user_key(key), bytes(user_key))


def save_result_if_user_key_match(
    result_key: bytes, result_value: bytes, target_key: bytes
) -> tuple[bytes, bytes]:
    """Return the found entry if it is a live version of the wanted key."""
    if inner_key_to_user_key(result_key) != inner_key_to_user_key(target_key):
        raise NotFoundError(target_key)
    if inner_key_op_type(result_key) == OpType.DELETE:
        raise NotFoundError(target_key)
    return bytes(result_key), bytes(result_value)


def new_min_inner_key(user_key: bytes) -> bytes:
    """Encoded smallest inner key for ``user_key``."""
    return MemKey.new_min(user_key).to_key()


def easy_cmp(key1: bytes, key2: bytes) -> int:
    """Plain bytewise three-way comparison."""
    return _cmp(bytes(key1), bytes(key2))


def easy_save_value(
    result_key: bytes, result_value: bytes, target_key: bytes
) -> tuple[bytes, bytes]:
    """Accept any found entry; only the value is reported, the key is empty."""
    return b"", bytes(result_value)


def encode_kv_pair(key: MemKey, value: bytes) -> bytes:
    """Encode a key/value record as two length-prefixed fields."""
    return encode_with_prelen(key.to_key()) + encode_with_prelen(value)


def decode_kv_pair(data: bytes) -> tuple[MemKey, bytes]:
    """Decode a record written by :func:`encode_kv_pair`."""
    data = bytes(data)
    key, consumed = decode_with_prelen(data)
    value, _ = decode_with_prelen(data[consumed:])
    return MemKey.from_key(key), value