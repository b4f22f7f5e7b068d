"""32-bit MurmurHash3 as used by the bloom filters of the on-disk format.

Bytes are sign-extended before mixing and rotations shift in sign bits, so
values differ from the reference algorithm for inputs that set high bits.
The filter blocks written to disk depend on exactly this behaviour.
"""

_MASK = 0xFFFFFFFF
_C1 = 0xCC9E2D51
_C2 = 0x1B873593
_R1 = 15
_R2 = 13
_M = 5
_N = 0xE6546B64


def _signed_byte(byte: int) -> int:
    return byte | 0xFFFFFF00 if byte & 0x80 else byte


def _rotate_left(value: int, count: int) -> int:
    count &= 31
    signed = value - (1 << 32) if value & 0x80000000 else value
    return ((value << count) | (signed >> (-count & 31))) & _MASK


def murmur3_hash(seed: int, data: bytes) -> int:
    """Hash ``data`` with ``seed`` and return an unsigned 32-bit value."""
    data = bytes(data)
    length = len(data)
    h = seed & _MASK
    body_len = length - (length & 3)
    body = iter(data[:body_len])

    for b0, b1, b2, b3 in zip(body, body, body, body):
        k = (
            _signed_byte(b0)
            | (_signed_byte(b1) << 8)
            | (_signed_byte(b2) << 16)
            | (_signed_byte(b3) << 24)
        ) & _MASK
        k = (k * _C1) & _MASK
        k = _rotate_left(k, _R1)
        k = (k * _C2) & _MASK
        h ^= k
        h = (_rotate_left(h, _R2) * _M + _N) & _MASK

    tail = data[body_len:]
    if tail:
        k1 = 0
        if len(tail) >= 3:
            k1 ^= (_signed_byte(tail[2]) << 16) & _MASK
        if len(tail) >= 2:
            k1 ^= (_signed_byte(tail[1]) << 8) & _MASK
        k1 ^= _signed_byte(tail[0])
        k1 = (k1 * _C1) & _MASK
        k1 = _rotate_left(k1, _R1)
        k1 = (k1 * _C2) & _MASK
        h ^= k1

    h ^= length & _MASK
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _MASK
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _MASK
    h ^= h >> 16
    return h