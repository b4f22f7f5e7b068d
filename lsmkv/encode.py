"""Little-endian fixed-width integer and length-prefixed encodings."""

import struct

from .errors import FormatError

_I32 = struct.Struct("<i")
_I64 = struct.Struct("<q")


def _unpack(fmt: struct.Struct, data: bytes, offset: int) -> int:
    if offset < 0 or offset + fmt.size > len(data):
        raise FormatError(
            f"need {fmt.size} bytes at offset {offset}, have {len(data)}"
        )
    return fmt.unpack_from(data, offset)[0]


def encode32(value: int) -> bytes:
    """Encode a signed 32-bit integer as 4 little-endian bytes."""
    try:
        return _I32.pack(value)
    except struct.error as exc:
        raise ValueError(f"{value} does not fit in 32 bits") from exc


def decode32(data: bytes, offset: int = 0) -> int:
    """Decode a signed 32-bit integer at ``offset``."""
    return _unpack(_I32, data, offset)


def decode64(data: bytes, offset: int = 0) -> int:
    """Decode a signed 64-bit integer at ``offset``."""
    return _unpack(_I64, data, offset)


def encode_with_prelen(data: bytes) -> bytes:
    """Prefix ``data`` with its length as a 32-bit integer."""
    data = bytes(data)
    return encode32(len(data)) + data


def decode_with_prelen(data: bytes) -> tuple[bytes, int]:
    """Decode a length-prefixed field; return it and the bytes consumed."""
    length = decode32(data)
    end = _I32.size + length
    if length < 0 or end > len(data):
        raise FormatError(f"field of length {length} exceeds available data")
    return bytes(data[_I32.size:end]), end