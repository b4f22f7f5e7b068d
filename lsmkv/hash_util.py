"""Conversions between SHA-256 digests and their hexadecimal names."""

import re
from typing import Optional

SHA256_DIGEST_LENGTH = 32

_HEX_PREFIX = re.compile(r"[0-9a-fA-F]+")
_UINT32_MAX = 0xFFFFFFFF


def hex_string_to_int(text: str) -> Optional[int]:
    """Parse leading hex digits of ``text``.

    Returns None when there are no digits or the value exceeds 32 bits.
    """
    match = _HEX_PREFIX.match(text)
    if match is None:
        return None
    value = int(match.group(), 16)
    if value > _UINT32_MAX:
        return None
    return value


def sha256_digest_to_hex(digest: bytes) -> str:
    """Render a 32-byte digest as 64 lowercase hex characters."""
    digest = bytes(digest)
    if len(digest) != SHA256_DIGEST_LENGTH:
        raise ValueError(
            f"digest must be {SHA256_DIGEST_LENGTH} bytes, got {len(digest)}"
        )
    return digest.hex()


def hex_to_sha256_digest(hex_text: str) -> bytes:
    """Parse the hex name of a digest back into its 32 bytes."""

    def pair_value(index: int) -> int:
        value = hex_string_to_int(hex_text[index * 2:index * 2 + 2])
        if value is None:
            raise ValueError(f"invalid hex digest: {hex_text!r}")
        return value

    return bytes(pair_value(index) for index in range(SHA256_DIGEST_LENGTH))