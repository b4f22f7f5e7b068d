"""Table footer: meta and index block handles followed by a magic number."""

from typing import Union

from .block import BlockHandle
from .errors import FormatError

MAGIC_NUMBER = b"\x12\x34"
FOOTER_SIZE = 2 + 8 * 2

HandleLike = Union[bytes, BlockHandle]


def _handle_bytes(handle: HandleLike) -> bytes:
    if isinstance(handle, BlockHandle):
        return handle.encode()
    return bytes(handle)


class FooterBlockWriter:
    """Builds the fixed-size footer of a table file."""

    footer_size = FOOTER_SIZE

    def __init__(self) -> None:
        self._meta_block_handle = b""
        self._index_block_handle = b""

    def add(self, meta_block_handle: HandleLike, index_block_handle: HandleLike) -> None:
        """Record the encoded meta and index block handles."""
        self._meta_block_handle = _handle_bytes(meta_block_handle)
        self._index_block_handle = _handle_bytes(index_block_handle)

    def finish(self) -> bytes:
        """Return the footer bytes."""
        if (
            len(self._meta_block_handle) != BlockHandle.ENCODED_SIZE
            or len(self._index_block_handle) != BlockHandle.ENCODED_SIZE
        ):
            raise FormatError("block handles must be 8 bytes each")
        footer = self._meta_block_handle + self._index_block_handle + MAGIC_NUMBER
        if len(footer) != FOOTER_SIZE:
            raise FormatError("footer has the wrong size")
        return footer


class FooterBlockReader:
    """Parses a footer and exposes its two block handles."""

    def __init__(self, footer_buffer: bytes) -> None:
        footer_buffer = bytes(footer_buffer)
        if len(footer_buffer) != FOOTER_SIZE or footer_buffer[-2:] != MAGIC_NUMBER:
            raise FormatError("not a table footer")
        self.meta_block_handle = BlockHandle.decode(footer_buffer[:8])
        self.index_block_handle = BlockHandle.decode(footer_buffer[8:16])