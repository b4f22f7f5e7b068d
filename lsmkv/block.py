"""Data blocks: prefix-compressed sorted entries with restart points.

Entry layout::

    [shared_key_len:4][unshared_key_len:4][value_len:4][key suffix][value]

Every ``RESTARTS_BLOCK_LEN`` entries a restart point stores its key whole.
The block ends with the restart offsets followed by their count.
"""

from dataclasses import dataclass
from typing import Callable, Iterator

from .encode import decode32, encode32
from .errors import FormatError, NotFoundError
from .keys import easy_cmp, easy_save_value

RESTARTS_BLOCK_LEN = 12
_ENTRY_HEADER_LEN = 12

Comparator = Callable[[bytes, bytes], int]
ResultHandler = Callable[[bytes, bytes, bytes], "tuple[bytes, bytes]"]


def _common_prefix_len(a: bytes, b: bytes) -> int:
    return next(
        (i for i, (x, y) in enumerate(zip(a, b)) if x != y),
        min(len(a), len(b)),
    )


def _decode_entry(data: bytes, offset: int, limit: int) -> tuple[int, bytes, bytes, int]:
    """Decode one entry; return shared length, key suffix, value, next offset."""
    if offset < 0 or offset + _ENTRY_HEADER_LEN > limit:
        raise FormatError(f"entry header at {offset} exceeds block data")
    shared = decode32(data, offset)
    unshared = decode32(data, offset + 4)
    value_len = decode32(data, offset + 8)
    if shared < 0 or unshared < 0 or value_len < 0:
        raise FormatError(f"negative length in entry at {offset}")
    key_start = offset + _ENTRY_HEADER_LEN
    value_start = key_start + unshared
    end = value_start + value_len
    if end > limit:
        raise FormatError(f"entry at {offset} exceeds block data")
    return shared, data[key_start:value_start], data[value_start:end], end


def decode_restart_point(data: bytes, offset: int = 0) -> tuple[bytes, bytes]:
    """Decode the restart entry at ``offset`` into its full key and value."""
    data = bytes(data)
    if offset < 0 or offset + 4 > len(data):
        raise FormatError(f"restart entry at {offset} exceeds data")
    if decode32(data, offset) != 0:
        raise FormatError(f"restart entry at {offset} has a shared key prefix")
    _, key, value, _ = _decode_entry(data, offset, len(data))
    return key, value


class BlockWriter:
    """Builds one data block from keys added in sorted order."""

    def __init__(self) -> None:
        self.reset()

    def add(self, key: bytes, value: bytes) -> None:
        """Append an entry; keys must arrive in the block's sort order."""
        key = bytes(key)
        value = bytes(value)
        if self._entries % RESTARTS_BLOCK_LEN == 0:
            self._restarts.append(len(self._buffer))
            shared = 0
        else:
            shared = _common_prefix_len(key, self._last_key)
        unshared = len(key) - shared
        self._buffer += encode32(shared)
        self._buffer += encode32(unshared)
        self._buffer += encode32(len(value))
        self._buffer += key[shared:]
        self._buffer += value
        self._entries += 1
        self._last_key = key

    def finish(self) -> bytes:
        """Return the finished block and start a new, empty one."""
        out = self._buffer
        for restart in self._restarts:
            out += encode32(restart)
        out += encode32(len(self._restarts))
        self.reset()
        return bytes(out)

    def estimated_size(self) -> int:
        """Size the block will have once finished."""
        return len(self._buffer) + (len(self._restarts) + 1) * 4

    def reset(self) -> None:
        """Discard every entry added so far."""
        self._buffer = bytearray()
        self._restarts: list[int] = []
        self._last_key = b""
        self._entries = 0

    def empty(self) -> bool:
        """Whether no entry has been added."""
        return self._entries == 0


class BlockReader:
    """Looks up and iterates the entries of a finished block."""

    def __init__(
        self,
        data: bytes,
        cmp: Comparator = easy_cmp,
        handle_result: ResultHandler = easy_save_value,
    ) -> None:
        self._data = bytes(data)
        self._cmp = cmp
        self._handle_result = handle_result
        if len(self._data) < 4:
            raise FormatError("block too short")
        count_offset = len(self._data) - 4
        count = decode32(self._data, count_offset)
        if count < 0 or count * 4 > count_offset:
            raise FormatError(f"bad restart count {count}")
        self._data_end = count_offset - count * 4
        self._restarts = tuple(
            decode32(self._data, self._data_end + 4 * i) for i in range(count)
        )
        if any(not 0 <= r < self._data_end for r in self._restarts):
            raise FormatError("restart offset outside block data")

    @property
    def restarts(self) -> tuple[int, ...]:
        """Offsets of the restart entries."""
        return self._restarts

    def _restart_entry(self, offset: int) -> tuple[bytes, bytes]:
        if decode32(self._data, offset) != 0:
            raise FormatError(f"restart entry at {offset} has a shared key prefix")
        _, key, value, _ = _decode_entry(self._data, offset, self._data_end)
        return key, value

    def _bsearch_restart_point(self, key: bytes) -> int:
        """Index of the last restart whose key is below ``key``, or equal to it."""
        restart_key = lambda i: self._restart_entry(self._restarts[i])[0]
        left, right = 0, len(self._restarts) - 1
        while left <= right:
            mid = (left + right) >> 1
            if self._cmp(restart_key(mid), key) < 0:
                left = mid + 1
            else:
                right = mid - 1
        if left != len(self._restarts) and self._cmp(restart_key(left), key) == 0:
            return left
        return right

    def _find(self, key: bytes) -> tuple[bytes, bytes]:
        """First entry whose key compares greater than or equal to ``key``."""
        if not self._restarts:
            raise NotFoundError(key)
        index = self._bsearch_restart_point(key)
        if index == -1:
            return self._restart_entry(self._restarts[0])

        offset = self._restarts[index]
        last_key = b""
        for _ in range(RESTARTS_BLOCK_LEN):
            if offset >= self._data_end:
                raise NotFoundError(key)
            shared, suffix, value, next_offset = _decode_entry(
                self._data, offset, self._data_end
            )
            prefix = last_key[:shared] if shared and len(last_key) >= shared else b""
            cur_key = prefix + suffix
            if self._cmp(cur_key, key) >= 0:
                return cur_key, value
            offset = next_offset
            last_key = cur_key

        if offset < self._data_end:
            return self._restart_entry(offset)
        raise NotFoundError(key)

    def get(self, want_key: bytes) -> tuple[bytes, bytes]:
        """Point lookup; the result handler decides whether the hit counts."""
        want_key = bytes(want_key)
        result_key, result_value = self._find(want_key)
        return self._handle_result(result_key, result_value, want_key)

    def __iter__(self) -> Iterator[tuple[bytes, bytes]]:
        """Yield every ``(key, value)`` in stored order."""
        if not self._restarts:
            return
        offset = self._restarts[0]
        key = b""
        while offset < self._data_end:
            shared, suffix, value, offset = _decode_entry(
                self._data, offset, self._data_end
            )
            key = key[:shared] + suffix
            yield key, value


@dataclass
class BlockHandle:
    """Position and size of a block inside a table file."""

    block_offset: int = 0
    block_size: int = 0

    ENCODED_SIZE = 8

    def encode(self) -> bytes:
        """Encode as two 32-bit integers."""
        return encode32(self.block_offset) + encode32(self.block_size)

    @classmethod
    def decode(cls, data: bytes) -> "BlockHandle":
        """Decode a handle from the first 8 bytes of ``data``."""
        data = bytes(data)
        if len(data) < cls.ENCODED_SIZE:
            raise FormatError("block handle needs 8 bytes")
        return cls(decode32(data, 0), decode32(data, 4))


@dataclass(frozen=True)
class BlockCacheHandle:
    """Cache key for a block: owning table id and block offset."""

    oid: str
    offset: int