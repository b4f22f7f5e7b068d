"""Filter blocks: one bloom filter per data block of a table."""

from abc import ABC, abstractmethod
from typing import Iterable

from .encode import decode32, encode32
from .errors import FilterBlockError, FormatError
from .murmur3 import murmur3_hash

_MASK = 0xFFFFFFFF
_SEED1 = 0xE2C6928A
_SEED2 = 0xBAEA8A8F
_BLOOM_TYPE = b"bf"


class FilterAlgorithm(ABC):
    """A membership filter that turns a batch of keys into a bitmap."""

    @abstractmethod
    def keys_to_block(self, keys: Iterable[bytes]) -> bytes:
        """Build the filter data for ``keys``."""

    @abstractmethod
    def is_key_exists(self, key: bytes, bitmap: bytes) -> bool:
        """Whether ``key`` may be among the keys that built ``bitmap``."""

    def filter_info(self) -> bytes:
        """Parameters stored alongside the filters; empty by default."""
        return b""


class BloomFilter(FilterAlgorithm):
    """Bloom filter using double hashing to simulate k hash functions."""

    def __init__(self, bits_per_key: int) -> None:
        self.bits_per_key = bits_per_key
        # k = ln2 * (m / n) gives the best false-positive rate.
        self.k = min(max(int(bits_per_key * 0.69), 1), 30)

    def _bit_positions(self, key: bytes, bits_len: int):
        h1 = murmur3_hash(_SEED1, key)
        h2 = murmur3_hash(_SEED2, key)
        for j in range(self.k):
            yield ((h1 + j * h2) & _MASK) % bits_len

    def keys_to_block(self, keys: Iterable[bytes]) -> bytes:
        keys = list(keys)
        bits_len = (len(keys) * self.bits_per_key + 7) * 8
        if bits_len <= 0:
            raise FilterBlockError(f"invalid bits_per_key {self.bits_per_key}")
        bitmap = bytearray(bits_len // 8)
        for key in keys:
            for pos in self._bit_positions(bytes(key), bits_len):
                bitmap[pos >> 3] |= 1 << (pos & 7)
        return bytes(bitmap)

    def is_key_exists(self, key: bytes, bitmap: bytes) -> bool:
        bits_len = len(bitmap) * 8
        if not bits_len:
            raise FilterBlockError("empty bloom filter bitmap")
        return all(
            bitmap[pos >> 3] & (1 << (pos & 7))
            for pos in self._bit_positions(bytes(key), bits_len)
        )

    def filter_info(self) -> bytes:
        return _BLOOM_TYPE + b":" + encode32(self.bits_per_key)


class FilterBlockWriter:
    """Collects keys and emits one filter per data block.

    Layout: ``[filters][offsets...][offsets start][count][info][info len]``.
    """

    def __init__(self, method: FilterAlgorithm) -> None:
        self._method = method
        self._keys: list[bytes] = []
        self._offsets: list[int] = []
        self._buffer = bytearray()

    def update(self, key: bytes) -> None:
        """Queue ``key`` for the filter currently being built."""
        self._keys.append(bytes(key))

    def keys_to_block(self) -> None:
        """Close the current filter from the queued keys."""
        self._offsets.append(len(self._buffer))
        self._buffer += self._method.keys_to_block(self._keys)
        self._keys.clear()

    def finish(self) -> bytes:
        """Return the complete filter block and reset the writer."""
        if self._keys:
            self.keys_to_block()
        out = self._buffer
        offsets_start = len(out)
        for offset in self._offsets:
            out += encode32(offset)
        out += encode32(offsets_start)
        out += encode32(len(self._offsets))
        info = self._method.filter_info()
        if info:
            out += info
            out += encode32(len(info))
        self._buffer = bytearray()
        self._offsets = []
        return bytes(out)


class FilterBlockReader:
    """Parses a filter block and answers membership queries per data block."""

    def __init__(self, filter_block: bytes) -> None:
        self._block = bytes(filter_block)
        try:
            self._parse()
        except FilterBlockError:
            raise
        except FormatError as exc:
            raise FilterBlockError(str(exc)) from exc

    def _parse(self) -> None:
        block = self._block
        if len(block) < 4:
            raise FilterBlockError("filter block too short")
        info_len_offset = len(block) - 4
        info_len = decode32(block, info_len_offset)
        if info_len > info_len_offset or info_len <= 0:
            raise FilterBlockError(f"bad filter info length {info_len}")
        info_offset = info_len_offset - info_len
        self._method = self._create_algorithm(block[info_offset:info_len_offset])

        if info_offset < 4:
            raise FilterBlockError("missing filter count")
        count_offset = info_offset - 4
        self.filter_count = decode32(block, count_offset)
        if count_offset < 4:
            raise FilterBlockError("missing filter offsets position")
        self._offsets_offset = decode32(block, count_offset - 4)
        if self._offsets_offset < 0:
            raise FilterBlockError("negative filter offsets position")
        if decode32(block, self._offsets_offset) != 0:
            raise FilterBlockError("first filter does not start at offset 0")
        self._offsets = block[
            self._offsets_offset:self._offsets_offset + 4 * self.filter_count
        ]

    @staticmethod
    def _create_algorithm(info: bytes) -> FilterAlgorithm:
        if info[:2] != _BLOOM_TYPE:
            raise FilterBlockError(f"unknown filter type {info[:2]!r}")
        return BloomFilter(decode32(info, 3))

    def is_key_exists(self, filter_block_num: int, key: bytes) -> bool:
        """Whether ``key`` may be in data block ``filter_block_num``."""
        if not 0 <= filter_block_num < self.filter_count:
            return False
        start = decode32(self._offsets, filter_block_num * 4)
        if filter_block_num + 1 == self.filter_count:
            end = self._offsets_offset
        else:
            end = decode32(self._offsets, (filter_block_num + 1) * 4)
        return self._method.is_key_exists(key, self._block[start:end])