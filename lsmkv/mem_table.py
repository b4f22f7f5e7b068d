"""In-memory sorted table holding the most recent writes."""

import bisect
import threading
from dataclasses import dataclass
from typing import Iterator

from .errors import NotFoundError
from .keys import INT64_MAX, MemKey, OpType


@dataclass
class MemTableStat:
    """Running totals of the bytes stored in a memtable."""

    keys_size: int = 0
    values_size: int = 0

    def update(self, key_size: int, value_size: int) -> None:
        """Account for one more written key and value."""
        self.keys_size += key_size
        self.values_size += value_size

    def total(self) -> int:
        """Bytes of keys and values written so far."""
        return self.keys_size + self.values_size


class MemTable:
    """Sorted map from :class:`MemKey` to value, safe to share between threads."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._keys: list[MemKey] = []
        self._values: dict[MemKey, bytes] = {}
        self.stat = MemTableStat()

    def put(self, key: MemKey, value: bytes) -> None:
        """Store ``value`` under ``key``; deletions store an empty value."""
        value = bytes(value)
        stored = b"" if key.op_type == OpType.DELETE else value
        with self._lock:
            if key not in self._values:
                bisect.insort_left(self._keys, key)
            self._values[key] = stored
            self.stat.update(key.size(), len(value))

    def get(self, user_key: bytes, seq: int = INT64_MAX) -> bytes:
        """Value of the newest version of ``user_key`` visible at ``seq``.

        Raises :class:`NotFoundError` when there is none or it was deleted.
        """
        look_key = MemKey(user_key, seq)
        with self._lock:
            index = bisect.bisect_left(self._keys, look_key)
            if index == len(self._keys):
                raise NotFoundError(look_key.user_key)
            found = self._keys[index]
            if found.user_key != look_key.user_key or found.op_type == OpType.DELETE:
                raise NotFoundError(look_key.user_key)
            return self._values[found]

    def items(self) -> Iterator[tuple[MemKey, bytes]]:
        """Yield every ``(key, value)`` in sort order."""
        with self._lock:
            snapshot = [(key, self._values[key]) for key in self._keys]
        yield from snapshot

    def size(self) -> int:
        """Bytes of keys and values written to the table."""
        with self._lock:
            return self.stat.total()

    def empty(self) -> bool:
        """Whether the table holds no entry."""
        with self._lock:
            return not self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)