# lsmkv

Building blocks for a log-structured merge-tree key-value store, in pure
Python with no third-party dependencies.

## Modules

- `lsmkv.murmur3`: `murmur3_hash(seed, data)` returns an unsigned 32-bit hash.
  The filters use it. Bytes with the high bit set are sign-extended before
  mixing, so results differ from reference MurmurHash3 for such input.
- `lsmkv.encode`: `encode32`, `decode32`, `decode64` handle little-endian
  signed integers. `encode_with_prelen` and `decode_with_prelen` handle byte
  strings with a 32-bit length prefix.
- `lsmkv.hash_util`: `sha256_digest_to_hex`, `hex_to_sha256_digest` and
  `hex_string_to_int`.
- `lsmkv.keys`: `MemKey` (`user_key`, `seq`, `op_type`) and `OpType`
  (`PUT`, `DELETE`). An inner key is `user_key + seq (8 bytes) + op (1 byte)`.
  The comparison helpers (`cmp_inner_key`, `cmp_user_key_of_inner_key`,
  `cmp_key_and_user_key`, `easy_cmp`) order user keys ascending and put newer
  sequence numbers first. The module also has `encode_kv_pair` and
  `decode_kv_pair`.
- `lsmkv.filter_block`:
  - `BloomFilter(bits_per_key)`, built on the abstract `FilterAlgorithm`.
  - `FilterBlockWriter` stores one filter per call to `keys_to_block()`.
  - `FilterBlockReader` answers `is_key_exists(filter_block_num, key)`.
- `lsmkv.block`: prefix-compressed data blocks with a restart point every 12
  entries.
  - `BlockWriter` builds a block.
  - `BlockReader` can be iterated for `(key, value)` pairs, and `get(key)`
    looks up the first entry at or after a key.
  - `BlockHandle` encodes to 8 bytes, `BlockCacheHandle` is a hashable cache
    key, and `decode_restart_point` decodes a restart entry.
- `lsmkv.footer_block`: `FooterBlockWriter` and `FooterBlockReader` handle an
  18-byte footer. It holds the meta and index block handles and ends in the
  magic bytes `12 34`.
- `lsmkv.file_util`:
  - File classes: `WritableFile` (buffered, 64 KiB), `TempFile`,
    `SeqReadFile`, `MmapReadableFile` and `RandomAccessFile`. Each works as a
    context manager.
  - Path helpers: `exists`, `is_directory`, `create_dir`, `destroy`,
    `fix_dir_name`, `read_dir` and the others in the module.
  - `FileMetaData` describes a table file.
  - Layout helpers give the paths inside a database directory: `level_dir`,
    `rev_dir`, `sst_dir`, `wal_dir`, `current_file`, `sst_file`, `wal_file`
    and `parse_wal_file`.
- `lsmkv.mem_table`:
  - `MemTable` is a thread-safe sorted table of `MemKey` to value.
    `get(user_key, seq)` returns the newest version visible at `seq`.
  - `MemTableStat` tracks the bytes written.
- `lsmkv.worker`: `Worker` runs queued tasks in order on one thread. Tasks
  still queued at `stop()` are dropped.
- `lsmkv.errors`: `LsmError` is the base class. Its subclasses are
  `NotFoundError`, `FormatError`, `FilterBlockError`, `FileError` and
  `OutOfRangeError`.

## Examples

```python
from lsmkv.keys import MemKey, OpType
from lsmkv.mem_table import MemTable

table = MemTable()
table.put(MemKey(b"apple", 1, OpType.PUT), b"red")
table.put(MemKey(b"apple", 2, OpType.PUT), b"green")
assert table.get(b"apple") == b"green"
assert table.get(b"apple", 1) == b"red"
```

```python
from lsmkv.block import BlockReader, BlockWriter

writer = BlockWriter()
writer.add(b"a", b"1")
writer.add(b"b", b"2")
reader = BlockReader(writer.finish())
assert list(reader) == [(b"a", b"1"), (b"b", b"2")]
```

```python
from lsmkv.filter_block import BloomFilter, FilterBlockReader, FilterBlockWriter

writer = FilterBlockWriter(BloomFilter(10))
writer.update(b"alpha")
writer.keys_to_block()
reader = FilterBlockReader(writer.finish())
assert reader.is_key_exists(0, b"alpha")
```

```python
from lsmkv.block import BlockHandle
from lsmkv.footer_block import FooterBlockReader, FooterBlockWriter

footer = FooterBlockWriter()
footer.add(BlockHandle(0, 100), BlockHandle(100, 40))
parsed = FooterBlockReader(footer.finish())
assert parsed.index_block_handle == BlockHandle(100, 40)
```

```python
from lsmkv.worker import Worker

worker = Worker.start_background()
worker.add(lambda: print("compacting"))
worker.stop()
worker.join()
```

Lookups that find nothing raise `NotFoundError`. Malformed data raises
`FormatError` or `FilterBlockError`. File system failures raise `FileError`.

## What this package does not do

These are components, not a database. The package has none of the following:

- a database object to open, write to or read from
- a write-ahead log or log replay
- a table-file writer or reader combining blocks, filters and footer
- levels, revisions or compaction
- a block or table cache
- a command-line tool

`file_util` only computes where such files would live.

## Running the tests

```
pip install -e .[test]
pytest
```