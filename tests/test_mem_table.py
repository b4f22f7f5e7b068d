import threading

import pytest

from lsmkv.errors import NotFoundError
from lsmkv.keys import MemKey, OpType
from lsmkv.mem_table import MemTable, MemTableStat


def test_put_then_get():
    table = MemTable()
    table.put(MemKey(b"apple", 1), b"red")
    assert table.get(b"apple") == b"red"


def test_missing_key_raises():
    table = MemTable()
    table.put(MemKey(b"apple", 1), b"red")
    with pytest.raises(NotFoundError):
        table.get(b"banana")
    with pytest.raises(NotFoundError):
        table.get(b"zzz")


def test_empty_table_get_raises():
    with pytest.raises(NotFoundError):
        MemTable().get(b"a")


def test_newer_sequence_shadows_older():
    table = MemTable()
    table.put(MemKey(b"k", 1), b"v1")
    table.put(MemKey(b"k", 5), b"v5")
    assert table.get(b"k") == b"v5"


def test_get_at_older_sequence_sees_older_version():
    table = MemTable()
    table.put(MemKey(b"k", 1), b"v1")
    table.put(MemKey(b"k", 5), b"v5")
    assert table.get(b"k", 3) == b"v1"
    assert table.get(b"k", 5) == b"v5"
    with pytest.raises(NotFoundError):
        table.get(b"k", 0)


def test_delete_hides_key():
    table = MemTable()
    table.put(MemKey(b"k", 1), b"v1")
    table.put(MemKey(b"k", 2, OpType.DELETE), b"ignored")
    with pytest.raises(NotFoundError):
        table.get(b"k")
    assert table.get(b"k", 1) == b"v1"


def test_delete_stores_empty_value():
    table = MemTable()
    key = MemKey(b"k", 2, OpType.DELETE)
    table.put(key, b"ignored")
    assert list(table.items()) == [(key, b"")]


def test_items_in_sorted_order():
    table = MemTable()
    keys = [MemKey(b"b", 1), MemKey(b"a", 2), MemKey(b"b", 3), MemKey(b"c", 0)]
    for key in keys:
        table.put(key, key.user_key)
    ordered = [key for key, _ in table.items()]
    assert ordered == sorted(keys)
    assert ordered[1] == MemKey(b"b", 3)
    assert len(table) == 4


def test_same_key_overwrites_value():
    table = MemTable()
    table.put(MemKey(b"k", 1), b"first")
    table.put(MemKey(b"k", 1), b"second")
    assert table.get(b"k") == b"second"
    assert len(table) == 1


def test_size_counts_keys_and_values():
    table = MemTable()
    assert table.size() == 0
    key1 = MemKey(b"alpha", 1)
    key2 = MemKey(b"beta", 2)
    table.put(key1, b"xyz")
    table.put(key2, b"")
    assert table.size() == key1.size() + 3 + key2.size()
    assert table.stat.keys_size == key1.size() + key2.size()
    assert table.stat.values_size == 3


def test_empty():
    table = MemTable()
    assert table.empty()
    table.put(MemKey(b"a"), b"1")
    assert not table.empty()


def test_stat_update_and_total():
    stat = MemTableStat()
    stat.update(10, 5)
    stat.update(1, 2)
    assert stat.keys_size == 11
    assert stat.values_size == 7
    assert stat.total() == 18


def test_concurrent_puts_are_all_kept():
    table = MemTable()

    def writer(prefix):
        for i in range(100):
            table.put(MemKey(f"{prefix}{i:03d}", i), b"v")

    threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    keys = [key for key, _ in table.items()]
    assert len(keys) == 400
    assert keys == sorted(keys)