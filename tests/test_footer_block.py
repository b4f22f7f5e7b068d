import pytest

from lsmkv.block import BlockHandle
from lsmkv.errors import FormatError
from lsmkv.footer_block import (
    FOOTER_SIZE,
    MAGIC_NUMBER,
    FooterBlockReader,
    FooterBlockWriter,
)


def _footer(meta, index):
    writer = FooterBlockWriter()
    writer.add(meta, index)
    return writer.finish()


def test_footer_layout():
    meta = BlockHandle(100, 20)
    index = BlockHandle(120, 40)
    footer = _footer(meta.encode(), index.encode())
    assert len(footer) == FOOTER_SIZE == 18
    assert footer[-2:] == b"\x12\x34"
    assert footer[:8] == meta.encode()
    assert footer[8:16] == index.encode()


def test_footer_round_trip():
    meta = BlockHandle(7, 8)
    index = BlockHandle(15, 300)
    reader = FooterBlockReader(_footer(meta, index))
    assert reader.meta_block_handle == meta
    assert reader.index_block_handle == index


def test_writer_rejects_bad_handle_length():
    writer = FooterBlockWriter()
    writer.add(b"short", BlockHandle(1, 2).encode())
    with pytest.raises(FormatError):
        writer.finish()


def test_writer_without_handles_fails():
    with pytest.raises(FormatError):
        FooterBlockWriter().finish()


def test_reader_rejects_bad_magic():
    footer = _footer(BlockHandle(1, 2), BlockHandle(3, 4))
    with pytest.raises(FormatError):
        FooterBlockReader(footer[:-2] + b"\x00\x00")


def test_reader_rejects_wrong_size():
    footer = _footer(BlockHandle(1, 2), BlockHandle(3, 4))
    with pytest.raises(FormatError):
        FooterBlockReader(footer[1:])
    with pytest.raises(FormatError):
        FooterBlockReader(b"\x00" * 16 + MAGIC_NUMBER + b"\x00")