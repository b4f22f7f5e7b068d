"""Building blocks of a log-structured merge-tree key-value store."""

__version__ = "0.1.0"

__all__ = [
    "block",
    "encode",
    "errors",
    "file_util",
    "filter_block",
    "footer_block",
    "hash_util",
    "keys",
    "mem_table",
    "murmur3",
    "worker",
]