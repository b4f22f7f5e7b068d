"""File access helpers and the directory layout of a database."""

import mmap
import os
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import FileError, FormatError, OutOfRangeError
from .hash_util import SHA256_DIGEST_LENGTH, sha256_digest_to_hex
from .keys import MemKey

WRITABLE_FILE_BUFFER_SIZE = 65536

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def handle_home_dir(path: str) -> str:
    """Replace a leading ``~`` with the user's home directory."""
    if not path.startswith("~"):
        return path
    return os.path.expanduser("~") + path[1:]


def fix_file_name(path: str) -> str:
    """Expand a leading ``~`` in a file path."""
    return handle_home_dir(path)


def fix_dir_name(path: str) -> str:
    """Expand ``~`` and make sure a directory path ends with ``/``."""
    if not path:
        return "."
    fixed = handle_home_dir(path)
    if not fixed.endswith("/"):
        fixed += "/"
    return fixed


def exists(path: str) -> bool:
    """Whether ``path`` names an existing file or directory."""
    try:
        os.stat(fix_file_name(path))
    except OSError:
        return False
    return True


def is_directory(path: str) -> bool:
    """Whether ``path`` names an existing directory."""
    return os.path.isdir(path)


def create_dir(path: str) -> None:
    """Create a single directory with mode 0755."""
    try:
        os.mkdir(path, 0o755)
    except OSError as exc:
        raise FileError(f"cannot create directory {path}: {exc}") from exc


def destroy(path: str) -> None:
    """Remove a file, or a directory with everything below it."""
    true_path = handle_home_dir(path)
    try:
        if is_directory(true_path):
            shutil.rmtree(true_path)
        else:
            os.unlink(true_path)
    except OSError as exc:
        raise FileError(f"cannot destroy {true_path}: {exc}") from exc


def get_file_size(path: str) -> int:
    """Size of the file at ``path`` in bytes."""
    try:
        return os.stat(path).st_size
    except OSError as exc:
        raise FileError(f"cannot stat {path}: {exc}") from exc


def rename(old_path: str, new_path: str) -> None:
    """Rename ``old_path`` to ``new_path``."""
    try:
        os.rename(old_path, new_path)
    except OSError as exc:
        raise FileError(f"cannot rename {old_path} to {new_path}: {exc}") from exc


def read_file(path: str) -> bytes:
    """Return the whole content of a file."""
    try:
        with open(path, "rb") as handle:
            return handle.read()
    except OSError as exc:
        raise FileError(f"cannot read {path}: {exc}") from exc


def read_dir(
    directory_path: str, name_filter: Optional[Callable[[str], bool]] = None
) -> list[str]:
    """Sorted names in a directory, optionally keeping only those accepted."""
    try:
        names = os.listdir(directory_path)
    except OSError as exc:
        raise FileError(f"cannot read directory {directory_path}: {exc}") from exc
    if name_filter is not None:
        names = [name for name in names if name_filter(name)]
    return sorted(names)


class WritableFile:
    """Buffered sequential writer."""

    buffer_size = WRITABLE_FILE_BUFFER_SIZE

    def __init__(self, path: str, fd: int) -> None:
        self.path = path
        self._fd = fd
        self._buffer = bytearray()
        self.closed = False

    @classmethod
    def open(cls, path: str, append: bool = False) -> "WritableFile":
        """Open for writing; truncate unless ``append`` is set."""
        flags = os.O_WRONLY | os.O_CREAT | getattr(os, "O_CLOEXEC", 0)
        flags |= os.O_APPEND if append else os.O_TRUNC
        try:
            fd = os.open(path, flags, 0o644)
        except OSError as exc:
            raise FileError(f"cannot open {path}: {exc}") from exc
        return cls(path, fd)

    def _check_open(self) -> None:
        if self.closed:
            raise FileError(f"{self.path} is closed")

    def _write_all(self, data: bytes) -> None:
        view = memoryview(data)
        try:
            while view:
                written = os.write(self._fd, view)
                view = view[written:]
        except OSError as exc:
            raise FileError(f"cannot write {self.path}: {exc}") from exc

    def append(self, data: bytes) -> None:
        """Queue ``data``; the buffer is written out once it fills up."""
        self._check_open()
        self._buffer += data
        if len(self._buffer) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        """Write buffered data to the file."""
        self._check_open()
        if self._buffer:
            self._write_all(bytes(self._buffer))
            self._buffer.clear()

    def sync(self) -> None:
        """Flush and force the data to stable storage."""
        self.flush()
        sync_data = getattr(os, "fdatasync", os.fsync)
        try:
            sync_data(self._fd)
        except OSError as exc:
            raise FileError(f"cannot sync {self.path}: {exc}") from exc

    def close(self) -> None:
        """Flush and close; closing twice is harmless."""
        if self.closed:
            return
        self.flush()
        try:
            os.close(self._fd)
        except OSError as exc:
            raise FileError(f"cannot close {self.path}: {exc}") from exc
        self.closed = True

    def rename(self, new_path: str) -> None:
        """Move the file to ``new_path`` and remember the new name."""
        true_path = fix_file_name(new_path)
        try:
            os.rename(self.path, true_path)
        except OSError as exc:
            raise FileError(
                f"cannot rename {self.path} to {true_path}: {exc}"
            ) from exc
        self.path = true_path

    def __enter__(self) -> "WritableFile":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class TempFile(WritableFile):
    """Writable file with a unique generated name."""

    @classmethod
    def open(cls, dir_path: str, suffix: str) -> "TempFile":  # type: ignore[override]
        """Create a new file in ``dir_path`` whose name starts with ``suffix``."""
        directory = fix_dir_name(dir_path)
        try:
            fd, path = tempfile.mkstemp(prefix=suffix, dir=directory)
        except OSError as exc:
            raise FileError(f"cannot create temp file in {directory}: {exc}") from exc
        return cls(os.path.realpath(path), fd)


class SeqReadFile:
    """Sequential reader."""

    def __init__(self, path: str, fd: int) -> None:
        self.path = path
        self._fd = fd
        self.closed = False

    @classmethod
    def open(cls, path: str) -> "SeqReadFile":
        """Open ``path`` for reading from the start."""
        try:
            fd = os.open(path, os.O_RDONLY | getattr(os, "O_CLOEXEC", 0))
        except OSError as exc:
            raise FileError(f"cannot open {path}: {exc}") from exc
        return cls(path, fd)

    def read(self, length: int) -> bytes:
        """Read up to ``length`` bytes; fewer only at the end of the file."""
        if self.closed:
            raise FileError(f"{self.path} is closed")
        chunks = []
        remaining = length
        try:
            while remaining > 0:
                chunk = os.read(self._fd, remaining)
                if not chunk:
                    break
                chunks.append(chunk)
                remaining -= len(chunk)
        except OSError as exc:
            raise FileError(f"cannot read {self.path}: {exc}") from exc
        return b"".join(chunks)

    def skip(self, n: int) -> None:
        """Move the read position forward by ``n`` bytes."""
        if self.closed:
            raise FileError(f"{self.path} is closed")
        try:
            os.lseek(self._fd, n, os.SEEK_CUR)
        except OSError as exc:
            raise FileError(f"cannot seek {self.path}: {exc}") from exc

    def close(self) -> None:
        """Close the file; closing twice is harmless."""
        if self.closed:
            return
        try:
            os.close(self._fd)
        except OSError as exc:
            raise FileError(f"cannot close {self.path}: {exc}") from exc
        self.closed = True
        self._fd = -1

    def __enter__(self) -> "SeqReadFile":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class MmapReadableFile:
    """Read-only memory-mapped file."""

    def __init__(self, path: str, mapping: mmap.mmap) -> None:
        self.path = path
        self._map = mapping
        self.size = len(mapping)

    @classmethod
    def open(cls, path: str) -> "MmapReadableFile":
        """Map the whole file at ``path``."""
        try:
            fd = os.open(path, os.O_RDONLY | getattr(os, "O_CLOEXEC", 0))
        except OSError as exc:
            raise FileError(f"cannot open {path}: {exc}") from exc
        try:
            size = get_file_size(path)
            try:
                mapping = mmap.mmap(fd, size, access=mmap.ACCESS_READ)
            except (OSError, ValueError) as exc:
                raise FileError(f"cannot mmap {path}: {exc}") from exc
        finally:
            os.close(fd)
        return cls(path, mapping)

    def read(self, offset: int, length: int) -> bytes:
        """Return ``length`` bytes starting at ``offset``."""
        if offset < 0 or length < 0 or offset + length > self.size:
            raise OutOfRangeError(
                f"read of {length} bytes at {offset} exceeds size {self.size}"
            )
        return self._map[offset:offset + length]

    def close(self) -> None:
        """Unmap the file."""
        self._map.close()

    def __enter__(self) -> "MmapReadableFile":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class RandomAccessFile:
    """Positional reader that never moves a shared file pointer."""

    def __init__(self, path: str, fd: int) -> None:
        self.path = path
        self._fd = fd

    @classmethod
    def open(cls, path: str) -> "RandomAccessFile":
        """Open ``path`` for positional reads."""
        try:
            fd = os.open(path, os.O_RDONLY | getattr(os, "O_CLOEXEC", 0))
        except OSError as exc:
            raise FileError(f"cannot open {path}: {exc}") from exc
        return cls(path, fd)

    def read(self, offset: int, length: int) -> bytes:
        """Read up to ``length`` bytes at ``offset``."""
        if self._fd == -1:
            raise FileError(f"{self.path} is closed")
        try:
            return os.pread(self._fd, length, offset)
        except OSError as exc:
            raise FileError(f"cannot read {self.path}: {exc}") from exc

    def close(self) -> None:
        """Close the file; closing twice is harmless."""
        if self._fd != -1:
            os.close(self._fd)
            self._fd = -1

    def __enter__(self) -> "RandomAccessFile":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class FileMetaData:
    """Description of one table file."""

    file_size: int = 0
    num_keys: int = 0
    belong_to_level: int = -1
    max_seq: int = 0
    max_inner_key: MemKey = field(default_factory=lambda: MemKey(b""))
    min_inner_key: MemKey = field(default_factory=lambda: MemKey(b""))
    sha256: bytes = bytes(SHA256_DIGEST_LENGTH)

    def sstable_path(self, dbname: str) -> str:
        """Path of the table file inside database ``dbname``."""
        return sst_file(sst_dir(dbname), self.oid())

    def oid(self) -> str:
        """Hex name of the table's digest."""
        return sha256_digest_to_hex(self.sha256)

    def __lt__(self, other: "FileMetaData") -> bool:
        if not isinstance(other, FileMetaData):
            return NotImplemented
        return self.min_inner_key < other.min_inner_key

    def __str__(self) -> str:
        return (
            f"@FileMetaData[ file_size={self.file_size}, num_keys={self.num_keys}, "
            f"max_seq={self.max_seq}, belong_to_level={self.belong_to_level}, "
            f"max_inner_key={self.max_inner_key} "
            f"min_inner_key={self.min_inner_key}, sha256={self.oid()} ]\n"
        )


def _subdir(dbname: str, name: str) -> str:
    base = dbname if dbname.endswith("/") else dbname + "/"
    return base + name


def level_dir(dbname: str, n: Optional[int] = None) -> str:
    """Directory of all levels, or of level ``n`` when given."""
    if n is None:
        return _subdir(dbname, "level/")
    return _subdir(dbname, f"level/{n}/")


def level_file(level_dir_path: str, sha256_hex: str) -> str:
    """Path of a level object file."""
    return f"{level_dir_path}{sha256_hex}.lvl"


def rev_dir(dbname: str) -> str:
    """Directory holding revision files."""
    return _subdir(dbname, "rev/")


def rev_file(rev_dir_path: str, sha256_hex: str) -> str:
    """Path of a revision object file."""
    return f"{rev_dir_path}{sha256_hex}.rev"


def current_file(dbname: str) -> str:
    """Path of the file naming the current revision."""
    return _subdir(dbname, "CURRENT")


def sst_dir(dbname: str) -> str:
    """Directory holding table files."""
    return _subdir(dbname, "sst/")


def sst_file(sst_dir_path: str, oid: str) -> str:
    """Path of a table file."""
    return f"{sst_dir_path}{oid}.sst"


def wal_dir(dbname: str) -> str:
    """Directory holding write-ahead logs."""
    return _subdir(dbname, "wal/")


def wal_file(wal_dir_path: str, log_number: int) -> str:
    """Path of a write-ahead log."""
    return f"{wal_dir_path}{log_number}.wal"


def parse_wal_file(filename: str) -> int:
    """Log number from a name such as ``12.wal``."""
    match = _LEADING_INT.match(filename[:-len(".wal")])
    if match is None:
        raise FormatError(f"not a log file name: {filename!r}")
    return int(match.group(1))