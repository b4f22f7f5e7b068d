"""Exception hierarchy for the storage engine."""


class LsmError(Exception):
    """Base class for every error raised by the storage engine."""


class NotFoundError(LsmError):
    """The requested key or record does not exist."""


class FormatError(LsmError, ValueError):
    """Stored data does not have the expected layout."""


class FilterBlockError(FormatError):
    """A filter block is malformed or uses an unknown algorithm."""


class FileError(LsmError):
    """A file system operation failed."""


class OutOfRangeError(LsmError):
    """A read went past the end of the underlying data."""