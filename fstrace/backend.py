"""
Backend capability contract

Any object store or distributed filesystem client can be traced as long as
it offers the methods below. Backends raise the errors defined here (or any
other exception); the proxies pass them through untouched.
"""

from typing import Any, Iterable, List, Mapping, Optional, Protocol


class BackendError(IOError):
    """Base class for failures raised by a storage backend."""


class BackendInitError(BackendError):
    """The backend could not be initialized for the given URI."""


class NotFoundError(BackendError, FileNotFoundError):
    """The requested path does not exist."""


class FileStatus(Protocol):
    length: int


class BackendStream(Protocol):
    def read(self) -> int:
        """Read one byte; returns the byte value or -1 at end of stream."""

    def read_into(self, buffer: bytearray, offset: int = 0, length: Optional[int] = None) -> int:
        """Read into buffer; returns bytes read or -1 at end of stream."""

    def pread(
        self, position: int, buffer: bytearray, offset: int = 0, length: Optional[int] = None
    ) -> int:
        """Read at an explicit position without moving the cursor."""

    def read_fully(
        self, position: int, buffer: bytearray, offset: int = 0, length: Optional[int] = None
    ) -> None:
        """Read exactly length bytes at position or raise."""

    def seek(self, pos: int) -> None: ...

    def get_pos(self) -> int: ...

    def seek_to_new_source(self, target: int) -> bool: ...

    def close(self) -> None: ...


class StorageBackend(Protocol):
    def initialize(self, uri: str, conf: Mapping[str, Any]) -> None: ...

    def get_uri(self) -> str: ...

    def get_working_directory(self) -> str: ...

    def set_working_directory(self, path: str) -> None: ...

    def open(self, path: str, buffer_size: int = 4096) -> BackendStream: ...

    def create(self, path: str, **options: Any) -> Any: ...

    def append(self, path: str, **options: Any) -> Any: ...

    def rename(self, src: str, dst: str) -> bool: ...

    def delete(self, path: str, recursive: bool = True) -> bool: ...

    def list_status(self, path: str) -> Optional[List[FileStatus]]: ...

    def mkdirs(self, path: str, permission: Any = None) -> bool: ...

    def get_file_status(self, path: str) -> Optional[FileStatus]: ...

    def close(self) -> None: ...


def status_length(status):
    """Length of a status object, or -1 when the backend returned nothing."""
    if status is None:
        return -1
    return getattr(status, "length", -1)


def result_length(result: Optional[Iterable[Any]]):
    """Number of entries in a listing, or -1 when it cannot be counted."""
    if result is None:
        return -1
    try:
        return len(result)
    except TypeError:
        return -1
