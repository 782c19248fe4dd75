"""Shared fixtures: an in-memory storage backend and a capturing sink."""

import os

os.environ.setdefault("MPLBACKEND", "Agg")

import io
import logging
from dataclasses import dataclass

import pytest

from fstrace import FilesystemProxy, MemorySink, TraceConfig
from fstrace.backend import BackendInitError, NotFoundError
from fstrace.codec import encode_line

NODE = "10.0.0.1"
DATA = bytes(range(256)) * 4


@dataclass
class FakeStatus:
    path: str
    length: int


class FakeStream:
    def __init__(self, data):
        self.data = bytes(data)
        self.pos = 0
        self.closed = False
        self.readahead = None

    def _check_open(self):
        if self.closed:
            raise ValueError("stream is closed")

    def _copy(self, position, buffer, offset, length):
        if length is None:
            length = len(buffer) - offset
        if length == 0:
            return 0
        if position >= len(self.data):
            return -1
        chunk = self.data[position:position + length]
        buffer[offset:offset + len(chunk)] = chunk
        return len(chunk)

    def read(self):
        self._check_open()
        if self.pos >= len(self.data):
            return -1
        value = self.data[self.pos]
        self.pos += 1
        return value

    def read_into(self, buffer, offset=0, length=None):
        self._check_open()
        count = self._copy(self.pos, buffer, offset, length)
        if count > 0:
            self.pos += count
        return count

    def pread(self, position, buffer, offset=0, length=None):
        self._check_open()
        return self._copy(position, buffer, offset, length)

    def read_fully(self, position, buffer, offset=0, length=None):
        self._check_open()
        if length is None:
            length = len(buffer) - offset
        if position + length > len(self.data):
            raise EOFError(f"cannot read {length} bytes at {position}")
        self._copy(position, buffer, offset, length)

    def seek(self, pos):
        self._check_open()
        if pos < 0:
            raise ValueError("negative seek")
        self.pos = pos

    def get_pos(self):
        self._check_open()
        return self.pos

    def seek_to_new_source(self, target):
        self._check_open()
        return False

    def set_readahead(self, readahead):
        self.readahead = readahead

    def close(self):
        self.closed = True

    def __repr__(self):
        return f"FakeStream(pos={self.pos}, closed={self.closed})"


class FakeBackend:
    def __init__(self, files=None):
        self.files = dict(files or {})
        self.dirs = set()
        self.uri = None
        self.cwd = "/"
        self.closed = False

    def initialize(self, uri, conf):
        if uri.startswith("bad://"):
            raise BackendInitError(f"unsupported scheme: {uri}")
        self.uri = uri

    def get_uri(self):
        return self.uri

    def get_working_directory(self):
        return self.cwd

    def set_working_directory(self, path):
        self.cwd = path

    def open(self, path, buffer_size=4096):
        if path not in self.files:
            raise NotFoundError(path)
        return FakeStream(self.files[path])

    def create(self, path, **options):
        self.files[path] = b""
        return io.BytesIO()

    def append(self, path, **options):
        if path not in self.files:
            raise NotFoundError(path)
        return io.BytesIO()

    def rename(self, src, dst):
        if src not in self.files:
            return False
        self.files[dst] = self.files.pop(src)
        return True

    def delete(self, path, recursive=True):
        return self.files.pop(path, None) is not None

    def list_status(self, path):
        return [
            FakeStatus(name, len(data))
            for name, data in sorted(self.files.items())
            if name.startswith(path)
        ]

    def mkdirs(self, path, permission=None):
        self.dirs.add(path)
        return True

    def get_file_status(self, path):
        if path not in self.files:
            raise NotFoundError(path)
        return FakeStatus(path, len(self.files[path]))

    def get_statistics(self):
        return {"files": len(self.files)}

    def close(self):
        self.closed = True


def write_log(path, records, noise=()):
    """Write records as telemetry lines, each followed by the given noise lines."""
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(f"2026-10-17 09:00:00,001 [INFO] fstrace.telemetry: {encode_line(record)}\n")
            for line in noise:
                f.write(line + "\n")
    return path


@pytest.fixture()
def sink():
    return MemorySink()


@pytest.fixture()
def config():
    return TraceConfig(node_address=NODE)


@pytest.fixture()
def backend():
    return FakeBackend({"/warehouse/store_sales/part-0000.orc": DATA, "/warehouse/empty": b""})


@pytest.fixture()
def fs(backend, sink, config):
    proxy = FilesystemProxy(backend, sink=sink, config=config)
    proxy.initialize("mem://warehouse/", {})
    return proxy


@pytest.fixture(autouse=True)
def reset_fstrace_logger():
    yield
    logger = logging.getLogger("fstrace")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
