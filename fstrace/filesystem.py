"""
Filesystem proxy

Forwards every filesystem call to a backend and logs it as a filesystem
record:

    traceid_<id>,<node>,<path>,<op>,<contentLen>,<elapsedNanos>

Streams returned by open() are wrapped in a StreamProxy so reads are traced
too. Backend failures are never caught here: the caller sees the original
exception and no record is written for the failed call.

    fs = FilesystemProxy(S3Client(), sink=FileSink("trace.log"))
    fs.initialize("s3://bucket/", {"fs.wrapper.stacktrace": "true"})
    with fs.open("s3://bucket/store_sales/part-0000.orc") as stream:
        stream.read_fully(0, bytearray(4096))
"""

import logging
import time

from .backend import result_length, status_length
from .codec import encode_line
from .config import TraceConfig
from .diagnostics import format_call_context
from .record import NOT_AVAILABLE, filesystem_record, next_instance_id
from .sink import LoggingSink
from .stream import StreamProxy

logger = logging.getLogger(__name__)

RENAME_SEPARATOR = "___"


class FilesystemProxy:
    """Instrumented view of a storage backend."""

    def __init__(self, backend, sink=None, config=None):
        self.backend = backend
        self.sink = sink if sink is not None else LoggingSink()
        self.config = config if config is not None else TraceConfig()
        self.instance_id = next_instance_id()
        self.uri = None

    @property
    def node(self):
        return self.config.node_address

    def initialize(self, uri, conf=None):
        conf = conf or {}
        config = TraceConfig.from_mapping(
            conf,
            node_address=self.config.node_address,
            capabilities=self.config.capabilities,
        )
        if config.stack_trace:
            logger.info(f"initialize..{format_call_context()}")
        self.backend.initialize(uri, conf)
        # a failed initialize leaves the previous config in place
        self.config = config
        self.uri = str(uri)

    def get_uri(self):
        return self.backend.get_uri()

    def get_working_directory(self):
        return self.backend.get_working_directory()

    def set_working_directory(self, path):
        self.backend.set_working_directory(path)

    def open(self, path, buffer_size=4096):
        # Only needed to log the file size; costs one extra metadata call
        content_length = status_length(self.backend.get_file_status(path))
        start = time.perf_counter_ns()
        stream = self.backend.open(path, buffer_size)
        elapsed = time.perf_counter_ns() - start
        self._log(path, "open", content_length, elapsed)
        return StreamProxy(
            stream, path, content_length=content_length, sink=self.sink, config=self.config
        )

    def create(self, path, **options):
        start = time.perf_counter_ns()
        out = self.backend.create(path, **options)
        self._log(path, "create", 0, time.perf_counter_ns() - start)
        return out

    def append(self, path, **options):
        start = time.perf_counter_ns()
        out = self.backend.append(path, **options)
        self._log(path, "append", NOT_AVAILABLE, time.perf_counter_ns() - start)
        return out

    def rename(self, src, dst):
        logger.info(f"rename src={src} to dest={dst}")
        start = time.perf_counter_ns()
        result = self.backend.rename(src, dst)
        elapsed = time.perf_counter_ns() - start
        self._log(f"{src}{RENAME_SEPARATOR}{dst}", "rename", NOT_AVAILABLE, elapsed)
        return result

    def delete(self, path, recursive=True):
        logger.info(f"delete src={path} recursive={recursive}")
        start = time.perf_counter_ns()
        result = self.backend.delete(path, recursive)
        elapsed = time.perf_counter_ns() - start
        operation = "delete_recursive" if recursive else "delete_nonrecursive"
        self._log(path, operation, NOT_AVAILABLE, elapsed)
        return result

    def list_status(self, path):
        self._log_call_context("listStatus", path)
        start = time.perf_counter_ns()
        result = self.backend.list_status(path)
        elapsed = time.perf_counter_ns() - start
        self._log(path, "listStatus", result_length(result), elapsed)
        return result

    def mkdirs(self, path, permission=None):
        self._log_call_context("mkdirs", path)
        start = time.perf_counter_ns()
        result = self.backend.mkdirs(path, permission)
        self._log(path, "mkdirs", NOT_AVAILABLE, time.perf_counter_ns() - start)
        return result

    def get_file_status(self, path):
        self._log_call_context("getFileStatus", path)
        start = time.perf_counter_ns()
        status = self.backend.get_file_status(path)
        elapsed = time.perf_counter_ns() - start
        self._log(path, "getFileStatus", status_length(status), elapsed)
        return status

    def close(self):
        # prints statistics if available
        try:
            logger.info(self._statistics_snapshot())
        except Exception as e:
            logger.warning(f"Could not read backend statistics: {e}")

        start = time.perf_counter_ns()
        self.backend.close()
        self._log(self.uri or "", "close", NOT_AVAILABLE, time.perf_counter_ns() - start)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _statistics_snapshot(self):
        get_statistics = getattr(self.backend, "get_statistics", None)
        if get_statistics is None:
            return str(self.backend)
        return f"{self.backend!r} statistics: {get_statistics()}"

    def _log_call_context(self, operation, path):
        if self.config.stack_trace:
            logger.info(f"{operation} path={path}, {format_call_context()}")

    def _log(self, subject, operation, content_length, elapsed_ns):
        record = filesystem_record(
            instance_id=self.instance_id,
            node=self.node,
            subject=str(subject),
            operation=operation,
            content_length=content_length,
            elapsed_ns=max(elapsed_ns, 0),
        )
        self.sink.append(encode_line(record))
