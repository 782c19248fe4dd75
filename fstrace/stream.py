"""
Stream proxy

Wraps one open backend stream and logs every read, seek and close as a
stream record:

    traceid_<id>,<node>,<path>,<op>,<contentLen>,<oldPos>,<realPos>,<positional>,<bytes>,<elapsedNanos>[,<diagnostic>]

The log can be parsed and played back later to reproduce the access pattern
of a workload (e.g. TPC-DS or TPC-H). A proxy is meant to be used by one
thread at a time; concurrency comes from opening more streams.
"""

import logging
import time

from .codec import encode_line
from .config import TraceConfig
from .diagnostics import capture_call_context, format_call_context
from .record import CLOSED_POSITION, NOT_AVAILABLE, next_instance_id, stream_record
from .sink import LoggingSink

logger = logging.getLogger(__name__)


def _elapsed_since(start):
    return max(time.perf_counter_ns() - start, 0)


class StreamProxy:
    """Forward calls to a backend stream, emitting one record per call."""

    def __init__(self, stream, path, content_length=NOT_AVAILABLE, sink=None, config=None):
        self.stream = stream
        self.path = str(path)
        self.content_length = content_length
        self.sink = sink if sink is not None else LoggingSink()
        self.config = config if config is not None else TraceConfig()
        self.instance_id = next_instance_id()

        if self.config.stack_trace:
            logger.info(f"Creating new input stream..{format_call_context()}")

    @property
    def node(self):
        return self.config.node_address

    def set_readahead(self, readahead):
        # Hints are dropped unless the backend is known to accept them
        if self.config.capabilities.readahead:
            self.stream.set_readahead(readahead)

    def seek(self, pos):
        if self.config.stack_trace:
            logger.info(f"seek {self.path} to {pos}, {format_call_context()}")
        start = time.perf_counter_ns()
        self.stream.seek(pos)
        self._log("seek", NOT_AVAILABLE, pos, NOT_AVAILABLE, _elapsed_since(start))

    def get_pos(self):
        start = time.perf_counter_ns()
        pos = self.stream.get_pos()
        self._log("getPos", NOT_AVAILABLE, NOT_AVAILABLE, NOT_AVAILABLE, _elapsed_since(start))
        return pos

    def seek_to_new_source(self, target):
        start = time.perf_counter_ns()
        result = self.stream.seek_to_new_source(target)
        self._log("seekToNewSource", NOT_AVAILABLE, target, NOT_AVAILABLE, _elapsed_since(start))
        return result

    def read(self):
        """Read a single byte. Returns the byte value, or -1 at end of stream."""
        old_pos = self._current_position()
        start = time.perf_counter_ns()
        value = self.stream.read()
        elapsed = _elapsed_since(start)
        self._log("read", old_pos, NOT_AVAILABLE, 1 if value >= 0 else -1, elapsed)
        return value

    def read_into(self, buffer, offset=0, length=None):
        """Read into buffer at the current position; returns bytes read or -1."""
        old_pos = self._current_position()
        start = time.perf_counter_ns()
        count = self.stream.read_into(buffer, offset, length)
        elapsed = _elapsed_since(start)
        self._log("read", old_pos, NOT_AVAILABLE, count, elapsed)
        return count

    def pread(self, position, buffer, offset=0, length=None):
        """Positional read; the stream cursor is left where it was."""
        old_pos = self._current_position()
        start = time.perf_counter_ns()
        count = self.stream.pread(position, buffer, offset, length)
        elapsed = _elapsed_since(start)
        self._log("read", old_pos, position, count, elapsed)
        return count

    def read_fully(self, position, buffer, offset=0, length=None):
        if length is None:
            length = len(buffer) - offset
        if self.config.stack_trace:
            logger.info(f"readFully {self.path}, {format_call_context()}")

        old_pos = self._current_position()
        start = time.perf_counter_ns()
        self.stream.read_fully(position, buffer, offset, length)
        elapsed = _elapsed_since(start)
        self._log("readFully", old_pos, position, length, elapsed)

    def close(self):
        logger.info(repr(self.stream))
        old_pos = self._current_position()
        start = time.perf_counter_ns()
        self.stream.close()
        self._log("close", old_pos, NOT_AVAILABLE, NOT_AVAILABLE, _elapsed_since(start))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return f"StreamProxy(id={self.instance_id}, path={self.path!r}, stream={self.stream!r})"

    def _current_position(self):
        try:
            return self.stream.get_pos()
        except Exception:
            # closed or released streams cannot report a position
            return CLOSED_POSITION

    def _log(self, operation, old_pos, positional, transferred, elapsed_ns):
        diagnostic = None
        if transferred in (0, 1) and self.config.stack_trace:
            diagnostic = capture_call_context()

        record = stream_record(
            instance_id=self.instance_id,
            node=self.node,
            subject=self.path,
            operation=operation,
            content_length=self.content_length,
            old_position=old_pos,
            real_position=self._current_position(),
            positional=positional,
            bytes_transferred=transferred,
            elapsed_ns=elapsed_ns,
            diagnostic=diagnostic,
        )
        self.sink.append(encode_line(record))
