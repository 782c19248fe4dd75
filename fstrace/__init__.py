"""Storage call tracing: instrumented proxies and offline log aggregation."""

from .aggregate import NodeStatistic, bytes_per_node, files_per_node, time_per_node
from .backend import BackendError, BackendInitError, NotFoundError
from .codec import decode_line, encode_line
from .config import Capabilities, TraceConfig
from .filesystem import FilesystemProxy
from .ingest import TraceLogParser, iter_records, parse_log
from .record import CLOSED_POSITION, NOT_AVAILABLE, RecordKind, TelemetryRecord
from .sink import FileSink, LoggingSink, MemorySink, TelemetrySink
from .stream import StreamProxy

__all__ = [
    "BackendError",
    "BackendInitError",
    "CLOSED_POSITION",
    "Capabilities",
    "FileSink",
    "FilesystemProxy",
    "LoggingSink",
    "MemorySink",
    "NOT_AVAILABLE",
    "NodeStatistic",
    "NotFoundError",
    "RecordKind",
    "StreamProxy",
    "TelemetryRecord",
    "TelemetrySink",
    "TraceConfig",
    "TraceLogParser",
    "bytes_per_node",
    "decode_line",
    "encode_line",
    "files_per_node",
    "iter_records",
    "parse_log",
    "time_per_node",
]
