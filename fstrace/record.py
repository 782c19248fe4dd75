"""
Telemetry record model
One record describes one proxied filesystem or stream call
"""

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Value used for any integer field that does not apply to a call
NOT_AVAILABLE = -1

# Position reported once the backend stream can no longer answer getPos
CLOSED_POSITION = -100000

FILESYSTEM_OPERATIONS = (
    "open",
    "create",
    "append",
    "rename",
    "delete_recursive",
    "delete_nonrecursive",
    "listStatus",
    "mkdirs",
    "getFileStatus",
    "close",
)

STREAM_OPERATIONS = (
    "read",
    "readFully",
    "seek",
    "getPos",
    "seekToNewSource",
    "close",
)

_instance_ids = itertools.count(1)


def next_instance_id():
    """Issue a process-unique id for a new proxy instance."""
    return next(_instance_ids)


class RecordKind(Enum):
    """Shape of a record; the value is the tag written in front of the line."""

    STREAM = "InputStream"
    FILESYSTEM = "FileSystem"


@dataclass(frozen=True)
class TelemetryRecord:
    kind: RecordKind
    instance_id: int
    node: Optional[str]
    subject: str
    operation: str
    content_length: int = NOT_AVAILABLE
    old_position: int = NOT_AVAILABLE
    real_position: int = NOT_AVAILABLE
    positional: int = NOT_AVAILABLE
    bytes_transferred: int = NOT_AVAILABLE
    elapsed_ns: int = 0
    diagnostic: Optional[str] = None

    def __post_init__(self):
        if not self.operation:
            raise ValueError("operation must be non-empty")
        if self.elapsed_ns < 0:
            raise ValueError(f"elapsed_ns must be >= 0, got {self.elapsed_ns}")
        if self.diagnostic is not None:
            if self.kind is not RecordKind.STREAM:
                raise ValueError("only stream records carry a diagnostic")
            if self.bytes_transferred not in (0, 1):
                raise ValueError(
                    "diagnostic is only captured for reads returning 0 or 1 bytes"
                )


def stream_record(
    instance_id,
    node,
    subject,
    operation,
    content_length=NOT_AVAILABLE,
    old_position=NOT_AVAILABLE,
    real_position=NOT_AVAILABLE,
    positional=NOT_AVAILABLE,
    bytes_transferred=NOT_AVAILABLE,
    elapsed_ns=0,
    diagnostic=None,
):
    return TelemetryRecord(
        kind=RecordKind.STREAM,
        instance_id=instance_id,
        node=node,
        subject=subject,
        operation=operation,
        content_length=content_length,
        old_position=old_position,
        real_position=real_position,
        positional=positional,
        bytes_transferred=bytes_transferred,
        elapsed_ns=elapsed_ns,
        diagnostic=diagnostic or None,
    )


def filesystem_record(
    instance_id, node, subject, operation, content_length=NOT_AVAILABLE, elapsed_ns=0
):
    return TelemetryRecord(
        kind=RecordKind.FILESYSTEM,
        instance_id=instance_id,
        node=node,
        subject=subject,
        operation=operation,
        content_length=content_length,
        elapsed_ns=elapsed_ns,
    )
