"""
Log ingestion
Pulls telemetry records out of a raw operational log. The log can be the
unfiltered job log: anything that is not a telemetry line is skipped.
"""

import logging
from pathlib import Path

from .codec import decode_line

logger = logging.getLogger(__name__)


def _iter_lines(source):
    if isinstance(source, (str, Path)):
        with open(source, "r", encoding="utf-8", errors="replace") as f:
            yield from f
    else:
        yield from source


def iter_records(source):
    """Yield a TelemetryRecord for every telemetry line in source.

    source is a path or any iterable of text lines (an open file, a list).
    """
    for line_no, line in enumerate(_iter_lines(source), 1):
        try:
            record = decode_line(line)
        except ValueError as e:
            logger.debug(f"Skipping line {line_no}: {e}")
            continue

        if record is not None:
            yield record


def parse_log(source):
    return list(iter_records(source))


class TraceLogParser:
    """Parse one log file and keep the records and operations seen."""

    def __init__(self, trace_file):
        self.trace_file = Path(trace_file)
        self._records = []
        self._operations = set()
        self.parsed = False

    @property
    def records(self):
        self._check_parsed()
        return self._records

    @property
    def operations(self):
        self._check_parsed()
        return self._operations

    def parse(self):
        self._records = []
        self._operations = set()
        for record in iter_records(self.trace_file):
            self._records.append(record)
            self._operations.add(record.operation)

        self.parsed = True
        logger.info(f"Parsed {len(self._records)} telemetry records from {self.trace_file}")
        return self._records

    def _check_parsed(self):
        if not self.parsed:
            raise RuntimeError("Must call parse before accessing parsed data")
