"""
Telemetry sinks
A sink is anything with append(line); proxies receive one explicitly
"""

import logging
import threading

TELEMETRY_LOGGER = "fstrace.telemetry"


class TelemetrySink:
    """Base sink. Subclasses append one encoded line per call."""

    def append(self, line):
        raise NotImplementedError

    def close(self):
        pass


class LoggingSink(TelemetrySink):
    """Write telemetry lines into the host process log at INFO."""

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(TELEMETRY_LOGGER)

    def append(self, line):
        self.logger.info(line)


class FileSink(TelemetrySink):
    """Append telemetry lines to a plain text file."""

    def __init__(self, path):
        self.path = path
        self._lock = threading.Lock()
        self._handle = open(path, "a", encoding="utf-8")

    def append(self, line):
        # proxies on different threads share one sink
        with self._lock:
            self._handle.write(line + "\n")
            self._handle.flush()

    def close(self):
        with self._lock:
            if not self._handle.closed:
                self._handle.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class MemorySink(TelemetrySink):
    """Keep lines in memory; useful for tests and short captures."""

    def __init__(self):
        self.lines = []

    def append(self, line):
        self.lines.append(line)

    def __iter__(self):
        return iter(self.lines)

    def __len__(self):
        return len(self.lines)
