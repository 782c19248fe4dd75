"""
Per-node aggregation of telemetry records
All reductions group by node address and do not depend on record order.
"""

from dataclasses import dataclass, fields
from typing import Dict, Optional

import pandas as pd

from .codec import NULL_NODE
from .record import TelemetryRecord

COLUMNS = [f.name for f in fields(TelemetryRecord)]


@dataclass(frozen=True)
class NodeStatistic:
    """A per-node sum together with the overall count and total."""

    label: str
    per_node: Dict[str, int]
    count: int
    total: int
    operation: Optional[str] = None

    @property
    def mean(self):
        if self.count == 0:
            return 0
        return self.total // self.count


def records_to_frame(records):
    """Build a DataFrame with one row per record; missing nodes become "null"."""
    rows = []
    for record in records:
        row = {name: getattr(record, name) for name in COLUMNS}
        row["kind"] = record.kind.value
        if row["node"] is None:
            row["node"] = NULL_NODE
        rows.append(row)
    return pd.DataFrame(rows, columns=COLUMNS)


def _as_frame(records):
    if isinstance(records, pd.DataFrame):
        return records
    return records_to_frame(records)


def _sum_per_node(frame, column):
    per_node = frame.groupby("node", sort=True)[column].sum()
    return {str(node): int(value) for node, value in per_node.items()}


def bytes_per_node(records):
    """Bytes transferred per node over every record.

    Fields that do not apply (-1) and end-of-stream results count as zero.
    """
    frame = _as_frame(records)
    if frame.empty:
        return NodeStatistic("Data read per node", {}, 0, 0)

    frame = frame.assign(bytes_transferred=frame["bytes_transferred"].clip(lower=0))
    per_node = _sum_per_node(frame, "bytes_transferred")
    return NodeStatistic(
        "Data read per node",
        per_node,
        count=len(frame),
        total=int(frame["bytes_transferred"].sum()),
    )


def time_per_node(records, operation=None):
    """Elapsed nanoseconds per node, optionally for a single operation."""
    frame = _as_frame(records)
    if operation:
        frame = frame[frame["operation"] == operation]

    label = f"Time taken per node: operation({operation})"
    if frame.empty:
        return NodeStatistic(label, {}, 0, 0, operation=operation)

    return NodeStatistic(
        label,
        _sum_per_node(frame, "elapsed_ns"),
        count=len(frame),
        total=int(frame["elapsed_ns"].sum()),
        operation=operation,
    )


def files_per_node(records):
    """Every subject seen per node, in the order the records were given."""
    frame = _as_frame(records)
    if frame.empty:
        return {}
    grouped = frame.groupby("node", sort=True)["subject"].agg(list)
    return {str(node): list(subjects) for node, subjects in grouped.items()}


def operation_breakdown(records):
    """Elapsed nanoseconds per node (rows) and operation (columns)."""
    frame = _as_frame(records)
    if frame.empty:
        return pd.DataFrame()
    return frame.pivot_table(
        index="node", columns="operation", values="elapsed_ns", aggfunc="sum", fill_value=0
    )
