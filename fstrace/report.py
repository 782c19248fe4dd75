"""
Trace Analyzer and Visualizer
Turns a telemetry log into per-node statistics, printed summaries,
batch comparison rows, plots and CSV exports.
"""

import os
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .aggregate import (
    bytes_per_node,
    files_per_node,
    operation_breakdown,
    records_to_frame,
    time_per_node,
)
from .ingest import TraceLogParser

# Stream reads, stream closes and filesystem opens dominate replay analysis
DEFAULT_OPERATIONS = ("read", "readFully", "close", "open")


class TraceAnalyzer:
    def __init__(self, trace_file):
        """Initialize analyzer with a telemetry log file."""
        self.trace_file = Path(trace_file)
        self.parser = TraceLogParser(self.trace_file)
        self.frame = records_to_frame([])

    @property
    def records(self):
        return self.parser.records

    @property
    def operations(self):
        return self.parser.operations

    def load_data(self):
        """Parse the log and build the record frame."""
        self.parser.parse()
        self.frame = records_to_frame(self.parser.records)
        return self.frame

    def compute_statistics(self, operations=DEFAULT_OPERATIONS):
        """Bytes per node, time per node, and time per node for each operation."""
        results = {
            "bytes": bytes_per_node(self.frame),
            "time": time_per_node(self.frame),
        }
        for operation in operations:
            results[f"time:{operation}"] = time_per_node(self.frame, operation)
        return results

    def files_per_node(self):
        return files_per_node(self.frame)

    def print_summary(self, results):
        """Print every statistic with one line per node."""
        print("\n" + "=" * 80)
        print(f"TELEMETRY SUMMARY: {self.trace_file}")
        print("=" * 80)

        for stat in results.values():
            print(f"\n{stat.label} : count={stat.count}, total={stat.total}, mean={stat.mean}")
            for node, value in stat.per_node.items():
                print(f"{node} --> {value}")

        files = self.files_per_node()
        print(f"\nNumber of files read per node : count={len(self.frame)}")
        for node, subjects in files.items():
            print(f"{node} --> {len(subjects)} ({len(set(subjects))} distinct)")

    def summary_row(self, run_name, results):
        """One CSV line per run: counts, totals and means of every statistic."""
        parts = [run_name, self.trace_file.name]
        for key, stat in results.items():
            if key == "bytes":
                parts += [stat.count, stat.total, stat.mean]
            else:
                parts += [stat.count, stat.operation or "all", stat.total, stat.mean]
        return ",".join(str(part) for part in parts)

    def _format_bytes(self, bytes_val):
        """Format bytes in human readable format."""
        for unit in ["B", "KB", "MB", "GB"]:
            if bytes_val < 1024.0:
                return f"{bytes_val:.1f}{unit}"
            bytes_val /= 1024.0
        return f"{bytes_val:.1f}TB"

    def generate_visualizations(self, results, output_dir="plots"):
        """Generate per-node plots of the telemetry."""
        if self.frame.empty:
            print("No data to visualize.")
            return []

        os.makedirs(output_dir, exist_ok=True)

        plt.style.use("default")
        sns.set_palette("husl")

        written = [
            # 1. Bytes per node
            self._plot_bytes_per_node(results["bytes"], output_dir),
            # 2. Time per node split by operation
            self._plot_time_breakdown(output_dir),
            # 3. Which nodes touched which files
            self._plot_file_access(output_dir),
        ]
        written = [path for path in written if path]

        print(f"\nVisualizations saved to '{output_dir}' directory")
        return written

    def _plot_bytes_per_node(self, stat, output_dir):
        nodes = list(stat.per_node.keys())
        values = [stat.per_node[n] for n in nodes]

        fig, ax = plt.subplots(figsize=(10, 6))
        bars = ax.bar(nodes, values, alpha=0.7, color="skyblue")
        ax.set_title("Data Read per Node")
        ax.set_ylabel("Bytes Transferred")
        ax.tick_params(axis="x", rotation=45)
        ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda x, p: self._format_bytes(x)))

        for bar, val in zip(bars, values):
            ax.annotate(
                self._format_bytes(val),
                xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                xytext=(0, 3),
                textcoords="offset points",
                ha="center",
                va="bottom",
            )

        path = f"{output_dir}/bytes_per_node.png"
        plt.tight_layout()
        plt.savefig(path, dpi=300, bbox_inches="tight")
        plt.close(fig)
        return path

    def _plot_time_breakdown(self, output_dir):
        breakdown = operation_breakdown(self.frame)
        if breakdown.empty:
            return None

        fig, ax = plt.subplots(figsize=(12, 8))
        x = np.arange(len(breakdown.index))
        bottom = np.zeros(len(breakdown.index))

        # elapsed values are nanoseconds; plot milliseconds
        for operation in breakdown.columns:
            values = breakdown[operation].to_numpy() / 1e6
            ax.bar(x, values, 0.6, bottom=bottom, label=operation, alpha=0.8)
            bottom += values

        ax.set_xlabel("Node")
        ax.set_ylabel("Elapsed Time (ms)")
        ax.set_title("Time Spent per Node by Operation")
        ax.set_xticks(x)
        ax.set_xticklabels(breakdown.index, rotation=45)
        ax.legend()

        path = f"{output_dir}/time_per_node.png"
        plt.tight_layout()
        plt.savefig(path, dpi=300, bbox_inches="tight")
        plt.close(fig)
        return path

    def _plot_file_access(self, output_dir, top_n=20):
        top_files = self.frame["subject"].value_counts().head(top_n).index.tolist()
        if not top_files:
            return None

        access = self.frame[self.frame["subject"].isin(top_files)]
        heatmap_data = pd.crosstab(access["subject"], access["node"])

        fig, ax = plt.subplots(figsize=(12, max(4, len(top_files) * 0.4)))
        sns.heatmap(heatmap_data, annot=True, cmap="viridis", fmt="d", ax=ax)
        ax.set_title("File Access by Node")

        path = f"{output_dir}/file_access_heatmap.png"
        plt.tight_layout()
        plt.savefig(path, dpi=300, bbox_inches="tight")
        plt.close(fig)
        return path

    def export_results(self, results, output_file="fstrace_results.csv"):
        """Export results to CSV, one row per statistic and node."""
        df_data = []
        for stat in results.values():
            for node, value in stat.per_node.items():
                df_data.append(
                    {
                        "Statistic": stat.label,
                        "Operation": stat.operation or "",
                        "Node": node,
                        "Value": value,
                        "Count": stat.count,
                        "Total": stat.total,
                        "Mean": stat.mean,
                    }
                )

        df = pd.DataFrame(
            df_data, columns=["Statistic", "Operation", "Node", "Value", "Count", "Total", "Mean"]
        )
        df.to_csv(output_file, index=False)
        print(f"Results exported to {output_file}")
        return df
