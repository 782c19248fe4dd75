"""
Command line entry points

fstrace-analyze: summarize one telemetry log
fstrace-runs:    print one comparison row per (run, query prefix) log file
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from .logger_config import setup_logger
from .report import DEFAULT_OPERATIONS, TraceAnalyzer


def _add_logging_args(parser):
    parser.add_argument(
        "--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING...)"
    )


def _configure_logging(args):
    level = getattr(logging, str(args.log_level).upper(), logging.WARNING)
    setup_logger("fstrace", level=level)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Analyze storage telemetry recorded by the fstrace proxies"
    )
    parser.add_argument("trace_file", help="Log file containing telemetry lines")
    parser.add_argument(
        "--operation",
        action="append",
        dest="operations",
        help="Operation to break time down by (repeatable, default: %s)"
        % ", ".join(DEFAULT_OPERATIONS),
    )
    parser.add_argument(
        "-v", "--visualize", action="store_true", help="Generate visualization plots"
    )
    parser.add_argument("-o", "--output", default="plots", help="Output directory for plots")
    parser.add_argument("-e", "--export", help="Export results to CSV file")
    parser.add_argument(
        "--no-summary", action="store_true", help="Skip printing summary to console"
    )
    _add_logging_args(parser)

    args = parser.parse_args(argv)
    _configure_logging(args)

    if not os.path.exists(args.trace_file):
        print(f"Error: Trace file '{args.trace_file}' not found.", file=sys.stderr)
        sys.exit(1)

    print(f"Analyzing storage telemetry from: {args.trace_file}")

    analyzer = TraceAnalyzer(args.trace_file)
    analyzer.load_data()

    if analyzer.frame.empty:
        print("No telemetry records found in log.", file=sys.stderr)
        sys.exit(1)

    results = analyzer.compute_statistics(args.operations or DEFAULT_OPERATIONS)

    if not args.no_summary:
        analyzer.print_summary(results)

    if args.visualize:
        analyzer.generate_visualizations(results, args.output)

    if args.export:
        analyzer.export_results(results, args.export)

    print(f"\nAnalysis complete. Found {len(analyzer.records)} records on {len(results['bytes'].per_node)} nodes.")
    return results


def _parse_run(value):
    name, sep, directory = value.partition("=")
    if not sep or not name or not directory:
        raise argparse.ArgumentTypeError(f"expected NAME=DIR, got '{value}'")
    return name, Path(directory)


def find_run_files(directory, prefix, suffix):
    """Log files in directory whose name contains prefix and ends with suffix."""
    prefix = prefix.lower()
    suffix = suffix.lower()
    return sorted(
        path
        for path in Path(directory).iterdir()
        if path.is_file() and prefix in path.name.lower() and path.name.lower().endswith(suffix)
    )


def runs_main(argv=None):
    parser = argparse.ArgumentParser(
        description="Compare telemetry logs across benchmark runs and queries"
    )
    parser.add_argument(
        "--run",
        action="append",
        type=_parse_run,
        required=True,
        help="Run name and directory holding its split logs, as NAME=DIR (repeatable)",
    )
    parser.add_argument(
        "--prefix",
        action="append",
        required=True,
        help="Query prefix selecting files inside each run directory (repeatable)",
    )
    parser.add_argument("--suffix", default=".log", help="File name suffix (default: .log)")
    _add_logging_args(parser)

    args = parser.parse_args(argv)
    _configure_logging(args)

    rows = []
    for prefix in args.prefix:
        for run_name, directory in args.run:
            if not directory.is_dir():
                print(f"Error: run directory '{directory}' not found.", file=sys.stderr)
                sys.exit(1)

            files = find_run_files(directory, prefix, args.suffix)
            if not files:
                print(
                    f"Warning: no files for run={run_name}, prefix={prefix} in {directory}",
                    file=sys.stderr,
                )
                continue

            for path in files:
                analyzer = TraceAnalyzer(path)
                analyzer.load_data()
                results = analyzer.compute_statistics(sorted(analyzer.operations))
                row = analyzer.summary_row(run_name, results)
                print(row)
                rows.append(row)

    return rows


if __name__ == "__main__":
    main()
