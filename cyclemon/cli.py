"""
Command-line interface for the CYCLEMON property monitor.

Provides argument parsing and orchestration for checking a JSON property
configuration against a recorded CSV signal trace.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

import cyclemon
from cyclemon.core.errors import MonitorError
from cyclemon.core.monitor import CycleMonitor
from cyclemon.core.report import PropertyStatus
from cyclemon.utils.logger import LogLevel, MonitorLogger


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CYCLEMON CLI."""
    parser = argparse.ArgumentParser(
        prog="cyclemon",
        description=(
            "CYCLEMON: cycle-accurate temporal property monitor - "
            "checks bounded-response and sticky timing properties "
            "over clock-stepped signal traces"
        ),
    )

    required = parser.add_argument_group("required arguments")
    required.add_argument(
        "-c",
        "--config",
        type=Path,
        required=True,
        help="Path to property configuration file (.json)",
    )
    required.add_argument(
        "-t",
        "--trace",
        type=Path,
        required=True,
        help="Path to trace file (.csv)",
    )

    parser.add_argument(
        "-o",
        "--output",
        choices=["silent", "normal", "verbose"],
        default="normal",
        help="Output level (default: normal)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        type=int,
        choices=[0, 1, 2, 3],
        default=0,
        help="Debug level 0-3 (default: 0)",
    )
    parser.add_argument(
        "--json",
        metavar="FILE",
        default=None,
        help="Write the report as JSON to FILE ('-' for stdout)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Threads used to evaluate properties each cycle (default: 1)",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Skip malformed property/coverage records instead of failing",
    )
    parser.add_argument(
        "--fail-on-undetermined",
        action="store_true",
        help="Exit 1 when any property is undetermined",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print statistics after checking",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cyclemon {cyclemon.__version__}",
    )

    return parser


def _resolve_log_level(output: str, debug: int) -> LogLevel:
    """Determine the effective log level from output and debug settings."""
    if debug >= 3:
        return LogLevel.DEBUG
    if output == "verbose" or debug >= 1:
        return LogLevel.VERBOSE
    if output == "silent":
        return LogLevel.SILENT
    return LogLevel.NORMAL


def main() -> None:
    """Entry point for the ``cyclemon`` CLI command."""
    parser = _build_parser()
    args = parser.parse_args()

    try:
        _run(args)
    except SystemExit:
        raise
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)


def _run(args: argparse.Namespace) -> None:
    """Execute the checking pipeline."""
    # Validate input files exist
    if not args.config.exists():
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        sys.exit(2)

    if not args.trace.exists():
        print(f"Error: Trace file not found: {args.trace}", file=sys.stderr)
        sys.exit(2)

    if args.workers < 1:
        print("Error: --workers must be at least 1", file=sys.stderr)
        sys.exit(2)

    # JSON on stdout replaces the text report
    json_to_stdout = args.json == "-"
    log_level = _resolve_log_level(args.output, args.debug)
    if json_to_stdout:
        log_level = LogLevel.SILENT
    stream = sys.stdout if log_level is not LogLevel.SILENT else open(os.devnull, "w")
    logger = MonitorLogger(level=log_level, stream=stream)

    try:
        monitor = CycleMonitor.from_files(
            config_file=args.config,
            trace_file=args.trace,
            logger=logger,
            workers=args.workers,
            strict=not args.keep_going,
        )
        report = monitor.run_from_trace()
    except MonitorError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    finally:
        if stream is not sys.stdout:
            stream.close()

    if args.json is not None:
        content = json.dumps(report.to_dict(), indent=2)
        if json_to_stdout:
            print(content)
        else:
            Path(args.json).write_text(content + "\n")

    # Statistics (skip if verbose already printed them)
    if args.stats and not json_to_stdout and log_level.value < LogLevel.VERBOSE.value:
        print()
        print("=== Statistics ===")
        for key, value in monitor.statistics().items():
            label = key.replace("_", " ").title()
            print(f"  {label}: {value}")

    # Exit with appropriate code
    if not report.passed:
        sys.exit(1)
    if args.fail_on_undetermined and any(
        p.status is PropertyStatus.UNDETERMINED for p in report.properties
    ):
        sys.exit(1)
    sys.exit(0)
