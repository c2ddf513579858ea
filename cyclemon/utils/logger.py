"""
Structured logging for the cycle monitor.

Provides configurable log levels (silent, normal, verbose, debug)
with consistent formatting for per-cycle progress, obligation events,
per-property verdicts, coverage, and run statistics.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, TextIO

if TYPE_CHECKING:
    from cyclemon.core.report import CoverageReport, PropertyReport


class LogLevel(Enum):
    """
    Logging levels for the monitor.

    SILENT:  No output at all.
    NORMAL:  Warnings, final verdicts, coverage and summary.
    VERBOSE: Progress information, violations as they occur, statistics.
    DEBUG:   Detailed per-cycle and per-obligation output.
    """

    SILENT = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


class MonitorLogger:
    """
    Structured logger for the cycle monitor.

    Provides consistent formatting for progress updates, debug
    information, verdicts, and statistics. Output is filtered
    by the configured log level.

    Attributes:
        level: The minimum log level to display.
        stream: The output stream (defaults to stdout).
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.NORMAL,
        stream: TextIO = sys.stdout,
    ) -> None:
        """
        Initialize logger with level and output stream.

        Args:
            level: Minimum log level to display.
            stream: Output stream (default: sys.stdout).
        """
        self.level: LogLevel = level
        self.stream: TextIO = stream

    def enabled(self, level: LogLevel) -> bool:
        """True if messages at ``level`` would be written."""
        return level is not LogLevel.SILENT and self.level.value >= level.value

    def debug(self, message: str, **kwargs: Any) -> None:
        """
        Log a debug message (only shown at DEBUG level).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.enabled(LogLevel.DEBUG):
            self._write(f"[DEBUG] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Log an info message (shown at VERBOSE and DEBUG levels).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.enabled(LogLevel.VERBOSE):
            self._write(f"[INFO] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def warning(self, message: str) -> None:
        """Log a warning (shown at NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            self._write(f"[WARNING] {message}")

    # ------------------------------------------------------------------ #
    # Per-cycle events
    # ------------------------------------------------------------------ #

    def cycle_processed(self, cycle: int, live: int) -> None:
        """
        Log cycle completion (shown at DEBUG level).

        Args:
            cycle: The cycle index just processed.
            live: Total live obligations across all properties.
        """
        if self.enabled(LogLevel.DEBUG):
            self._write(f"[DEBUG] Processed cycle {cycle} (live obligations: {live})")

    def obligation_created(
        self, label: str, cycle: int, deadline: Optional[int],
    ) -> None:
        """Log a new obligation (DEBUG)."""
        if self.enabled(LogLevel.DEBUG):
            until = "unbounded" if deadline is None else f"deadline {deadline}"
            self._write(f"[TRIGGER] {label} @ cycle {cycle} ({until})")

    def obligation_satisfied(self, label: str, trigger_cycle: int, cycle: int) -> None:
        """Log a satisfied obligation (DEBUG)."""
        if self.enabled(LogLevel.DEBUG):
            self._write(
                f"[PASS] {label} triggered @ {trigger_cycle} satisfied @ cycle {cycle}"
            )

    def obligation_violated(
        self,
        label: str,
        trigger_cycle: int,
        deadline: Optional[int],
        cycle: int,
        reason: str,
    ) -> None:
        """Log a violated obligation (VERBOSE)."""
        if self.enabled(LogLevel.VERBOSE):
            self._write(
                f"[VIOLATION] {label} triggered @ {trigger_cycle}, "
                f"deadline {deadline}, declared @ cycle {cycle}: {reason}"
            )

    def obligations_aborted(self, label: str, count: int, cycle: int) -> None:
        """Log obligations voided by a disable condition (VERBOSE)."""
        if self.enabled(LogLevel.VERBOSE) and count:
            self._write(f"[ABORT] {label}: {count} obligation(s) disabled @ cycle {cycle}")

    def obligation_indeterminate(self, label: str, trigger_cycle: int) -> None:
        """Log an unbounded obligation left open by the end of trace (VERBOSE)."""
        if self.enabled(LogLevel.VERBOSE):
            self._write(
                f"[UNDETERMINED] {label} triggered @ {trigger_cycle} "
                f"still open at end of trace"
            )

    # ------------------------------------------------------------------ #
    # Final results
    # ------------------------------------------------------------------ #

    def property_verdict(self, report: PropertyReport) -> None:
        """
        Log one property's verdict line (NORMAL level and above).

        Args:
            report: The property's final counters.
        """
        if not self.enabled(LogLevel.NORMAL):
            return
        line = (
            f"{report.status.name}: {report.label} "
            f"(triggered={report.triggered}, satisfied={report.satisfied}, "
            f"violated={report.violated}, aborted={report.aborted}, "
            f"indeterminate={report.indeterminate})"
        )
        if report.first_violation is not None:
            line += f" first violation @ cycle {report.first_violation.cycle}"
        self._write(line)

    def coverage_result(self, report: CoverageReport) -> None:
        """Log one coverage point's hit count (NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            mark = "COVERED" if report.covered else "UNCOVERED"
            self._write(f"{mark}: {report.label} (hits={report.hits})")

    def summary(self, counts: Dict[str, int]) -> None:
        """
        Log the run summary block (NORMAL level and above).

        Args:
            counts: Output of :meth:`Report.summary`.
        """
        if not self.enabled(LogLevel.NORMAL):
            return
        self._write("=" * 42)
        self._write("PROPERTY CHECK SUMMARY")
        self._write("=" * 42)
        self._write(f"Total Properties: {counts.get('total', 0)}")
        self._write(f"Holds: {counts.get('holds', 0)}")
        self._write(f"Violated: {counts.get('violated', 0)}")
        self._write(f"Undetermined: {counts.get('undetermined', 0)}")
        self._write(f"Vacuous: {counts.get('vacuous', 0)}")
        self._write(
            f"Coverage: {counts.get('covered', 0)}/{counts.get('coverage_points', 0)}"
        )
        self._write("=" * 42)

    def statistics(self, stats: Dict[str, Any]) -> None:
        """
        Log monitoring statistics (shown at VERBOSE level and above).

        Args:
            stats: Dictionary of statistic names to values.
        """
        if self.enabled(LogLevel.VERBOSE):
            self._write("=== Statistics ===")
            for key, value in stats.items():
                label = key.replace("_", " ").title()
                self._write(f"  {label}: {value}")

    def _write(self, message: str) -> None:
        """Write a line to the output stream."""
        self.stream.write(message + "\n")
