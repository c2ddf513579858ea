"""
Per-cycle monitor driver.

Feeds each incoming snapshot to every registered property's obligation
tracker and to the coverage registry, exactly once per cycle and in
strictly increasing cycle order, and exposes a consistent report that
can be queried at any time.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from cyclemon.core.coverage import CoverageRegistry
from cyclemon.core.errors import ConfigurationError, SequenceError
from cyclemon.core.obligation import (
    CycleInputs,
    Obligation,
    ObligationState,
    ObligationTracker,
    TrackerStep,
)
from cyclemon.core.property import CoveragePoint, PropertyDefinition
from cyclemon.core.report import Report
from cyclemon.core.snapshot import Snapshot
from cyclemon.utils.config_loader import MonitorConfig, load_config
from cyclemon.utils.logger import LogLevel, MonitorLogger
from cyclemon.utils.trace_reader import TraceReader


class CycleMonitor:
    """
    Cycle-accurate checker for a set of timing properties.

    Orchestrates, for every observed cycle:
    1. Sequencing checks (cycle index must be exactly one past the last)
    2. Evaluation of every property and coverage predicate, in
       registration order (optionally spread over worker threads)
    3. One obligation-tracker update per property and one coverage update,
       only once every predicate has evaluated without error
    4. Commit of the new (previous, current) snapshot pair

    ``observe``, ``finish`` and ``get_report`` are serialised by a lock,
    so a report never reflects a partially processed cycle.

    Attributes:
        signals: Names of all signals a snapshot must carry.
        logger: Logger for output.
        workers: Number of threads used to step properties.
        rejected: Configuration errors skipped by a non-strict setup.
    """

    def __init__(
        self,
        signals: Iterable[str],
        properties: Iterable[PropertyDefinition] = (),
        coverage: Iterable[CoveragePoint] = (),
        logger: Optional[MonitorLogger] = None,
        workers: int = 1,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            signals: Declared signal names; predicates may only read these.
            properties: Properties to register, in order.
            coverage: Coverage points to register, in order.
            logger: Optional logger for progress and verdict output.
            workers: Threads used to step properties each cycle (>= 1).

        Raises:
            ConfigurationError: If a property or coverage point is invalid,
                or ``workers`` is less than one.
        """
        if workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {workers}")

        self.signals: frozenset[str] = frozenset(signals)
        self.logger: MonitorLogger = logger or MonitorLogger(LogLevel.SILENT)
        self.workers: int = workers
        self.rejected: List[ConfigurationError] = []

        self._trackers: List[ObligationTracker] = []
        self._coverage: CoverageRegistry = CoverageRegistry()
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

        self._prev: Optional[Snapshot] = None
        self._cur: Optional[Snapshot] = None
        self._cycles_observed: int = 0
        self._finished: bool = False
        self._failure: Optional[str] = None
        self._peak_live: int = 0

        # For from_files: trace to replay
        self._loaded_trace: Optional[TraceReader] = None

        for definition in properties:
            self.add_property(definition)
        for point in coverage:
            self.add_coverage(point)

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def add_property(self, definition: PropertyDefinition) -> None:
        """
        Register a property.

        Raises:
            ConfigurationError: If the label is taken, a predicate reads an
                undeclared signal, or the run has already started.
        """
        with self._lock:
            self._check_registration_open(definition.label)
            if any(t.label == definition.label for t in self._trackers):
                raise ConfigurationError(f"Duplicate property label '{definition.label}'")
            self._check_signals(definition.label, definition.signals)
            self._trackers.append(ObligationTracker(definition))

    def add_coverage(self, point: CoveragePoint) -> None:
        """
        Register a coverage point.

        Raises:
            ConfigurationError: If the label is taken, the predicate reads
                an undeclared signal, or the run has already started.
        """
        with self._lock:
            self._check_registration_open(point.label)
            self._check_signals(point.label, point.predicate.signals)
            self._coverage.register(point)

    @property
    def properties(self) -> List[PropertyDefinition]:
        """Registered properties, in registration order."""
        return [t.definition for t in self._trackers]

    @property
    def coverage_points(self) -> List[CoveragePoint]:
        """Registered coverage points, in registration order."""
        return list(self._coverage.points)

    # ------------------------------------------------------------------ #
    # Per-cycle driving
    # ------------------------------------------------------------------ #

    def observe(self, snapshot: Snapshot) -> None:
        """
        Process one cycle.

        Args:
            snapshot: Signal values for the next cycle. Its index must be 0
                on the first call and exactly one more than the previous
                snapshot's afterwards.

        Raises:
            SequenceError: On an out-of-order cycle index, after finish()
                or stop(), or after any earlier SequenceError.
            ConfigurationError: If the snapshot lacks a declared signal
                (nothing is updated in that case).
        """
        with self._lock:
            if self._failure is not None:
                raise SequenceError(f"Monitor halted by an earlier error: {self._failure}")
            if self._finished:
                raise SequenceError(
                    f"Monitor already finished; cycle {snapshot.cycle} rejected"
                )

            expected = 0 if self._cur is None else self._cur.cycle + 1
            if snapshot.cycle != expected:
                self._failure = (
                    f"expected cycle {expected}, got cycle {snapshot.cycle}"
                )
                raise SequenceError(f"Out-of-order snapshot: {self._failure}")

            missing = self.signals.difference(snapshot.signals)
            if missing:
                raise ConfigurationError(
                    f"Snapshot at cycle {snapshot.cycle} is missing "
                    f"signal(s) {sorted(missing)}"
                )

            prev = self._cur
            # Every predicate is evaluated before any tracker is updated
            try:
                inputs = self._evaluate_properties(prev, snapshot)
                hits = self._coverage.evaluate(prev, snapshot)
            except Exception as exc:
                self._failure = f"predicate evaluation failed at cycle {snapshot.cycle}: {exc}"
                raise

            steps = [
                tracker.apply(snapshot.cycle, values)
                for tracker, values in zip(self._trackers, inputs)
            ]
            self._coverage.record(hits)
            self._prev, self._cur = prev, snapshot
            self._cycles_observed += 1

            live = sum(len(t.live) for t in self._trackers)
            self._peak_live = max(self._peak_live, live)
            self._log_steps(steps)
            self.logger.cycle_processed(snapshot.cycle, live)

    def run(self, snapshots: Iterable[Snapshot]) -> Report:
        """
        Observe every snapshot in order, then finish.

        Args:
            snapshots: The full trace, starting at cycle 0.

        Returns:
            The final report.
        """
        self._log_setup()
        for snapshot in snapshots:
            self.observe(snapshot)
        return self.finish()

    def finish(self) -> Report:
        """
        End the run and resolve every obligation still live.

        Bounded obligations become violations; unbounded ones are marked
        indeterminate. Calling finish() again returns the same report.

        Returns:
            The final report.
        """
        with self._lock:
            if not self._finished:
                self._finished = True
                last_cycle = None if self._cur is None else self._cur.cycle
                for tracker in self._trackers:
                    for obligation in tracker.finish(last_cycle):
                        self._log_finish(tracker, obligation)
                self._shutdown_executor()
                report = self._build_report()
                self._log_results(report)
                return report
            return self._build_report()

    def stop(self) -> Report:
        """
        Stop early: equivalent to finish() at the last cycle received.

        No further snapshots are accepted afterwards.
        """
        with self._lock:
            last = None if self._cur is None else self._cur.cycle
        self.logger.info(f"Monitor stopped after cycle {last}")
        return self.finish()

    def close(self) -> None:
        """Release worker threads without finishing the run."""
        with self._lock:
            self._shutdown_executor()

    def __enter__(self) -> CycleMonitor:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_report(self) -> Report:
        """
        Return a consistent report as of the last fully processed cycle.

        Safe to call from another thread while observe() is running.
        """
        with self._lock:
            return self._build_report()

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def last_cycle(self) -> Optional[int]:
        cur = self._cur
        return None if cur is None else cur.cycle

    def statistics(self) -> Dict[str, Any]:
        """Run statistics, as shown by the logger at VERBOSE level."""
        with self._lock:
            return self._statistics()

    # ------------------------------------------------------------------ #
    # Construction helpers
    # ------------------------------------------------------------------ #

    @classmethod
    def from_config(
        cls,
        config: MonitorConfig,
        logger: Optional[MonitorLogger] = None,
        workers: int = 1,
        strict: bool = True,
    ) -> CycleMonitor:
        """
        Create a monitor from a loaded configuration.

        Each property and coverage record is compiled and registered
        independently, so one bad record does not prevent the others.

        Args:
            config: Loaded configuration.
            logger: Optional logger.
            workers: Threads used to step properties.
            strict: If True, raise when any record was rejected;
                    otherwise log a warning per rejected record and keep
                    them in ``monitor.rejected``.

        Returns:
            Configured CycleMonitor ready to observe.

        Raises:
            ConfigurationError: In strict mode, if any record was rejected.
        """
        monitor = cls(config.signals, logger=logger, workers=workers)
        definitions, errors = config.build_properties()
        points, coverage_errors = config.build_coverage()
        errors.extend(coverage_errors)

        for definition in definitions:
            try:
                monitor.add_property(definition)
            except ConfigurationError as exc:
                errors.append(exc)
        for point in points:
            try:
                monitor.add_coverage(point)
            except ConfigurationError as exc:
                errors.append(exc)

        if errors and strict:
            monitor.close()
            raise ConfigurationError("; ".join(str(e) for e in errors))
        for exc in errors:
            monitor.logger.warning(f"Skipping record: {exc}")
        monitor.rejected.extend(errors)
        return monitor

    @classmethod
    def from_files(
        cls,
        config_file: Path,
        trace_file: Path,
        logger: Optional[MonitorLogger] = None,
        workers: int = 1,
        strict: bool = True,
    ) -> CycleMonitor:
        """
        Create a monitor from a configuration file and a trace file.

        Args:
            config_file: Path to the JSON property configuration.
            trace_file: Path to the CSV trace.
            logger: Optional logger.
            workers: Threads used to step properties.
            strict: See :meth:`from_config`.

        Returns:
            Configured CycleMonitor; call run_from_trace() to replay.
        """
        config = load_config(config_file)
        monitor = cls.from_config(config, logger=logger, workers=workers, strict=strict)
        monitor._loaded_trace = TraceReader(trace_file)
        return monitor

    def run_from_trace(self) -> Report:
        """
        Replay the trace loaded by from_files() and finish.

        Snapshots are streamed from the file one cycle at a time.

        Returns:
            The final report.
        """
        if self._loaded_trace is None:
            raise RuntimeError(
                "No trace loaded. Use from_files() to create monitor."
            )
        self.logger.info(f"Reading trace {self._loaded_trace.filepath}")
        return self.run(self._loaded_trace.iter_snapshots())

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _check_registration_open(self, label: str) -> None:
        if self._cur is not None or self._finished or self._failure is not None:
            raise ConfigurationError(
                f"Cannot register '{label}': the run has already started"
            )

    def _check_signals(self, label: str, used: Iterable[str]) -> None:
        undefined = frozenset(used) - self.signals
        if undefined:
            raise ConfigurationError(
                f"'{label}' references undefined signal(s) {sorted(undefined)}"
            )

    def _evaluate_properties(
        self, prev: Optional[Snapshot], cur: Snapshot,
    ) -> List[CycleInputs]:
        if self.workers > 1 and len(self._trackers) > 1:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.workers, thread_name_prefix="cyclemon",
                )
            # list() waits for every tracker: nothing is committed early
            return list(self._executor.map(lambda t: t.evaluate(prev, cur), self._trackers))
        return [tracker.evaluate(prev, cur) for tracker in self._trackers]

    def _shutdown_executor(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _build_report(self) -> Report:
        return Report(
            properties=tuple(t.report() for t in self._trackers),
            coverage=self._coverage.report(),
            cycles_observed=self._cycles_observed,
            last_cycle=None if self._cur is None else self._cur.cycle,
            finished=self._finished,
        )

    def _statistics(self) -> Dict[str, Any]:
        return {
            "cycles_observed": self._cycles_observed,
            "properties": len(self._trackers),
            "coverage_points": len(self._coverage),
            "obligations_created": sum(t.triggered for t in self._trackers),
            "peak_live_obligations": self._peak_live,
            "workers": self.workers,
        }

    def _log_setup(self) -> None:
        self.logger.info(
            f"Monitoring {len(self._trackers)} properties and "
            f"{len(self._coverage)} coverage points"
        )
        self.logger.info(f"Signals: {', '.join(sorted(self.signals))}")
        for definition in self.properties:
            self.logger.debug(f"Property {definition}")

    def _log_steps(self, steps: List[TrackerStep]) -> None:
        for tracker, step in zip(self._trackers, steps):
            label = tracker.label
            if step.disabled:
                self.logger.obligations_aborted(label, len(step.resolved), step.cycle)
                continue
            for obligation in step.resolved:
                if obligation.state is ObligationState.SATISFIED:
                    self.logger.obligation_satisfied(
                        label, obligation.trigger_cycle, step.cycle,
                    )
                elif obligation.state is ObligationState.VIOLATED:
                    self.logger.obligation_violated(
                        label,
                        obligation.trigger_cycle,
                        obligation.deadline_cycle,
                        step.cycle,
                        "consequent did not hold within window",
                    )
            if step.created is not None:
                self.logger.obligation_created(
                    label, step.created.trigger_cycle, step.created.deadline_cycle,
                )
            elif step.suppressed:
                self.logger.debug(
                    f"{label}: trigger @ cycle {step.cycle} ignored (obligation in flight)"
                )

    def _log_finish(self, tracker: ObligationTracker, obligation: Obligation) -> None:
        if obligation.state is ObligationState.INDETERMINATE:
            self.logger.obligation_indeterminate(tracker.label, obligation.trigger_cycle)
        else:
            self.logger.obligation_violated(
                tracker.label,
                obligation.trigger_cycle,
                obligation.deadline_cycle,
                obligation.resolved_cycle,
                "trace ended before deadline",
            )

    def _log_results(self, report: Report) -> None:
        for entry in report.properties:
            self.logger.property_verdict(entry)
        for entry in report.coverage:
            self.logger.coverage_result(entry)
        self.logger.summary(report.summary())
        self.logger.statistics(self._statistics())
