"""
End-to-end integration tests for the CYCLEMON property monitor.

Tests the complete pipeline from configuration and trace files through
to the report, the Python API (CycleMonitor) on synthetic traces, and
CLI invocation on the bundled CPU-style fixtures.
"""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from cyclemon.core.monitor import CycleMonitor
from cyclemon.core.property import PropertyDefinition, Window
from cyclemon.core.report import PropertyStatus, Report
from cyclemon.core.snapshot import Snapshot
from cyclemon.parser.expression import compile_predicate
from cyclemon.utils.logger import LogLevel, MonitorLogger

# ---------------------------------------------------------------------------
# Shared paths
# ---------------------------------------------------------------------------

FIXTURES = Path(__file__).parent.parent / "fixtures"
TRACES = FIXTURES / "traces"
CONFIGS = FIXTURES / "configs"

SIGNALS = frozenset({"rst_n", "trig", "resp"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_cli(*args: str, timeout: int = 30) -> subprocess.CompletedProcess[str]:
    """Invoke the CLI via ``python -m cyclemon`` and return the result."""
    cmd = [sys.executable, "-m", "cyclemon", *args]
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        cwd=str(Path(__file__).parent.parent.parent),
    )


def _property(window: Window, disable: str = "!rst_n", label: str = "p") -> PropertyDefinition:
    return PropertyDefinition(
        label=label,
        trigger=compile_predicate("trig", SIGNALS),
        consequent=compile_predicate("resp", SIGNALS),
        window=window,
        disable=compile_predicate(disable, SIGNALS),
    )


def _trace(
    length: int,
    trig: List[int],
    resp: List[int],
    reset: Optional[List[int]] = None,
) -> List[Snapshot]:
    """Build a trace where ``trig``/``resp``/``reset`` list the cycles a signal is high."""
    reset = reset or []
    return [
        Snapshot(
            cycle,
            {
                "rst_n": int(cycle not in reset),
                "trig": int(cycle in trig),
                "resp": int(cycle in resp),
            },
        )
        for cycle in range(length)
    ]


def _check(definition: PropertyDefinition, trace: List[Snapshot]) -> Report:
    monitor = CycleMonitor(SIGNALS, properties=[definition])
    return monitor.run(trace)


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


class TestReferenceScenarios:
    """Windowed response scenarios with hand-computed outcomes."""

    def test_response_at_last_cycle_of_window(self) -> None:
        report = _check(_property(Window(1, 5)), _trace(7, trig=[0], resp=[5]))
        entry = report.get_property("p")
        assert (entry.triggered, entry.satisfied, entry.violated) == (1, 1, 0)
        assert entry.status is PropertyStatus.HOLDS

    def test_no_response_violates_at_deadline(self) -> None:
        report = _check(_property(Window(1, 5)), _trace(7, trig=[0], resp=[]))
        entry = report.get_property("p")
        assert entry.violated == 1
        assert entry.first_violation_cycle == 5
        assert entry.first_violation.deadline_cycle == 5

    def test_next_cycle_check_fails_twice(self) -> None:
        """Mutual-exclusion style check violated on two consecutive triggers."""
        definition = PropertyDefinition.next_exact(
            "p",
            compile_predicate("trig", SIGNALS),
            compile_predicate("resp", SIGNALS),
        )
        report = _check(definition, _trace(3, trig=[0, 1], resp=[]))
        entry = report.get_property("p")
        assert (entry.triggered, entry.violated, entry.satisfied) == (2, 2, 0)
        assert entry.first_violation_cycle == 1

    def test_disable_aborts_live_obligation(self) -> None:
        report = _check(_property(Window(1, 5)), _trace(8, trig=[0], resp=[6], reset=[3]))
        entry = report.get_property("p")
        assert (entry.aborted, entry.violated, entry.satisfied) == (1, 0, 0)

    def test_sticky_property_satisfied(self) -> None:
        report = _check(
            _property(Window.unbounded(), disable="false"),
            _trace(11, trig=[2], resp=list(range(3, 11))),
        )
        entry = report.get_property("p")
        assert (entry.satisfied, entry.indeterminate, entry.violated) == (1, 0, 0)
        assert report.last_cycle == 10

    def test_sticky_property_indeterminate(self) -> None:
        report = _check(
            _property(Window.unbounded(), disable="false"),
            _trace(11, trig=[2], resp=[]),
        )
        entry = report.get_property("p")
        assert (entry.satisfied, entry.indeterminate, entry.violated) == (0, 1, 0)
        assert entry.status is PropertyStatus.UNDETERMINED
        assert report.passed


# ---------------------------------------------------------------------------
# Properties of the engine over synthetic traces
# ---------------------------------------------------------------------------


class TestEngineProperties:
    """Broader checks over parametrised synthetic traces."""

    @pytest.mark.parametrize("low, high", [(1, 1), (1, 4), (2, 3), (3, 6)])
    def test_response_inside_window_always_satisfies(self, low: int, high: int) -> None:
        for k in range(low, high + 1):
            report = _check(_property(Window(low, high)), _trace(high + 2, trig=[0], resp=[k]))
            entry = report.get_property("p")
            assert (entry.satisfied, entry.violated) == (1, 0), f"offset {k}"

    @pytest.mark.parametrize("low, high", [(1, 1), (2, 4)])
    def test_response_outside_window_violates_once(self, low: int, high: int) -> None:
        outside = [k for k in range(0, high + 3) if not low <= k <= high]
        report = _check(_property(Window(low, high)), _trace(high + 3, trig=[0], resp=outside))
        entry = report.get_property("p")
        assert entry.violated == 1
        assert entry.first_violation.deadline_cycle == high

    def test_disable_dominates_later_response(self) -> None:
        report = _check(_property(Window(1, 6)), _trace(8, trig=[0], resp=[4], reset=[2]))
        entry = report.get_property("p")
        assert (entry.aborted, entry.satisfied, entry.violated) == (1, 0, 0)

    def test_overlapping_triggers_are_independent(self) -> None:
        """Triggers at 0 and 2 with window [1,3]: response at 4 only helps the second."""
        report = _check(_property(Window(1, 3)), _trace(6, trig=[0, 2], resp=[4]))
        entry = report.get_property("p")
        assert (entry.triggered, entry.satisfied, entry.violated) == (2, 1, 1)
        assert entry.first_violation.trigger_cycle == 0
        assert entry.first_violation_cycle == 3

    def test_coverage_counts_exact_hits(self) -> None:
        from cyclemon.core.property import CoveragePoint

        pattern = [1, 0, 1, 1, 0, 0, 1, 0, 1, 1]
        trace = _trace(len(pattern), trig=[i for i, v in enumerate(pattern) if v], resp=[])
        monitor = CycleMonitor(
            SIGNALS, coverage=[CoveragePoint("trig_seen", compile_predicate("trig", SIGNALS))],
        )
        report = monitor.run(trace)
        assert report.coverage_hits("trig_seen") == sum(pattern)

    def test_counters_monotonic_during_run(self) -> None:
        monitor = CycleMonitor(SIGNALS, properties=[_property(Window(1, 2))])
        trace = _trace(30, trig=list(range(0, 30, 3)), resp=list(range(1, 30, 4)), reset=[10, 20])
        previous = monitor.get_report().get_property("p")
        for snapshot in trace:
            monitor.observe(snapshot)
            current = monitor.get_report().get_property("p")
            for name in ("triggered", "satisfied", "violated", "aborted"):
                assert getattr(current, name) >= getattr(previous, name)
            previous = current
        final = monitor.finish().get_property("p")
        assert final.triggered == final.satisfied + final.violated + final.aborted


# ---------------------------------------------------------------------------
# Fixture files through the API
# ---------------------------------------------------------------------------


class TestFixtureFiles:
    """Check the bundled configurations against the bundled traces."""

    @staticmethod
    def _run(config: str, trace: str) -> Report:
        monitor = CycleMonitor.from_files(CONFIGS / config, TRACES / trace)
        return monitor.run_from_trace()

    def test_handshake_pass(self) -> None:
        report = self._run("handshake.json", "handshake_pass.csv")
        entry = report.get_property("valid_gets_ready")
        assert (entry.triggered, entry.satisfied) == (2, 2)
        assert report.coverage_hits("handshake") == 1
        assert report.passed

    def test_handshake_fail(self) -> None:
        entry = self._run("handshake.json", "handshake_fail.csv").get_property("valid_gets_ready")
        assert (entry.triggered, entry.violated) == (1, 1)
        assert entry.first_violation_cycle == 4

    def test_handshake_abort(self) -> None:
        report = self._run("handshake.json", "handshake_abort.csv")
        entry = report.get_property("valid_gets_ready")
        assert (entry.triggered, entry.aborted) == (1, 1)
        assert entry.status is PropertyStatus.HOLDS
        assert report.coverage_hits("handshake") == 0

    def test_cpu_pass(self) -> None:
        report = self._run("cpu.json", "cpu_pass.csv")
        assert report.cycles_observed == 8
        expected: Dict[str, tuple] = {
            "handshake": (1, 1),
            "mem_rw_exclusive": (1, 1),
            "pc_increments": (2, 2),
            "halt_stays_idle": (1, 1),
        }
        for label, (triggered, satisfied) in expected.items():
            entry = report.get_property(label)
            assert (entry.triggered, entry.satisfied) == (triggered, satisfied), label
            assert entry.status is PropertyStatus.HOLDS, label
        assert [c.hits for c in report.coverage] == [1, 1, 1]

    def test_cpu_fail(self) -> None:
        report = self._run("cpu.json", "cpu_fail.csv")
        mem = report.get_property("mem_rw_exclusive")
        assert (mem.triggered, mem.violated, mem.first_violation_cycle) == (2, 2, 2)
        pc = report.get_property("pc_increments")
        assert (pc.triggered, pc.violated, pc.first_violation_cycle) == (1, 1, 2)
        assert report.get_property("handshake").status is PropertyStatus.VACUOUS
        assert report.get_property("halt_stays_idle").status is PropertyStatus.VACUOUS
        summary = report.summary()
        assert (summary["total"], summary["violated"], summary["vacuous"]) == (4, 2, 2)
        assert report.coverage_hits("op_add") == 1
        assert report.coverage_hits("op_load") == 0
        assert report.coverage_hits("in_reset") == 1

    def test_verbose_log_of_failure(self) -> None:
        from io import StringIO

        buf = StringIO()
        monitor = CycleMonitor.from_files(
            CONFIGS / "cpu.json",
            TRACES / "cpu_fail.csv",
            logger=MonitorLogger(LogLevel.VERBOSE, buf),
        )
        monitor.run_from_trace()
        output = buf.getvalue()
        assert "[VIOLATION] mem_rw_exclusive triggered @ 1, deadline 2" in output
        assert "VIOLATED: pc_increments" in output
        assert "UNCOVERED: op_load (hits=0)" in output


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestCLI:
    """Run the CLI over the CPU fixtures."""

    def test_cpu_pass_exit_zero(self) -> None:
        result = _run_cli("-c", str(CONFIGS / "cpu.json"), "-t", str(TRACES / "cpu_pass.csv"))
        assert result.returncode == 0, result.stderr
        assert "Holds: 4" in result.stdout
        assert "Coverage: 3/3" in result.stdout

    def test_cpu_fail_exit_one(self) -> None:
        result = _run_cli("-c", str(CONFIGS / "cpu.json"), "-t", str(TRACES / "cpu_fail.csv"))
        assert result.returncode == 1
        assert "Violated: 2" in result.stdout
        assert "Coverage: 2/3" in result.stdout

    def test_cpu_fail_json(self) -> None:
        result = _run_cli(
            "-c", str(CONFIGS / "cpu.json"),
            "-t", str(TRACES / "cpu_fail.csv"),
            "--json", "-",
        )
        data = json.loads(result.stdout)
        by_label = {p["label"]: p for p in data["per_property"]}
        assert by_label["mem_rw_exclusive"]["violated"] == 2
        assert by_label["pc_increments"]["first_violation"]["trigger_cycle"] == 1
        assert data["cycles_observed"] == 5
        assert data["finished"] is True

    def test_out_of_order_exit_two(self) -> None:
        result = _run_cli(
            "-c", str(CONFIGS / "handshake.json"),
            "-t", str(TRACES / "handshake_out_of_order.csv"),
        )
        assert result.returncode == 2
