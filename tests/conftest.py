"""
Shared pytest fixtures for the CYCLEMON test suite.

Provides reusable fixtures for building snapshots, predicates and
monitors, plus paths to the configuration and trace fixtures used
across unit and integration tests.
"""

from pathlib import Path
from typing import Callable, Dict, List

import pytest

from cyclemon.core.snapshot import Snapshot


@pytest.fixture
def handshake_signals() -> frozenset[str]:
    """Signals of a minimal valid/ready handshake with reset."""
    return frozenset({"rst_n", "valid", "ready"})


@pytest.fixture
def make_trace() -> Callable[..., List[Snapshot]]:
    """
    Factory turning per-signal value lists into a list of snapshots.

    Example: ``make_trace(a=[0, 1, 1], b=[1, 0, 0])`` gives three
    snapshots for cycles 0..2.
    """

    def _make(**columns: List[int]) -> List[Snapshot]:
        lengths = {len(values) for values in columns.values()}
        assert len(lengths) == 1, "all signal columns must have the same length"
        (length,) = lengths
        rows: List[Dict[str, int]] = [
            {name: values[cycle] for name, values in columns.items()}
            for cycle in range(length)
        ]
        return [Snapshot(cycle=i, signals=row) for i, row in enumerate(rows)]

    return _make


@pytest.fixture
def tmp_trace_file(tmp_path: Path) -> Path:
    """Path for a temporary trace CSV file."""
    return tmp_path / "trace.csv"


@pytest.fixture
def tmp_config_file(tmp_path: Path) -> Path:
    """Path for a temporary configuration file."""
    return tmp_path / "config.json"


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def traces_dir(fixtures_dir: Path) -> Path:
    """Path to the test trace fixtures directory."""
    return fixtures_dir / "traces"


@pytest.fixture
def configs_dir(fixtures_dir: Path) -> Path:
    """Path to the test configuration fixtures directory."""
    return fixtures_dir / "configs"
