"""
Per-cycle signal snapshots.

A snapshot is the immutable record of every named signal value at one
cycle of the monitored system. Snapshots are produced by an external
source (a simulator, a replayed trace) and consumed by the monitor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Union

SignalValue = Union[int, bool]


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable set of signal values at one cycle.

    Boolean values are stored as 0/1 so predicates only ever see integers.

    Attributes:
        cycle: Monotonically increasing cycle index (0 for the first cycle).
        signals: Read-only mapping from signal name to integer value.
    """

    cycle: int
    signals: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the cycle index and normalise signal values."""
        if isinstance(self.cycle, bool) or not isinstance(self.cycle, int):
            raise ValueError(f"cycle must be an integer, got {self.cycle!r}")
        if self.cycle < 0:
            raise ValueError(f"cycle must be non-negative, got {self.cycle}")

        values: dict[str, int] = {}
        for name, value in dict(self.signals).items():
            if not isinstance(value, (int, bool)):
                raise ValueError(
                    f"Signal '{name}' at cycle {self.cycle} must be an "
                    f"integer or boolean, got {value!r}"
                )
            values[name] = int(value)
        object.__setattr__(self, "signals", MappingProxyType(values))

    def __getitem__(self, name: str) -> int:
        return self.signals[name]

    def __contains__(self, name: object) -> bool:
        return name in self.signals

    def __iter__(self) -> Iterator[str]:
        return iter(self.signals)

    def get(self, name: str, default: int = 0) -> int:
        """Return the value of ``name``, or ``default`` when absent."""
        return self.signals.get(name, default)

    def __hash__(self) -> int:
        return hash((self.cycle, tuple(sorted(self.signals.items()))))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return self.cycle == other.cycle and dict(self.signals) == dict(other.signals)

    def __repr__(self) -> str:
        entries = ", ".join(f"{k}={v}" for k, v in sorted(self.signals.items()))
        return f"Snapshot(cycle={self.cycle}, {{{entries}}})"
