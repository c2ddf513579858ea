"""
Immutable report structures.

A report is a consistent, read-only view of all counters as of the most
recently completed cycle: per-property obligation outcomes with the
first violation for diagnostics, and per-coverage-point hit counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class PropertyStatus(Enum):
    """
    Overall verdict for one property.

    HOLDS:        triggered, and every obligation was satisfied or aborted.
    VIOLATED:     at least one obligation was violated.
    UNDETERMINED: no violation, but some obligation is still open or was
                  left indeterminate when the trace ended.
    VACUOUS:      never triggered, so nothing was checked.
    """

    HOLDS = "holds"
    VIOLATED = "violated"
    UNDETERMINED = "undetermined"
    VACUOUS = "vacuous"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Violation:
    """
    Diagnostic record of one violated obligation.

    Attributes:
        label: Property label.
        trigger_cycle: Cycle at which the obligation was created.
        deadline_cycle: Last cycle of its window.
        cycle: Cycle at which the violation was declared.
        reason: Short human-readable explanation.
    """

    label: str
    trigger_cycle: int
    deadline_cycle: int
    cycle: int
    reason: str = "consequent did not hold within window"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "trigger_cycle": self.trigger_cycle,
            "deadline_cycle": self.deadline_cycle,
            "cycle": self.cycle,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class PropertyReport:
    """
    Outcome counters for one property.

    Attributes:
        label: Property label.
        triggered: Obligations created.
        satisfied: Obligations whose consequent held in the window.
        violated: Obligations whose window elapsed unsatisfied.
        aborted: Obligations voided by the disable condition.
        indeterminate: Unbounded obligations still open at finish().
        live: Obligations still open at the time of the report.
        suppressed: Triggers ignored by the non-overlap policy.
        first_violation: Details of the earliest violation, if any.
    """

    label: str
    triggered: int = 0
    satisfied: int = 0
    violated: int = 0
    aborted: int = 0
    indeterminate: int = 0
    live: int = 0
    suppressed: int = 0
    first_violation: Optional[Violation] = None

    @property
    def first_violation_cycle(self) -> Optional[int]:
        if self.first_violation is None:
            return None
        return self.first_violation.cycle

    @property
    def status(self) -> PropertyStatus:
        if self.violated:
            return PropertyStatus.VIOLATED
        if self.indeterminate or self.live:
            return PropertyStatus.UNDETERMINED
        if not self.triggered:
            return PropertyStatus.VACUOUS
        return PropertyStatus.HOLDS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "status": self.status.value,
            "triggered": self.triggered,
            "satisfied": self.satisfied,
            "violated": self.violated,
            "aborted": self.aborted,
            "indeterminate": self.indeterminate,
            "live": self.live,
            "suppressed": self.suppressed,
            "first_violation_cycle": self.first_violation_cycle,
            "first_violation": (
                self.first_violation.to_dict() if self.first_violation else None
            ),
        }


@dataclass(frozen=True)
class CoverageReport:
    """
    Hit counter for one coverage point.

    Attributes:
        label: Coverage point label.
        hits: Number of cycles on which its predicate held.
    """

    label: str
    hits: int = 0

    @property
    def covered(self) -> bool:
        return self.hits > 0

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "hits": self.hits}


@dataclass(frozen=True)
class Report:
    """
    Snapshot of all monitor results, in registration order.

    Attributes:
        properties: One PropertyReport per registered property.
        coverage: One CoverageReport per registered coverage point.
        cycles_observed: Number of snapshots fully processed.
        last_cycle: Index of the last processed cycle (None before any).
        finished: True once finish() or stop() has run.
    """

    properties: Tuple[PropertyReport, ...] = field(default_factory=tuple)
    coverage: Tuple[CoverageReport, ...] = field(default_factory=tuple)
    cycles_observed: int = 0
    last_cycle: Optional[int] = None
    finished: bool = False

    def get_property(self, label: str) -> PropertyReport:
        """
        Look up a property's report by label.

        Raises:
            KeyError: If no property has that label.
        """
        for entry in self.properties:
            if entry.label == label:
                return entry
        raise KeyError(f"No property labelled '{label}'")

    def coverage_hits(self, label: str) -> int:
        """
        Return the hit count of a coverage point.

        Raises:
            KeyError: If no coverage point has that label.
        """
        for entry in self.coverage:
            if entry.label == label:
                return entry.hits
        raise KeyError(f"No coverage point labelled '{label}'")

    @property
    def passed(self) -> bool:
        """True when no property recorded a violation."""
        return all(p.violated == 0 for p in self.properties)

    def summary(self) -> Dict[str, int]:
        """
        Count properties by status.

        Returns:
            Dictionary with keys total, holds, violated, undetermined,
            vacuous, plus covered / coverage_points for coverage.
        """
        counts = {status.value: 0 for status in PropertyStatus}
        for entry in self.properties:
            counts[entry.status.value] += 1
        return {
            "total": len(self.properties),
            **counts,
            "coverage_points": len(self.coverage),
            "covered": sum(1 for c in self.coverage if c.covered),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Plain structure suitable for JSON serialisation."""
        return {
            "cycles_observed": self.cycles_observed,
            "last_cycle": self.last_cycle,
            "finished": self.finished,
            "per_property": [p.to_dict() for p in self.properties],
            "per_coverage": [c.to_dict() for c in self.coverage],
            "summary": self.summary(),
        }
