"""
Coverage registry.

Counts, for each labelled coverage point, the number of cycles on which
its predicate held. There are no windows or obligations here: a coverage
point is a plain per-cycle occurrence counter and ignores every
property's disable condition unless its own predicate encodes one.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from cyclemon.core.errors import ConfigurationError
from cyclemon.core.property import CoveragePoint
from cyclemon.core.report import CoverageReport
from cyclemon.core.snapshot import Snapshot


class CoverageRegistry:
    """
    Registration-ordered set of coverage points and their hit counters.

    Attributes:
        points: Registered coverage points, in registration order.
    """

    def __init__(self) -> None:
        self.points: List[CoveragePoint] = []
        self._hits: Dict[str, int] = {}

    def register(self, point: CoveragePoint) -> None:
        """
        Add a coverage point with a zero counter.

        Raises:
            ConfigurationError: If the label is already registered.
        """
        if point.label in self._hits:
            raise ConfigurationError(f"Duplicate coverage label '{point.label}'")
        self.points.append(point)
        self._hits[point.label] = 0

    def step(self, prev: Optional[Snapshot], cur: Snapshot) -> List[str]:
        """
        Evaluate every coverage point for one cycle.

        Returns:
            Labels of the points hit this cycle.
        """
        hit = self.evaluate(prev, cur)
        self.record(hit)
        return hit

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> List[str]:
        """Return the labels hit this cycle without counting them."""
        return [p.label for p in self.points if p.predicate.evaluate(prev, cur)]

    def record(self, labels: List[str]) -> None:
        """Count one hit for each label."""
        for label in labels:
            self._hits[label] += 1

    def hits(self, label: str) -> int:
        """
        Return the current hit count for ``label``.

        Raises:
            KeyError: If no coverage point has that label.
        """
        return self._hits[label]

    def report(self) -> Tuple[CoverageReport, ...]:
        """Return immutable counters in registration order."""
        return tuple(
            CoverageReport(label=p.label, hits=self._hits[p.label])
            for p in self.points
        )

    def __len__(self) -> int:
        return len(self.points)
