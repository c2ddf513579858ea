"""
Declarative property and coverage point definitions.

A property describes one timing contract: whenever ``trigger`` holds at
cycle t, ``consequent`` must hold at some cycle in ``[t+min, t+max]``
(or at some later cycle when the window is unbounded), unless
``disable`` voids the obligation first.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cyclemon.core.errors import ConfigurationError
from cyclemon.core.predicate import FALSE, Predicate


class PropertyKind(Enum):
    """
    Shape of a property's timing contract.

    EVENTUAL:   consequent must hold somewhere inside the window.
    NEXT_EXACT: consequent must hold exactly one cycle after the trigger
                (the window is fixed to ``[1, 1]``).
    """

    EVENTUAL = "eventual"
    NEXT_EXACT = "next"


@dataclass(frozen=True)
class Window:
    """
    Inclusive cycle-offset range relative to the trigger cycle.

    Attributes:
        min: First offset at which the consequent is checked (>= 1).
        max: Last offset, or None when the window is unbounded.
    """

    min: int = 1
    max: Optional[int] = 1

    def __post_init__(self) -> None:
        if isinstance(self.min, bool) or not isinstance(self.min, int):
            raise ConfigurationError(f"window min must be an integer, got {self.min!r}")
        if self.min < 1:
            raise ConfigurationError(f"window min must be >= 1, got {self.min}")
        if self.max is not None:
            if isinstance(self.max, bool) or not isinstance(self.max, int):
                raise ConfigurationError(
                    f"window max must be an integer or unbounded, got {self.max!r}"
                )
            if self.max < self.min:
                raise ConfigurationError(
                    f"window max ({self.max}) must be >= window min ({self.min})"
                )

    @classmethod
    def unbounded(cls, min: int = 1) -> Window:
        """A window with no deadline (sticky / eventually-forever)."""
        return cls(min=min, max=None)

    @property
    def bounded(self) -> bool:
        return self.max is not None

    def __str__(self) -> str:
        upper = "$" if self.max is None else str(self.max)
        return f"[{self.min}:{upper}]"


NEXT_WINDOW = Window(1, 1)


@dataclass(frozen=True)
class PropertyDefinition:
    """
    One timing contract to be checked on every cycle.

    Attributes:
        label: Unique name used in the report.
        trigger: Starts a new obligation on every cycle it holds.
        consequent: Satisfies a live obligation inside its window.
        window: Offsets relative to the trigger cycle.
        disable: While true, aborts live obligations and suppresses
                 evaluation for the cycle (defaults to never).
        kind: EVENTUAL or NEXT_EXACT.
        overlap: When False, a trigger is ignored while an obligation
                 is still live.
    """

    label: str
    trigger: Predicate
    consequent: Predicate
    window: Window = NEXT_WINDOW
    disable: Predicate = FALSE
    kind: PropertyKind = PropertyKind.EVENTUAL
    overlap: bool = True

    def __post_init__(self) -> None:
        """Validate label, predicates and kind/window consistency."""
        if not isinstance(self.label, str) or not self.label.strip():
            raise ConfigurationError("Property label must be a non-empty string")
        for role in ("trigger", "consequent", "disable"):
            if not isinstance(getattr(self, role), Predicate):
                raise ConfigurationError(
                    f"Property '{self.label}': {role} must be a Predicate"
                )
        if not isinstance(self.window, Window):
            raise ConfigurationError(f"Property '{self.label}': window must be a Window")
        if self.kind is PropertyKind.NEXT_EXACT and self.window != NEXT_WINDOW:
            raise ConfigurationError(
                f"Property '{self.label}': next-exact properties require "
                f"window [1:1], got {self.window}"
            )

    @classmethod
    def next_exact(
        cls,
        label: str,
        trigger: Predicate,
        consequent: Predicate,
        disable: Predicate = FALSE,
    ) -> PropertyDefinition:
        """Build a property whose consequent must hold on the very next cycle."""
        return cls(
            label=label,
            trigger=trigger,
            consequent=consequent,
            window=NEXT_WINDOW,
            disable=disable,
            kind=PropertyKind.NEXT_EXACT,
        )

    @property
    def signals(self) -> frozenset[str]:
        """All signals read by this property's predicates."""
        return self.trigger.signals | self.consequent.signals | self.disable.signals

    def __str__(self) -> str:
        op = "|=>" if self.kind is PropertyKind.NEXT_EXACT else f"##{self.window}"
        return (
            f"{self.label}: disable iff ({self.disable}) "
            f"{self.trigger} {op} {self.consequent}"
        )


@dataclass(frozen=True)
class CoveragePoint:
    """
    A labelled condition whose occurrences are counted once per cycle.

    Attributes:
        label: Unique name used in the report.
        predicate: Condition counted on every cycle it holds.
    """

    label: str
    predicate: Predicate

    def __post_init__(self) -> None:
        if not isinstance(self.label, str) or not self.label.strip():
            raise ConfigurationError("Coverage label must be a non-empty string")
        if not isinstance(self.predicate, Predicate):
            raise ConfigurationError(
                f"Coverage '{self.label}': predicate must be a Predicate"
            )
