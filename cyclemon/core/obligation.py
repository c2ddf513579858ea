"""
Obligation tracking for a single property.

Every cycle on which a property's trigger holds creates an independent
obligation with a fixed deadline. The tracker keeps all live obligations
of one property, advances them once per cycle in a fixed order
(disable, satisfy, time out, trigger), and counts how each one resolved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from cyclemon.core.property import PropertyDefinition
from cyclemon.core.report import PropertyReport, Violation
from cyclemon.core.snapshot import Snapshot


class ObligationState(Enum):
    """
    Lifecycle of an obligation.

    LIVE is the only non-final state; every obligation leaves it exactly
    once, except unbounded ones that are still open when the trace ends,
    which become INDETERMINATE.
    """

    LIVE = "live"
    SATISFIED = "satisfied"
    VIOLATED = "violated"
    ABORTED = "aborted"
    INDETERMINATE = "indeterminate"


@dataclass
class Obligation:
    """
    One instance of a property's contract.

    Attributes:
        property_label: Label of the owning property.
        trigger_cycle: Cycle at which the trigger held.
        earliest_cycle: First cycle at which the consequent counts.
        deadline_cycle: Last cycle of the window (None when unbounded).
        state: Current lifecycle state.
        resolved_cycle: Cycle at which the state became final.
    """

    property_label: str
    trigger_cycle: int
    earliest_cycle: int
    deadline_cycle: Optional[int]
    state: ObligationState = ObligationState.LIVE
    resolved_cycle: Optional[int] = None

    @property
    def is_live(self) -> bool:
        return self.state is ObligationState.LIVE

    def in_window(self, cycle: int) -> bool:
        """True if the consequent at ``cycle`` can satisfy this obligation."""
        if cycle < self.earliest_cycle:
            return False
        return self.deadline_cycle is None or cycle <= self.deadline_cycle

    def resolve(self, state: ObligationState, cycle: int) -> None:
        """Move a live obligation to a final state."""
        if not self.is_live:
            raise RuntimeError(
                f"Obligation of '{self.property_label}' from cycle "
                f"{self.trigger_cycle} already resolved as {self.state.value}"
            )
        self.state = state
        self.resolved_cycle = cycle


@dataclass(frozen=True)
class CycleInputs:
    """
    Predicate values of one property for one cycle.

    Attributes:
        disabled: True if the disable condition held.
        consequent: True if the consequent held and a live obligation
            could use it.
        trigger: True if the trigger held.
    """

    disabled: bool = False
    consequent: bool = False
    trigger: bool = False


@dataclass
class TrackerStep:
    """
    What happened to one property during one cycle.

    Attributes:
        cycle: The processed cycle.
        disabled: True if the disable condition held.
        created: Obligation created this cycle, if any.
        suppressed: True if a trigger was ignored by the non-overlap policy.
        resolved: Obligations that reached a final state this cycle.
    """

    cycle: int
    disabled: bool = False
    created: Optional[Obligation] = None
    suppressed: bool = False
    resolved: List[Obligation] = field(default_factory=list)


class ObligationTracker:
    """
    Per-property engine core.

    Manages the set of in-flight obligations for one property. There is
    no limit on how many obligations may be live at once; they are kept
    in trigger-cycle order and removed the cycle they resolve.

    Attributes:
        definition: The property being tracked.
        live: Obligations not yet resolved, oldest first.
    """

    def __init__(self, definition: PropertyDefinition) -> None:
        """
        Initialize an empty tracker.

        Args:
            definition: The property to track.
        """
        self.definition: PropertyDefinition = definition
        self.live: List[Obligation] = []

        self.triggered: int = 0
        self.satisfied: int = 0
        self.violated: int = 0
        self.aborted: int = 0
        self.indeterminate: int = 0
        self.suppressed: int = 0
        self.first_violation: Optional[Violation] = None

    @property
    def label(self) -> str:
        return self.definition.label

    def step(self, prev: Optional[Snapshot], cur: Snapshot) -> TrackerStep:
        """
        Advance all obligations by one cycle.

        Equivalent to ``apply(cur.cycle, evaluate(prev, cur))``.

        Args:
            prev: Previous snapshot (None on the first cycle).
            cur: Current snapshot.

        Returns:
            A TrackerStep describing what changed.
        """
        return self.apply(cur.cycle, self.evaluate(prev, cur))

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> CycleInputs:
        """
        Evaluate this cycle's predicates without touching any state.

        The consequent is skipped when no live obligation can use it, and
        nothing else is evaluated once the disable condition holds.
        """
        prop = self.definition
        if prop.disable.evaluate(prev, cur):
            return CycleInputs(disabled=True)
        consequent = False
        if any(o.in_window(cur.cycle) for o in self.live):
            consequent = prop.consequent.evaluate(prev, cur)
        return CycleInputs(
            consequent=consequent,
            trigger=prop.trigger.evaluate(prev, cur),
        )

    def apply(self, cycle: int, inputs: CycleInputs) -> TrackerStep:
        """
        Commit one cycle from already evaluated predicates.

        Steps, in this exact order:
            1. disable holds -> abort every live obligation, stop.
            2. consequent holds -> satisfy every live obligation whose
               window contains this cycle (earliest match wins).
            3. bounded obligations whose deadline is this cycle -> violated.
            4. trigger holds -> create a new obligation (never checked
               in the cycle it is created).

        Args:
            cycle: Index of the cycle being committed.
            inputs: Result of evaluate() for that cycle.

        Returns:
            A TrackerStep describing what changed.
        """
        result = TrackerStep(cycle=cycle)

        # 1. Disable
        if inputs.disabled:
            result.disabled = True
            for obligation in self.live:
                obligation.resolve(ObligationState.ABORTED, cycle)
                self.aborted += 1
                result.resolved.append(obligation)
            self.live = []
            return result

        # 2. Consequent, evaluated once and shared by every live obligation
        if inputs.consequent:
            for obligation in self.live:
                if obligation.in_window(cycle):
                    obligation.resolve(ObligationState.SATISFIED, cycle)
                    self.satisfied += 1
                    result.resolved.append(obligation)

        # 3. Deadlines
        for obligation in self.live:
            if obligation.is_live and obligation.deadline_cycle == cycle:
                obligation.resolve(ObligationState.VIOLATED, cycle)
                self.violated += 1
                self._record_violation(obligation, cycle)
                result.resolved.append(obligation)

        self.live = [o for o in self.live if o.is_live]

        # 4. Trigger
        if inputs.trigger:
            if not self.definition.overlap and self.live:
                self.suppressed += 1
                result.suppressed = True
            else:
                result.created = self._create(cycle)

        return result

    def finish(self, last_cycle: Optional[int]) -> List[Obligation]:
        """
        Resolve whatever is still live at the end of the trace.

        Bounded obligations are violated (their window could not complete);
        unbounded ones become INDETERMINATE since nothing decides them.

        Args:
            last_cycle: Index of the last observed cycle.

        Returns:
            The obligations resolved by this call.
        """
        resolved: List[Obligation] = []
        for obligation in self.live:
            end = last_cycle if last_cycle is not None else obligation.trigger_cycle
            if obligation.deadline_cycle is None:
                obligation.resolve(ObligationState.INDETERMINATE, end)
                self.indeterminate += 1
            else:
                obligation.resolve(ObligationState.VIOLATED, end)
                self.violated += 1
                self._record_violation(
                    obligation, end,
                    reason=f"trace ended before deadline {obligation.deadline_cycle}",
                )
            resolved.append(obligation)
        self.live = []
        return resolved

    def report(self) -> PropertyReport:
        """Return an immutable copy of this tracker's counters."""
        return PropertyReport(
            label=self.label,
            triggered=self.triggered,
            satisfied=self.satisfied,
            violated=self.violated,
            aborted=self.aborted,
            indeterminate=self.indeterminate,
            live=len(self.live),
            suppressed=self.suppressed,
            first_violation=self.first_violation,
        )

    def _create(self, cycle: int) -> Obligation:
        window = self.definition.window
        obligation = Obligation(
            property_label=self.label,
            trigger_cycle=cycle,
            earliest_cycle=cycle + window.min,
            deadline_cycle=None if window.max is None else cycle + window.max,
        )
        self.live.append(obligation)
        self.triggered += 1
        return obligation

    def _record_violation(
        self,
        obligation: Obligation,
        cycle: int,
        reason: Optional[str] = None,
    ) -> None:
        if self.first_violation is not None:
            return
        extra = {} if reason is None else {"reason": reason}
        self.first_violation = Violation(
            label=self.label,
            trigger_cycle=obligation.trigger_cycle,
            deadline_cycle=obligation.deadline_cycle,
            cycle=cycle,
            **extra,
        )
