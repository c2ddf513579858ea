"""
Predicates over consecutive snapshots.

A predicate is a pure function of ``(prev, cur)`` returning a boolean.
It is used for property triggers, consequents and disable conditions,
and for coverage points. ``prev`` is ``None`` on the first cycle.
"""

from __future__ import annotations

from typing import Callable, FrozenSet, Iterable, Optional

from cyclemon.core.errors import ConfigurationError
from cyclemon.core.snapshot import Snapshot
from cyclemon.parser.ast_nodes import Expression

PredicateFn = Callable[[Optional[Snapshot], Snapshot], bool]


class Predicate:
    """
    A side-effect-free boolean condition on ``(prev, cur)``.

    Built either from a parsed expression (see
    :func:`cyclemon.parser.expression.compile_predicate`) or from a plain
    Python callable together with the set of signals it reads, so that
    undeclared signal references are caught at registration time rather
    than mid-run.

    Attributes:
        text: Human-readable form used in reports and logs.
        signals: Names of the signals this predicate reads.
    """

    __slots__ = ("_fn", "_expression", "text", "signals")

    def __init__(
        self,
        fn: PredicateFn,
        signals: Iterable[str] = (),
        text: Optional[str] = None,
    ) -> None:
        """
        Wrap a callable as a predicate.

        Args:
            fn: Callable ``fn(prev, cur) -> bool``. Must be deterministic
                and must tolerate ``prev is None``.
            signals: Signals read by ``fn``.
            text: Display form (defaults to the callable's name).
        """
        if not callable(fn):
            raise ConfigurationError(f"Predicate function must be callable, got {fn!r}")
        self._fn: PredicateFn = fn
        self._expression: Optional[Expression] = None
        self.signals: FrozenSet[str] = frozenset(signals)
        self.text: str = text if text is not None else getattr(fn, "__name__", repr(fn))

    @classmethod
    def from_expression(cls, expression: Expression, text: Optional[str] = None) -> Predicate:
        """Build a predicate that evaluates a parsed expression for truthiness."""
        predicate = cls(
            lambda prev, cur: bool(expression.evaluate(prev, cur)),
            signals=expression.signals(),
            text=text if text is not None else str(expression),
        )
        predicate._expression = expression
        return predicate

    @classmethod
    def constant(cls, value: bool) -> Predicate:
        """A predicate that is always ``value`` and reads no signals."""
        return cls(lambda prev, cur: value, text="true" if value else "false")

    @property
    def expression(self) -> Optional[Expression]:
        """The parsed expression, if this predicate was built from text."""
        return self._expression

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> bool:
        """
        Evaluate the predicate for the current cycle.

        Args:
            prev: Snapshot of the previous cycle, or None on the first cycle.
            cur: Snapshot of the current cycle.

        Returns:
            The truth value.
        """
        return bool(self._fn(prev, cur))

    def __call__(self, prev: Optional[Snapshot], cur: Snapshot) -> bool:
        return self.evaluate(prev, cur)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Predicate({self.text!r})"


TRUE = Predicate.constant(True)
FALSE = Predicate.constant(False)
