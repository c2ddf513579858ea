"""
Abstract syntax tree node definitions for predicate expressions.

Defines immutable, hashable AST nodes for the signal expression language:
constants, signal references, boolean operators (not, and, or, implies),
comparisons, arithmetic, bit-field extraction, set membership, and the
past-value functions (past, rose, fell, stable, changed).

Every node evaluates to an integer against a ``(prev, cur)`` pair of
snapshots; truthiness is ``value != 0``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, FrozenSet, Optional, Tuple

if TYPE_CHECKING:
    from cyclemon.core.snapshot import Snapshot


class Expression(ABC):
    """
    Base class for all expression nodes.

    All nodes are immutable and support equality comparison and hashing
    for use in sets and dictionaries.
    """

    @abstractmethod
    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        """Evaluate against the previous (possibly absent) and current snapshot."""

    @abstractmethod
    def children(self) -> Tuple[Expression, ...]:
        """Return the direct operands of this node."""

    @abstractmethod
    def __str__(self) -> str:
        """Return canonical string representation."""

    @abstractmethod
    def __eq__(self, other: object) -> bool:
        """Check structural equality with another expression."""

    @abstractmethod
    def __hash__(self) -> int:
        """Return hash for use in sets and dicts."""

    def signals(self) -> FrozenSet[str]:
        """Return the names of all signals referenced in this expression."""
        names: FrozenSet[str] = frozenset()
        for child in self.children():
            names |= child.signals()
        return names

    def __repr__(self) -> str:
        return str(self)


# === Leaves ===


class Constant(Expression):
    """
    An integer literal (booleans are 1 and 0).

    Attributes:
        value: The literal value.
    """

    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        self.value = int(value)

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return self.value

    def children(self) -> Tuple[Expression, ...]:
        return ()

    def __str__(self) -> str:
        return str(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Constant):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(("Constant", self.value))


class Signal(Expression):
    """
    A reference to a named signal in the current snapshot.

    Attributes:
        name: The signal name (e.g., "rst_n", "instr", "cpu.pc").
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return cur[self.name]

    def children(self) -> Tuple[Expression, ...]:
        return ()

    def signals(self) -> FrozenSet[str]:
        return frozenset({self.name})

    def __str__(self) -> str:
        return self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Signal):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(("Signal", self.name))


# === Unary Operators ===


class _UnaryOp(Expression):
    """Base class for unary operators (not part of public API)."""

    __slots__ = ("operand",)

    _op_symbol: str = ""

    def __init__(self, operand: Expression) -> None:
        self.operand = operand

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        return f"{self._op_symbol}{self.operand}"

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.operand == other.operand

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.operand))


class Not(_UnaryOp):
    """Represents !e (logical negation)."""

    _op_symbol = "!"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return int(not self.operand.evaluate(prev, cur))


class Negate(_UnaryOp):
    """Represents -e (arithmetic negation)."""

    _op_symbol = "-"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return -self.operand.evaluate(prev, cur)


# === Binary Operator Base ===


class _BinaryOp(Expression):
    """Base class for binary operators (not part of public API)."""

    __slots__ = ("left", "right")

    _op_symbol: str = ""

    def __init__(self, left: Expression, right: Expression) -> None:
        self.left = left
        self.right = right

    def children(self) -> Tuple[Expression, ...]:
        return (self.left, self.right)

    def __str__(self) -> str:
        return f"({self.left} {self._op_symbol} {self.right})"

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.left == other.left and self.right == other.right

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.left, self.right))


# === Boolean Operators ===


class And(_BinaryOp):
    """Represents e1 && e2 (short-circuit conjunction)."""

    _op_symbol = "&&"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return int(bool(self.left.evaluate(prev, cur)) and bool(self.right.evaluate(prev, cur)))


class Or(_BinaryOp):
    """Represents e1 || e2 (short-circuit disjunction)."""

    _op_symbol = "||"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return int(bool(self.left.evaluate(prev, cur)) or bool(self.right.evaluate(prev, cur)))


class Implies(_BinaryOp):
    """
    Represents e1 -> e2 (combinational implication within one cycle).

    Equivalent to: !e1 || e2
    """

    _op_symbol = "->"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return int((not self.left.evaluate(prev, cur)) or bool(self.right.evaluate(prev, cur)))


# === Arithmetic ===


class Add(_BinaryOp):
    """Represents e1 + e2 (unbounded integer addition)."""

    _op_symbol = "+"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return self.left.evaluate(prev, cur) + self.right.evaluate(prev, cur)


class Subtract(_BinaryOp):
    """Represents e1 - e2 (unbounded integer subtraction)."""

    _op_symbol = "-"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        return self.left.evaluate(prev, cur) - self.right.evaluate(prev, cur)


# === Comparisons ===


_COMPARATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


class Compare(_BinaryOp):
    """
    Represents e1 OP e2 for OP in ==, !=, <, <=, >, >=.

    Attributes:
        op: The comparison operator symbol.
        left: Left operand.
        right: Right operand.
    """

    __slots__ = ("op",)

    def __init__(self, op: str, left: Expression, right: Expression) -> None:
        if op not in _COMPARATORS:
            raise ValueError(f"Unknown comparison operator '{op}'")
        super().__init__(left, right)
        self.op = op

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        compare = _COMPARATORS[self.op]
        return int(compare(self.left.evaluate(prev, cur), self.right.evaluate(prev, cur)))

    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Compare):
            return NotImplemented
        return (
            self.op == other.op
            and self.left == other.left
            and self.right == other.right
        )

    def __hash__(self) -> int:
        return hash(("Compare", self.op, self.left, self.right))


# === Bit-field Extraction ===


class BitSelect(Expression):
    """
    Represents e[hi:lo] (inclusive bit-field) or e[i] (single bit).

    Mirrors extracting an opcode field out of a wider instruction word:
    ``instr[7:4]`` yields ``(instr >> 4) & 0xF``.

    Attributes:
        operand: The expression whose bits are extracted.
        hi: Most significant bit index (inclusive).
        lo: Least significant bit index (inclusive).
    """

    __slots__ = ("operand", "hi", "lo")

    def __init__(self, operand: Expression, hi: int, lo: Optional[int] = None) -> None:
        self.operand = operand
        self.hi = hi
        self.lo = hi if lo is None else lo

    @property
    def width(self) -> int:
        return self.hi - self.lo + 1

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        value = self.operand.evaluate(prev, cur)
        return (value >> self.lo) & ((1 << self.width) - 1)

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        if self.hi == self.lo:
            return f"{self.operand}[{self.hi}]"
        return f"{self.operand}[{self.hi}:{self.lo}]"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitSelect):
            return NotImplemented
        return (
            self.operand == other.operand
            and self.hi == other.hi
            and self.lo == other.lo
        )

    def __hash__(self) -> int:
        return hash(("BitSelect", self.operand, self.hi, self.lo))


# === Set Membership ===


class Inside(Expression):
    """
    Represents e inside {c1, c2, [lo:hi], ...}.

    Each member is stored as an inclusive ``(low, high)`` range; a single
    constant ``c`` is the range ``(c, c)``.

    Attributes:
        operand: The expression being tested.
        ranges: Tuple of inclusive (low, high) ranges.
    """

    __slots__ = ("operand", "ranges")

    def __init__(self, operand: Expression, ranges: Tuple[Tuple[int, int], ...]) -> None:
        self.operand = operand
        self.ranges = tuple(ranges)

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        value = self.operand.evaluate(prev, cur)
        return int(any(low <= value <= high for low, high in self.ranges))

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)

    def __str__(self) -> str:
        members = ", ".join(
            str(low) if low == high else f"[{low}:{high}]"
            for low, high in self.ranges
        )
        return f"({self.operand} inside {{{members}}})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Inside):
            return NotImplemented
        return self.operand == other.operand and self.ranges == other.ranges

    def __hash__(self) -> int:
        return hash(("Inside", self.operand, self.ranges))


# === Past-value Functions ===


class _PastFunction(_UnaryOp):
    """
    Base class for functions that read the previous cycle.

    The operand is evaluated against the previous snapshot alone, so it
    must not itself refer to an earlier cycle (only one cycle of history
    is retained).
    """

    _name: str = ""

    def __str__(self) -> str:
        return f"{self._name}({self.operand})"

    def _previous(self, prev: Optional[Snapshot]) -> Optional[int]:
        if prev is None:
            return None
        return self.operand.evaluate(None, prev)


class Past(_PastFunction):
    """
    Represents past(e): value of e at the previous cycle.

    On the first cycle there is no previous snapshot and past(e) is 0.
    """

    _name = "past"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        before = self._previous(prev)
        return 0 if before is None else before


class Rose(_PastFunction):
    """Represents rose(e): e was false at the previous cycle and is true now."""

    _name = "rose"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        before = self._previous(prev)
        return int(not before and bool(self.operand.evaluate(prev, cur)))


class Fell(_PastFunction):
    """Represents fell(e): e was true at the previous cycle and is false now."""

    _name = "fell"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        before = self._previous(prev)
        return int(bool(before) and not self.operand.evaluate(prev, cur))


class Stable(_PastFunction):
    """Represents stable(e): a previous cycle exists and e has not changed."""

    _name = "stable"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        before = self._previous(prev)
        if before is None:
            return 0
        return int(before == self.operand.evaluate(prev, cur))


class Changed(_PastFunction):
    """Represents changed(e): a previous cycle exists and e differs from it."""

    _name = "changed"

    def evaluate(self, prev: Optional[Snapshot], cur: Snapshot) -> int:
        before = self._previous(prev)
        if before is None:
            return 0
        return int(before != self.operand.evaluate(prev, cur))
