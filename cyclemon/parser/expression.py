"""
Expression utilities.

Provides convenience functions for parsing, inspecting and compiling
predicate expressions: signal listing, canonical string conversion,
structural validation, and compilation into a :class:`Predicate`
checked against a declared signal set.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Iterator, Optional

from cyclemon.core.errors import ConfigurationError
from cyclemon.core.predicate import Predicate
from cyclemon.parser.ast_nodes import BitSelect, Expression, Inside, _PastFunction
from cyclemon.parser.grammar import ExpressionParser, ParseError
from cyclemon.parser.lexer import LexerError


_parser = ExpressionParser()


def parse_expression(text: str) -> Expression:
    """
    Parse an expression string into an AST.

    Args:
        text: The expression string.

    Returns:
        The root Expression node of the AST.

    Raises:
        LexerError: If the text contains an invalid character.
        ParseError: If the expression is syntactically invalid.
    """
    return _parser.parse(text)


def signals(expression: Expression) -> FrozenSet[str]:
    """
    Return all signal names appearing in the expression.

    Args:
        expression: The expression to inspect.

    Returns:
        A frozenset of signal name strings.
    """
    return expression.signals()


def to_string(expression: Expression) -> str:
    """Convert an expression to its canonical string representation."""
    return str(expression)


def walk(expression: Expression) -> Iterator[Expression]:
    """Yield the expression and all of its subexpressions, parents first."""
    yield expression
    for child in expression.children():
        yield from walk(child)


def validate(expression: Expression) -> None:
    """
    Check structural rules the grammar cannot express.

    Raises:
        ConfigurationError: For a bit-slice with ``hi < lo``, an
            ``inside`` range written high-to-low, or a
            past-value function nested inside another one (only one
            cycle of history is available).
    """
    for node in walk(expression):
        if isinstance(node, BitSelect) and node.hi < node.lo:
            raise ConfigurationError(
                f"Bit-slice '{node}' has msb {node.hi} below lsb {node.lo}"
            )
        if isinstance(node, Inside):
            for low, high in node.ranges:
                if low > high:
                    raise ConfigurationError(
                        f"Range [{low}:{high}] in '{node}' is empty: "
                        f"low bound above high bound"
                    )
        if isinstance(node, _PastFunction):
            for inner in walk(node.operand):
                if isinstance(inner, _PastFunction):
                    raise ConfigurationError(
                        f"Nested past-value function in '{node}': only the "
                        f"previous cycle is available"
                    )


def compile_predicate(
    text: str,
    known_signals: Iterable[str],
    context: Optional[str] = None,
) -> Predicate:
    """
    Parse, validate and compile an expression into a predicate.

    Args:
        text: The expression string.
        known_signals: Signals declared for the monitored system.
        context: Optional description (e.g. "trigger of 'req_ack'")
                 prefixed to error messages.

    Returns:
        A Predicate evaluating the expression.

    Raises:
        ConfigurationError: On lexical/syntax errors, structural errors,
            or references to undeclared signals.
    """
    prefix = f"{context}: " if context else ""
    try:
        expression = parse_expression(text)
    except (LexerError, ParseError) as exc:
        raise ConfigurationError(f"{prefix}{exc} in '{text}'") from exc

    try:
        validate(expression)
    except ConfigurationError as exc:
        raise ConfigurationError(f"{prefix}{exc}") from exc

    declared = frozenset(known_signals)
    undefined = expression.signals() - declared
    if undefined:
        raise ConfigurationError(
            f"{prefix}undefined signal(s) {sorted(undefined)} in '{text}'"
        )

    return Predicate.from_expression(expression, text=" ".join(text.split()))
