"""
Tests for expression utility functions.

Tests cover parsing helpers, signal extraction, tree walking,
structural validation, and compilation into predicates against a
declared signal set.
"""

import pytest

from cyclemon.core.errors import ConfigurationError
from cyclemon.core.snapshot import Snapshot
from cyclemon.parser.ast_nodes import And, Not, Signal
from cyclemon.parser.expression import (
    compile_predicate,
    parse_expression,
    signals,
    to_string,
    validate,
    walk,
)

SIGNALS = frozenset({"rst_n", "valid", "ready", "instr", "pc"})


class TestHelpers:
    """Test parse_expression, signals, to_string and walk."""

    def test_parse_expression(self) -> None:
        assert parse_expression("valid && !ready") == And(Signal("valid"), Not(Signal("ready")))

    def test_signals(self) -> None:
        expr = parse_expression("valid && instr[7:4] == 1 || rose(rst_n)")
        assert signals(expr) == frozenset({"valid", "instr", "rst_n"})

    def test_signals_of_constant_expression(self) -> None:
        assert signals(parse_expression("1 + 2 == 3")) == frozenset()

    def test_to_string_is_canonical(self) -> None:
        expr = parse_expression("a||b&&c")
        assert to_string(expr) == "(a || (b && c))"

    def test_to_string_reparses_to_same_tree(self) -> None:
        expr = parse_expression("pc == $past(pc) + 1 && op inside {1, [4:6]}")
        assert parse_expression(to_string(expr)) == expr

    def test_walk_parents_first(self) -> None:
        expr = parse_expression("!a && b")
        assert [str(n) for n in walk(expr)] == ["(!a && b)", "!a", "a", "b"]


class TestValidate:
    """Test structural rules checked after parsing."""

    def test_valid_expression(self) -> None:
        validate(parse_expression("rose(valid) && instr[7:0] != 0"))

    def test_reversed_slice(self) -> None:
        with pytest.raises(ConfigurationError, match="below lsb"):
            validate(parse_expression("instr[3:7]"))

    def test_reversed_inside_range(self) -> None:
        with pytest.raises(ConfigurationError, match=r"Range \[5:1\]"):
            validate(parse_expression("x inside {0, [5:1]}"))

    def test_single_value_range(self) -> None:
        validate(parse_expression("x inside {[3:3]}"))

    def test_nested_past_function(self) -> None:
        with pytest.raises(ConfigurationError, match="Nested past-value"):
            validate(parse_expression("rose(past(valid))"))

    def test_sibling_past_functions_allowed(self) -> None:
        validate(parse_expression("past(a) == past(b) && stable(c)"))


class TestCompilePredicate:
    """Test compile_predicate()."""

    def test_compiles_and_evaluates(self) -> None:
        predicate = compile_predicate("valid && !ready", SIGNALS)
        assert predicate.evaluate(None, Snapshot(0, {"valid": 1, "ready": 0}))
        assert not predicate.evaluate(None, Snapshot(0, {"valid": 1, "ready": 1}))

    def test_records_signals(self) -> None:
        predicate = compile_predicate("valid && !ready", SIGNALS)
        assert predicate.signals == frozenset({"valid", "ready"})

    def test_keeps_expression(self) -> None:
        predicate = compile_predicate("!ready", SIGNALS)
        assert predicate.expression == Not(Signal("ready"))

    def test_text_whitespace_normalised(self) -> None:
        predicate = compile_predicate("valid  &&\n   ready", SIGNALS)
        assert predicate.text == "valid && ready"

    def test_past_value_uses_previous_snapshot(self) -> None:
        predicate = compile_predicate("pc == $past(pc) + 1", SIGNALS)
        assert predicate.evaluate(Snapshot(0, {"pc": 7}), Snapshot(1, {"pc": 8}))

    def test_undefined_signal(self) -> None:
        with pytest.raises(ConfigurationError, match=r"undefined signal\(s\) \['grant'\]"):
            compile_predicate("valid && grant", SIGNALS)

    def test_syntax_error_becomes_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            compile_predicate("valid &&", SIGNALS)

    def test_lexer_error_becomes_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid character"):
            compile_predicate("valid @ ready", SIGNALS)

    @pytest.mark.parametrize("text", ["instr == 4'b102", "instr == 8'd1F", "instr == 4'b_", "instr == 0x_"])
    def test_bad_literal_digits_become_configuration_error(self, text: str) -> None:
        with pytest.raises(ConfigurationError, match="Invalid base-"):
            compile_predicate(text, SIGNALS)

    def test_structural_error(self) -> None:
        with pytest.raises(ConfigurationError, match="below lsb"):
            compile_predicate("instr[0:7] == 1", SIGNALS)

    def test_context_prefix(self) -> None:
        with pytest.raises(ConfigurationError, match="^trigger of 'p': "):
            compile_predicate("nope", SIGNALS, context="trigger of 'p'")
