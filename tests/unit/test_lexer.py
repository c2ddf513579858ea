"""
Tests for the predicate expression lexer.

Tests cover tokenization of signal names, integer literal forms,
keywords and their $-prefixed spellings, all operator variants,
delimiters, whitespace and comments, and error handling.
"""

import pytest

from cyclemon.parser.lexer import ExpressionLexer, LexerError


@pytest.fixture
def lexer() -> ExpressionLexer:
    """Return a fresh lexer instance."""
    return ExpressionLexer()


def _tokens(lexer: ExpressionLexer, text: str) -> list[tuple[str, object]]:
    """Helper: return list of (type, value) pairs from tokenizing text."""
    return [(tok.type, tok.value) for tok in lexer.tokenize(text)]


def _types(lexer: ExpressionLexer, text: str) -> list[str]:
    """Helper: return list of token types from tokenizing text."""
    return [tok.type for tok in lexer.tokenize(text)]


class TestIdentifiers:
    """Test signal name tokenization."""

    def test_simple_name(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "valid") == [("IDENT", "valid")]

    def test_name_with_underscore_and_digits(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "rst_n2") == [("IDENT", "rst_n2")]

    def test_hierarchical_name(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "cpu.alu.carry") == [("IDENT", "cpu.alu.carry")]

    def test_keyword_prefix_is_identifier(self, lexer: ExpressionLexer) -> None:
        """Words that merely start with a keyword stay identifiers."""
        assert _types(lexer, "pastry insider notify") == ["IDENT", "IDENT", "IDENT"]


class TestNumbers:
    """Test integer literal forms."""

    def test_decimal(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "42") == [("NUMBER", 42)]

    def test_hex(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "0x1F") == [("NUMBER", 31)]

    def test_binary(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "0b1010") == [("NUMBER", 10)]

    def test_underscores_in_hex(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "0xFF_FF") == [("NUMBER", 0xFFFF)]

    def test_sized_binary(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "4'b1010") == [("NUMBER", 10)]

    def test_sized_hex(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "8'hA5") == [("NUMBER", 0xA5)]

    def test_sized_decimal(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "16'd300") == [("NUMBER", 300)]

    def test_sized_literal_too_wide(self, lexer: ExpressionLexer) -> None:
        with pytest.raises(LexerError, match="does not fit"):
            _tokens(lexer, "4'hFF")

    @pytest.mark.parametrize(
        "text, radix",
        [("4'b102", 2), ("8'd1F", 10), ("4'o9", 8), ("4'b_", 2), ("0x_", 16), ("0b__", 2)],
    )
    def test_digits_outside_radix(self, lexer: ExpressionLexer, text: str, radix: int) -> None:
        with pytest.raises(LexerError, match=f"Invalid base-{radix} digits"):
            _tokens(lexer, text)


class TestConstants:
    """Test boolean constants."""

    def test_true_forms(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "true TRUE") == [("TRUE", 1), ("TRUE", 1)]

    def test_false_forms(self, lexer: ExpressionLexer) -> None:
        assert _tokens(lexer, "false FALSE") == [("FALSE", 0), ("FALSE", 0)]


class TestOperators:
    """Test operator tokenization, including longest-match ordering."""

    def test_logical_symbols(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "! && || ->") == ["NOT", "AND", "OR", "IMPLIES"]

    def test_single_char_and_or(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "a & b | c") == ["IDENT", "AND", "IDENT", "OR", "IDENT"]

    def test_word_operators(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "not and or implies") == ["NOT", "AND", "OR", "IMPLIES"]

    def test_comparisons(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "== != <= >= < >") == ["EQ", "NE", "LE", "GE", "LT", "GT"]

    def test_not_equal_is_not_negation(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "a != b") == ["IDENT", "NE", "IDENT"]

    def test_implies_is_not_minus(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "a -> b - c") == ["IDENT", "IMPLIES", "IDENT", "MINUS", "IDENT"]

    def test_arithmetic(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "pc + 1") == ["IDENT", "PLUS", "NUMBER"]

    def test_membership_keyword(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "inside in") == ["INSIDE", "IDENT"]


class TestPastFunctions:
    """Test past-value function keywords."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("past", "PAST"),
            ("$past", "PAST"),
            ("rose", "ROSE"),
            ("$rose", "ROSE"),
            ("fell", "FELL"),
            ("$fell", "FELL"),
            ("stable", "STABLE"),
            ("$stable", "STABLE"),
            ("changed", "CHANGED"),
            ("$changed", "CHANGED"),
        ],
    )
    def test_function_keyword(self, lexer: ExpressionLexer, text: str, expected: str) -> None:
        assert _types(lexer, text) == [expected]

    def test_unknown_system_function(self, lexer: ExpressionLexer) -> None:
        with pytest.raises(LexerError, match="Unknown system function"):
            _tokens(lexer, "$countones(x)")


class TestDelimiters:
    """Test brackets, braces and punctuation."""

    def test_bit_slice(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "instr[7:4]") == [
            "IDENT", "LBRACKET", "NUMBER", "COLON", "NUMBER", "RBRACKET",
        ]

    def test_set(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "{1, 2}") == ["LBRACE", "NUMBER", "COMMA", "NUMBER", "RBRACE"]

    def test_parentheses(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "(a)") == ["LPAREN", "IDENT", "RPAREN"]


class TestWhitespaceAndComments:
    """Test ignored input."""

    def test_newlines_and_tabs(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "a\n\t&&\r\n b") == ["IDENT", "AND", "IDENT"]

    def test_comment_to_end_of_line(self, lexer: ExpressionLexer) -> None:
        assert _types(lexer, "a # ignored && b\n|| c") == ["IDENT", "OR", "IDENT"]


class TestErrors:
    """Test invalid input."""

    def test_invalid_character(self, lexer: ExpressionLexer) -> None:
        with pytest.raises(LexerError, match="Invalid character"):
            _tokens(lexer, "a @ b")

    def test_assignment_is_invalid(self, lexer: ExpressionLexer) -> None:
        with pytest.raises(LexerError):
            _tokens(lexer, "a = b")
