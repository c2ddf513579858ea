"""
Lexical analyzer for predicate expressions.

Tokenizes expression strings into a stream of tokens (signal names,
integer literals, comparison/arithmetic/boolean operators, bit-select
brackets, membership braces, and past-value functions) that can be
consumed by the parser.
"""

from __future__ import annotations

import sly


class LexerError(Exception):
    """Exception raised for lexical analysis errors."""
    pass


_SIZED_RADIX = {"b": 2, "o": 8, "d": 10, "h": 16}


def _literal_value(t, digits, radix):
    """Convert literal digits, rejecting ones outside the radix."""
    try:
        return int(digits.replace("_", ""), radix)
    except ValueError:
        raise LexerError(
            f"Invalid base-{radix} digits in literal '{t.value}' "
            f"at index {t.index}"
        ) from None


class ExpressionLexer(sly.Lexer):
    """
    Lexical analyzer for predicate expressions.

    Converts an expression string into a stream of tokens.

    Token Types:
        NUMBER, TRUE, FALSE            - Literals (value already an int)
        IDENT                          - Signal names
        NOT, AND, OR, IMPLIES          - Boolean operators
        EQ, NE, LT, LE, GT, GE         - Comparisons
        PLUS, MINUS                    - Arithmetic
        INSIDE                         - Set membership
        PAST, ROSE, FELL, STABLE, CHANGED - Past-value functions
        LPAREN, RPAREN, LBRACKET, RBRACKET,
        LBRACE, RBRACE, COLON, COMMA   - Delimiters
    """

    tokens = {
        NUMBER, TRUE, FALSE,
        IDENT,
        NOT, AND, OR, IMPLIES,
        EQ, NE, LT, LE, GT, GE,
        PLUS, MINUS,
        INSIDE,
        PAST, ROSE, FELL, STABLE, CHANGED,
        LPAREN, RPAREN, LBRACKET, RBRACKET,
        LBRACE, RBRACE, COLON, COMMA,
    }

    # Ignored characters
    ignore = " \t\r"

    @_(r"\n+")
    def ignore_newline(self, t):
        self.lineno += len(t.value)

    # Ignore comments (# to end of line)
    ignore_comment = r"\#[^\n]*"

    # Multi-character operators first (SLY tries patterns in order)
    IMPLIES = r"->"
    EQ = r"=="
    NE = r"!="
    LE = r"<="
    GE = r">="
    AND = r"&&"
    OR = r"\|\|"

    LT = r"<"
    GT = r">"
    NOT = r"!"
    PLUS = r"\+"
    MINUS = r"-"
    LPAREN = r"\("
    RPAREN = r"\)"
    LBRACKET = r"\["
    RBRACKET = r"\]"
    LBRACE = r"\{"
    RBRACE = r"\}"
    COLON = r":"
    COMMA = r","

    @_(r"&")
    def AND_SINGLE(self, t):
        t.type = "AND"
        return t

    @_(r"\|")
    def OR_SINGLE(self, t):
        t.type = "OR"
        return t

    # Integer literals: sized (4'b1010), hex, binary, then plain decimal

    @_(r"\d+'[sS]?[bBoOdDhH][0-9a-fA-F_]+")
    def SIZED_NUMBER(self, t):
        width, rest = t.value.split("'", 1)
        rest = rest.lstrip("sS")
        radix = _SIZED_RADIX[rest[0].lower()]
        value = _literal_value(t, rest[1:], radix)
        if value >= (1 << int(width)):
            raise LexerError(
                f"Literal '{t.value}' does not fit in {width} bits "
                f"at index {t.index}"
            )
        t.type = "NUMBER"
        t.value = value
        return t

    @_(r"0[xX][0-9a-fA-F_]+")
    def HEX_NUMBER(self, t):
        t.type = "NUMBER"
        t.value = _literal_value(t, t.value[2:], 16)
        return t

    @_(r"0[bB][01_]+")
    def BIN_NUMBER(self, t):
        t.type = "NUMBER"
        t.value = _literal_value(t, t.value[2:], 2)
        return t

    @_(r"\d+")
    def NUMBER(self, t):
        t.value = int(t.value)
        return t

    # Identifiers and keywords.
    # Keywords are disambiguated by checking the matched value; a leading
    # '$' is only legal on the system-function spellings.
    @_(r"\$?[a-zA-Z_][a-zA-Z0-9_\.]*")
    def IDENT(self, t):
        keywords = {
            "TRUE": "TRUE",
            "true": "TRUE",
            "FALSE": "FALSE",
            "false": "FALSE",
            "not": "NOT",
            "and": "AND",
            "or": "OR",
            "implies": "IMPLIES",
            "inside": "INSIDE",
            "past": "PAST",
            "$past": "PAST",
            "rose": "ROSE",
            "$rose": "ROSE",
            "fell": "FELL",
            "$fell": "FELL",
            "stable": "STABLE",
            "$stable": "STABLE",
            "changed": "CHANGED",
            "$changed": "CHANGED",
        }
        t.type = keywords.get(t.value, "IDENT")
        if t.type == "IDENT" and t.value.startswith("$"):
            raise LexerError(
                f"Unknown system function '{t.value}' at index {t.index}"
            )
        if t.type == "TRUE":
            t.value = 1
        elif t.type == "FALSE":
            t.value = 0
        return t

    def error(self, t):
        """Handle invalid characters."""
        raise LexerError(
            f"Invalid character '{t.value[0]}' at index {t.index}"
        )
