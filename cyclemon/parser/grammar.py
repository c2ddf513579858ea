"""
Parser for predicate expressions.

Implements a grammar with proper precedence and associativity rules
to parse expression strings into an abstract syntax tree (AST).
"""

from __future__ import annotations

import sly

from cyclemon.parser.ast_nodes import (
    Add,
    And,
    BitSelect,
    Changed,
    Compare,
    Constant,
    Expression,
    Fell,
    Implies,
    Inside,
    Negate,
    Not,
    Or,
    Past,
    Rose,
    Signal,
    Stable,
    Subtract,
)
from cyclemon.parser.lexer import ExpressionLexer


class ParseError(Exception):
    """Exception raised for parsing errors."""

    pass


class _SLYParser(sly.Parser):
    """
    SLY-based parser for predicate expressions.

    Precedence (lowest to highest):
        1. ->                    (implication, right-to-left)
        2. ||                    (disjunction, left-to-right)
        3. &&                    (conjunction, left-to-right)
        4. == != < <= > >=       (comparison, non-associative)
        5. inside                (membership, non-associative)
        6. + -                   (arithmetic, left-to-right)
        7. ! and unary -         (unary, right-to-left)
        8. [hi:lo]               (postfix bit-select)
    """

    tokens = ExpressionLexer.tokens

    precedence = (
        ("right", IMPLIES),
        ("left", OR),
        ("left", AND),
        ("nonassoc", EQ, NE, LT, LE, GT, GE),
        ("nonassoc", INSIDE),
        ("left", PLUS, MINUS),
        ("right", NOT, UMINUS),
        ("left", LBRACKET),
    )

    # --- Atoms ---

    @_("IDENT")
    def expr(self, p):
        return Signal(p.IDENT)

    @_("NUMBER")
    def expr(self, p):
        return Constant(p.NUMBER)

    @_("TRUE")
    def expr(self, p):
        return Constant(1)

    @_("FALSE")
    def expr(self, p):
        return Constant(0)

    # --- Unary operators ---

    @_("NOT expr")
    def expr(self, p):
        return Not(p.expr)

    @_("MINUS expr %prec UMINUS")
    def expr(self, p):
        return Negate(p.expr)

    # --- Boolean operators ---

    @_("expr AND expr")
    def expr(self, p):
        return And(p.expr0, p.expr1)

    @_("expr OR expr")
    def expr(self, p):
        return Or(p.expr0, p.expr1)

    @_("expr IMPLIES expr")
    def expr(self, p):
        return Implies(p.expr0, p.expr1)

    # --- Comparisons ---

    @_("expr EQ expr",
       "expr NE expr",
       "expr LT expr",
       "expr LE expr",
       "expr GT expr",
       "expr GE expr")
    def expr(self, p):
        return Compare(p[1], p.expr0, p.expr1)

    # --- Arithmetic ---

    @_("expr PLUS expr")
    def expr(self, p):
        return Add(p.expr0, p.expr1)

    @_("expr MINUS expr")
    def expr(self, p):
        return Subtract(p.expr0, p.expr1)

    # --- Bit selection ---

    @_("expr LBRACKET NUMBER RBRACKET")
    def expr(self, p):
        return BitSelect(p.expr, p.NUMBER)

    @_("expr LBRACKET NUMBER COLON NUMBER RBRACKET")
    def expr(self, p):
        return BitSelect(p.expr, p.NUMBER0, p.NUMBER1)

    # --- Set membership ---

    @_("expr INSIDE LBRACE members RBRACE")
    def expr(self, p):
        return Inside(p.expr, tuple(p.members))

    @_("member")
    def members(self, p):
        return [p.member]

    @_("members COMMA member")
    def members(self, p):
        return p.members + [p.member]

    @_("literal")
    def member(self, p):
        return (p.literal, p.literal)

    @_("LBRACKET literal COLON literal RBRACKET")
    def member(self, p):
        return (p.literal0, p.literal1)

    @_("NUMBER")
    def literal(self, p):
        return p.NUMBER

    @_("MINUS NUMBER")
    def literal(self, p):
        return -p.NUMBER

    @_("TRUE")
    def literal(self, p):
        return 1

    @_("FALSE")
    def literal(self, p):
        return 0

    # --- Past-value functions ---

    @_("PAST LPAREN expr RPAREN")
    def expr(self, p):
        return Past(p.expr)

    @_("ROSE LPAREN expr RPAREN")
    def expr(self, p):
        return Rose(p.expr)

    @_("FELL LPAREN expr RPAREN")
    def expr(self, p):
        return Fell(p.expr)

    @_("STABLE LPAREN expr RPAREN")
    def expr(self, p):
        return Stable(p.expr)

    @_("CHANGED LPAREN expr RPAREN")
    def expr(self, p):
        return Changed(p.expr)

    # --- Parentheses ---

    @_("LPAREN expr RPAREN")
    def expr(self, p):
        return p.expr

    def error(self, token):
        if token:
            raise ParseError(
                f"Syntax error at '{token.value}' " f"(type: {token.type}, index: {token.index})"
            )
        raise ParseError("Syntax error: unexpected end of expression")


class ExpressionParser:
    """
    Parser for predicate expressions.

    Wraps the SLY-based parser with a clean public interface.
    Converts expression strings into AST nodes.
    """

    def __init__(self) -> None:
        self._lexer = ExpressionLexer()
        self._parser = _SLYParser()

    def parse(self, text: str) -> Expression:
        """
        Parse an expression string into an AST.

        Args:
            text: The expression string to parse.

        Returns:
            The root Expression node of the AST.

        Raises:
            LexerError: If the text contains an invalid character.
            ParseError: If the expression is syntactically invalid.
        """
        text = text.strip()
        if not text:
            raise ParseError("Syntax error: empty expression")

        result = self._parser.parse(self._lexer.tokenize(text))
        if result is None:
            raise ParseError("Syntax error: could not parse expression")
        return result
