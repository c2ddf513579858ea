"""
Predicate expression parser for CYCLEMON.

Provides lexical analysis, parsing, and AST construction for the signal
expression language used by triggers, consequents, disable conditions
and coverage points: comparisons, bit-field extraction, set membership,
past-value functions, and boolean operators.
"""
