"""
Mini expression language used for derivations and equations.

    salary + (bonus || 0)
    avg(...scores) >= 7 && status == "active"
    count(filter(items, x => x > 3)) > 0
"""

from criteria_engine.expression.interpreter import (
    Interpreter,
    LambdaClosure,
    evaluate_expression,
)
from criteria_engine.expression.lexer import Token, TokenType, tokenize
from criteria_engine.expression.parser import Parser, parse_expression

__all__ = [
    "Interpreter",
    "LambdaClosure",
    "evaluate_expression",
    "Parser",
    "parse_expression",
    "Token",
    "TokenType",
    "tokenize",
]
