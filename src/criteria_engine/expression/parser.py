"""
Recursive-descent parser for the criteria expression language.

Precedence, lowest to highest:
    ||   &&   == !=   > >= < <=   + -   * /   unary ! -   primary

Primary:
    number | string | true | false | null | identifier
    | identifier "(" args ")" | "(" expr ")" | "[" expr, ... "]"

Call arguments may additionally be a spread ``...name`` or a
single-parameter lambda ``x => expr``.
"""

from functools import lru_cache
from typing import List, Optional

from criteria_engine.errors import ExpressionParseError
from criteria_engine.expression.lexer import Lexer, Token, TokenType
from criteria_engine.expression.nodes import (
    ArrayLiteral,
    Binary,
    Call,
    Identifier,
    Lambda,
    Literal,
    Logical,
    Node,
    Spread,
    Unary,
)
from criteria_engine.settings import settings

DEFAULT_MAX_DEPTH = 32
DEFAULT_MAX_LENGTH = 10000

_EQUALITY = {TokenType.EQ: "==", TokenType.NEQ: "!="}
_RELATIONAL = {
    TokenType.GT: ">",
    TokenType.GTE: ">=",
    TokenType.LT: "<",
    TokenType.LTE: "<=",
}
_ADDITIVE = {TokenType.PLUS: "+", TokenType.MINUS: "-"}
_MULTIPLICATIVE = {TokenType.STAR: "*", TokenType.SLASH: "/"}
_LITERALS = (TokenType.NUMBER, TokenType.STRING, TokenType.TRUE, TokenType.FALSE, TokenType.NULL)


class Parser:
    """
    Builds an AST from an expression string.

    Example:
        tree = Parser("filter(items, x => x > 3)").parse()
    """

    def __init__(
        self,
        text: str,
        max_depth: Optional[int] = None,
        max_length: Optional[int] = None,
    ):
        self.text = text
        self.max_depth = max_depth or settings.get_nested(
            "engine.max_expression_depth", DEFAULT_MAX_DEPTH
        )
        self.max_length = max_length or settings.get_nested(
            "engine.max_expression_length", DEFAULT_MAX_LENGTH
        )
        self._tokens: List[Token] = []
        self._index = 0
        self._depth = 0

    def parse(self) -> Node:
        """
        Parse the whole expression.

        Raises:
            ExpressionParseError: If the text is empty, too long or malformed
        """
        if not isinstance(self.text, str):
            raise ExpressionParseError(
                f"expression must be a string, got {type(self.text).__name__}"
            )
        if len(self.text) > self.max_length:
            raise ExpressionParseError(
                f"expression longer than {self.max_length} characters", self.text
            )
        self._tokens = Lexer(self.text).tokenize()
        if self._current.type is TokenType.EOF:
            raise self._error("Empty expression")
        try:
            node = self._expression()
        except RecursionError:
            raise ExpressionParseError("Expression is nested too deeply", self.text) from None
        if self._current.type is not TokenType.EOF:
            raise self._error(f"Unexpected token {self._current.value!r}")
        return node

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    @property
    def _current(self) -> Token:
        return self._tokens[self._index]

    def _peek(self, offset: int = 1) -> Token:
        index = min(self._index + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.type is not TokenType.EOF:
            self._index += 1
        return token

    def _expect(self, token_type: TokenType, what: str) -> Token:
        if self._current.type is not token_type:
            raise self._error(f"Expected {what}")
        return self._advance()

    def _error(self, message: str, token: Optional[Token] = None) -> ExpressionParseError:
        token = token or self._current
        if token.type is TokenType.EOF and "Unexpected" not in message:
            message = f"{message}, reached end of expression"
        return ExpressionParseError(message, self.text, token.position)

    def _enter(self) -> None:
        self._depth += 1
        if self._depth > self.max_depth:
            raise self._error(f"Expression nested deeper than {self.max_depth} levels")

    def _leave(self) -> None:
        self._depth -= 1

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def _expression(self) -> Node:
        self._enter()
        try:
            return self._logical_or()
        finally:
            self._leave()

    def _chain(self, operators, operand, node_type) -> Node:
        node = operand()
        while self._current.type in operators:
            token = self._advance()
            node = node_type(
                position=token.position,
                operator=operators[token.type],
                left=node,
                right=operand(),
            )
        return node

    def _logical_or(self) -> Node:
        return self._chain({TokenType.OR: "||"}, self._logical_and, Logical)

    def _logical_and(self) -> Node:
        return self._chain({TokenType.AND: "&&"}, self._equality, Logical)

    def _binary_level(self, operators, operand) -> Node:
        return self._chain(operators, operand, Binary)

    def _equality(self) -> Node:
        return self._binary_level(_EQUALITY, self._relational)

    def _relational(self) -> Node:
        return self._binary_level(_RELATIONAL, self._additive)

    def _additive(self) -> Node:
        return self._binary_level(_ADDITIVE, self._multiplicative)

    def _multiplicative(self) -> Node:
        return self._binary_level(_MULTIPLICATIVE, self._unary)

    def _unary(self) -> Node:
        if self._current.type in (TokenType.NOT, TokenType.MINUS):
            token = self._advance()
            operator = "!" if token.type is TokenType.NOT else "-"
            self._enter()
            try:
                operand = self._unary()
            finally:
                self._leave()
            return Unary(position=token.position, operator=operator, operand=operand)
        return self._primary()

    def _primary(self) -> Node:
        token = self._current

        if token.type in _LITERALS:
            self._advance()
            return Literal(position=token.position, value=token.value)

        if token.type is TokenType.IDENTIFIER:
            if self._peek().type is TokenType.ARROW:
                raise self._error("Arrow functions are only allowed as function arguments")
            self._advance()
            if self._current.type is TokenType.LPAREN:
                return self._call(token)
            return Identifier(position=token.position, name=token.value)

        if token.type is TokenType.LPAREN:
            self._advance()
            node = self._expression()
            self._expect(TokenType.RPAREN, "')'")
            return node

        if token.type is TokenType.LBRACKET:
            return self._array()

        if token.type is TokenType.SPREAD:
            raise self._error("Spread is only allowed in function arguments")

        if token.type is TokenType.EOF:
            raise self._error("Unexpected end of expression")

        raise self._error(f"Unexpected token {token.value!r}")

    def _call(self, name_token: Token) -> Node:
        self._expect(TokenType.LPAREN, "'('")
        args: List[Node] = []
        if self._current.type is not TokenType.RPAREN:
            args.append(self._argument())
            while self._current.type is TokenType.COMMA:
                self._advance()
                args.append(self._argument())
        self._expect(TokenType.RPAREN, "')' after function arguments")
        return Call(position=name_token.position, name=name_token.value, args=tuple(args))

    def _argument(self) -> Node:
        token = self._current
        if token.type is TokenType.SPREAD:
            self._advance()
            name = self._expect(TokenType.IDENTIFIER, "identifier after '...'")
            return Spread(position=token.position, name=name.value)
        if token.type is TokenType.IDENTIFIER and self._peek().type is TokenType.ARROW:
            self._advance()
            self._advance()
            self._enter()
            try:
                body = self._expression()
            finally:
                self._leave()
            return Lambda(position=token.position, param=token.value, body=body)
        return self._expression()

    def _array(self) -> Node:
        start = self._expect(TokenType.LBRACKET, "'['")
        items: List[Node] = []
        if self._current.type is not TokenType.RBRACKET:
            items.append(self._expression())
            while self._current.type is TokenType.COMMA:
                self._advance()
                items.append(self._expression())
        self._expect(TokenType.RBRACKET, "']'")
        return ArrayLiteral(position=start.position, items=tuple(items))


@lru_cache(maxsize=512)
def _parse_cached(text: str, max_depth: int, max_length: int) -> Node:
    return Parser(text, max_depth, max_length).parse()


def parse_expression(text: str) -> Node:
    """
    Parse an expression, caching the resulting tree.

    Raises:
        ExpressionParseError: If the expression is malformed
    """
    if not isinstance(text, str):
        raise ExpressionParseError(
            f"expression must be a string, got {type(text).__name__}"
        )
    # Limits are part of the key so reloaded settings apply to cached trees
    return _parse_cached(
        text,
        settings.get_nested("engine.max_expression_depth", DEFAULT_MAX_DEPTH),
        settings.get_nested("engine.max_expression_length", DEFAULT_MAX_LENGTH),
    )


__all__ = ["Parser", "parse_expression", "DEFAULT_MAX_DEPTH", "DEFAULT_MAX_LENGTH"]
