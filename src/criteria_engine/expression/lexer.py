"""
Tokenizer for the criteria expression language.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List

from criteria_engine.errors import ExpressionParseError


class TokenType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    IDENTIFIER = "identifier"
    TRUE = "true"
    FALSE = "false"
    NULL = "null"
    OR = "||"
    AND = "&&"
    NOT = "!"
    EQ = "=="
    NEQ = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    ARROW = "=>"
    SPREAD = "..."
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: Any
    position: int


# Longest operators first so that "===" wins over "==" and "=>".
_OPERATORS = [
    ("...", TokenType.SPREAD),
    ("===", TokenType.EQ),
    ("!==", TokenType.NEQ),
    ("||", TokenType.OR),
    ("&&", TokenType.AND),
    ("==", TokenType.EQ),
    ("!=", TokenType.NEQ),
    (">=", TokenType.GTE),
    ("<=", TokenType.LTE),
    ("=>", TokenType.ARROW),
    (">", TokenType.GT),
    ("<", TokenType.LT),
    ("!", TokenType.NOT),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("*", TokenType.STAR),
    ("/", TokenType.SLASH),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("[", TokenType.LBRACKET),
    ("]", TokenType.RBRACKET),
    (",", TokenType.COMMA),
]

_KEYWORDS = {
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "null": TokenType.NULL,
    # Textual aliases for logical operators
    "AND": TokenType.AND,
    "OR": TokenType.OR,
    "NOT": TokenType.NOT,
}

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
    "/": "/",
}


def _is_digit(char: str) -> bool:
    # str.isdigit() also accepts superscripts and other non-ASCII digits
    return char != "" and char in "0123456789"


class Lexer:
    """
    Converts an expression string into a list of tokens.

    Example:
        tokens = Lexer('sum(...scores) >= 10 && name == "John"').tokenize()
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def tokenize(self) -> List[Token]:
        """
        Tokenize the whole input.

        Returns:
            List of tokens ending with an EOF token

        Raises:
            ExpressionParseError: On an unexpected character or unterminated string
        """
        tokens: List[Token] = []
        text = self.text
        while True:
            self._skip_whitespace()
            if self.pos >= len(text):
                tokens.append(Token(TokenType.EOF, None, self.pos))
                return tokens

            char = text[self.pos]
            if _is_digit(char) or (char == "." and _is_digit(self._peek(1))):
                tokens.append(self._read_number())
            elif char in ("'", '"'):
                tokens.append(self._read_string(char))
            elif char.isalpha() or char in ("_", "$"):
                tokens.append(self._read_identifier())
            else:
                tokens.append(self._read_operator())

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index < len(self.text):
            return self.text[index]
        return ""

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _error(self, message: str, position: int) -> ExpressionParseError:
        return ExpressionParseError(message, self.text, position)

    def _read_number(self) -> Token:
        start = self.pos
        text = self.text
        while self.pos < len(text) and _is_digit(text[self.pos]):
            self.pos += 1
        is_float = False
        if self._peek() == "." and _is_digit(self._peek(1)):
            is_float = True
            self.pos += 1
            while self.pos < len(text) and _is_digit(text[self.pos]):
                self.pos += 1
        if self._peek() in ("e", "E"):
            exponent_start = self.pos
            self.pos += 1
            if self._peek() in ("+", "-"):
                self.pos += 1
            if not _is_digit(self._peek()):
                raise self._error("Malformed number exponent", exponent_start)
            while self.pos < len(text) and _is_digit(text[self.pos]):
                self.pos += 1
            is_float = True
        if self._peek().isalpha() or self._peek() == "_":
            raise self._error("Invalid character in number", self.pos)
        raw = text[start:self.pos]
        try:
            value = float(raw) if is_float else int(raw)
        except ValueError:
            raise self._error("Number literal too large", start) from None
        return Token(TokenType.NUMBER, value, start)

    def _read_string(self, quote: str) -> Token:
        start = self.pos
        self.pos += 1
        chars: List[str] = []
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char == quote:
                self.pos += 1
                return Token(TokenType.STRING, "".join(chars), start)
            if char == "\\":
                chars.append(self._read_escape())
                continue
            chars.append(char)
            self.pos += 1
        raise self._error("Unterminated string literal", start)

    def _read_escape(self) -> str:
        escape_start = self.pos
        code = self._peek(1)
        if code == "u":
            digits = self.text[self.pos + 2:self.pos + 6]
            if len(digits) != 4 or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise self._error("Invalid unicode escape", escape_start)
            self.pos += 6
            return chr(int(digits, 16))
        if code in _ESCAPES:
            self.pos += 2
            return _ESCAPES[code]
        if code == "":
            raise self._error("Unterminated string literal", escape_start)
        # Unknown escapes keep the escaped character
        self.pos += 2
        return code

    def _read_identifier(self) -> Token:
        start = self.pos
        text = self.text
        while self.pos < len(text) and (
            text[self.pos].isalnum() or text[self.pos] in ("_", "$")
        ):
            self.pos += 1
        word = text[start:self.pos]
        token_type = _KEYWORDS.get(word)
        if token_type is TokenType.TRUE:
            return Token(token_type, True, start)
        if token_type is TokenType.FALSE:
            return Token(token_type, False, start)
        if token_type is TokenType.NULL:
            return Token(token_type, None, start)
        if token_type is not None:
            return Token(token_type, word, start)
        return Token(TokenType.IDENTIFIER, word, start)

    def _read_operator(self) -> Token:
        start = self.pos
        for symbol, token_type in _OPERATORS:
            if self.text.startswith(symbol, self.pos):
                self.pos += len(symbol)
                return Token(token_type, symbol, start)
        raise self._error(f"Unexpected character {self.text[start]!r}", start)


def tokenize(text: str) -> List[Token]:
    """Tokenize an expression string."""
    return Lexer(text).tokenize()


__all__ = ["TokenType", "Token", "Lexer", "tokenize"]
