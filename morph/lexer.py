"""Morph Lexer — Tokenizer with line/column tracking.

Produces a flat token stream from Morph source. Newlines and `//` comments
are emitted as tokens of their own; the parser decides what to skip.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from morph.errors import SourceLocation, LexError, lex_error

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class TokenType(Enum):
    # Keywords
    PROTO = auto()
    SOLID = auto()
    TYPE = auto()
    FLOW = auto()
    LET = auto()
    VAR = auto()
    IF = auto()
    ELSE = auto()
    MATCH = auto()
    FOR = auto()
    IN = auto()
    RETURN = auto()
    CLAIM = auto()
    DELEGATE = auto()
    SOLVE = auto()
    ENSURE = auto()
    WHERE = auto()
    IMPORT = auto()

    # Literals
    INT_LIT = auto()
    FLOAT_LIT = auto()
    STRING_LIT = auto()
    BOOL_LIT = auto()

    # Identifier
    IDENT = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    BAR = auto()
    PIPE = auto()
    ASSIGN = auto()
    EQ = auto()
    NOT = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()
    FAT_ARROW = auto()
    DOT = auto()
    DOT_DOT = auto()
    COLON = auto()
    DOUBLE_COLON = auto()

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    SEMICOLON = auto()

    # Structural
    COMMENT = auto()
    NEWLINE = auto()
    EOF = auto()


KEYWORDS: dict[str, TokenType] = {
    "proto": TokenType.PROTO,
    "solid": TokenType.SOLID,
    "type": TokenType.TYPE,
    "flow": TokenType.FLOW,
    "let": TokenType.LET,
    "var": TokenType.VAR,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "match": TokenType.MATCH,
    "for": TokenType.FOR,
    "in": TokenType.IN,
    "return": TokenType.RETURN,
    "claim": TokenType.CLAIM,
    "delegate": TokenType.DELEGATE,
    "solve": TokenType.SOLVE,
    "ensure": TokenType.ENSURE,
    "where": TokenType.WHERE,
    "import": TokenType.IMPORT,
    "true": TokenType.BOOL_LIT,
    "false": TokenType.BOOL_LIT,
}

# Single-character tokens that never start a two-character operator.
SINGLE_CHAR: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}

# First character -> (second character, combined type, fallback type).
TWO_CHAR: dict[str, tuple[str, TokenType, TokenType]] = {
    "=": ("=", TokenType.EQ, TokenType.ASSIGN),
    "!": ("=", TokenType.NEQ, TokenType.NOT),
    "<": ("=", TokenType.LTE, TokenType.LT),
    "|": (">", TokenType.PIPE, TokenType.BAR),
    ".": (".", TokenType.DOT_DOT, TokenType.DOT),
    ":": (":", TokenType.DOUBLE_COLON, TokenType.COLON),
}


@dataclass
class Token:
    type: TokenType
    value: str
    location: SourceLocation

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def column(self) -> int:
        return self.location.column

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.location})"


def _is_digit(ch: Optional[str]) -> bool:
    """True for ASCII 0-9 only."""
    return ch is not None and "0" <= ch <= "9"


class Lexer:
    """Tokenizer for Morph source code."""

    def __init__(self, source: str, filename: str = "<stdin>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

    def _loc(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.filename)

    def _peek(self) -> Optional[str]:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return None

    def _peek_ahead(self, offset: int = 1) -> Optional[str]:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return None

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _read_comment(self) -> Token:
        loc = self._loc()
        start = self.pos
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            self._advance()
        return Token(TokenType.COMMENT, self.source[start:self.pos], loc)

    def _read_string(self) -> Token:
        loc = self._loc()
        self._advance()  # opening quote
        start = self.pos
        while self.pos < len(self.source):
            if self.source[self.pos] == '"':
                value = self.source[start:self.pos]
                self._advance()
                return Token(TokenType.STRING_LIT, value, loc)
            self._advance()
        raise LexError(lex_error("Unterminated string literal", loc))

    def _read_number(self) -> Token:
        loc = self._loc()
        start = self.pos
        while self.pos < len(self.source) and _is_digit(self.source[self.pos]):
            self._advance()
        is_float = False
        next_ch = self._peek_ahead()
        if self._peek() == "." and _is_digit(next_ch):
            is_float = True
            self._advance()
            while self.pos < len(self.source) and _is_digit(self.source[self.pos]):
                self._advance()
        value = self.source[start:self.pos]
        if is_float:
            return Token(TokenType.FLOAT_LIT, value, loc)
        if int(value) > INT64_MAX:
            raise LexError(lex_error(f"Integer literal out of range: {value}", loc))
        return Token(TokenType.INT_LIT, value, loc)

    def _read_identifier(self) -> Token:
        loc = self._loc()
        start = self.pos
        while self.pos < len(self.source) and (self.source[self.pos].isalnum() or self.source[self.pos] == "_"):
            self._advance()
        value = self.source[start:self.pos]
        return Token(KEYWORDS.get(value, TokenType.IDENT), value, loc)

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while self.pos < len(self.source):
            ch = self._peek()
            loc = self._loc()

            if ch in (" ", "\t", "\r"):
                self._advance()
            elif ch == "\n":
                self._advance()
                tokens.append(Token(TokenType.NEWLINE, "\n", loc))
            elif ch == "/" and self._peek_ahead() == "/":
                tokens.append(self._read_comment())
            elif ch == '"':
                tokens.append(self._read_string())
            elif _is_digit(ch):
                tokens.append(self._read_number())
            elif ch.isalpha() or ch == "_":
                tokens.append(self._read_identifier())
            elif ch in SINGLE_CHAR:
                self._advance()
                tokens.append(Token(SINGLE_CHAR[ch], ch, loc))
            elif ch == ">":
                self._advance()
                if self._peek() == "=":
                    self._advance()
                    tokens.append(Token(TokenType.GTE, ">=", loc))
                else:
                    tokens.append(Token(TokenType.GT, ">", loc))
            elif ch == "=" and self._peek_ahead() == ">":
                self._advance()
                self._advance()
                tokens.append(Token(TokenType.FAT_ARROW, "=>", loc))
            elif ch in TWO_CHAR:
                second, combined, single = TWO_CHAR[ch]
                self._advance()
                if self._peek() == second:
                    self._advance()
                    tokens.append(Token(combined, ch + second, loc))
                else:
                    tokens.append(Token(single, ch, loc))
            else:
                raise LexError(lex_error(f"Unexpected character '{ch}'", loc))

        tokens.append(Token(TokenType.EOF, "", self._loc()))
        return tokens


def tokenize(source: str, filename: str = "<stdin>") -> list[Token]:
    """Convenience function to tokenize Morph source code."""
    return Lexer(source, filename).tokenize()
