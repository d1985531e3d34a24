"""Token kinds, source positions, and the Token dataclass for the LQL lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class SourcePosition:
    """A location in LQL source text.

    Attributes:
        line: 1-based line number.
        column: 1-based column number.
        offset: 0-based character offset from the start of the text.
    """

    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class TokenKind(str, Enum):
    """Lexical categories produced by :class:`~lql.syntax.lexer.Lexer`."""

    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    PARAMETER = "parameter"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    EOF = "eof"


#: Reserved words of the expression grammar.  Matched case-insensitively and
#: stored lower-cased in ``Token.text``.  Stage names are NOT keywords: they
#: are resolved contextually after ``|>`` so columns may share their names.
KEYWORDS: frozenset[str] = frozenset(
    {
        "fn",
        "on",
        "as",
        "asc",
        "desc",
        "and",
        "or",
        "not",
        "null",
        "true",
        "false",
        "is",
        "in",
        "like",
        "ilike",
    }
)

#: Multi-character operators, longest first so the lexer can match greedily.
MULTI_CHAR_OPERATORS: tuple[str, ...] = ("|>", "=>", "==", "<>", "!=", "<=", ">=", "||")

#: Single-character operators.
SINGLE_CHAR_OPERATORS: frozenset[str] = frozenset({"=", "<", ">", "+", "-", "*", "/", "%"})

#: Punctuation characters.
PUNCTUATION: frozenset[str] = frozenset({"(", ")", ","})


@dataclass(frozen=True)
class Token:
    """A lexical unit with its kind, raw text, and source position.

    For ``IDENTIFIER`` tokens ``parts`` holds the dotted segments
    (``"Users.Name"`` → ``("Users", "Name")``); a trailing ``*`` segment
    marks a qualified star (``"Users.*"``).
    """

    kind: TokenKind
    text: str
    position: SourcePosition
    parts: tuple[str, ...] = ()

    def is_keyword(self, *words: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.text in words

    def is_operator(self, *ops: str) -> bool:
        return self.kind is TokenKind.OPERATOR and self.text in ops

    def is_punct(self, char: str) -> bool:
        return self.kind is TokenKind.PUNCTUATION and self.text == char

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.position.line}:{self.position.column})"
