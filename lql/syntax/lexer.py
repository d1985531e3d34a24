"""LQL lexer: source text → flat list of :class:`~lql.syntax.tokens.Token`.

The lexer is a single forward scan.  It tracks line and column so every
token (and every lexical error) carries a :class:`SourcePosition`.
"""
from __future__ import annotations

import math

from lql.errors import LexicalError
from lql.syntax.tokens import (
    KEYWORDS,
    MULTI_CHAR_OPERATORS,
    PUNCTUATION,
    SINGLE_CHAR_OPERATORS,
    SourcePosition,
    Token,
    TokenKind,
)

#: Largest integer literal accepted (signed 64-bit).
MAX_INTEGER = 2**63 - 1


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class Lexer:
    """Tokenizes one LQL statement.

    Args:
        text: The LQL source text.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._line = 1
        self._col = 1

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tokenize(self) -> list[Token]:
        """Scan the whole text and return its tokens, ending with ``EOF``.

        Raises:
            LexicalError: On an unterminated string or an invalid character.
        """
        tokens: list[Token] = []
        while True:
            self._skip_trivia()
            if self._at_end():
                tokens.append(Token(TokenKind.EOF, "", self._position()))
                return tokens
            tokens.append(self._next_token())

    # ------------------------------------------------------------------
    # Cursor helpers
    # ------------------------------------------------------------------

    def _at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        return self._text[idx] if idx < len(self._text) else ""

    def _position(self) -> SourcePosition:
        return SourcePosition(line=self._line, column=self._col, offset=self._pos)

    def _advance(self, count: int = 1) -> str:
        consumed = self._text[self._pos : self._pos + count]
        for ch in consumed:
            if ch == "\n":
                self._line += 1
                self._col = 1
            else:
                self._col += 1
        self._pos += len(consumed)
        return consumed

    def _skip_trivia(self) -> None:
        while not self._at_end():
            ch = self._peek()
            if ch.isspace():
                self._advance()
            elif ch == "-" and self._peek(1) == "-":
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
            else:
                return

    # ------------------------------------------------------------------
    # Token scanners
    # ------------------------------------------------------------------

    def _next_token(self) -> Token:
        start = self._position()
        ch = self._peek()

        if _is_ident_start(ch) or ch == "`":
            return self._scan_identifier(start)
        if _is_digit(ch) or (ch == "." and _is_digit(self._peek(1))):
            return self._scan_number(start)
        if ch == "'":
            return self._scan_string(start)
        if ch == "@":
            return self._scan_parameter(start)

        for op in MULTI_CHAR_OPERATORS:
            if self._text.startswith(op, self._pos):
                self._advance(len(op))
                return Token(TokenKind.OPERATOR, op, start)
        if ch in SINGLE_CHAR_OPERATORS:
            self._advance()
            return Token(TokenKind.OPERATOR, ch, start)
        if ch in PUNCTUATION:
            self._advance()
            return Token(TokenKind.PUNCTUATION, ch, start)

        raise LexicalError(f"Invalid character {ch!r}.", start)

    def _scan_identifier(self, start: SourcePosition) -> Token:
        parts: list[str] = [self._scan_segment()]
        while self._peek() == ".":
            nxt = self._peek(1)
            if nxt == "*":
                self._advance(2)
                parts.append("*")
                break
            if not (_is_ident_start(nxt) or nxt == "`"):
                raise LexicalError(
                    f"Expected an identifier after '.' but found {nxt!r}.",
                    self._position(),
                )
            self._advance()
            parts.append(self._scan_segment())

        text = self._text[start.offset : self._pos]
        if len(parts) == 1 and parts[0].lower() in KEYWORDS and not text.startswith("`"):
            return Token(TokenKind.KEYWORD, parts[0].lower(), start)
        return Token(TokenKind.IDENTIFIER, text, start, tuple(parts))

    def _scan_segment(self) -> str:
        if self._peek() == "`":
            start = self._position()
            self._advance()
            chars: list[str] = []
            while True:
                if self._at_end():
                    raise LexicalError("Unterminated quoted identifier.", start)
                ch = self._advance()
                if ch == "`":
                    if self._peek() == "`":
                        chars.append(self._advance())
                        continue
                    break
                chars.append(ch)
            if not chars:
                raise LexicalError("Empty quoted identifier.", start)
            return "".join(chars)

        begin = self._pos
        while not self._at_end() and _is_ident_char(self._peek()):
            self._advance()
        return self._text[begin : self._pos]

    def _scan_number(self, start: SourcePosition) -> Token:
        begin = self._pos
        is_float = False
        while _is_digit(self._peek()):
            self._advance()
        if self._peek() == "." and _is_digit(self._peek(1)):
            is_float = True
            self._advance()
            while _is_digit(self._peek()):
                self._advance()
        if self._peek() in ("e", "E") and (
            _is_digit(self._peek(1))
            or (self._peek(1) in ("+", "-") and _is_digit(self._peek(2)))
        ):
            is_float = True
            self._advance(2)
            while _is_digit(self._peek()):
                self._advance()
        if _is_ident_start(self._peek()):
            raise LexicalError(
                f"Invalid numeric literal {self._text[begin : self._pos + 1]!r}.", start
            )
        text = self._text[begin : self._pos]
        if is_float:
            out_of_range = not math.isfinite(float(text))
        else:
            out_of_range = len(text.lstrip("0")) > 19 or int(text) > MAX_INTEGER
        if out_of_range:
            raise LexicalError(f"Numeric literal {text!r} is out of range.", start)
        kind = TokenKind.FLOAT if is_float else TokenKind.INTEGER
        return Token(kind, text, start)

    def _scan_string(self, start: SourcePosition) -> Token:
        self._advance()
        chars: list[str] = []
        while True:
            if self._at_end():
                raise LexicalError("Unterminated string literal.", start)
            ch = self._advance()
            if ch == "'":
                if self._peek() == "'":
                    chars.append(self._advance())
                    continue
                return Token(TokenKind.STRING, "".join(chars), start)
            chars.append(ch)

    def _scan_parameter(self, start: SourcePosition) -> Token:
        self._advance()
        if not _is_ident_start(self._peek()):
            raise LexicalError("Expected a parameter name after '@'.", start)
        begin = self._pos
        while not self._at_end() and _is_ident_char(self._peek()):
            self._advance()
        return Token(TokenKind.PARAMETER, self._text[begin : self._pos], start)


def tokenize(text: str) -> list[Token]:
    """Convenience wrapper around :meth:`Lexer.tokenize`."""
    return Lexer(text).tokenize()
