"""LQL front end: tokens, lexer, and the recursive-descent pipeline parser."""
from lql.syntax.tokens import SourcePosition, Token, TokenKind

__all__ = ["SourcePosition", "Token", "TokenKind"]
