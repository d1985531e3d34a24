"""Custom exception hierarchy for LQL.

All public errors inherit from :class:`LqlError` so callers can catch the
base class for any LQL-specific failure.  The public entry points in
:mod:`lql` never let these escape: they are returned inside
:class:`~lql.result.Err` values instead.
"""
from __future__ import annotations

from typing import Any

from lql.syntax.tokens import SourcePosition


class LqlError(Exception):
    """Base exception for all LQL errors.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. ``UNKNOWN_STAGE``).
        position: Source position the error refers to, when known.
        stage: Pipeline stage name the error refers to, when known.
        details: Extra structured context.
    """

    def __init__(
        self,
        message: str,
        code: str,
        position: SourcePosition | None = None,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.position = position
        self.stage = stage
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response suitable for tooling."""
        response: dict[str, Any] = {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }
        if self.stage is not None:
            response["stage"] = self.stage
        if self.position is not None:
            response["line"] = self.position.line
            response["column"] = self.position.column
        return response

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at {self.position})"


# ---------------------------------------------------------------------------
# Parse errors
# ---------------------------------------------------------------------------


class ParseError(LqlError):
    """Raised when LQL text cannot be turned into a pipeline AST."""


class LexicalError(ParseError):
    """Raised for an unterminated string literal or an invalid character."""

    def __init__(self, message: str, position: SourcePosition) -> None:
        super().__init__(message, code="LEXICAL_ERROR", position=position)


class UnexpectedTokenError(ParseError):
    """Raised when the parser meets a token the grammar does not allow."""

    def __init__(
        self,
        found: str,
        expected: str,
        position: SourcePosition,
        stage: str | None = None,
    ) -> None:
        shown = repr(found) if found else "end of input"
        super().__init__(
            f"Expected {expected} but found {shown}.",
            code="UNEXPECTED_TOKEN",
            position=position,
            stage=stage,
            details={"found": found, "expected": expected},
        )


class UnknownStageError(ParseError):
    """Raised when ``|>`` is followed by a name that is not a pipeline stage."""

    def __init__(
        self,
        name: str,
        position: SourcePosition,
        known_stages: list[str],
    ) -> None:
        super().__init__(
            f"Unknown pipeline stage '{name}'.",
            code="UNKNOWN_STAGE",
            position=position,
            stage=name,
            details={"stage": name, "known_stages": known_stages},
        )


class MalformedStageError(ParseError):
    """Raised when a stage has the wrong shape (arity, missing ``on``, ...)."""

    def __init__(self, stage: str, message: str, position: SourcePosition) -> None:
        super().__init__(
            f"Malformed '{stage}' stage: {message}",
            code="MALFORMED_STAGE",
            position=position,
            stage=stage,
        )


class TooDeepError(ParseError):
    """Raised when expression or pipeline nesting exceeds the configured depth."""

    def __init__(self, max_depth: int, position: SourcePosition) -> None:
        super().__init__(
            f"Nesting exceeds the maximum depth of {max_depth}.",
            code="TOO_DEEP",
            position=position,
            details={"max_depth": max_depth},
        )


# ---------------------------------------------------------------------------
# Compile errors
# ---------------------------------------------------------------------------


class CompileError(LqlError):
    """Raised when a well-formed pipeline cannot be rendered as SQL."""

    def __init__(
        self,
        message: str,
        code: str = "COMPILE_ERROR",
        position: SourcePosition | None = None,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, position=position, stage=stage, details=details)


class UnsupportedFeatureError(CompileError):
    """Raised when a pipeline uses something the target dialect cannot render."""

    def __init__(
        self,
        dialect: str,
        feature: str,
        position: SourcePosition | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(
            f"'{feature}' is not supported by the {dialect} dialect.",
            code="UNSUPPORTED_FEATURE",
            position=position,
            stage=stage,
            details={"dialect": dialect, "feature": feature},
        )
        self.dialect = dialect
        self.feature = feature


class TypeMismatchError(CompileError):
    """Raised when a lambda predicate body is not boolean-valued."""

    def __init__(self, stage: str, position: SourcePosition | None = None) -> None:
        super().__init__(
            f"The lambda body of '{stage}' must be a boolean expression.",
            code="TYPE_MISMATCH",
            position=position,
            stage=stage,
        )


class PaginationRequiresOrderError(CompileError):
    """Raised when a dialect needs ORDER BY for pagination and none is given."""

    def __init__(self, dialect: str, position: SourcePosition | None = None) -> None:
        super().__init__(
            f"The {dialect} dialect requires an order_by stage for limit/offset.",
            code="PAGINATION_REQUIRES_ORDER",
            position=position,
            details={"dialect": dialect},
        )


class UnknownDialectError(CompileError):
    """Raised when no dialect is registered under the requested name."""

    def __init__(self, name: str, registered: list[str]) -> None:
        super().__init__(
            f"Unsupported dialect target: '{name}'. Registered targets: {registered}.",
            code="UNKNOWN_DIALECT",
            details={"dialect": name, "registered": registered},
        )
