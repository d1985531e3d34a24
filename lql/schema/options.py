"""Configuration models for parsing and compilation.

Both models are frozen so a single instance can be shared between
concurrent calls::

    options = CompileOptions(pagination_fallback="error", pretty=True)
    lql.transpile(text, "sqlserver", options=options)
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

#: Default maximum nesting depth for expressions and nested pipelines.
DEFAULT_MAX_DEPTH = 64

#: Largest accepted ``max_depth``.
MAX_DEPTH_LIMIT = 128


class ParseOptions(BaseModel):
    """Parser settings.

    Attributes:
        max_depth: Maximum nesting of expressions, parentheses and nested
            ``union`` pipelines before parsing fails with ``TooDeepError``.
            Every operator of a chain such as ``a + b + c`` counts as one
            level.  Capped at :data:`MAX_DEPTH_LIMIT` so compiling an
            accepted pipeline stays within the interpreter's recursion limit.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=MAX_DEPTH_LIMIT)


class CompileOptions(BaseModel):
    """Compiler settings.

    Attributes:
        pagination_fallback: What to do when the dialect needs ``ORDER BY``
            for ``limit``/``offset`` and the pipeline has no ``order_by``:
            ``"synthesize"`` emits ``ORDER BY (SELECT NULL)``, ``"error"``
            fails with ``PaginationRequiresOrderError``.
        param_style: ``"verbatim"`` keeps ``@name`` placeholders as written;
            ``"native"`` uses the dialect's driver placeholder style.
        pretty: Put each SQL clause on its own line instead of one line.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    pagination_fallback: Literal["synthesize", "error"] = "synthesize"
    param_style: Literal["verbatim", "native"] = "verbatim"
    pretty: bool = False

    @property
    def clause_separator(self) -> str:
        return "\n" if self.pretty else " "
