"""Compilation context value objects.

``CompilationContext`` packages the ``(dialect, schema, options)`` triple
every sub-builder needs; ``RuntimeContext`` accumulates what one compile run
discovers (parameters, diagnostics).
"""
from __future__ import annotations

from dataclasses import dataclass, field

from lql.compile.base import SQLDialect
from lql.schema.options import CompileOptions
from lql.schema.snapshot import SchemaLookup


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for a single compilation run.

    Attributes:
        dialect: Target dialect instance.
        options: Compiler settings.
        schema: Optional schema lookup, used for diagnostics only.
    """

    dialect: SQLDialect
    options: CompileOptions
    schema: SchemaLookup | None = None

    def placeholder(self, name: str) -> str:
        return self.dialect.param_placeholder(name, self.options.param_style)


@dataclass
class RuntimeContext:
    """Accumulates parameter references and diagnostics during one run.

    A single instance is threaded through every sub-builder and through
    both sides of a ``union`` so the parameter list covers the whole
    statement in output order.
    """

    parameters: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    _derived_tables: int = 0

    def next_derived_alias(self) -> str:
        """Return a fresh alias for a derived table (``_u1``, ``_u2``, ...)."""
        self._derived_tables += 1
        return f"_u{self._derived_tables}"

    def add_parameter(self, name: str) -> None:
        if name not in self.parameters:
            self.parameters.append(name)

    def warn(self, message: str) -> None:
        if message not in self.diagnostics:
            self.diagnostics.append(message)
