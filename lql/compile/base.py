"""Dialect abstractions: CompiledSQL and the SQLDialect ABC.

The Template Method pattern (GoF) is used:
- ``SQLDialect`` implements the rendering steps shared by every engine
  (identifier quoting decision, string literals, function-call assembly).
- ``SQLiteDialect``, ``PostgresDialect`` and ``SQLServerDialect`` override
  the engine-specific steps (quote characters, boolean literals,
  pagination, function spellings, parameter placeholders).

Dialect objects hold no per-compilation state, so one instance may serve
any number of concurrent compilations.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from lql.compile.identifiers import needs_quoting
from lql.schema.expressions import AGGREGATE_FUNCTIONS, STRING_AGGREGATES


@dataclass
class CompiledSQL:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled SQL statement.
        parameters: Names of the ``@name`` parameters referenced, in order of
            first appearance and without duplicates.  The caller binds these.
        dialect: The target dialect (``'sqlite'``, ``'postgres'`` or
            ``'sqlserver'``).
        diagnostics: Schema warnings (unknown tables or columns, suspicious
            aggregate usage).  Never errors.
    """

    sql: str
    parameters: list[str]
    dialect: str
    diagnostics: list[str] = field(default_factory=list)


class SQLDialect(ABC):
    """Abstract base for per-engine SQL rendering rules.

    Subclasses set the class-level tables and implement the abstract
    methods; the compiler only talks to this interface.
    """

    #: Opening and closing identifier quote characters.
    open_quote: ClassVar[str] = '"'
    close_quote: ClassVar[str] = '"'

    #: Whether ``OFFSET``/``FETCH`` pagination needs a preceding ``ORDER BY``.
    requires_order_for_pagination: ClassVar[bool] = False

    #: Canonical lower-case function name → engine spelling.
    function_names: ClassVar[dict[str, str]] = {}

    #: Zero-argument functions rendered as a fixed SQL expression.
    function_templates: ClassVar[dict[str, str]] = {}

    #: Features (``ilike``, function names, ...) this engine cannot render.
    unsupported_features: ClassVar[frozenset[str]] = frozenset()

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""

    # ------------------------------------------------------------------
    # Identifiers and literals
    # ------------------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Return ``name`` quoted if it is reserved or not a plain identifier.

        Args:
            name: A single, undotted identifier.
        """
        if not needs_quoting(name):
            return name
        escaped = name.replace(self.close_quote, self.close_quote * 2)
        return f"{self.open_quote}{escaped}{self.close_quote}"

    def render_boolean(self, value: bool) -> str:
        """Render a boolean literal in value position."""
        return "1" if value else "0"

    def render_boolean_predicate(self, value: bool) -> str:
        """Render a boolean literal standing alone as a search condition."""
        return self.render_boolean(value)

    def render_string(self, value: str) -> str:
        escaped = value.replace("'", "''")
        return f"'{escaped}'"

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def param_placeholder(self, name: str, style: str = "verbatim") -> str:
        """Return the placeholder for parameter ``name``.

        Args:
            name: Parameter name without the ``@`` sigil.
            style: ``"verbatim"`` keeps ``@name``; ``"native"`` uses the
                driver placeholder of this engine.
        """
        if style == "native":
            return self.native_placeholder(name)
        return f"@{name}"

    @abstractmethod
    def native_placeholder(self, name: str) -> str:
        """Return the driver-native placeholder for ``name``."""

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    @abstractmethod
    def render_pagination(
        self,
        limit: str | None,
        offset: str | None,
        has_order_by: bool,
    ) -> str:
        """Return the pagination clause (empty when both bounds are absent).

        Args:
            limit: Rendered row count, or ``None``.
            offset: Rendered rows to skip, or ``None``.
            has_order_by: Whether the statement carries an ``ORDER BY``.
        """

    # ------------------------------------------------------------------
    # Functions and operators
    # ------------------------------------------------------------------

    def translate_function(self, name: str) -> str:
        """Map a canonical function name to this engine's spelling.

        Aggregates are upper-cased; unmapped names pass through unchanged.
        """
        canonical = name.lower()
        if canonical in self.function_names:
            return self.function_names[canonical]
        if canonical in AGGREGATE_FUNCTIONS:
            return canonical.upper()
        return name

    def build_func_call(self, name: str, args_sql: list[str], distinct: bool = False) -> str:
        """Assemble a function call from already-rendered arguments.

        Dialects override this for functions whose shape changes, not just
        their name.
        """
        canonical = name.lower()
        if not args_sql and canonical in self.function_templates:
            return self.function_templates[canonical]
        if canonical in STRING_AGGREGATES:
            return self.build_string_agg(args_sql, distinct)
        if canonical == "count" and not args_sql:
            args_sql = ["*"]
        prefix = "DISTINCT " if distinct else ""
        return f"{self.translate_function(name)}({prefix}{', '.join(args_sql)})"

    def build_string_agg(self, args_sql: list[str], distinct: bool = False) -> str:
        """Render ``string_agg`` / ``group_concat``.

        ``STRING_AGG`` requires a separator, so a one-argument call gets
        ``','``, the default separator of ``group_concat``.
        """
        if len(args_sql) == 1:
            args_sql = [*args_sql, self.render_string(",")]
        prefix = "DISTINCT " if distinct else ""
        return f"STRING_AGG({prefix}{', '.join(args_sql)})"

    def string_concat_operator(self) -> str:
        return "||"

    def render_concat(self, operands: list[str], string_typed: list[bool]) -> str:
        """Join rendered operands with the concatenation operator.

        Args:
            operands: Rendered operand SQL, already parenthesised as needed.
            string_typed: For each operand, whether it is known to be a string.
        """
        return f" {self.string_concat_operator()} ".join(operands)

    def like_operator(self, case_insensitive: bool) -> str:
        return "ILIKE" if case_insensitive else "LIKE"

    def supports(self, feature: str) -> bool:
        """Return ``True`` unless ``feature`` is known to be unrenderable."""
        return feature.lower() not in self.unsupported_features
