"""Clause-level SQL builders.

Each class handles exactly one SQL clause and shares the run's
:class:`~lql.compile.expression_builder.ExpressionBuilder`, so parameters
are recorded in the order they appear in the output.

Classes
-------
SelectClauseBuilder   - ``SELECT [DISTINCT] <items>``
FromClauseBuilder     - ``FROM <table> [AS <alias>]``
JoinClauseBuilder     - ``[LEFT ]JOIN … ON …``
OrderByClauseBuilder  - ``ORDER BY <expr> ASC|DESC, …``
PaginationBuilder     - dialect pagination (``LIMIT``/``OFFSET``/``FETCH``)
"""
from __future__ import annotations

from lql.compile.context import CompilationContext, RuntimeContext
from lql.compile.expression_builder import ExpressionBuilder
from lql.schema.expressions import Column, Parameter
from lql.schema.pipeline import Join, OrderItem, Relation, SelectItem


class SelectClauseBuilder:
    """Builds the ``SELECT [DISTINCT] …`` clause."""

    def __init__(self, ctx: CompilationContext, expressions: ExpressionBuilder) -> None:
        self._ctx = ctx
        self._expr = expressions

    def build(self, items: tuple[SelectItem, ...] | None, distinct: bool) -> str:
        prefix = "SELECT DISTINCT" if distinct else "SELECT"
        if not items:
            return f"{prefix} *"
        return f"{prefix} {', '.join(self._build_item(item) for item in items)}"

    def _build_item(self, item: SelectItem) -> str:
        expr_sql = self._expr.build(item.expr)
        if item.alias:
            return f"{expr_sql} AS {self._ctx.dialect.quote_identifier(item.alias)}"
        return expr_sql


class FromClauseBuilder:
    """Builds the ``FROM <table> [AS <alias>]`` fragment."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, relation: Relation) -> str:
        return f"FROM {self.table_ref(relation)}"

    def table_ref(self, relation: Relation) -> str:
        quote = self._ctx.dialect.quote_identifier
        table_sql = ".".join(quote(part) for part in relation.name.split("."))
        if relation.alias:
            table_sql = f"{table_sql} AS {quote(relation.alias)}"
        return table_sql


class JoinClauseBuilder:
    """Builds a single ``[LEFT ]JOIN … ON …`` fragment."""

    def __init__(self, from_builder: FromClauseBuilder, expressions: ExpressionBuilder) -> None:
        self._from = from_builder
        self._expr = expressions

    def build(self, join: Join) -> str:
        keyword = "LEFT JOIN" if join.kind == "left" else "JOIN"
        table_sql = self._from.table_ref(join.relation)
        on_sql = self._expr.build_predicate(join.on)
        return f"{keyword} {table_sql} ON {on_sql}"


class OrderByClauseBuilder:
    """Builds ``ORDER BY`` from order items.

    After a ``UNION`` only result columns may be named, so qualified column
    references are reduced to their bare column name.
    """

    def __init__(self, expressions: ExpressionBuilder) -> None:
        self._expr = expressions

    def build(self, items: list[OrderItem], result_columns_only: bool = False) -> str:
        parts = []
        for item in items:
            expr = item.expr
            if result_columns_only and isinstance(expr, Column):
                expr = expr.model_copy(update={"parts": (expr.name,)})
            parts.append(f"{self._expr.build(expr)} {item.direction.upper()}")
        return f"ORDER BY {', '.join(parts)}"


class PaginationBuilder:
    """Renders ``limit``/``offset`` bounds through the dialect.

    Parameters used as bounds are recorded in the order they appear in the
    rendered clause, which differs between ``LIMIT … OFFSET …`` and
    ``OFFSET … FETCH NEXT …``.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def build(
        self,
        limit: int | Parameter | None,
        offset: int | Parameter | None,
        has_order_by: bool,
    ) -> str:
        limit_sql, offset_sql = self._bound(limit), self._bound(offset)
        clause = self._ctx.dialect.render_pagination(limit_sql, offset_sql, has_order_by)
        params = [
            ((clause + " ").find(f"{sql} "), value.name)
            for value, sql in ((limit, limit_sql), (offset, offset_sql))
            if isinstance(value, Parameter)
        ]
        for _, name in sorted(params):
            self._runtime.add_parameter(name)
        return clause

    def _bound(self, value: int | Parameter | None) -> str | None:
        if value is None:
            return None
        if isinstance(value, Parameter):
            return self._ctx.placeholder(value.name)
        return str(value)
