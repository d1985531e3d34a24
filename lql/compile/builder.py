"""Core Pipeline → SQL compilation logic.

``PipelineCompiler`` is the top-level orchestrator.  It folds the pipeline's
stages into a fixed SQL clause layout, wires together the clause-level and
expression-level sub-builders, then drives the compilation algorithm.  All
engine-specific behaviour is delegated to the injected ``SQLDialect``.

Sub-builder hierarchy
---------------------
PipelineCompiler
  ├── PipelineValidator     (validate/validator.py)
  ├── ExpressionBuilder     (expression_builder.py)
  ├── SelectClauseBuilder   (clause_builders.py)
  ├── FromClauseBuilder     (clause_builders.py)
  ├── JoinClauseBuilder     (clause_builders.py)
  ├── OrderByClauseBuilder  (clause_builders.py)
  └── PaginationBuilder     (clause_builders.py)

Clause order
------------
Stages may be written in any order; the SQL clause order is always
``SELECT … FROM … JOIN … WHERE … GROUP BY … HAVING … ORDER BY …`` followed
by pagination.  ``limit`` and ``offset`` therefore apply to the final,
filtered and ordered rows wherever they appear in the pipeline.

Union
-----
Both sides share one :class:`~lql.compile.context.RuntimeContext`.  The
union-bearing pipeline's ``order_by``/``limit``/``offset`` apply to the
combined rows.  A right-hand pipeline keeps its own pagination by being
wrapped in a derived table; without pagination its ``order_by`` has no
effect and is dropped with a diagnostic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lql.compile.base import CompiledSQL, SQLDialect
from lql.compile.clause_builders import (
    FromClauseBuilder,
    JoinClauseBuilder,
    OrderByClauseBuilder,
    PaginationBuilder,
    SelectClauseBuilder,
)
from lql.compile.context import CompilationContext, RuntimeContext
from lql.compile.expression_builder import ExpressionBuilder
from lql.errors import PaginationRequiresOrderError
from lql.schema.expressions import BinaryOp, Expression, Lambda
from lql.schema.options import CompileOptions
from lql.schema.pipeline import (
    Distinct,
    Filter,
    GroupBy,
    Having,
    Join,
    Limit,
    Offset,
    OrderBy,
    OrderItem,
    Pipeline,
    Relation,
    Select,
    Union,
)
from lql.schema.snapshot import SchemaLookup
from lql.syntax.tokens import SourcePosition
from lql.validate.validator import PipelineValidator

logger = logging.getLogger(__name__)


@dataclass
class QueryShape:
    """A pipeline's stages regrouped by the SQL clause they contribute to."""

    source: Relation
    joins: list[Join] = field(default_factory=list)
    filters: list[Filter] = field(default_factory=list)
    group_keys: list[Expression] = field(default_factory=list)
    havings: list[Having] = field(default_factory=list)
    select: Select | None = None
    order_items: list[OrderItem] = field(default_factory=list)
    limit: Limit | None = None
    offset: Offset | None = None
    distinct: bool = False
    unions: list[Union] = field(default_factory=list)

    @classmethod
    def from_pipeline(cls, pipeline: Pipeline) -> QueryShape:
        shape = cls(source=pipeline.source)
        for stage in pipeline.stages:
            if isinstance(stage, Join):
                shape.joins.append(stage)
            elif isinstance(stage, Filter):
                shape.filters.append(stage)
            elif isinstance(stage, GroupBy):
                shape.group_keys.extend(stage.keys)
            elif isinstance(stage, Having):
                shape.havings.append(stage)
            elif isinstance(stage, Select):
                shape.select = stage
            elif isinstance(stage, OrderBy):
                shape.order_items.extend(stage.items)
            elif isinstance(stage, Limit):
                shape.limit = stage
            elif isinstance(stage, Offset):
                shape.offset = stage
            elif isinstance(stage, Distinct):
                shape.distinct = True
            elif isinstance(stage, Union):
                shape.unions.append(stage)
            else:
                raise TypeError(f"Unknown stage type: {type(stage).__name__}")
        return shape

    @property
    def has_pagination(self) -> bool:
        return self.limit is not None or self.offset is not None

    @property
    def pagination_position(self) -> SourcePosition | None:
        stage = self.limit or self.offset
        return stage.position if stage is not None else None


class PipelineCompiler:
    """Compiles a parsed :class:`Pipeline` to one SQL statement.

    Args:
        dialect: Target dialect instance.
        schema: Optional schema lookup; only produces diagnostics.
        options: Compiler settings; defaults to :class:`CompileOptions`.
    """

    def __init__(
        self,
        dialect: SQLDialect,
        schema: SchemaLookup | None = None,
        options: CompileOptions | None = None,
    ) -> None:
        self._ctx = CompilationContext(
            dialect=dialect,
            options=options or CompileOptions(),
            schema=schema,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, pipeline: Pipeline) -> CompiledSQL:
        """Compile ``pipeline`` to SQL.

        Returns:
            :class:`~lql.compile.base.CompiledSQL` with the statement, the
            ordered parameter names and any diagnostics.

        Raises:
            CompileError: (or a subclass) if the pipeline cannot be rendered
                for the target dialect.
        """
        runtime = RuntimeContext()
        PipelineValidator(self._ctx, runtime).validate(pipeline)
        sub_builders = self._make_sub_builders(runtime)
        sql = self._build_statement(pipeline, runtime, sub_builders)
        logger.debug("Compiled pipeline for %s: %s", self._ctx.dialect.dialect_name, sql)
        return CompiledSQL(
            sql=sql,
            parameters=list(runtime.parameters),
            dialect=self._ctx.dialect.dialect_name,
            diagnostics=list(runtime.diagnostics),
        )

    # ------------------------------------------------------------------
    # Statement assembly
    # ------------------------------------------------------------------

    def _build_statement(
        self,
        pipeline: Pipeline,
        runtime: RuntimeContext,
        sub_builders: dict,
        in_union: bool = False,
    ) -> str:
        shape = QueryShape.from_pipeline(pipeline)
        sep = self._ctx.options.clause_separator

        distinct = shape.distinct and not shape.unions
        body = sep.join(self._build_core_query(shape, sub_builders, distinct))
        if shape.unions:
            keyword = "UNION" if shape.distinct else "UNION ALL"
            for union in shape.unions:
                branch_sql = self._build_union_branch(union.pipeline, runtime, sub_builders)
                body = f"{body}{sep}{keyword}{sep}{branch_sql}"
            if self._needs_synthesized_order(shape) and self._ctx.options.pagination_fallback == "synthesize":
                # ORDER BY (SELECT NULL) is not a valid ORDER BY for a UNION itself.
                body = f"SELECT * FROM ({body}) AS _union"

        if in_union and not shape.has_pagination and shape.order_items:
            runtime.warn("order_by inside a union branch without limit/offset has no effect; dropped.")
            shape.order_items = []

        return sep.join([body, *self._build_tail(shape, runtime, sub_builders)])

    def _build_core_query(self, shape: QueryShape, sub_builders: dict, distinct: bool) -> list[str]:
        expr: ExpressionBuilder = sub_builders["expr"]
        items = shape.select.items if shape.select else None
        parts = [sub_builders["select"].build(items, distinct)]

        parts.append(sub_builders["from"].build(shape.source))

        for join in shape.joins:
            parts.append(sub_builders["join"].build(join))

        if shape.filters:
            parts.append(f"WHERE {self._conjoin(shape.filters, expr)}")

        if shape.group_keys:
            parts.append(f"GROUP BY {', '.join(expr.build(key) for key in shape.group_keys)}")

        if shape.havings:
            parts.append(f"HAVING {self._conjoin(shape.havings, expr)}")

        return parts

    def _build_tail(self, shape: QueryShape, runtime: RuntimeContext, sub_builders: dict) -> list[str]:
        """Render ``ORDER BY`` and pagination, synthesising an order if required."""
        tail: list[str] = []
        if shape.order_items:
            tail.append(
                sub_builders["order"].build(shape.order_items, result_columns_only=bool(shape.unions))
            )
        elif self._needs_synthesized_order(shape):
            if self._ctx.options.pagination_fallback == "error":
                raise PaginationRequiresOrderError(
                    self._ctx.dialect.dialect_name, shape.pagination_position
                )
            tail.append("ORDER BY (SELECT NULL)")

        if shape.has_pagination:
            tail.append(
                sub_builders["pagination"].build(
                    shape.limit.count if shape.limit else None,
                    shape.offset.count if shape.offset else None,
                    has_order_by=bool(tail),
                )
            )
        return tail

    def _needs_synthesized_order(self, shape: QueryShape) -> bool:
        return (
            shape.has_pagination
            and not shape.order_items
            and self._ctx.dialect.requires_order_for_pagination
        )

    def _build_union_branch(self, pipeline: Pipeline, runtime: RuntimeContext, sub_builders: dict) -> str:
        branch = QueryShape.from_pipeline(pipeline)
        sql = self._build_statement(pipeline, runtime, sub_builders, in_union=True)
        if branch.has_pagination or branch.unions:
            return f"SELECT * FROM ({sql}) AS {runtime.next_derived_alias()}"
        return sql

    @staticmethod
    def _conjoin(stages: list[Filter] | list[Having], expr: ExpressionBuilder) -> str:
        """AND together stage predicates, parenthesising any ``or``."""
        if len(stages) == 1:
            return expr.build_predicate(stages[0].predicate)
        parts = []
        for stage in stages:
            sql = expr.build_predicate(stage.predicate)
            parts.append(f"({sql})" if _top_level_or(stage.predicate) else sql)
        return " AND ".join(parts)

    # ------------------------------------------------------------------
    # Sub-builder wiring
    # ------------------------------------------------------------------

    def _make_sub_builders(self, runtime: RuntimeContext) -> dict:
        """Construct the sub-builder graph for one compilation run."""
        expr = ExpressionBuilder(self._ctx, runtime)
        from_builder = FromClauseBuilder(self._ctx)
        return {
            "expr": expr,
            "select": SelectClauseBuilder(self._ctx, expr),
            "from": from_builder,
            "join": JoinClauseBuilder(from_builder, expr),
            "order": OrderByClauseBuilder(expr),
            "pagination": PaginationBuilder(self._ctx, runtime),
        }


def _top_level_or(predicate: Expression) -> bool:
    if isinstance(predicate, Lambda):
        predicate = predicate.body
    return isinstance(predicate, BinaryOp) and predicate.op == "or"
