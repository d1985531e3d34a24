"""Schema diagnostics.

When a schema lookup is supplied, every table and column the pipeline
references is looked up.  Unknown names never fail the compile: SQL text is
correct without type information and the database has the final word.  They
are reported as diagnostics on :class:`~lql.compile.base.CompiledSQL` and
logged as warnings.
"""

from __future__ import annotations

import logging

from lql.compile.context import CompilationContext, RuntimeContext
from lql.schema.expressions import Column
from lql.schema.pipeline import Join, Pipeline, Relation

logger = logging.getLogger(__name__)


class SchemaValidator:
    """Reports table and column references the schema does not know.

    Args:
        ctx: Compilation context carrying the optional schema lookup.
        runtime: Receives diagnostics.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, pipeline: Pipeline) -> None:
        """Check one pipeline's own relations and columns (not its unions)."""
        if self._ctx.schema is None:
            return

        relations = [pipeline.source, *(j.relation for j in pipeline.stages_of(Join))]
        scope: dict[str, str] = {}
        for relation in relations:
            if self._ctx.schema.get_table(relation.name) is None:
                self._report(f"Unknown table '{relation.name}'.", relation)
                continue
            scope[relation.reference_name.lower()] = relation.name
            scope.setdefault(relation.name.lower(), relation.name)

        aliases = {
            item.alias.lower()
            for item in (pipeline.select.items if pipeline.select else ())
            if item.alias
        }
        for column in pipeline.collect_column_refs(include_unions=False):
            self._check_column(column, scope, aliases)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_column(self, column: Column, scope: dict[str, str], aliases: set[str]) -> None:
        schema = self._ctx.schema
        qualifier = column.qualifier
        if qualifier is not None:
            table = scope.get(qualifier.lower())
            if table is None:
                # Unknown tables were already reported once.
                return
            if schema.get_column(table, column.name) is None:
                self._report(f"Unknown column '{table}.{column.name}'.", column)
            return

        if column.name.lower() in aliases:
            return
        tables = set(scope.values())
        if tables and not any(schema.get_column(t, column.name) for t in tables):
            self._report(f"Unknown column '{column.name}'.", column)

    def _report(self, message: str, node: Column | Relation) -> None:
        if node.position is not None:
            message = f"{message[:-1]} (at {node.position})."
        logger.warning("%s", message)
        self._runtime.warn(message)
