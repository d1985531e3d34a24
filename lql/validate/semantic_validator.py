"""Semantic validator.

Checks rules that need the whole stage rather than one token: a lambda in
``filter``/``having`` must have a boolean-shaped body, and a projection that
mixes aggregates with bare columns should be grouped.
"""

from __future__ import annotations

import logging

from lql.compile.context import CompilationContext, RuntimeContext
from lql.errors import TypeMismatchError
from lql.schema.expressions import (
    Column,
    Expression,
    FunctionCall,
    Lambda,
    PredicateShape,
    children,
    predicate_shape,
)
from lql.schema.pipeline import Filter, GroupBy, Having, Pipeline

logger = logging.getLogger(__name__)


class SemanticValidator:
    """Validates semantic constraints on a Pipeline.

    Args:
        ctx: Compilation context.
        runtime: Receives diagnostics.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate_predicates(self, pipeline: Pipeline) -> None:
        """Raise if a ``filter``/``having`` lambda body is not boolean.

        Raises:
            TypeMismatchError: On the first non-boolean lambda body.
        """
        for stage in pipeline.stages:
            if not isinstance(stage, (Filter, Having)):
                continue
            predicate = stage.predicate
            if not isinstance(predicate, Lambda):
                continue
            if predicate_shape(predicate.body) is PredicateShape.NON_BOOLEAN:
                raise TypeMismatchError(stage.stage, predicate.body.position or stage.position)

    def check_aggregate_projection(self, pipeline: Pipeline) -> None:
        """Warn when aggregates and bare columns are projected without ``group_by``."""
        select = pipeline.select
        if select is None or pipeline.stages_of(GroupBy) or not pipeline.has_aggregate_projection:
            return
        bare = [
            str(column)
            for item in select.items
            for column in _columns_outside_aggregates(item.expr)
        ]
        if bare:
            message = (
                f"Projection mixes aggregates with non-aggregated columns "
                f"({', '.join(bare)}) but the pipeline has no group_by."
            )
            logger.warning("%s", message)
            self._runtime.warn(message)


def _columns_outside_aggregates(expr: Expression) -> list[Column]:
    if isinstance(expr, Column):
        return [expr]
    if isinstance(expr, FunctionCall) and expr.is_aggregate:
        return []
    return [col for child in children(expr) for col in _columns_outside_aggregates(child)]
