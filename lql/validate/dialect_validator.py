"""Dialect feature validator.

Checks that the pipeline uses nothing the target engine cannot render:
``ilike``, a zero ``limit`` or a distinct ``string_agg`` on SQL Server,
``stddev`` on SQLite, and any feature a custom dialect lists in
``unsupported_features``.
"""

from __future__ import annotations

from lql.compile.context import CompilationContext
from lql.errors import UnsupportedFeatureError
from lql.schema.expressions import STRING_AGGREGATES, FunctionCall, Like, walk
from lql.schema.pipeline import Limit, Pipeline, stage_expressions

#: Feature name for ``limit(0)``; ``FETCH NEXT 0 ROWS`` is rejected by SQL Server.
ZERO_LIMIT = "limit(0)"

#: Feature name for ``string_agg(distinct ...)``.
DISTINCT_STRING_AGG = "string_agg(distinct)"


class DialectValidator:
    """Validates pipeline features against the target dialect.

    Args:
        ctx: Compilation context (dialect + options).
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def validate_features(self, pipeline: Pipeline) -> None:
        """Raise on the first unsupported feature found.

        Raises:
            UnsupportedFeatureError: If an expression uses a feature the
                dialect does not support.
        """
        dialect = self._ctx.dialect
        for stage in pipeline.stages:
            if isinstance(stage, Limit) and stage.count == 0 and not dialect.supports(ZERO_LIMIT):
                raise UnsupportedFeatureError(
                    dialect.dialect_name, ZERO_LIMIT, position=stage.position, stage=stage.stage
                )
            for expr in stage_expressions(stage):
                for node in walk(expr):
                    feature = None
                    if isinstance(node, Like) and node.case_insensitive:
                        feature = "ilike"
                    elif isinstance(node, FunctionCall):
                        feature = node.name.lower()
                        if node.distinct and feature in STRING_AGGREGATES:
                            feature = DISTINCT_STRING_AGG
                    if feature is not None and not dialect.supports(feature):
                        raise UnsupportedFeatureError(
                            dialect.dialect_name,
                            feature,
                            position=node.position,
                            stage=stage.stage,
                        )
