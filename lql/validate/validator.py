"""Pipeline validation orchestrator.

``PipelineValidator`` is the entry point the compiler calls before any SQL
is rendered.  It wires together the focused sub-validators and drives them
over the pipeline and every unioned pipeline.

Sub-validator hierarchy
-----------------------
PipelineValidator
  ├── SemanticValidator   (semantic_validator.py) - lambda predicate shape, aggregates
  ├── DialectValidator    (dialect_validator.py)  - unsupported features
  └── SchemaValidator     (schema_validator.py)   - unknown tables / columns (diagnostics)
"""
from __future__ import annotations

from lql.compile.context import CompilationContext, RuntimeContext
from lql.schema.pipeline import Pipeline, Union
from lql.validate.dialect_validator import DialectValidator
from lql.validate.schema_validator import SchemaValidator
from lql.validate.semantic_validator import SemanticValidator


class PipelineValidator:
    """Validates a Pipeline for one compilation run.

    Errors are raised on the first violation; schema findings are only
    recorded as diagnostics on ``runtime``.

    Args:
        ctx: Compilation context (dialect, options, optional schema).
        runtime: Accumulator receiving diagnostics.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def validate(self, pipeline: Pipeline) -> None:
        """Validate ``pipeline`` and, recursively, its unioned pipelines.

        Raises:
            TypeMismatchError: If a lambda predicate body is not boolean.
            UnsupportedFeatureError: If the dialect cannot render a feature.
        """
        sub_validators = self._make_sub_validators()

        sub_validators["semantic"].validate_predicates(pipeline)
        sub_validators["dialect"].validate_features(pipeline)
        sub_validators["semantic"].check_aggregate_projection(pipeline)
        sub_validators["schema"].validate(pipeline)

        for union in pipeline.stages_of(Union):
            self.validate(union.pipeline)

    def _make_sub_validators(self) -> dict:
        return {
            "semantic": SemanticValidator(self._ctx, self._runtime),
            "dialect": DialectValidator(self._ctx),
            "schema": SchemaValidator(self._ctx, self._runtime),
        }
