"""Pydantic models for the LQL pipeline AST.

A :class:`Pipeline` is a source :class:`Relation` followed by stages in the
order they were written.  The stage order is preserved verbatim; deciding the
SQL clause order is the compiler's job, not the model's.
"""
from __future__ import annotations

from typing import Annotated, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from lql.schema.expressions import (
    Column,
    Expression,
    Lambda,
    Parameter,
    contains_aggregate,
    walk,
)
from lql.syntax.tokens import SourcePosition

_STAGE_CONFIG = ConfigDict(extra="forbid", frozen=True)


class Relation(BaseModel):
    """A named table or view with an optional alias.

    Attributes:
        name: Table or view name.
        alias: Optional alias used to qualify its columns.
    """

    model_config = _STAGE_CONFIG

    name: str
    alias: str | None = None
    position: SourcePosition | None = None

    @property
    def reference_name(self) -> str:
        """The name columns of this relation are qualified with."""
        return self.alias or self.name


class Filter(BaseModel):
    model_config = _STAGE_CONFIG

    stage: Literal["filter"] = "filter"
    predicate: Expression
    position: SourcePosition | None = None


class Join(BaseModel):
    """``join`` / ``left_join`` stage.

    Attributes:
        relation: The joined table.
        kind: ``inner`` or ``left``.
        on: Join condition.
    """

    model_config = _STAGE_CONFIG

    stage: Literal["join"] = "join"
    relation: Relation
    kind: Literal["inner", "left"] = "inner"
    on: Expression
    position: SourcePosition | None = None


class GroupBy(BaseModel):
    model_config = _STAGE_CONFIG

    stage: Literal["group_by"] = "group_by"
    keys: tuple[Expression, ...]
    position: SourcePosition | None = None


class Having(BaseModel):
    model_config = _STAGE_CONFIG

    stage: Literal["having"] = "having"
    predicate: Expression
    position: SourcePosition | None = None


class SelectItem(BaseModel):
    """A single projected expression with an optional alias."""

    model_config = _STAGE_CONFIG

    expr: Expression
    alias: str | None = None


class Select(BaseModel):
    model_config = _STAGE_CONFIG

    stage: Literal["select"] = "select"
    items: tuple[SelectItem, ...]
    position: SourcePosition | None = None


class OrderItem(BaseModel):
    model_config = _STAGE_CONFIG

    expr: Expression
    direction: Literal["asc", "desc"] = "asc"


class OrderBy(BaseModel):
    model_config = _STAGE_CONFIG

    stage: Literal["order_by"] = "order_by"
    items: tuple[OrderItem, ...]
    position: SourcePosition | None = None


class Limit(BaseModel):
    """Maximum number of rows: a non-negative integer or an ``@param``."""

    model_config = _STAGE_CONFIG

    stage: Literal["limit"] = "limit"
    count: int | Parameter
    position: SourcePosition | None = None


class Offset(BaseModel):
    """Rows to skip: a non-negative integer or an ``@param``."""

    model_config = _STAGE_CONFIG

    stage: Literal["offset"] = "offset"
    count: int | Parameter
    position: SourcePosition | None = None


class Distinct(BaseModel):
    model_config = _STAGE_CONFIG

    stage: Literal["distinct"] = "distinct"
    position: SourcePosition | None = None


class Union(BaseModel):
    """Combines this pipeline's rows with those of a second pipeline."""

    model_config = _STAGE_CONFIG

    stage: Literal["union"] = "union"
    pipeline: Pipeline
    position: SourcePosition | None = None


Stage = Annotated[
    Filter | Join | GroupBy | Having | Select | OrderBy | Limit | Offset | Distinct | Union,
    Field(discriminator="stage"),
]

StageT = TypeVar("StageT", bound=BaseModel)


class Pipeline(BaseModel):
    """AST root: a source relation plus its stages in source order.

    Attributes:
        source: The relation the pipeline starts from.
        stages: Stage nodes in the order they were written.
    """

    model_config = _STAGE_CONFIG

    source: Relation
    stages: tuple[Stage, ...] = ()

    # ------------------------------------------------------------------
    # Domain helpers
    # ------------------------------------------------------------------

    def stages_of(self, stage_type: type[StageT]) -> list[StageT]:
        """Return every stage of ``stage_type`` in source order."""
        return [s for s in self.stages if isinstance(s, stage_type)]

    @property
    def select(self) -> Select | None:
        selects = self.stages_of(Select)
        return selects[-1] if selects else None

    @property
    def has_aggregate_projection(self) -> bool:
        """True when the projection references an aggregate function."""
        select = self.select
        if select is None:
            return False
        return any(contains_aggregate(item.expr) for item in select.items)

    def expressions(self) -> list[Expression]:
        """Every top-level expression of this pipeline, excluding unions."""
        return [expr for stage in self.stages for expr in stage_expressions(stage)]

    def collect_column_refs(self, include_unions: bool = True) -> list[Column]:
        """Collect column references in encounter order (lambda bindings stripped).

        Args:
            include_unions: Also walk every unioned pipeline.
        """
        refs: list[Column] = []
        for expr in self.expressions():
            bindings = frozenset({expr.param}) if isinstance(expr, Lambda) else frozenset()
            for node in walk(expr):
                if isinstance(node, Column):
                    refs.append(node.without_binding(bindings))
        if include_unions:
            for union in self.stages_of(Union):
                refs.extend(union.pipeline.collect_column_refs())
        return refs

    def collect_parameters(self) -> list[str]:
        """Collect distinct ``@param`` names in source order."""
        names: list[str] = []
        for stage in self.stages:
            if isinstance(stage, (Limit, Offset)) and isinstance(stage.count, Parameter):
                found = [stage.count.name]
            elif isinstance(stage, Union):
                found = stage.pipeline.collect_parameters()
            else:
                found = [
                    node.name
                    for expr in stage_expressions(stage)
                    for node in walk(expr)
                    if isinstance(node, Parameter)
                ]
            for name in found:
                if name not in names:
                    names.append(name)
        return names


def stage_expressions(stage: BaseModel) -> list[Expression]:
    """Return the expressions a single stage carries, in source order."""
    if isinstance(stage, (Filter, Having)):
        return [stage.predicate]
    if isinstance(stage, Join):
        return [stage.on]
    if isinstance(stage, GroupBy):
        return list(stage.keys)
    if isinstance(stage, (Select, OrderBy)):
        return [item.expr for item in stage.items]
    return []


# Resolve forward references created by the recursive Pipeline type.
Union.model_rebuild()
Pipeline.model_rebuild()
