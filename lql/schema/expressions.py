"""Expression nodes of the LQL AST, plus operator and function constants.

Every node is a frozen pydantic model.  The ``kind`` field discriminates the
closed :data:`Expression` union, so a tree can be rebuilt from plain dicts
(``Expression`` validates ``{"kind": "column", "parts": ["Users", "Id"]}``)
as well as constructed directly by the parser.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from lql.syntax.tokens import SourcePosition

# ---------------------------------------------------------------------------
# Operator groups
# ---------------------------------------------------------------------------

#: String concatenation operator (rendered per dialect).
CONCAT_OP = "||"

#: Comparison operators after normalisation (``!=`` → ``<>``, ``==`` → ``=``).
COMPARISON_OPS: frozenset[str] = frozenset({"=", "<>", "<", "<=", ">", ">="})

#: Logical connectives.
LOGICAL_OPS: frozenset[str] = frozenset({"and", "or"})

BinaryOperator = Literal["+", "-", "*", "/", "%", "||", "=", "<>", "<", "<=", ">", ">=", "and", "or"]

#: Binding power of each operator level; higher binds tighter.
PREC_OR = 1
PREC_AND = 2
PREC_NOT = 3
PREC_COMPARISON = 4
PREC_ADDITIVE = 5
PREC_MULTIPLICATIVE = 6
PREC_UNARY = 7
PREC_ATOM = 8

BINARY_PRECEDENCE: dict[str, int] = {
    "or": PREC_OR,
    "and": PREC_AND,
    **{op: PREC_COMPARISON for op in COMPARISON_OPS},
    "+": PREC_ADDITIVE,
    "-": PREC_ADDITIVE,
    CONCAT_OP: PREC_ADDITIVE,
    "*": PREC_MULTIPLICATIVE,
    "/": PREC_MULTIPLICATIVE,
    "%": PREC_MULTIPLICATIVE,
}

# ---------------------------------------------------------------------------
# Function groups
# ---------------------------------------------------------------------------

#: Aggregate functions (canonical lower-case LQL names).
AGGREGATE_FUNCTIONS: frozenset[str] = frozenset(
    {"count", "sum", "avg", "min", "max", "string_agg", "group_concat", "stddev"}
)

#: Aggregates that join strings; rendered as ``STRING_AGG`` or ``GROUP_CONCAT``.
STRING_AGGREGATES: frozenset[str] = frozenset({"string_agg", "group_concat"})

_NODE_CONFIG = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------------
# Leaf nodes
# ---------------------------------------------------------------------------


class Column(BaseModel):
    """A column reference such as ``Age``, ``Users.Age`` or ``row.Users.Age``."""

    model_config = _NODE_CONFIG

    kind: Literal["column"] = "column"
    parts: tuple[str, ...]
    position: SourcePosition | None = None

    @property
    def name(self) -> str:
        return self.parts[-1]

    @property
    def qualifier(self) -> str | None:
        """The table (or binding) qualifier immediately before the name."""
        return self.parts[-2] if len(self.parts) > 1 else None

    def without_binding(self, bindings: frozenset[str]) -> Column:
        """Drop a leading lambda row binding (``row.Age`` → ``Age``)."""
        if len(self.parts) > 1 and self.parts[0] in bindings:
            return self.model_copy(update={"parts": self.parts[1:]})
        return self

    def __str__(self) -> str:
        return ".".join(self.parts)


class Star(BaseModel):
    """``*`` or ``Table.*`` in a projection, or the argument of ``count(*)``."""

    model_config = _NODE_CONFIG

    kind: Literal["star"] = "star"
    qualifier: str | None = None
    position: SourcePosition | None = None


class LiteralValue(BaseModel):
    """A typed constant."""

    model_config = _NODE_CONFIG

    kind: Literal["literal"] = "literal"
    value: Union[bool, int, float, str, None]
    type: Literal["integer", "float", "string", "boolean", "null"]
    position: SourcePosition | None = None

    @classmethod
    def of(cls, value: bool | int | float | str | None, position: SourcePosition | None = None) -> LiteralValue:
        """Build a literal, inferring ``type`` from the Python value."""
        if value is None:
            type_ = "null"
        elif isinstance(value, bool):
            type_ = "boolean"
        elif isinstance(value, int):
            type_ = "integer"
        elif isinstance(value, float):
            type_ = "float"
        else:
            type_ = "string"
        return cls(value=value, type=type_, position=position)


class Parameter(BaseModel):
    """An ``@name`` placeholder, passed through to SQL unchanged."""

    model_config = _NODE_CONFIG

    kind: Literal["parameter"] = "parameter"
    name: str
    position: SourcePosition | None = None


# ---------------------------------------------------------------------------
# Composite nodes
# ---------------------------------------------------------------------------


class UnaryOp(BaseModel):
    model_config = _NODE_CONFIG

    kind: Literal["unary"] = "unary"
    op: Literal["-", "not"]
    operand: Expression
    position: SourcePosition | None = None


class BinaryOp(BaseModel):
    """Arithmetic, concatenation, comparison or logical binary operation."""

    model_config = _NODE_CONFIG

    kind: Literal["binary"] = "binary"
    op: BinaryOperator
    left: Expression
    right: Expression
    position: SourcePosition | None = None


class IsNull(BaseModel):
    model_config = _NODE_CONFIG

    kind: Literal["is_null"] = "is_null"
    operand: Expression
    negated: bool = False
    position: SourcePosition | None = None


class InList(BaseModel):
    model_config = _NODE_CONFIG

    kind: Literal["in"] = "in"
    operand: Expression
    items: tuple[Expression, ...]
    negated: bool = False
    position: SourcePosition | None = None


class Like(BaseModel):
    """``like`` / ``ilike`` pattern match."""

    model_config = _NODE_CONFIG

    kind: Literal["like"] = "like"
    operand: Expression
    pattern: Expression
    negated: bool = False
    case_insensitive: bool = False
    position: SourcePosition | None = None


class FunctionCall(BaseModel):
    """A function call; ``is_aggregate`` is derived from the canonical name."""

    model_config = _NODE_CONFIG

    kind: Literal["function"] = "function"
    name: str
    args: tuple[Expression, ...] = ()
    is_aggregate: bool = False
    distinct: bool = False
    position: SourcePosition | None = None

    @classmethod
    def call(
        cls,
        name: str,
        args: tuple[Expression, ...] = (),
        distinct: bool = False,
        position: SourcePosition | None = None,
    ) -> FunctionCall:
        return cls(
            name=name,
            args=args,
            is_aggregate=name.lower() in AGGREGATE_FUNCTIONS,
            distinct=distinct,
            position=position,
        )


class Lambda(BaseModel):
    """``fn(row) => body``: ``row`` is bound only inside ``body``."""

    model_config = _NODE_CONFIG

    kind: Literal["lambda"] = "lambda"
    param: str
    body: Expression
    position: SourcePosition | None = None


Expression = Annotated[
    Union[
        Column,
        Star,
        LiteralValue,
        Parameter,
        UnaryOp,
        BinaryOp,
        IsNull,
        InList,
        Like,
        FunctionCall,
        Lambda,
    ],
    Field(discriminator="kind"),
]

# Resolve forward references in recursive types.
UnaryOp.model_rebuild()
BinaryOp.model_rebuild()
IsNull.model_rebuild()
InList.model_rebuild()
Like.model_rebuild()
FunctionCall.model_rebuild()
Lambda.model_rebuild()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class PredicateShape(str, Enum):
    """Structural classification of an expression in a predicate position."""

    BOOLEAN = "boolean"
    NON_BOOLEAN = "non_boolean"
    UNKNOWN = "unknown"


def predicate_shape(expr: Expression) -> PredicateShape:
    """Classify ``expr`` without any schema or type information.

    Comparisons, logical connectives, ``not``, ``is null``, ``in``, ``like``
    and boolean literals are boolean.  Parameters and non-aggregate function
    calls cannot be decided structurally.  Everything else (arithmetic,
    concatenation, other literals, bare columns, aggregates) is not boolean.
    """
    if isinstance(expr, BinaryOp):
        if expr.op in COMPARISON_OPS or expr.op in LOGICAL_OPS:
            return PredicateShape.BOOLEAN
        return PredicateShape.NON_BOOLEAN
    if isinstance(expr, UnaryOp):
        return PredicateShape.BOOLEAN if expr.op == "not" else PredicateShape.NON_BOOLEAN
    if isinstance(expr, (IsNull, InList, Like)):
        return PredicateShape.BOOLEAN
    if isinstance(expr, LiteralValue):
        return PredicateShape.BOOLEAN if expr.type == "boolean" else PredicateShape.NON_BOOLEAN
    if isinstance(expr, Parameter):
        return PredicateShape.UNKNOWN
    if isinstance(expr, FunctionCall):
        return PredicateShape.NON_BOOLEAN if expr.is_aggregate else PredicateShape.UNKNOWN
    if isinstance(expr, Lambda):
        return predicate_shape(expr.body)
    return PredicateShape.NON_BOOLEAN


def children(expr: Expression) -> tuple[Expression, ...]:
    """Return the direct sub-expressions of ``expr`` in source order."""
    if isinstance(expr, UnaryOp):
        return (expr.operand,)
    if isinstance(expr, BinaryOp):
        return (expr.left, expr.right)
    if isinstance(expr, IsNull):
        return (expr.operand,)
    if isinstance(expr, InList):
        return (expr.operand, *expr.items)
    if isinstance(expr, Like):
        return (expr.operand, expr.pattern)
    if isinstance(expr, FunctionCall):
        return expr.args
    if isinstance(expr, Lambda):
        return (expr.body,)
    return ()


def walk(expr: Expression) -> Iterator[Expression]:
    """Yield ``expr`` and every nested sub-expression, depth-first."""
    stack = [expr]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


def contains_aggregate(expr: Expression) -> bool:
    return any(isinstance(node, FunctionCall) and node.is_aggregate for node in walk(expr))
