"""Expression SQL builder.

``ExpressionBuilder`` renders AST expressions for one compilation run.  It
receives a :class:`~lql.compile.context.CompilationContext` (dialect and
options) and a :class:`~lql.compile.context.RuntimeContext` (parameters
seen so far).

Parentheses are emitted only where the target grammar needs them: every
rendered fragment carries the binding power of its top-level operator and a
parent wraps a child whose binding power is lower than the operand slot
requires.  String concatenation is the one exception; its precedence differs
between engines, so a concatenation is always parenthesised as an operand
of arithmetic and its own operands are parenthesised unless atomic.
"""
from __future__ import annotations

from lql.compile.context import CompilationContext, RuntimeContext
from lql.schema.expressions import (
    BINARY_PRECEDENCE,
    CONCAT_OP,
    LOGICAL_OPS,
    PREC_ATOM,
    PREC_COMPARISON,
    PREC_NOT,
    PREC_UNARY,
    BinaryOp,
    Column,
    Expression,
    FunctionCall,
    InList,
    IsNull,
    Lambda,
    Like,
    LiteralValue,
    Parameter,
    Star,
    UnaryOp,
)

#: Functions whose result is known to be a string.
STRING_FUNCTIONS: frozenset[str] = frozenset(
    {"lower", "upper", "trim", "ltrim", "rtrim", "substr", "substring", "replace", "concat"}
)

_NO_BINDINGS: frozenset[str] = frozenset()

Rendered = tuple[str, int]


class ExpressionBuilder:
    """Compiles :data:`~lql.schema.expressions.Expression` nodes to SQL.

    Args:
        ctx: Static compilation context.
        runtime: Shared accumulator for this compile run.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, expr: Expression, bindings: frozenset[str] = _NO_BINDINGS) -> str:
        """Render ``expr`` in value position (projection, grouping, ordering)."""
        return self._render(expr, bindings, predicate=False)[0]

    def build_predicate(self, expr: Expression) -> str:
        """Render ``expr`` as a search condition (WHERE, HAVING, JOIN ... ON).

        A lambda is unwrapped here: its row binding is stripped from column
        references in the body.  Lambda bodies are checked for boolean shape
        by :class:`~lql.validate.semantic_validator.SemanticValidator`.
        """
        bindings = _NO_BINDINGS
        if isinstance(expr, Lambda):
            bindings = frozenset({expr.param})
            expr = expr.body
        return self._render(expr, bindings, predicate=True)[0]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _render(self, expr: Expression, bindings: frozenset[str], predicate: bool) -> Rendered:
        if isinstance(expr, Column):
            return self._render_column(expr.without_binding(bindings)), PREC_ATOM
        if isinstance(expr, Star):
            return self._render_star(expr), PREC_ATOM
        if isinstance(expr, LiteralValue):
            return self._render_literal(expr, predicate)
        if isinstance(expr, Parameter):
            self._runtime.add_parameter(expr.name)
            return self._ctx.placeholder(expr.name), PREC_ATOM
        if isinstance(expr, UnaryOp):
            return self._render_unary(expr, bindings)
        if isinstance(expr, BinaryOp):
            return self._render_binary(expr, bindings)
        if isinstance(expr, IsNull):
            operand = self._operand(expr.operand, bindings, PREC_COMPARISON + 1)
            return f"{operand} IS {'NOT ' if expr.negated else ''}NULL", PREC_COMPARISON
        if isinstance(expr, InList):
            operand = self._operand(expr.operand, bindings, PREC_COMPARISON + 1)
            items = ", ".join(self.build(item, bindings) for item in expr.items)
            return f"{operand} {'NOT ' if expr.negated else ''}IN ({items})", PREC_COMPARISON
        if isinstance(expr, Like):
            operand = self._operand(expr.operand, bindings, PREC_COMPARISON + 1)
            pattern = self._operand(expr.pattern, bindings, PREC_COMPARISON + 1)
            keyword = self._ctx.dialect.like_operator(expr.case_insensitive)
            return f"{operand} {'NOT ' if expr.negated else ''}{keyword} {pattern}", PREC_COMPARISON
        if isinstance(expr, FunctionCall):
            return self._render_function(expr, bindings), PREC_ATOM
        raise TypeError(f"Cannot render {type(expr).__name__} in this position.")

    def _operand(self, expr: Expression, bindings: frozenset[str], min_prec: int, predicate: bool = False) -> str:
        sql, prec = self._render(expr, bindings, predicate)
        return f"({sql})" if prec < min_prec else sql

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def _render_column(self, column: Column) -> str:
        quote = self._ctx.dialect.quote_identifier
        return ".".join(quote(part) for part in column.parts)

    def _render_star(self, star: Star) -> str:
        if star.qualifier is None:
            return "*"
        quote = self._ctx.dialect.quote_identifier
        qualifier = ".".join(quote(part) for part in star.qualifier.split("."))
        return f"{qualifier}.*"

    def _render_literal(self, literal: LiteralValue, predicate: bool) -> Rendered:
        dialect = self._ctx.dialect
        if literal.type == "null":
            return "NULL", PREC_ATOM
        if literal.type == "boolean":
            if predicate:
                return dialect.render_boolean_predicate(literal.value), PREC_COMPARISON
            return dialect.render_boolean(literal.value), PREC_ATOM
        if literal.type == "string":
            return dialect.render_string(literal.value), PREC_ATOM
        sql = repr(literal.value)
        return sql, (PREC_UNARY if sql.startswith("-") else PREC_ATOM)

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _render_unary(self, expr: UnaryOp, bindings: frozenset[str]) -> Rendered:
        if expr.op == "not":
            operand = self._operand(expr.operand, bindings, PREC_NOT, predicate=True)
            return f"NOT {operand}", PREC_NOT
        operand = self._operand(expr.operand, bindings, PREC_UNARY)
        if operand.startswith("-"):
            operand = f"({operand})"
        return f"-{operand}", PREC_UNARY

    def _render_binary(self, expr: BinaryOp, bindings: frozenset[str]) -> Rendered:
        if expr.op == CONCAT_OP:
            return self._render_concat(expr, bindings)

        null_check = self._null_comparison(expr)
        if null_check is not None:
            return self._render(null_check, bindings, predicate=False)

        prec = BINARY_PRECEDENCE[expr.op]
        logical = expr.op in LOGICAL_OPS
        # Comparisons do not chain in SQL, so both sides bind tighter.
        left_min = prec + 1 if prec == PREC_COMPARISON else prec
        left = self._binary_operand(expr.left, bindings, left_min, logical)
        right = self._binary_operand(expr.right, bindings, prec + 1, logical)
        return f"{left} {expr.op.upper()} {right}", prec

    def _binary_operand(self, expr: Expression, bindings: frozenset[str], min_prec: int, logical: bool) -> str:
        sql = self._operand(expr, bindings, min_prec, predicate=logical)
        if isinstance(expr, BinaryOp) and expr.op == CONCAT_OP and not sql.startswith("("):
            return f"({sql})"
        return sql

    @staticmethod
    def _null_comparison(expr: BinaryOp) -> IsNull | None:
        """Rewrite ``x = null`` / ``x <> null`` as ``IS [NOT] NULL``."""
        if expr.op not in ("=", "<>"):
            return None
        if isinstance(expr.right, LiteralValue) and expr.right.type == "null":
            operand = expr.left
        elif isinstance(expr.left, LiteralValue) and expr.left.type == "null":
            operand = expr.right
        else:
            return None
        return IsNull(operand=operand, negated=expr.op == "<>", position=expr.position)

    def _render_concat(self, expr: BinaryOp, bindings: frozenset[str]) -> Rendered:
        operands: list[Expression] = []
        node: Expression = expr
        while isinstance(node, BinaryOp) and node.op == CONCAT_OP:
            operands.insert(0, node.right)
            node = node.left
        operands.insert(0, node)

        rendered = [self._operand(op, bindings, PREC_UNARY) for op in operands]
        string_typed = [self._is_string(op) for op in operands]
        sql = self._ctx.dialect.render_concat(rendered, string_typed)
        return sql, BINARY_PRECEDENCE[CONCAT_OP]

    @staticmethod
    def _is_string(expr: Expression) -> bool:
        if isinstance(expr, LiteralValue):
            return expr.type == "string"
        if isinstance(expr, FunctionCall):
            return expr.name.lower() in STRING_FUNCTIONS
        return False

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _render_function(self, call: FunctionCall, bindings: frozenset[str]) -> str:
        args_sql = [self.build(arg, bindings) for arg in call.args]
        return self._ctx.dialect.build_func_call(call.name, args_sql, call.distinct)
