"""Recursive-descent parser: LQL text → :class:`~lql.schema.pipeline.Pipeline`.

Grammar (informal)::

    pipeline   := relation ( "|>" stage )*
    relation   := IDENT [ "as" IDENT ]
    stage      := NAME "(" [ args ] ")" | NAME [ args ]
    args       := arg ( "," arg )*

    expression := or
    or         := and ( "or" and )*
    and        := not ( "and" not )*
    not        := "not" not | comparison
    comparison := additive ( CMP additive | "is" ["not"] "null"
                           | ["not"] "in" "(" expression ("," expression)* ")"
                           | ["not"] ("like" | "ilike") additive )*
    additive   := multiplicative ( ("+" | "-" | "||") multiplicative )*
    multiplicative := unary ( ("*" | "/" | "%") unary )*
    unary      := "-" unary | primary
    primary    := literal | PARAM | column | star | call | "(" expression ")"

A lambda (``fn(row) => expression``) is only accepted as the argument of
``filter`` and ``having``.  Stage shape (arity, ``on`` clause, predicate
shape) is checked here so malformed pipelines never reach the compiler.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from typing import TypeVar

from lql.errors import (
    MalformedStageError,
    TooDeepError,
    UnexpectedTokenError,
    UnknownStageError,
)
from lql.schema.expressions import (
    COMPARISON_OPS,
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
    PredicateShape,
    Star,
    UnaryOp,
    children,
    predicate_shape,
)
from lql.schema.options import DEFAULT_MAX_DEPTH
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
    SelectItem,
    Union,
)
from lql.syntax.lexer import Lexer
from lql.syntax.stages import SINGLETON_STAGES, StageSpelling, known_stage_names, lookup_stage
from lql.syntax.tokens import SourcePosition, Token, TokenKind

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

_COMPARISON_SPELLINGS: dict[str, str] = {
    **{op: op for op in COMPARISON_OPS},
    "==": "=",
    "!=": "<>",
}


class Parser:
    """Parses one LQL statement.

    Args:
        text: LQL source text.
        max_depth: Maximum nesting depth before ``TooDeepError`` is raised.
            Each operator in a left-associative chain such as ``a or b or c``
            counts as one level, matching the depth of the resulting tree.
    """

    def __init__(self, text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._text = text
        self._max_depth = max_depth
        self._tokens: list[Token] = []
        self._pos = 0
        self._depth = 0
        self._stage: str | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self) -> Pipeline:
        """Parse the whole text into a :class:`Pipeline`.

        Raises:
            ParseError: (or a subclass) for any lexical or syntactic problem.
        """
        self._tokens = Lexer(self._text).tokenize()
        self._pos = 0
        pipeline = self._parse_pipeline()
        if self._current().kind is not TokenKind.EOF:
            raise self._unexpected("'|>' or end of input")
        logger.debug(
            "Parsed pipeline over '%s' with %d stage(s)",
            pipeline.source.name,
            len(pipeline.stages),
        )
        return pipeline

    # ------------------------------------------------------------------
    # Navigation helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 1) -> Token:
        idx = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[idx]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.kind is not TokenKind.EOF:
            self._pos += 1
        return tok

    def _expect_punct(self, char: str) -> Token:
        if not self._current().is_punct(char):
            raise self._unexpected(f"'{char}'")
        return self._advance()

    def _expect_name(self, what: str) -> Token:
        """Consume an undotted identifier."""
        tok = self._current()
        if tok.kind is not TokenKind.IDENTIFIER or len(tok.parts) != 1:
            raise self._unexpected(what)
        return self._advance()

    def _unexpected(self, expected: str) -> UnexpectedTokenError:
        tok = self._current()
        return UnexpectedTokenError(tok.text, expected, tok.position, stage=self._stage)

    def _malformed(self, message: str, position: SourcePosition | None = None) -> MalformedStageError:
        return MalformedStageError(
            self._stage or "pipeline",
            message,
            position or self._current().position,
        )

    def _at_stage_boundary(self) -> bool:
        tok = self._current()
        return tok.kind is TokenKind.EOF or tok.is_operator("|>") or tok.is_punct(")")

    @contextmanager
    def _nested(self) -> Iterator[None]:
        self._depth += 1
        try:
            if self._depth > self._max_depth:
                raise TooDeepError(self._max_depth, self._current().position)
            yield
        finally:
            self._depth -= 1

    # ------------------------------------------------------------------
    # Pipeline and stages
    # ------------------------------------------------------------------

    def _parse_pipeline(self) -> Pipeline:
        source = self._parse_relation("a source table name")
        stages = []
        seen: set[str] = set()
        while self._current().is_operator("|>"):
            self._advance()
            stage_tok = self._current()
            stage = self._parse_stage()
            if stage.stage in SINGLETON_STAGES:
                if stage.stage in seen:
                    raise MalformedStageError(
                        stage.stage,
                        f"'{stage.stage}' may appear only once in a pipeline.",
                        stage_tok.position,
                    )
                seen.add(stage.stage)
            stages.append(stage)
        return Pipeline(source=source, stages=tuple(stages))

    def _parse_relation(self, what: str) -> Relation:
        tok = self._current()
        if tok.kind is not TokenKind.IDENTIFIER or tok.parts[-1] == "*":
            raise self._unexpected(what)
        self._advance()
        alias = None
        if self._current().is_keyword("as"):
            self._advance()
            alias = self._expect_name("an alias").parts[0]
        return Relation(name=".".join(tok.parts), alias=alias, position=tok.position)

    def _parse_stage(self):
        tok = self._current()
        if tok.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
            raise self._unexpected("a stage name")
        spelling = lookup_stage(tok.text)
        if spelling is None:
            raise UnknownStageError(tok.text, tok.position, known_stage_names())
        self._advance()

        outer_stage = self._stage
        self._stage = spelling.canonical
        try:
            return self._STAGE_PARSERS[spelling.canonical](self, spelling, tok.position)
        finally:
            self._stage = outer_stage

    def _parse_args(self, parse_item: Callable[[], ItemT]) -> list[ItemT]:
        """Parse ``(a, b)`` or the paren-less ``a, b`` form of stage arguments."""
        if self._current().is_punct("("):
            self._advance()
            items: list[ItemT] = []
            if not self._current().is_punct(")"):
                items.append(parse_item())
                while self._current().is_punct(","):
                    self._advance()
                    items.append(parse_item())
            self._expect_punct(")")
            return items

        if self._at_stage_boundary():
            return []
        items = [parse_item()]
        while self._current().is_punct(","):
            self._advance()
            items.append(parse_item())
        return items

    def _exactly_one(self, items: list[ItemT], position: SourcePosition) -> ItemT:
        if len(items) != 1:
            raise self._malformed(f"expected exactly 1 argument, got {len(items)}.", position)
        return items[0]

    def _at_least_one(self, items: list[ItemT], position: SourcePosition) -> list[ItemT]:
        if not items:
            raise self._malformed("expected at least 1 argument.", position)
        return items

    def _parse_predicate_stage(self, spelling: StageSpelling, position: SourcePosition):
        predicate = self._exactly_one(self._parse_args(self._parse_predicate_arg), position)
        if not isinstance(predicate, Lambda):
            self._check_predicate(predicate, position)
        if spelling.canonical == "filter":
            return Filter(predicate=predicate, position=position)
        return Having(predicate=predicate, position=position)

    def _parse_predicate_arg(self) -> Expression:
        if self._current().is_keyword("fn"):
            return self._parse_lambda()
        return self._parse_expression()

    def _parse_join_stage(self, spelling: StageSpelling, position: SourcePosition) -> Join:
        def parse_item() -> Relation | Expression:
            if self._current().is_keyword("on"):
                self._advance()
                if self._current().is_operator("=", "=="):
                    self._advance()
                return self._parse_expression()
            return self._parse_relation("a table name or 'on' condition")

        args = self._parse_args(parse_item)
        if not args or not isinstance(args[0], Relation):
            raise self._malformed("expected the table to join as the first argument.", position)
        if len(args) == 1:
            raise self._malformed("missing 'on' condition.", position)
        if len(args) > 2 or isinstance(args[1], Relation):
            raise self._malformed("expected a table and a single 'on' condition.", position)
        on = args[1]
        self._check_predicate(on, position)
        kind = "left" if spelling.canonical == "left_join" else "inner"
        return Join(relation=args[0], kind=kind, on=on, position=position)

    def _parse_group_by_stage(self, spelling: StageSpelling, position: SourcePosition) -> GroupBy:
        keys = self._at_least_one(self._parse_args(self._parse_checked_expression), position)
        return GroupBy(keys=tuple(keys), position=position)

    def _parse_select_stage(self, spelling: StageSpelling, position: SourcePosition) -> Select:
        def parse_item() -> SelectItem:
            expr = self._parse_expression()
            self._check_stars(expr, allow_top=True)
            alias = None
            if self._current().is_keyword("as"):
                if isinstance(expr, Star):
                    raise self._malformed("'*' cannot be aliased.")
                self._advance()
                alias = self._expect_name("an alias").parts[0]
            return SelectItem(expr=expr, alias=alias)

        items = self._at_least_one(self._parse_args(parse_item), position)
        return Select(items=tuple(items), position=position)

    def _parse_order_by_stage(self, spelling: StageSpelling, position: SourcePosition) -> OrderBy:
        def parse_item() -> OrderItem:
            expr = self._parse_checked_expression()
            direction = spelling.default_direction
            if self._current().is_keyword("asc", "desc"):
                direction = self._advance().text
            return OrderItem(expr=expr, direction=direction)

        items = self._at_least_one(self._parse_args(parse_item), position)
        return OrderBy(items=tuple(items), position=position)

    def _parse_bound_stage(self, spelling: StageSpelling, position: SourcePosition):
        bound = self._exactly_one(self._parse_args(self._parse_expression), position)
        if isinstance(bound, LiteralValue) and bound.type == "integer":
            if bound.value < 0:
                raise self._malformed("the row count must be non-negative.", position)
            count = bound.value
        elif isinstance(bound, Parameter):
            count = bound
        else:
            raise self._malformed("expected a non-negative integer or a parameter.", position)
        if spelling.canonical == "limit":
            return Limit(count=count, position=position)
        return Offset(count=count, position=position)

    def _parse_distinct_stage(self, spelling: StageSpelling, position: SourcePosition) -> Distinct:
        if self._parse_args(self._parse_expression):
            raise self._malformed("takes no arguments.", position)
        return Distinct(position=position)

    def _parse_union_stage(self, spelling: StageSpelling, position: SourcePosition) -> Union:
        if not self._current().is_punct("("):
            raise self._malformed("expected a parenthesised pipeline.", position)

        def parse_item() -> Pipeline:
            with self._nested():
                return self._parse_pipeline()

        pipeline = self._exactly_one(self._parse_args(parse_item), position)
        return Union(pipeline=pipeline, position=position)

    _STAGE_PARSERS = {
        "filter": _parse_predicate_stage,
        "having": _parse_predicate_stage,
        "join": _parse_join_stage,
        "left_join": _parse_join_stage,
        "group_by": _parse_group_by_stage,
        "select": _parse_select_stage,
        "order_by": _parse_order_by_stage,
        "limit": _parse_bound_stage,
        "offset": _parse_bound_stage,
        "distinct": _parse_distinct_stage,
        "union": _parse_union_stage,
    }

    # ------------------------------------------------------------------
    # Structural checks
    # ------------------------------------------------------------------

    def _check_predicate(self, expr: Expression, position: SourcePosition) -> None:
        self._check_stars(expr, allow_top=False)
        if predicate_shape(expr) is PredicateShape.NON_BOOLEAN:
            raise self._malformed("the condition must be a boolean expression.", position)

    def _check_stars(self, expr: Expression, allow_top: bool) -> None:
        """Reject ``*`` anywhere except a projection item or ``count(*)``."""
        if isinstance(expr, Star):
            if not allow_top:
                raise self._malformed("'*' is only allowed in select and count(*).", expr.position)
            return
        for child in children(expr):
            if (
                isinstance(expr, FunctionCall)
                and expr.name.lower() == "count"
                and isinstance(child, Star)
                and child.qualifier is None
            ):
                continue
            self._check_stars(child, allow_top=False)

    def _parse_checked_expression(self) -> Expression:
        expr = self._parse_expression()
        self._check_stars(expr, allow_top=False)
        return expr

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_lambda(self) -> Lambda:
        fn_tok = self._advance()
        self._expect_punct("(")
        param = self._expect_name("a lambda parameter name").parts[0]
        self._expect_punct(")")
        if not self._current().is_operator("=>"):
            raise self._unexpected("'=>'")
        self._advance()
        body = self._parse_expression()
        self._check_stars(body, allow_top=False)
        return Lambda(param=param, body=body, position=fn_tok.position)

    def _parse_expression(self) -> Expression:
        with self._nested():
            return self._parse_or()

    def _parse_or(self) -> Expression:
        left = self._parse_and()
        with ExitStack() as links:
            while self._current().is_keyword("or"):
                tok = self._advance()
                links.enter_context(self._nested())
                left = BinaryOp(op="or", left=left, right=self._parse_and(), position=tok.position)
        return left

    def _parse_and(self) -> Expression:
        left = self._parse_not()
        with ExitStack() as links:
            while self._current().is_keyword("and"):
                tok = self._advance()
                links.enter_context(self._nested())
                left = BinaryOp(op="and", left=left, right=self._parse_not(), position=tok.position)
        return left

    def _parse_not(self) -> Expression:
        if self._current().is_keyword("not"):
            tok = self._advance()
            with self._nested():
                operand = self._parse_not()
            return UnaryOp(op="not", operand=operand, position=tok.position)
        return self._parse_comparison()

    def _parse_comparison(self) -> Expression:
        left = self._parse_additive()
        with ExitStack() as links:
            while True:
                tok = self._current()
                if tok.kind is TokenKind.OPERATOR and tok.text in _COMPARISON_SPELLINGS:
                    self._advance()
                    links.enter_context(self._nested())
                    op = _COMPARISON_SPELLINGS[tok.text]
                    left = BinaryOp(op=op, left=left, right=self._parse_additive(), position=tok.position)
                elif tok.is_keyword("is"):
                    self._advance()
                    links.enter_context(self._nested())
                    negated = self._current().is_keyword("not")
                    if negated:
                        self._advance()
                    if not self._current().is_keyword("null"):
                        raise self._unexpected("'null'")
                    self._advance()
                    left = IsNull(operand=left, negated=negated, position=tok.position)
                elif tok.is_keyword("in", "like", "ilike") or (
                    tok.is_keyword("not") and self._peek().is_keyword("in", "like", "ilike")
                ):
                    links.enter_context(self._nested())
                    negated = tok.is_keyword("not")
                    if negated:
                        self._advance()
                    left = self._parse_membership(left, negated, tok.position)
                else:
                    return left

    def _parse_membership(self, operand: Expression, negated: bool, position: SourcePosition) -> Expression:
        keyword = self._advance().text
        if keyword == "in":
            self._expect_punct("(")
            items = [self._parse_expression()]
            while self._current().is_punct(","):
                self._advance()
                items.append(self._parse_expression())
            self._expect_punct(")")
            return InList(operand=operand, items=tuple(items), negated=negated, position=position)
        return Like(
            operand=operand,
            pattern=self._parse_additive(),
            negated=negated,
            case_insensitive=keyword == "ilike",
            position=position,
        )

    def _parse_additive(self) -> Expression:
        left = self._parse_multiplicative()
        with ExitStack() as links:
            while self._current().is_operator("+", "-", "||"):
                tok = self._advance()
                links.enter_context(self._nested())
                left = BinaryOp(
                    op=tok.text, left=left, right=self._parse_multiplicative(), position=tok.position
                )
        return left

    def _parse_multiplicative(self) -> Expression:
        left = self._parse_unary()
        with ExitStack() as links:
            while self._current().is_operator("*", "/", "%"):
                tok = self._advance()
                links.enter_context(self._nested())
                left = BinaryOp(op=tok.text, left=left, right=self._parse_unary(), position=tok.position)
        return left

    def _parse_unary(self) -> Expression:
        if self._current().is_operator("-"):
            tok = self._advance()
            with self._nested():
                operand = self._parse_unary()
            if isinstance(operand, LiteralValue) and operand.type in ("integer", "float"):
                return LiteralValue.of(-operand.value, tok.position)
            return UnaryOp(op="-", operand=operand, position=tok.position)
        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        tok = self._current()

        if tok.kind is TokenKind.INTEGER:
            self._advance()
            return LiteralValue.of(int(tok.text), tok.position)
        if tok.kind is TokenKind.FLOAT:
            self._advance()
            return LiteralValue.of(float(tok.text), tok.position)
        if tok.kind is TokenKind.STRING:
            self._advance()
            return LiteralValue.of(tok.text, tok.position)
        if tok.kind is TokenKind.PARAMETER:
            self._advance()
            return Parameter(name=tok.text, position=tok.position)
        if tok.is_keyword("true", "false"):
            self._advance()
            return LiteralValue.of(tok.text == "true", tok.position)
        if tok.is_keyword("null"):
            self._advance()
            return LiteralValue.of(None, tok.position)
        if tok.is_keyword("fn"):
            raise self._malformed("lambdas are only allowed as the predicate of filter or having.")
        if tok.is_operator("*"):
            self._advance()
            return Star(position=tok.position)
        if tok.kind is TokenKind.IDENTIFIER:
            self._advance()
            if tok.parts[-1] == "*":
                return Star(qualifier=".".join(tok.parts[:-1]), position=tok.position)
            if self._current().is_punct("(") and len(tok.parts) == 1:
                return self._parse_call(tok)
            return Column(parts=tok.parts, position=tok.position)
        if tok.is_punct("("):
            self._advance()
            expr = self._parse_expression()
            self._expect_punct(")")
            return expr

        raise self._unexpected("an expression")

    def _parse_call(self, name_tok: Token) -> FunctionCall:
        self._expect_punct("(")
        distinct = False
        args: list[Expression] = []
        if not self._current().is_punct(")"):
            head = self._current()
            if (
                head.kind is TokenKind.IDENTIFIER
                and head.text.lower() == "distinct"
                and not (self._peek().is_punct(",") or self._peek().is_punct(")"))
                and self._peek().kind is not TokenKind.OPERATOR
            ):
                self._advance()
                distinct = True
            args.append(self._parse_expression())
            while self._current().is_punct(","):
                self._advance()
                args.append(self._parse_expression())
        self._expect_punct(")")
        return FunctionCall.call(
            name_tok.parts[0], tuple(args), distinct=distinct, position=name_tok.position
        )


def parse_pipeline(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Pipeline:
    """Parse ``text`` into a :class:`Pipeline`, raising on failure."""
    return Parser(text, max_depth).parse()
