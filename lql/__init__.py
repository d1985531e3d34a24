"""lql – Lambda Query Language to SQL transpiler.

Write pipelines, not dialects.

Public API
----------
``parse``
    Parse LQL text into an immutable :class:`Pipeline`.

``compile_pipeline``
    Compile a :class:`Pipeline` to SQL for one target dialect.

``transpile``
    ``parse`` followed by ``compile_pipeline``.

All three return :class:`Ok` or :class:`Err` and never raise for bad input::

    result = lql.transpile("Users |> filter(fn(row) => row.Age > 18) |> select(Name)", "sqlite")
    if result.ok:
        cursor.execute(result.value.sql)

Re-exported types
-----------------
``Pipeline`` and the stage / expression models, ``CompiledSQL``,
``ParseOptions``, ``CompileOptions``, ``SchemaSnapshot``, ``Dialect`` and all
error classes.

Extensibility
-------------
New dialects can be registered via::

    from lql.compile.registry import DialectFactory

    @DialectFactory.register("duckdb")
    class DuckDBDialect(SQLDialect):
        ...

After registration, ``compile_pipeline(pipeline, "duckdb")`` picks it up.
"""

from __future__ import annotations

import logging

from lql.compile.base import CompiledSQL, SQLDialect
from lql.compile.builder import PipelineCompiler
from lql.compile.postgres import PostgresDialect
from lql.compile.registry import Dialect, DialectFactory
from lql.compile.sqlite import SQLiteDialect
from lql.compile.sqlserver import SQLServerDialect
from lql.errors import (
    CompileError,
    LexicalError,
    LqlError,
    MalformedStageError,
    PaginationRequiresOrderError,
    ParseError,
    TooDeepError,
    TypeMismatchError,
    UnexpectedTokenError,
    UnknownDialectError,
    UnknownStageError,
    UnsupportedFeatureError,
)
from lql.result import Err, Ok, Result
from lql.schema.converters import schema_from_sqlalchemy
from lql.schema.options import CompileOptions, ParseOptions
from lql.schema.pipeline import Pipeline
from lql.schema.snapshot import ColumnInfo, SchemaLookup, SchemaSnapshot, TableInfo
from lql.syntax.parser import Parser

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Register built-in dialects with DialectFactory
# ---------------------------------------------------------------------------

DialectFactory.register_class(Dialect.SQLITE.value, SQLiteDialect)
DialectFactory.register_class(Dialect.POSTGRES.value, PostgresDialect)
DialectFactory.register_class(Dialect.SQLSERVER.value, SQLServerDialect)

__all__ = [
    # Core pipeline
    "parse",
    "compile_pipeline",
    "transpile",
    # Results
    "Ok",
    "Err",
    "Result",
    # Models and options
    "Pipeline",
    "ParseOptions",
    "CompileOptions",
    "CompiledSQL",
    # Schema
    "SchemaLookup",
    "SchemaSnapshot",
    "TableInfo",
    "ColumnInfo",
    "schema_from_sqlalchemy",
    # Dialects
    "Dialect",
    "DialectFactory",
    "SQLDialect",
    "SQLiteDialect",
    "PostgresDialect",
    "SQLServerDialect",
    "PipelineCompiler",
    # Errors
    "LqlError",
    "ParseError",
    "LexicalError",
    "UnexpectedTokenError",
    "UnknownStageError",
    "MalformedStageError",
    "TooDeepError",
    "CompileError",
    "UnsupportedFeatureError",
    "TypeMismatchError",
    "PaginationRequiresOrderError",
    "UnknownDialectError",
]


def parse(text: str, *, options: ParseOptions | None = None) -> Result[Pipeline, ParseError]:
    """Parse LQL text into a :class:`Pipeline`.

    Args:
        text: One LQL statement.
        options: Parser settings; defaults to :class:`ParseOptions`.

    Returns:
        ``Ok(pipeline)`` or ``Err(ParseError)``.  No partial AST is ever
        returned.
    """
    options = options or ParseOptions()
    try:
        return Ok(Parser(text, options.max_depth).parse())
    except ParseError as exc:
        logger.debug("Parse failed: %s", exc)
        return Err(exc)


def compile_pipeline(
    pipeline: Pipeline,
    dialect: str | Dialect | SQLDialect,
    *,
    schema: SchemaLookup | None = None,
    options: CompileOptions | None = None,
) -> Result[CompiledSQL, CompileError]:
    """Compile ``pipeline`` to SQL for ``dialect``.

    Args:
        pipeline: A parsed pipeline.
        dialect: A registered dialect name or alias (``"sqlite"``,
            ``"postgres"``, ``"sqlserver"``, ``"mssql"``, ...), a
            :class:`Dialect` member, or a :class:`SQLDialect` instance.
        schema: Optional schema lookup.  Only adds diagnostics; never
            required for a successful compile.
        options: Compiler settings; defaults to :class:`CompileOptions`.

    Returns:
        ``Ok(CompiledSQL)`` or ``Err(CompileError)``.
    """
    try:
        target = dialect if isinstance(dialect, SQLDialect) else DialectFactory.create(dialect)
        return Ok(PipelineCompiler(target, schema, options).compile(pipeline))
    except CompileError as exc:
        logger.debug("Compile failed: %s", exc)
        return Err(exc)


def transpile(
    text: str,
    dialect: str | Dialect | SQLDialect,
    *,
    schema: SchemaLookup | None = None,
    options: CompileOptions | None = None,
    parse_options: ParseOptions | None = None,
) -> Result[CompiledSQL, LqlError]:
    """Parse ``text`` and compile it for ``dialect`` in one call.

    Returns:
        ``Ok(CompiledSQL)``, or ``Err`` carrying the first
        :class:`ParseError` or :class:`CompileError`.
    """
    parsed = parse(text, options=parse_options)
    if isinstance(parsed, Err):
        return parsed
    return compile_pipeline(parsed.value, dialect, schema=schema, options=options)
