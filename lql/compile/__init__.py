"""LQL compilation layer: Pipeline → dialect SQL."""
from lql.compile.base import CompiledSQL, SQLDialect
from lql.compile.builder import PipelineCompiler
from lql.compile.postgres import PostgresDialect
from lql.compile.registry import Dialect, DialectFactory
from lql.compile.sqlite import SQLiteDialect
from lql.compile.sqlserver import SQLServerDialect

__all__ = [
    "CompiledSQL",
    "SQLDialect",
    "PipelineCompiler",
    "Dialect",
    "DialectFactory",
    "PostgresDialect",
    "SQLiteDialect",
    "SQLServerDialect",
]
