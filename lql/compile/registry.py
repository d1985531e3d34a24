"""Dialect registry (Open/Closed Principle).

``DialectFactory`` maps target names to :class:`~lql.compile.base.SQLDialect`
classes so a new engine can be added without touching the compiler::

    from lql.compile.registry import DialectFactory

    @DialectFactory.register("duckdb")
    class DuckDBDialect(SQLDialect):
        ...

The three built-in dialects are registered by :mod:`lql` on import, together
with the common aliases ``postgresql``, ``mssql`` and ``tsql``.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import ClassVar

from lql.compile.base import SQLDialect
from lql.errors import UnknownDialectError


class Dialect(str, Enum):
    """The built-in target engines."""

    SQLITE = "sqlite"
    POSTGRES = "postgres"
    SQLSERVER = "sqlserver"


#: Alternative spellings accepted wherever a dialect name is expected.
DIALECT_ALIASES: dict[str, str] = {
    "postgresql": Dialect.POSTGRES.value,
    "pg": Dialect.POSTGRES.value,
    "mssql": Dialect.SQLSERVER.value,
    "tsql": Dialect.SQLSERVER.value,
}


class DialectFactory:
    """Registry mapping dialect target names to :class:`SQLDialect` classes.

    Example::

        @DialectFactory.register("mysql")
        class MySQLDialect(SQLDialect):
            ...

        dialect = DialectFactory.create("mysql")
    """

    _dialects: ClassVar[dict[str, type[SQLDialect]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[SQLDialect]], type[SQLDialect]]:
        """Decorator that registers a dialect class under ``name``."""

        def decorator(dialect_cls: type[SQLDialect]) -> type[SQLDialect]:
            cls._dialects[name] = dialect_cls
            return dialect_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, dialect_cls: type[SQLDialect]) -> None:
        """Register a dialect class without using the decorator form."""
        cls._dialects[name] = dialect_cls

    @classmethod
    def resolve_name(cls, name: str | Dialect) -> str:
        """Normalise ``name`` (enum member, alias or any letter case)."""
        key = name.value if isinstance(name, Dialect) else str(name).strip().lower()
        return DIALECT_ALIASES.get(key, key)

    @classmethod
    def create(cls, name: str | Dialect) -> SQLDialect:
        """Instantiate the dialect registered for ``name``.

        Raises:
            UnknownDialectError: If no dialect is registered for ``name``.
        """
        dialect_cls = cls._dialects.get(cls.resolve_name(name))
        if dialect_cls is None:
            raise UnknownDialectError(str(name), cls.registered_targets())
        return dialect_cls()

    @classmethod
    def registered_targets(cls) -> list[str]:
        """Return the sorted list of registered dialect target names."""
        return sorted(cls._dialects)
