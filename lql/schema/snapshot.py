"""Pydantic models for the optional schema lookup used in diagnostics.

A :class:`SchemaSnapshot` describes tables and columns with portable type
tags.  It is produced by the caller (by hand, from JSON, or with
:func:`~lql.schema.converters.schema_from_sqlalchemy`) and handed to the
compiler.  The compiler never needs it to produce SQL; it only uses it to
warn about unknown tables and columns.
"""
from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

#: Engine-neutral column type tags.
PortableType = Literal["text", "int", "real", "blob"]


class ColumnInfo(BaseModel):
    """Metadata for a single column.

    Attributes:
        name: Column name.
        type: Portable type tag.
        nullable: Whether the column can be NULL.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    type: PortableType
    nullable: bool = True


class TableInfo(BaseModel):
    """Metadata for a single table or view.

    Attributes:
        name: Table name.
        columns: Ordered list of column metadata.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    columns: tuple[ColumnInfo, ...]

    @property
    def column_names(self) -> list[str]:
        """Returns all column names for this table."""
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> ColumnInfo | None:
        lowered = name.lower()
        for col in self.columns:
            if col.name.lower() == lowered:
                return col
        return None


@runtime_checkable
class SchemaLookup(Protocol):
    """What the compiler needs from a schema inspector."""

    def get_table(self, name: str) -> TableInfo | None: ...

    def get_column(self, table_name: str, column_name: str) -> ColumnInfo | None: ...


class SchemaSnapshot(BaseModel):
    """An in-memory :class:`SchemaLookup`.

    Table and column lookups are case-insensitive, matching how SQLite,
    SQL Server and unquoted PostgreSQL identifiers resolve.

    Attributes:
        tables: All known tables.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    tables: tuple[TableInfo, ...]

    def get_table(self, name: str) -> TableInfo | None:
        """Returns the TableInfo for the given table name, or ``None``."""
        lowered = name.lower()
        for table in self.tables:
            if table.name.lower() == lowered:
                return table
        return None

    def get_column(self, table_name: str, column_name: str) -> ColumnInfo | None:
        """Returns the ColumnInfo for a table.column pair, or ``None``."""
        table = self.get_table(table_name)
        if table is None:
            return None
        return table.get_column(column_name)

    def get_column_names(self, table_name: str) -> list[str]:
        """Returns column names for ``table_name``, or ``[]`` if not found."""
        table = self.get_table(table_name)
        return table.column_names if table is not None else []

    @property
    def table_names(self) -> list[str]:
        """Returns all table names in the snapshot."""
        return [t.name for t in self.tables]
