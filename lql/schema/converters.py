"""Utilities for building a SchemaSnapshot from external sources.

SQLAlchemy converter
--------------------
:func:`schema_from_sqlalchemy` reflects a live database engine and returns a
:class:`~lql.schema.snapshot.SchemaSnapshot` whose columns carry portable
type tags (``text`` / ``int`` / ``real`` / ``blob``).

Install the optional dependency before using this module::

    pip install "lql[sqlalchemy]"

Example::

    from sqlalchemy import create_engine
    from lql.schema.converters import schema_from_sqlalchemy

    engine = create_engine("sqlite:///mydb.db")
    snapshot = schema_from_sqlalchemy(engine)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lql.schema.snapshot import ColumnInfo, PortableType, SchemaSnapshot, TableInfo

if TYPE_CHECKING:
    from sqlalchemy import Engine, MetaData
    from sqlalchemy.types import TypeEngine

logger = logging.getLogger(__name__)


def schema_from_sqlalchemy(
    engine: Engine,
    *,
    include_tables: list[str] | None = None,
    schema: str | None = None,
) -> SchemaSnapshot:
    """Build a :class:`SchemaSnapshot` by reflecting a SQLAlchemy engine.

    All tables visible to the engine (or a subset via *include_tables*) are
    reflected using SQLAlchemy's :class:`~sqlalchemy.schema.MetaData`.  Each
    column's SQLAlchemy type is reduced to a portable tag with
    :func:`portable_type`.

    Args:
        engine: A connected :class:`sqlalchemy.engine.Engine` instance.
        include_tables: Optional allowlist of table names to reflect.
            When ``None`` all tables in the schema are reflected.
        schema: Optional database schema name (e.g. ``"public"`` for
            PostgreSQL).  Passed directly to
            :meth:`sqlalchemy.schema.MetaData.reflect`.

    Returns:
        A fully populated :class:`SchemaSnapshot`.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """
    try:
        from sqlalchemy import MetaData as _MetaData
    except ImportError as exc:
        raise ImportError(
            "SQLAlchemy is required for schema_from_sqlalchemy(). "
            'Install it with: pip install "lql[sqlalchemy]"'
        ) from exc

    metadata = _MetaData()
    with engine.connect() as conn:
        metadata.reflect(bind=conn, only=include_tables, schema=schema)

    snapshot = metadata_to_snapshot(metadata)
    logger.debug("Reflected %d table(s) from %s", len(snapshot.tables), engine.url)
    return snapshot


def metadata_to_snapshot(metadata: MetaData) -> SchemaSnapshot:
    """Convert a reflected :class:`~sqlalchemy.schema.MetaData` into a
    :class:`SchemaSnapshot`.

    Separated from :func:`schema_from_sqlalchemy` so callers that already
    hold a reflected (or declaratively built) ``MetaData`` can reuse it.
    """
    tables = tuple(
        TableInfo(
            name=table.name,
            columns=tuple(
                ColumnInfo(
                    name=col.name,
                    type=portable_type(col.type),
                    # col.nullable is True/False for reflected columns; treat
                    # an unset value (None) as nullable.
                    nullable=col.nullable is not False,
                )
                for col in table.columns
            ),
        )
        for table in metadata.sorted_tables
    )
    return SchemaSnapshot(tables=tables)


def portable_type(sa_type: TypeEngine) -> PortableType:
    """Reduce a SQLAlchemy column type to a portable type tag.

    Integers and booleans map to ``int``, floats and decimals to ``real``,
    binary types to ``blob``; everything else (strings, dates, JSON, unknown
    types) maps to ``text``.
    """
    from sqlalchemy import types as sa_types

    if isinstance(sa_type, (sa_types.Integer, sa_types.Boolean)):
        return "int"
    if isinstance(sa_type, sa_types.Numeric):
        return "real"
    if isinstance(sa_type, (sa_types.LargeBinary, sa_types.BINARY, sa_types.VARBINARY)):
        return "blob"
    return "text"
