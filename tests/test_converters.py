"""Unit tests for lql.schema.converters.schema_from_sqlalchemy."""

from __future__ import annotations

import pytest
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Float,
    Integer,
    LargeBinary,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine

import lql
from lql.schema.converters import metadata_to_snapshot, portable_type, schema_from_sqlalchemy
from lql.schema.snapshot import SchemaSnapshot
from tests.fixtures import load_ddl, load_schema_snapshot


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_engine() -> Engine:
    """Return an in-memory SQLite engine."""
    return create_engine("sqlite:///:memory:")


def _sample_schema(engine: Engine) -> None:
    """Create the shared fixture schema (Users, Orders, Products, Customer)."""
    with engine.begin() as conn:
        for statement in load_ddl("sqlite").split(";"):
            if statement.strip():
                conn.execute(text(statement))


# ---------------------------------------------------------------------------
# Column reflection
# ---------------------------------------------------------------------------


class TestColumnReflection:
    def test_table_names(self) -> None:
        engine = _make_engine()
        _sample_schema(engine)
        snapshot = schema_from_sqlalchemy(engine)
        assert set(snapshot.table_names) == {"Users", "Orders", "Products", "Customer"}

    def test_column_names(self) -> None:
        engine = _make_engine()
        _sample_schema(engine)
        snapshot = schema_from_sqlalchemy(engine)

        users = snapshot.get_table("Users")
        assert users is not None
        assert users.column_names == ["Id", "Name", "Email", "Age", "Status"]

    def test_portable_types(self) -> None:
        engine = _make_engine()
        _sample_schema(engine)
        snapshot = schema_from_sqlalchemy(engine)

        orders = snapshot.get_table("Orders")
        assert orders is not None
        types = {c.name: c.type for c in orders.columns}
        assert types == {
            "Id": "int",
            "UserId": "int",
            "ProductId": "int",
            "Total": "real",
            "Status": "text",
        }

    def test_nullability(self) -> None:
        engine = _make_engine()
        _sample_schema(engine)
        snapshot = schema_from_sqlalchemy(engine)

        users = snapshot.get_table("Users")
        assert users is not None
        col_map = {c.name: c for c in users.columns}
        assert col_map["Name"].nullable is False
        assert col_map["Email"].nullable is True

    def test_include_tables(self) -> None:
        engine = _make_engine()
        _sample_schema(engine)
        snapshot = schema_from_sqlalchemy(engine, include_tables=["Users"])
        assert snapshot.table_names == ["Users"]

    def test_matches_json_fixture(self) -> None:
        """Reflecting the fixture DDL yields the same snapshot as schema.json."""
        engine = _make_engine()
        _sample_schema(engine)
        reflected = schema_from_sqlalchemy(engine)
        expected = load_schema_snapshot()
        for table in expected.tables:
            got = reflected.get_table(table.name)
            assert got is not None
            assert [(c.name, c.type) for c in got.columns] == [
                (c.name, c.type) for c in table.columns
            ]


# ---------------------------------------------------------------------------
# Type mapping
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "sa_type, expected",
    [
        (Integer(), "int"),
        (Boolean(), "int"),
        (Float(), "real"),
        (Numeric(10, 2), "real"),
        (String(50), "text"),
        (Text(), "text"),
        (Date(), "text"),
        (LargeBinary(), "blob"),
    ],
)
def test_portable_type(sa_type, expected: str) -> None:
    assert portable_type(sa_type) == expected


def test_declarative_metadata() -> None:
    metadata = MetaData()
    Table(
        "Events",
        metadata,
        Column("Id", Integer, primary_key=True),
        Column("Payload", LargeBinary),
        Column("Title", String(100), nullable=False),
    )
    snapshot = metadata_to_snapshot(metadata)
    assert isinstance(snapshot, SchemaSnapshot)
    events = snapshot.get_table("events")
    assert events is not None
    assert [(c.name, c.type, c.nullable) for c in events.columns] == [
        ("Id", "int", False),
        ("Payload", "blob", True),
        ("Title", "text", False),
    ]


def test_reflected_snapshot_drives_diagnostics() -> None:
    engine = _make_engine()
    _sample_schema(engine)
    snapshot = schema_from_sqlalchemy(engine)
    compiled = lql.transpile(
        "Users |> select(Name, Nickname)", "sqlite", schema=snapshot
    ).unwrap()
    assert compiled.sql == "SELECT Name, Nickname FROM Users"
    assert compiled.diagnostics == ["Unknown column 'Nickname' (at line 1, column 23)."]
