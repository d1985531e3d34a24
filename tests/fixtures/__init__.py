"""Test fixtures: sample schema DDL, SchemaSnapshot JSON and seed rows."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from lql.schema.snapshot import SchemaSnapshot

_FIXTURES_DIR = Path(__file__).parent

#: Seed rows shared by the SQLite and PostgreSQL integration tests.
USERS = [
    (1, "Alice", "alice@example.com", 34, "active"),
    (2, "Bob", None, 17, "active"),
    (3, "Carol", "carol@example.com", 52, "inactive"),
    (4, "Dave", "dave@example.com", None, "active"),
    (5, "Eve", "eve@example.com", 29, "active"),
]
PRODUCTS = [
    (1, "Widget", 9.5),
    (2, "Gadget", 25.0),
    (3, "Gizmo", 4.25),
]
ORDERS = [
    (1, 1, 1, 19.0, "shipped"),
    (2, 1, 2, 25.0, "pending"),
    (3, 3, 3, 8.5, "shipped"),
    (4, 5, 1, 9.5, "shipped"),
    (5, 5, 2, 50.0, "cancelled"),
]
CUSTOMERS = [
    (1, "Acme Corp", "sales@acme.test"),
    (2, "Globex", None),
]


def load_schema_snapshot() -> SchemaSnapshot:
    """Load the canonical sample SchemaSnapshot from schema.json."""
    data = json.loads((_FIXTURES_DIR / "schema.json").read_text())
    return SchemaSnapshot.model_validate(data)


def load_ddl(target: Literal["sqlite", "postgres"] = "sqlite") -> str:
    """Return the sample DDL SQL string for the given backend.

    Args:
        target: ``'sqlite'`` (default) or ``'postgres'``.

    Returns:
        DDL string ready to execute against the target backend.
    """
    filename = f"ddl_{target}.sql"
    return (_FIXTURES_DIR / filename).read_text()
