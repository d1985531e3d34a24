"""Integration tests: transpile → execute against a real SQLite in-memory DB.

Covers filtering with lambdas and parameters, joins (inner and left),
grouping with HAVING, ordering with pagination, DISTINCT, UNION (with a
paginated branch), string concatenation, NULL handling and reserved-word
identifiers.
"""
from __future__ import annotations

import sqlite3

import pytest

import lql
from lql import CompileOptions
from tests.fixtures import CUSTOMERS, ORDERS, PRODUCTS, USERS, load_ddl, load_schema_snapshot

SNAPSHOT = load_schema_snapshot()
NATIVE = CompileOptions(param_style="native")


@pytest.fixture()
def db() -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(load_ddl("sqlite"))
    conn.executemany("INSERT INTO Users VALUES (?,?,?,?,?)", USERS)
    conn.executemany("INSERT INTO Products VALUES (?,?,?)", PRODUCTS)
    conn.executemany("INSERT INTO Orders VALUES (?,?,?,?,?)", ORDERS)
    conn.executemany("INSERT INTO Customer VALUES (?,?,?)", CUSTOMERS)
    # A table whose name needs quoting.
    conn.execute('CREATE TABLE "Order" (Id INTEGER PRIMARY KEY, "Group" TEXT)')
    conn.execute("""INSERT INTO "Order" VALUES (1, 'a'), (2, 'b')""")
    conn.commit()
    yield conn
    conn.close()


def _run(db: sqlite3.Connection, text: str, params: dict | None = None) -> list[tuple]:
    compiled = lql.transpile(text, "sqlite", schema=SNAPSHOT, options=NATIVE).unwrap()
    assert set(compiled.parameters) == set(params or {})
    rows = db.execute(compiled.sql, params or {}).fetchall()
    return [tuple(row) for row in rows]


# ---------------------------------------------------------------------------
# Single table
# ---------------------------------------------------------------------------


def test_select_star(db):
    rows = _run(db, "Customer |> select(*) |> order_by(Id)")
    assert rows == list(CUSTOMERS)


def test_lambda_filter(db):
    rows = _run(
        db,
        "Users |> filter(fn(row) => row.Age > 18 and row.Status = 'active')"
        " |> select(Name) |> order_by(Name)",
    )
    assert rows == [("Alice",), ("Eve",)]


def test_parameterised_filter(db):
    rows = _run(
        db,
        "Users |> filter(Age >= @minAge) |> select(Name) |> order_by(Age desc)",
        {"minAge": 30},
    )
    assert rows == [("Carol",), ("Alice",)]


def test_null_handling(db):
    assert _run(db, "Users |> filter(Email = null) |> select(Name)") == [("Bob",)]
    assert len(_run(db, "Users |> filter(Age is not null)")) == 4


def test_in_and_like(db):
    rows = _run(
        db,
        "Users |> filter(Id in (1, 2, 3) and Name like '%o%') |> select(Name) |> order_by(Name)",
    )
    assert rows == [("Bob",), ("Carol",)]


def test_ilike_maps_to_like(db):
    rows = _run(db, "Users |> filter(Name ilike 'ALI%') |> select(Name)")
    assert rows == [("Alice",)]


def test_boolean_literal_predicate(db):
    assert len(_run(db, "Users |> filter(true)")) == len(USERS)
    assert _run(db, "Users |> filter(false)") == []


def test_concat(db):
    rows = _run(db, "Users |> filter(Id = 1) |> select(Name || ' <' || Email || '>' as Label)")
    assert rows == [("Alice <alice@example.com>",)]


def test_arithmetic_precedence(db):
    rows = _run(db, "Products |> filter(Id = 1) |> select((Price + 0.5) * 2 as A, Price + 0.5 * 2 as B)")
    assert rows == [(20.0, 10.5)]


def test_distinct(db):
    rows = _run(db, "Users |> select(Status) |> distinct |> order_by(Status)")
    assert rows == [("active",), ("inactive",)]


def test_reserved_word_identifiers(db):
    rows = _run(db, "Order as o |> select(o.Group) |> order_by(o.Id)")
    assert rows == [("a",), ("b",)]


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


class TestPagination:
    def test_limit_and_offset(self, db):
        rows = _run(db, "Users |> select(Id) |> order_by(Id) |> limit(2) |> offset(1)")
        assert rows == [(2,), (3,)]

    def test_offset_only(self, db):
        rows = _run(db, "Users |> select(Id) |> order_by(Id) |> offset(3)")
        assert rows == [(4,), (5,)]

    def test_pagination_applies_last(self, db):
        rows = _run(db, "Users |> limit(1) |> order_by(Id desc) |> select(Id)")
        assert rows == [(5,)]

    def test_parameterised_pagination(self, db):
        rows = _run(
            db,
            "Users |> select(Id) |> order_by(Id) |> limit(@take) |> offset(@skip)",
            {"take": 2, "skip": 2},
        )
        assert rows == [(3,), (4,)]


# ---------------------------------------------------------------------------
# Joins and aggregation
# ---------------------------------------------------------------------------


class TestJoins:
    def test_inner_join(self, db):
        rows = _run(
            db,
            "Orders as o |> join(Users as u, on o.UserId = u.Id)"
            " |> filter(fn(row) => row.o.Status = 'shipped')"
            " |> select(u.Name, o.Total) |> order_by(o.Id)",
        )
        assert rows == [("Alice", 19.0), ("Carol", 8.5), ("Eve", 9.5)]

    def test_left_join_keeps_unmatched(self, db):
        rows = _run(
            db,
            "Users as u |> left_join(Orders as o, on o.UserId = u.Id)"
            " |> filter(o.Id is null) |> select(u.Name) |> order_by(u.Name)",
        )
        assert rows == [("Bob",), ("Dave",)]

    def test_three_way_join(self, db):
        rows = _run(
            db,
            "Orders as o |> join(Users as u, on o.UserId = u.Id)"
            " |> join(Products as p, on o.ProductId = p.Id)"
            " |> filter(p.Name = 'Gadget') |> select(u.Name, o.Status) |> order_by(o.Id)",
        )
        assert rows == [("Alice", "pending"), ("Eve", "cancelled")]


class TestAggregation:
    def test_group_by_having(self, db):
        rows = _run(
            db,
            "Orders |> group_by(UserId) |> having(fn(g) => sum(Total) > 20)"
            " |> select(UserId, sum(Total) as Spent, count(*) as N) |> order_by(UserId)",
        )
        assert rows == [(1, 44.0, 2), (5, 59.5, 2)]

    def test_count_distinct(self, db):
        rows = _run(db, "Orders |> select(count(distinct Status))")
        assert rows == [(3,)]

    def test_group_concat(self, db):
        rows = _run(
            db,
            "Orders |> filter(UserId = 1) |> group_by(UserId) |> select(string_agg(Status, ','))",
        )
        assert sorted(rows[0][0].split(",")) == ["pending", "shipped"]


# ---------------------------------------------------------------------------
# Union
# ---------------------------------------------------------------------------


class TestUnion:
    def test_union_all_keeps_duplicates(self, db):
        rows = _run(
            db,
            "Users |> filter(Id = 1) |> select(Name) |> union(Users |> filter(Id = 1) |> select(Name))",
        )
        assert rows == [("Alice",), ("Alice",)]

    def test_distinct_union_removes_duplicates(self, db):
        rows = _run(
            db,
            "Users |> filter(Id = 1) |> select(Name) |> distinct"
            " |> union(Users |> filter(Id = 1) |> select(Name))",
        )
        assert rows == [("Alice",)]

    def test_ordered_paginated_union(self, db):
        rows = _run(
            db,
            "Users |> select(Users.Name) |> union(Customer |> select(CustomerName))"
            " |> order_by(Users.Name) |> limit(3)",
        )
        assert rows == [("Acme Corp",), ("Alice",), ("Bob",)]

    def test_paginated_branch(self, db):
        rows = _run(
            db,
            "Customer |> select(CustomerName)"
            " |> union(Users |> select(Name) |> order_by(Name desc) |> limit(1))",
        )
        assert sorted(rows) == [("Acme Corp",), ("Eve",), ("Globex",)]


def test_every_compiled_statement_has_no_diagnostics():
    compiled = lql.transpile(
        "Orders as o |> join(Users as u, on o.UserId = u.Id) |> select(u.Name, o.Total)",
        "sqlite",
        schema=SNAPSHOT,
    ).unwrap()
    assert compiled.diagnostics == []
