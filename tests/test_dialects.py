"""Unit tests for the SQLDialect implementations and DialectFactory."""

from __future__ import annotations

import pytest

from lql.compile.base import SQLDialect
from lql.compile.identifiers import needs_quoting
from lql.compile.postgres import PostgresDialect
from lql.compile.registry import Dialect, DialectFactory
from lql.compile.sqlite import SQLiteDialect
from lql.compile.sqlserver import SQLServerDialect
from lql.errors import UnknownDialectError


class TestIdentifierQuoting:
    @pytest.mark.parametrize("name", ["Users", "user_id", "_private", "Col1"])
    def test_plain_names_are_not_quoted(self, name: str):
        assert not needs_quoting(name)

    @pytest.mark.parametrize("name", ["Order", "user", "SELECT", "Group", "key"])
    def test_reserved_words_are_quoted(self, name: str):
        assert needs_quoting(name)

    @pytest.mark.parametrize("name", ["Order Details", "1st", "a-b", "naïve"])
    def test_non_plain_names_are_quoted(self, name: str):
        assert needs_quoting(name)

    def test_quote_characters_per_dialect(self):
        assert SQLiteDialect().quote_identifier("Order") == '"Order"'
        assert PostgresDialect().quote_identifier("Order") == '"Order"'
        assert SQLServerDialect().quote_identifier("Order") == "[Order]"

    def test_embedded_close_quote_is_doubled(self):
        assert SQLiteDialect().quote_identifier('a"b') == '"a""b"'
        assert SQLServerDialect().quote_identifier("a]b") == "[a]]b]"


class TestLiterals:
    def test_booleans(self):
        assert SQLiteDialect().render_boolean(True) == "1"
        assert PostgresDialect().render_boolean(False) == "FALSE"
        assert SQLServerDialect().render_boolean(True) == "1"
        assert SQLServerDialect().render_boolean_predicate(False) == "1 = 0"

    def test_strings(self):
        assert SQLiteDialect().render_string("it's") == "'it''s'"
        assert SQLServerDialect().render_string("plain") == "'plain'"
        assert SQLServerDialect().render_string("Zoë") == "N'Zoë'"


class TestPagination:
    @pytest.mark.parametrize(
        "limit, offset, expected",
        [
            ("10", None, "LIMIT 10"),
            ("10", "20", "LIMIT 10 OFFSET 20"),
            (None, "20", "LIMIT -1 OFFSET 20"),
            (None, None, ""),
        ],
    )
    def test_sqlite(self, limit, offset, expected):
        assert SQLiteDialect().render_pagination(limit, offset, has_order_by=False) == expected

    @pytest.mark.parametrize(
        "limit, offset, expected",
        [
            ("10", None, "LIMIT 10"),
            ("10", "20", "LIMIT 10 OFFSET 20"),
            (None, "20", "OFFSET 20"),
        ],
    )
    def test_postgres(self, limit, offset, expected):
        assert PostgresDialect().render_pagination(limit, offset, has_order_by=False) == expected

    @pytest.mark.parametrize(
        "limit, offset, expected",
        [
            ("10", None, "OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"),
            ("10", "20", "OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"),
            (None, "20", "OFFSET 20 ROWS"),
        ],
    )
    def test_sqlserver(self, limit, offset, expected):
        assert SQLServerDialect().render_pagination(limit, offset, has_order_by=True) == expected

    def test_only_sqlserver_requires_order(self):
        assert SQLServerDialect.requires_order_for_pagination
        assert not SQLiteDialect.requires_order_for_pagination
        assert not PostgresDialect.requires_order_for_pagination


class TestFunctions:
    def test_aggregates_are_upper_cased(self):
        assert PostgresDialect().build_func_call("sum", ["Total"]) == "SUM(Total)"
        assert SQLiteDialect().build_func_call("Count", ["Id"], distinct=True) == "COUNT(DISTINCT Id)"

    def test_empty_count_becomes_count_star(self):
        assert SQLiteDialect().build_func_call("count", []) == "COUNT(*)"

    def test_unmapped_function_passes_through(self):
        assert PostgresDialect().build_func_call("coalesce", ["a", "0"]) == "coalesce(a, 0)"

    def test_renamed_functions(self):
        assert SQLServerDialect().build_func_call("length", ["Name"]) == "LEN(Name)"
        assert SQLiteDialect().build_func_call("substring", ["Name", "1", "2"]) == "substr(Name, 1, 2)"
        assert SQLiteDialect().build_func_call("string_agg", ["Name", "','"]) == (
            "GROUP_CONCAT(Name, ',')"
        )

    @pytest.mark.parametrize(
        "dialect, expected",
        [
            (SQLiteDialect(), "datetime('now')"),
            (PostgresDialect(), "CURRENT_TIMESTAMP"),
            (SQLServerDialect(), "SYSDATETIME()"),
        ],
    )
    def test_now_template(self, dialect: SQLDialect, expected: str):
        assert dialect.build_func_call("now", []) == expected

    def test_uuid_templates(self):
        assert PostgresDialect().build_func_call("uuid", []) == "gen_random_uuid()"
        assert SQLServerDialect().build_func_call("gen_uuid", []) == "NEWID()"
        assert "randomblob" in SQLiteDialect().build_func_call("uuid", [])

    def test_template_only_applies_without_arguments(self):
        assert PostgresDialect().build_func_call("now", ["x"]) == "now(x)"

    @pytest.mark.parametrize(
        "dialect, expected",
        [
            (SQLiteDialect(), "GROUP_CONCAT(Status)"),
            (PostgresDialect(), "STRING_AGG(CAST(Status AS TEXT), ',')"),
            (SQLServerDialect(), "STRING_AGG(Status, ',')"),
        ],
    )
    def test_group_concat_default_separator(self, dialect, expected):
        assert dialect.build_func_call("group_concat", ["Status"]) == expected

    def test_string_agg_with_separator(self):
        assert PostgresDialect().build_func_call("string_agg", ["Id", "'; '"], distinct=True) == (
            "STRING_AGG(DISTINCT CAST(Id AS TEXT), '; ')"
        )
        assert SQLServerDialect().build_func_call("STRING_AGG", ["Name", "'-'"]) == (
            "STRING_AGG(Name, '-')"
        )
        assert SQLiteDialect().build_func_call("group_concat", ["Name", "'-'"]) == (
            "GROUP_CONCAT(Name, '-')"
        )

    def test_supports(self):
        assert not SQLServerDialect().supports("ILIKE")
        assert not SQLServerDialect().supports("limit(0)")
        assert SQLiteDialect().supports("limit(0)")
        assert not SQLiteDialect().supports("stddev")
        assert PostgresDialect().supports("ilike")


class TestOperators:
    def test_like_operator(self):
        assert PostgresDialect().like_operator(True) == "ILIKE"
        assert SQLiteDialect().like_operator(True) == "LIKE"
        assert SQLServerDialect().like_operator(False) == "LIKE"

    def test_concat(self):
        assert PostgresDialect().render_concat(["a", "'-'", "b"], [False, True, False]) == (
            "a || '-' || b"
        )
        assert SQLServerDialect().render_concat(["a", "'-'"], [False, True]) == (
            "CAST(a AS NVARCHAR(MAX)) + '-'"
        )

    def test_placeholders(self):
        assert SQLiteDialect().param_placeholder("p") == "@p"
        assert SQLiteDialect().param_placeholder("p", "native") == ":p"
        assert PostgresDialect().param_placeholder("p", "native") == "%(p)s"
        assert SQLServerDialect().param_placeholder("p", "native") == "@p"


class TestDialectFactory:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("sqlite", SQLiteDialect),
            ("SQLite", SQLiteDialect),
            ("postgres", PostgresDialect),
            ("postgresql", PostgresDialect),
            ("pg", PostgresDialect),
            ("sqlserver", SQLServerDialect),
            ("mssql", SQLServerDialect),
            ("tsql", SQLServerDialect),
            (Dialect.SQLSERVER, SQLServerDialect),
        ],
    )
    def test_create(self, name, expected):
        assert isinstance(DialectFactory.create(name), expected)

    def test_unknown_dialect(self):
        with pytest.raises(UnknownDialectError) as exc_info:
            DialectFactory.create("oracle")
        assert "sqlite" in exc_info.value.details["registered"]

    def test_registered_targets(self):
        assert {"sqlite", "postgres", "sqlserver"} <= set(DialectFactory.registered_targets())

    def test_register_custom_dialect(self):
        @DialectFactory.register("testdb")
        class TestDBDialect(PostgresDialect):
            @property
            def dialect_name(self) -> str:
                return "testdb"

        try:
            dialect = DialectFactory.create("testdb")
            assert dialect.dialect_name == "testdb"
        finally:
            DialectFactory._dialects.pop("testdb", None)

    def test_dialect_is_stateless(self, any_dialect: SQLDialect):
        assert any_dialect.quote_identifier("Users") == "Users"
        assert any_dialect.quote_identifier("Users") == "Users"
