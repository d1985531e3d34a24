"""PostgreSQL dialect."""

from __future__ import annotations

from lql.compile.base import SQLDialect


class PostgresDialect(SQLDialect):
    """Renders pipelines as PostgreSQL SQL.

    Native parameter style: ``%(name)s`` – compatible with ``psycopg2`` and
    ``psycopg`` named-parameter execution.

    ``string_agg`` and ``group_concat`` both render as ``STRING_AGG`` with the
    value cast to ``TEXT``.
    """

    function_names = {
        "stddev": "STDDEV",
    }
    function_templates = {
        "now": "CURRENT_TIMESTAMP",
        "current_timestamp": "CURRENT_TIMESTAMP",
        "current_date": "CURRENT_DATE",
        "current_time": "CURRENT_TIME",
        "gen_uuid": "gen_random_uuid()",
        "uuid": "gen_random_uuid()",
    }

    @property
    def dialect_name(self) -> str:
        return "postgres"

    def native_placeholder(self, name: str) -> str:
        return f"%({name})s"

    def render_boolean(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def build_string_agg(self, args_sql: list[str], distinct: bool = False) -> str:
        # string_agg only accepts text values.
        if args_sql:
            args_sql = [f"CAST({args_sql[0]} AS TEXT)", *args_sql[1:]]
        return super().build_string_agg(args_sql, distinct)

    def render_pagination(
        self,
        limit: str | None,
        offset: str | None,
        has_order_by: bool,
    ) -> str:
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)
