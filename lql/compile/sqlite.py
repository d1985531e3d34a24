"""SQLite dialect."""
from __future__ import annotations

from lql.compile.base import SQLDialect

# UUID v4 text assembled from random bytes; SQLite has no UUID function.
_UUID_V4 = (
    "(lower(hex(randomblob(4))) || '-' || lower(hex(randomblob(2))) || '-4' || "
    "substr(lower(hex(randomblob(2))), 2) || '-' || "
    "substr('89ab', abs(random()) % 4 + 1, 1) || substr(lower(hex(randomblob(2))), 2) || '-' || "
    "lower(hex(randomblob(6))))"
)


class SQLiteDialect(SQLDialect):
    """Renders pipelines as SQLite SQL.

    Native parameter style: ``:name`` – compatible with Python's built-in
    ``sqlite3`` named-parameter execution (``cursor.execute(sql, dict)``).

    Note: SQLite does not support ``ILIKE``; it is mapped to ``LIKE``.
    SQLite's ``LIKE`` is case-insensitive for ASCII by default.
    """

    function_names = {
        "substring": "substr",
    }
    function_templates = {
        "now": "datetime('now')",
        "current_timestamp": "CURRENT_TIMESTAMP",
        "current_date": "date('now')",
        "current_time": "time('now')",
        "gen_uuid": _UUID_V4,
        "uuid": _UUID_V4,
    }
    unsupported_features = frozenset({"stddev"})

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def native_placeholder(self, name: str) -> str:
        return f":{name}"

    def like_operator(self, case_insensitive: bool) -> str:
        return "LIKE"  # SQLite has no ILIKE; fall back to LIKE

    def build_func_call(self, name: str, args_sql: list[str], distinct: bool = False) -> str:
        if name.lower() == "concat" and args_sql:
            return f"({' || '.join(args_sql)})"
        return super().build_func_call(name, args_sql, distinct)

    def build_string_agg(self, args_sql: list[str], distinct: bool = False) -> str:
        prefix = "DISTINCT " if distinct else ""
        return f"GROUP_CONCAT({prefix}{', '.join(args_sql)})"

    def render_pagination(
        self,
        limit: str | None,
        offset: str | None,
        has_order_by: bool,
    ) -> str:
        if limit is None and offset is None:
            return ""
        # OFFSET is only valid after LIMIT; -1 means "no limit".
        parts = [f"LIMIT {limit if limit is not None else -1}"]
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)
