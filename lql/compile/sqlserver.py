"""SQL Server (T-SQL) dialect."""

from __future__ import annotations

from lql.compile.base import SQLDialect


class SQLServerDialect(SQLDialect):
    """Renders pipelines as SQL Server T-SQL.

    Native parameter style: ``@name`` – the placeholder form used by
    ``SqlCommand`` and most T-SQL drivers.

    Differences from the other engines:

    * identifiers are quoted with brackets (``[Order]``);
    * there is no boolean literal, so ``true``/``false`` render as ``1``/``0``
      and as ``1 = 1``/``1 = 0`` where a search condition is required;
    * strings concatenate with ``+``; operands not known to be strings are
      cast to ``NVARCHAR(MAX)`` so ``+`` never turns into addition;
    * ``OFFSET ... FETCH`` pagination is only valid after ``ORDER BY``;
    * ``ILIKE`` does not exist (case sensitivity is a collation property);
    * ``FETCH NEXT 0 ROWS`` is an error, so ``limit(0)`` is unsupported;
    * ``STRING_AGG`` takes no ``DISTINCT``.
    """

    open_quote = "["
    close_quote = "]"
    requires_order_for_pagination = True

    function_names = {
        "length": "LEN",
        "stddev": "STDEV",
    }
    function_templates = {
        "now": "SYSDATETIME()",
        "current_timestamp": "CURRENT_TIMESTAMP",
        "current_date": "CAST(GETDATE() AS DATE)",
        "current_time": "CAST(GETDATE() AS TIME)",
        "gen_uuid": "NEWID()",
        "uuid": "NEWID()",
    }
    unsupported_features = frozenset({"ilike", "limit(0)", "string_agg(distinct)"})

    @property
    def dialect_name(self) -> str:
        return "sqlserver"

    def native_placeholder(self, name: str) -> str:
        return f"@{name}"

    def render_boolean_predicate(self, value: bool) -> str:
        return "1 = 1" if value else "1 = 0"

    def render_string(self, value: str) -> str:
        literal = super().render_string(value)
        return literal if value.isascii() else f"N{literal}"

    def string_concat_operator(self) -> str:
        return "+"

    def render_concat(self, operands: list[str], string_typed: list[bool]) -> str:
        cast = [
            sql if is_string else f"CAST({sql} AS NVARCHAR(MAX))"
            for sql, is_string in zip(operands, string_typed)
        ]
        return " + ".join(cast)

    def render_pagination(
        self,
        limit: str | None,
        offset: str | None,
        has_order_by: bool,
    ) -> str:
        if limit is None and offset is None:
            return ""
        clause = f"OFFSET {offset if offset is not None else 0} ROWS"
        if limit is not None:
            clause += f" FETCH NEXT {limit} ROWS ONLY"
        return clause
