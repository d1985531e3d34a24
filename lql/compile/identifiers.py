"""Identifier quoting decision shared by every dialect.

Whether an identifier needs quoting is decided here, once, for all targets:
an identifier is quoted when it is a reserved word in any supported engine
or when it is not a plain ``[A-Za-z_][A-Za-z0-9_]*`` name.  Dialects only
choose the quote characters, so ``Order`` is quoted on SQLite exactly when
it is quoted on SQL Server.
"""
from __future__ import annotations

import re

_PLAIN_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")

#: Reserved words of SQLite, PostgreSQL and SQL Server that commonly collide
#: with table or column names.  Compared case-insensitively.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "add", "all", "alter", "and", "any", "as", "asc", "authorization",
        "between", "both", "by", "case", "cast", "check", "collate", "column",
        "constraint", "create", "cross", "current", "current_date",
        "current_time", "current_timestamp", "current_user", "default",
        "delete", "desc", "distinct", "drop", "else", "end", "except",
        "exists", "false", "fetch", "file", "for", "foreign", "from", "full",
        "grant", "group", "having", "identity", "if", "in", "index", "inner",
        "insert", "intersect", "into", "is", "join", "key", "leading", "left",
        "like", "limit", "natural", "not", "null", "offset", "on", "or",
        "order", "outer", "percent", "primary", "references", "right",
        "rows", "select", "session_user", "set", "some", "table", "then",
        "to", "top", "trailing", "true", "union", "unique", "update", "user",
        "using", "values", "view", "when", "where", "with",
    }
)


def needs_quoting(name: str) -> bool:
    """Return ``True`` when ``name`` must be quoted in generated SQL."""
    return name.lower() in RESERVED_WORDS or _PLAIN_IDENTIFIER.match(name) is None
