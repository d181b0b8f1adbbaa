"""Read-only SQL enforcement for canonical queries."""

import re

import sqlglot
from sqlglot import exp

from dal.canonical import PLACEHOLDER_PATTERN

ALLOWED_STATEMENT_TYPES = {"select", "union", "intersect", "except"}

_FALLBACK_MUTATION_PREFIX = {
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "MERGE",
    "GRANT",
    "REVOKE",
    "CALL",
    "EXEC",
    "EXECUTE",
}
_SQL_COMMENT_RE = re.compile(r"(--[^\n]*|/\*.*?\*/)", flags=re.DOTALL)
_FORBIDDEN_NODES = (
    exp.Insert,
    exp.Update,
    exp.Delete,
    exp.Drop,
    exp.Alter,
    exp.Create,
    exp.Command,
    exp.Grant,
    exp.Merge,
    exp.TruncateTable,
)


def is_mutating_sql(sql: str) -> bool:
    """Best-effort detection of mutating statements in canonical (Postgres) SQL."""
    if not isinstance(sql, str) or not sql.strip():
        return True

    stripped = _SQL_COMMENT_RE.sub(" ", sql).strip()
    # Bind markers carry no statement semantics; parse them as NULL literals.
    parseable = PLACEHOLDER_PATTERN.sub("NULL", stripped)
    try:
        expressions = sqlglot.parse(parseable, read="postgres")
    except Exception:
        expressions = None

    if expressions:
        if len(expressions) != 1 or expressions[0] is None:
            return True
        expression = expressions[0]
        if expression.key not in ALLOWED_STATEMENT_TYPES:
            return True
        return any(isinstance(node, _FORBIDDEN_NODES) for node in expression.walk())

    # Fallback lexical guard for parser failures.
    if not stripped:
        return True
    first_token = stripped.split(maxsplit=1)[0].upper()
    return first_token in _FALLBACK_MUTATION_PREFIX


def enforce_read_only_sql(sql: str, provider: str) -> None:
    """Raise PermissionError when anything other than a read is about to run."""
    if is_mutating_sql(sql):
        raise PermissionError(
            f"Read-only enforcement blocked non-SELECT statement for provider '{provider}'."
        )
