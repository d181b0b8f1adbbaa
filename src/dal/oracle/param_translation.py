import re
from typing import Any, List, Optional

from dal.canonical import (
    TranslatedQuery,
    apply_substitutions,
    prepare,
    rewrite_ilike,
    rewrite_placeholders,
)

# Oracle 11g rejects AS before some aliases; rewrite the count alias the routes emit.
ORACLE_SUBSTITUTIONS = (
    (re.compile(r"COUNT\(\*\)\s+AS\s+(\w+)", re.IGNORECASE), r"COUNT(*) \1"),
)


def _upper_like(left: str, right: str, negated: bool) -> str:
    operator = "NOT LIKE" if negated else "LIKE"
    return f"UPPER({left}) {operator} UPPER({right})"


def _rownum_window(sql: str, limit: int, offset: int) -> str:
    return (
        "SELECT * FROM (\n"
        "  SELECT * FROM (\n"
        f"    SELECT a.*, ROWNUM rn FROM ({sql}) a\n"
        f"  ) WHERE rn <= {offset + limit}\n"
        f") WHERE rn > {offset}"
    )


def translate_postgres_query_to_oracle(
    sql: str, params: Optional[List[Any]] = None
) -> TranslatedQuery:
    """Translate a canonical Postgres-style query into Oracle 11g SQL.

    ``$n`` becomes ``:n``, ``ILIKE`` becomes ``UPPER(x) LIKE UPPER(y)`` and
    ``LIMIT/OFFSET`` is emulated with a ROWNUM window using literal bounds.
    Binds come back as a name-keyed map (``{"1": value, ...}``).
    """
    prepared = prepare(sql, params)

    oracle_sql = rewrite_placeholders(prepared.text, prepared.mapping, lambda idx: f":{idx}")
    oracle_sql = rewrite_ilike(oracle_sql, _upper_like)
    oracle_sql = apply_substitutions(oracle_sql, ORACLE_SUBSTITUTIONS)

    if prepared.pagination is not None:
        oracle_sql = _rownum_window(
            oracle_sql, prepared.pagination.limit, prepared.pagination.offset
        )

    binds = {str(position): value for position, value in enumerate(prepared.binds, start=1)}
    return TranslatedQuery(text=oracle_sql, binds=binds)
