from typing import Any, List, Optional

from dal.canonical import (
    TranslatedQuery,
    apply_substitutions,
    prepare,
    rewrite_ilike,
    rewrite_placeholders,
)

# SQL Server accepts the canonical text as-is apart from placeholders and paging.
MSSQL_SUBSTITUTIONS = ()


def _plain_like(left: str, right: str, negated: bool) -> str:
    operator = "NOT LIKE" if negated else "LIKE"
    return f"{left} {operator} {right}"


def translate_postgres_query_to_mssql(
    sql: str, params: Optional[List[Any]] = None
) -> TranslatedQuery:
    """Translate a canonical Postgres-style query into SQL Server (2012+) SQL.

    ``$n`` becomes ``@pN``, ``ILIKE`` becomes ``LIKE`` and ``LIMIT/OFFSET``
    becomes a trailing ``OFFSET n ROWS FETCH NEXT m ROWS ONLY`` with literal values.
    """
    prepared = prepare(sql, params)

    mssql_sql = rewrite_placeholders(prepared.text, prepared.mapping, lambda idx: f"@p{idx}")
    # Default collation is case-insensitive, so ILIKE collapses to LIKE.
    mssql_sql = rewrite_ilike(mssql_sql, _plain_like)
    mssql_sql = apply_substitutions(mssql_sql, MSSQL_SUBSTITUTIONS)

    if prepared.pagination is not None:
        mssql_sql += (
            f" OFFSET {prepared.pagination.offset} ROWS"
            f" FETCH NEXT {prepared.pagination.limit} ROWS ONLY"
        )

    return TranslatedQuery(text=mssql_sql, binds=list(prepared.binds))
