"""Dispatch canonical queries to the translator for the active backend mode."""

from typing import Any, Callable, Dict, List, Optional

from dal.backend_mode import BackendMode
from dal.canonical import TranslatedQuery, prepare
from dal.mssql.param_translation import translate_postgres_query_to_mssql
from dal.oracle.param_translation import translate_postgres_query_to_oracle


def _passthrough(sql: str, params: Optional[List[Any]] = None) -> TranslatedQuery:
    # Postgres runs the canonical text as-is, but it must still be well formed.
    prepare(sql, params)
    return TranslatedQuery(text=sql, binds=list(params or []))


TRANSLATORS: Dict[BackendMode, Callable[..., TranslatedQuery]] = {
    BackendMode.POSTGRES: _passthrough,
    BackendMode.MSSQL: translate_postgres_query_to_mssql,
    BackendMode.ORACLE: translate_postgres_query_to_oracle,
}


def translate_for_mode(
    mode: BackendMode, sql: str, params: Optional[List[Any]] = None
) -> TranslatedQuery:
    """Translate a canonical query for ``mode``.

    Demo mode never reaches a database, so asking for its translation is a bug.
    """
    translator = TRANSLATORS.get(mode)
    if translator is None:
        raise ValueError(f"No SQL translation exists for backend mode '{mode.value}'.")
    return translator(sql, list(params or []))
