"""Data Abstraction Layer (DAL) for the SDWIS translation service.

Routes hand canonical Postgres-style SQL to ``Database.execute``; the DAL
translates it for the selected backend, runs it and returns rows with
lowercase column keys.
"""

from dal.backend_mode import BackendMode, BackendPhase, BackendState, select_backend_mode
from dal.canonical import CanonicalQuery, CanonicalQueryError, TranslatedQuery
from dal.database import Database
from dal.rows import lowercase_row_keys
from dal.translation import translate_for_mode

__all__ = [
    "BackendMode",
    "BackendPhase",
    "BackendState",
    "CanonicalQuery",
    "CanonicalQueryError",
    "Database",
    "TranslatedQuery",
    "lowercase_row_keys",
    "select_backend_mode",
    "translate_for_mode",
]
