"""SQL Server DAL implementation."""

from .config import MssqlConfig
from .param_translation import translate_postgres_query_to_mssql

__all__ = ["MssqlConfig", "translate_postgres_query_to_mssql"]
