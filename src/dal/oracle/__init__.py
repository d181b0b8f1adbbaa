"""Oracle DAL implementation."""

from .config import OracleConfig
from .param_translation import translate_postgres_query_to_oracle

__all__ = ["OracleConfig", "translate_postgres_query_to_oracle"]
