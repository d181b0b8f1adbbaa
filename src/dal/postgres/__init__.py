"""PostgreSQL DAL implementation.

The canonical query dialect is Postgres, so this backend runs queries unmodified.
"""

from .config import PostgresConfig
from .query_target import PostgresQueryTarget

__all__ = ["PostgresConfig", "PostgresQueryTarget"]
