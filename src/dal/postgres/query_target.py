from typing import Any, Dict, List, Optional

import asyncpg

from dal.canonical import TranslatedQuery
from dal.postgres.config import PostgresConfig


class PostgresQueryTarget:
    """Postgres replica backend; canonical SQL runs unmodified through asyncpg."""

    provider = "postgresql"

    def __init__(self, config: PostgresConfig) -> None:
        self._config = config
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def description(self) -> str:
        c = self._config
        return f"{c.user}@{c.host}:{c.port}/{c.database}"

    async def connect(self) -> None:
        """Create the long-lived connection pool."""
        c = self._config
        self._pool = await asyncpg.create_pool(
            host=c.host,
            port=c.port,
            database=c.database,
            user=c.user,
            password=c.password or None,
            min_size=c.min_pool_size,
            max_size=c.max_pool_size,
            server_settings={"application_name": "sdwis_translation_api"},
        )

    async def probe(self) -> None:
        """Run a trivial query; raises when the server is unreachable."""
        await self._require_pool().fetchval("SELECT 1")

    async def fetch(self, query: TranslatedQuery) -> List[Dict[str, Any]]:
        rows = await self._require_pool().fetch(query.text, *query.binds)
        return [dict(row) for row in rows]

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Postgres pool not initialized. Call PostgresQueryTarget.connect().")
        return self._pool
