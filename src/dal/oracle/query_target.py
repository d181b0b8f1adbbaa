import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

import oracledb

from dal.canonical import TranslatedQuery
from dal.oracle.config import OracleConfig

logger = logging.getLogger(__name__)


def _create_pool(config: OracleConfig) -> oracledb.ConnectionPool:
    if config.thick_mode:
        # Oracle 11g needs Instant Client; repeated calls with the same args are a no-op.
        oracledb.init_oracle_client(lib_dir=config.client_lib_dir)
    oracledb.defaults.fetch_lobs = False
    return oracledb.create_pool(
        user=config.user,
        password=config.password,
        dsn=config.connect_string,
        min=config.pool_min,
        max=config.pool_max,
        increment=config.pool_increment,
    )


def _fetch(
    pool: oracledb.ConnectionPool, sql: str, binds: Mapping[str, Any]
) -> List[Dict[str, Any]]:
    # The connection goes back to the pool on every exit path, errors included.
    with pool.acquire() as connection:
        with connection.cursor() as cursor:
            cursor.execute(sql, dict(binds))
            if cursor.description is None:
                return []
            columns = [column[0] for column in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]


class OracleQueryTarget:
    """Oracle backend over a bounded python-oracledb session pool.

    The driver runs in Thick mode for 11g servers, which has no asyncio API,
    so pool work runs on worker threads.
    """

    provider = "oracle"

    def __init__(self, config: OracleConfig) -> None:
        self._config = config
        self._pool: Optional[oracledb.ConnectionPool] = None

    @property
    def description(self) -> str:
        return f"{self._config.user}@{self._config.connect_string or 'default'}"

    async def connect(self) -> None:
        self._pool = await asyncio.to_thread(_create_pool, self._config)

    async def fetch(self, query: TranslatedQuery) -> List[Dict[str, Any]]:
        if self._pool is None:
            raise RuntimeError("Oracle pool not initialized. Call OracleQueryTarget.connect().")
        return await asyncio.to_thread(_fetch, self._pool, query.text, query.binds)

    async def close(self) -> None:
        if self._pool is not None:
            pool, self._pool = self._pool, None
            await asyncio.to_thread(pool.close)
