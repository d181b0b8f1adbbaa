import datetime
import decimal
from typing import Any, Dict, List, Sequence, Tuple

import aioodbc

from dal.canonical import TranslatedQuery
from dal.mssql.config import MssqlConfig


def _sql_type(value: Any) -> str:
    if isinstance(value, bool):
        return "bit"
    if isinstance(value, int):
        return "bigint"
    if isinstance(value, float):
        return "float"
    if isinstance(value, decimal.Decimal):
        return "decimal(38, 10)"
    if isinstance(value, datetime.datetime):
        return "datetime2"
    if isinstance(value, datetime.date):
        return "date"
    if isinstance(value, (bytes, bytearray)):
        return "varbinary(max)"
    return "nvarchar(max)"


def bind_named_parameters(sql: str, params: Sequence[Any]) -> Tuple[str, List[Any]]:
    """Wrap ``@pN`` SQL in ``sp_executesql`` so ODBC ``?`` markers can feed named params.

    ODBC only understands positional markers, so the statement text and a
    declaration list inferred from the Python values are passed as the first
    two arguments and each ``@pN`` is assigned from the next marker.
    """
    if not params:
        return sql, []
    declarations = ", ".join(
        f"@p{position} {_sql_type(value)}" for position, value in enumerate(params, start=1)
    )
    assignments = ", ".join(f"@p{position} = ?" for position in range(1, len(params) + 1))
    return f"EXEC sp_executesql ?, ?, {assignments}", [sql, declarations, *params]


class MssqlQueryTarget:
    """SQL Server backend over a single long-lived aioodbc pool."""

    provider = "mssql"

    def __init__(self, config: MssqlConfig) -> None:
        self._config = config
        self._pool = None

    @property
    def description(self) -> str:
        c = self._config
        return f"{c.user or 'integrated'}@{c.server}:{c.port}/{c.database}"

    async def connect(self) -> None:
        """Create the connection pool; raises when the server cannot be reached."""
        c = self._config
        self._pool = await aioodbc.create_pool(
            dsn=c.odbc_dsn(),
            minsize=c.min_pool_size,
            maxsize=c.max_pool_size,
            autocommit=True,
        )

    async def fetch(self, query: TranslatedQuery) -> List[Dict[str, Any]]:
        if self._pool is None:
            raise RuntimeError("SQL Server pool not initialized. Call MssqlQueryTarget.connect().")
        statement, args = bind_named_parameters(query.text, query.binds)
        async with self._pool.acquire() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(statement, *args)
                if cursor.description is None:
                    return []
                columns = [column[0] for column in cursor.description]
                rows = await cursor.fetchall()
        return [dict(zip(columns, row)) for row in rows]

    async def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            await self._pool.wait_closed()
            self._pool = None
