import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from common.config.env import get_env_float
from common.interfaces import QueryTarget
from dal.backend_mode import BackendMode, BackendState, select_backend_mode
from dal.rows import lowercase_row_keys
from dal.tracing import trace_query_operation
from dal.translation import translate_for_mode
from dal.util.read_only import enforce_read_only_sql
from dal.util.timeouts import run_with_timeout

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT_SECONDS = 30.0

QueryTargetFactory = Callable[[BackendMode], QueryTarget]


def build_query_target(mode: BackendMode) -> QueryTarget:
    """Create the unconnected query target for ``mode`` from environment config."""
    if mode is BackendMode.POSTGRES:
        from dal.postgres.config import PostgresConfig
        from dal.postgres.query_target import PostgresQueryTarget

        return PostgresQueryTarget(PostgresConfig.from_env())
    if mode is BackendMode.MSSQL:
        from dal.mssql.config import MssqlConfig
        from dal.mssql.query_target import MssqlQueryTarget

        return MssqlQueryTarget(MssqlConfig.from_env())
    if mode is BackendMode.ORACLE:
        from dal.oracle.config import OracleConfig
        from dal.oracle.query_target import OracleQueryTarget

        return OracleQueryTarget(OracleConfig.from_env())
    raise ValueError(f"Backend mode '{mode.value}' has no query target.")


class Database:
    """Single entry point for canonical queries against the selected backend.

    ``start`` kicks off pool creation in the background so the HTTP server can
    accept connections immediately. Queries issued while the pool is still
    being created wait for that attempt to resolve. Any connection failure
    demotes the process to demo mode for good; demo queries return no rows.
    """

    def __init__(
        self,
        selected: BackendMode,
        target_factory: QueryTargetFactory = build_query_target,
        query_timeout_seconds: Optional[float] = DEFAULT_QUERY_TIMEOUT_SECONDS,
    ) -> None:
        self._state = BackendState(selected)
        self._target_factory = target_factory
        self._query_timeout_seconds = query_timeout_seconds
        self._target: Optional[QueryTarget] = None
        self._init_task: Optional[asyncio.Task] = None
        self._probe_task: Optional[asyncio.Task] = None

    @classmethod
    def from_env(cls, target_factory: QueryTargetFactory = build_query_target) -> "Database":
        selected = select_backend_mode()
        timeout = get_env_float("QUERY_TIMEOUT_SECONDS", DEFAULT_QUERY_TIMEOUT_SECONDS)
        logger.info("Selected %s backend", selected.value)
        return cls(selected, target_factory=target_factory, query_timeout_seconds=timeout)

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def mode(self) -> BackendMode:
        """Current datasource; the selected backend until a failure demotes it."""
        return self._state.mode

    def start(self) -> None:
        """Begin connecting in the background. Repeated calls are no-ops."""
        if self._init_task is not None or self._state.is_settled:
            return
        self._init_task = asyncio.create_task(
            self._initialize(), name=f"dal-init-{self._state.selected.value}"
        )

    async def wait_until_settled(self) -> BackendMode:
        self.start()
        return await self._state.wait_settled()

    async def _initialize(self) -> None:
        selected = self._state.selected
        try:
            target = self._target_factory(selected)
            await target.connect()
        except Exception as exc:
            logger.error("Failed to create %s pool: %s", selected.value, exc)
            self._state.demote(f"{selected.value} pool creation failed: {exc}")
            return

        self._target = target
        self._state.mark_ready()
        logger.info("Connected to %s (%s)", selected.value, target.description)

        probe = getattr(target, "probe", None)
        if probe is not None:
            # A pool can come up against a server that still rejects queries.
            self._probe_task = asyncio.create_task(
                self._probe_liveness(target), name=f"dal-probe-{selected.value}"
            )

    async def _probe_liveness(self, target: QueryTarget) -> None:
        try:
            await target.probe()
        except Exception as exc:
            logger.error("Liveness probe against %s failed: %s", target.provider, exc)
            if self._state.demote(f"{target.provider} liveness probe failed: {exc}"):
                self._target = None
                await self._close_target(target)

    async def execute(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        """Run a canonical query and return rows with lowercase column keys.

        Args:
            sql: Canonical Postgres-style SQL (``$n`` binds, ``ILIKE``,
                trailing ``LIMIT $i OFFSET $j``).
            params: Ordered bind values for ``$1..$n``.

        Returns:
            Result rows, or an empty list while in demo mode.
        """
        mode = await self.wait_until_settled()
        target = self._target
        if mode is BackendMode.DEMO or target is None:
            return []

        enforce_read_only_sql(sql, provider=mode.value)
        query = translate_for_mode(mode, sql, list(params or []))
        logger.debug("Executing on %s: %s", mode.value, query.text)

        traced = trace_query_operation(
            "dal.query.execute",
            provider=mode.value,
            sql=query.text,
            operation=target.fetch(query),
            bind_count=len(query.binds),
        )
        rows = await run_with_timeout(
            traced,
            self._query_timeout_seconds,
            provider=mode.value,
        )
        return lowercase_row_keys(rows)

    async def close(self) -> None:
        """Cancel outstanding startup work and release the pool."""
        for task in (self._probe_task, self._init_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._probe_task = None
        self._init_task = None
        # Queries parked on the settle event must not outlive a cancelled connect.
        if not self._state.is_settled:
            self._state.demote("shutdown before backend connected")

        target, self._target = self._target, None
        if target is not None:
            await self._close_target(target)

    @staticmethod
    async def _close_target(target: QueryTarget) -> None:
        try:
            await target.close()
        except Exception as exc:
            logger.warning("Error closing %s pool: %s", target.provider, exc)
