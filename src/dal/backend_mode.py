"""Backend mode selection and the one-way demo fallback lifecycle."""

import asyncio
import logging
from enum import Enum
from typing import Optional

from common.config.env import get_env_str, is_env_set

logger = logging.getLogger(__name__)

_DEMO_TRUTHY = {"true", "1", "yes", "on"}


class BackendMode(str, Enum):
    """Which SQL dialect (if any) serves queries."""

    DEMO = "demo"
    POSTGRES = "postgresql"
    MSSQL = "mssql"
    ORACLE = "oracle"


class BackendPhase(str, Enum):
    """Lifecycle phase of the selected backend."""

    INITIALIZING = "initializing"
    READY = "ready"
    DEMO = "demo"


def select_backend_mode() -> BackendMode:
    """Pick the backend from the environment; the first match wins.

    DEMO_MODE truthy -> demo, MSSQL_SERVER set -> mssql,
    ORACLE_USER set -> oracle, otherwise postgresql.
    """
    demo_flag = (get_env_str("DEMO_MODE", "") or "").strip().lower()
    if demo_flag in _DEMO_TRUTHY:
        return BackendMode.DEMO
    if is_env_set("MSSQL_SERVER"):
        return BackendMode.MSSQL
    if is_env_set("ORACLE_USER"):
        return BackendMode.ORACLE
    return BackendMode.POSTGRES


class BackendState:
    """Readable backend mode that can only ever degrade to demo.

    ``initializing(mode) -> ready(mode)`` on a successful connection and
    ``initializing(mode) | ready(mode) -> demo`` on failure. Waiters on
    ``wait_settled`` are released once the first transition out of
    ``initializing`` has been recorded, so they never see a half-built pool.
    """

    def __init__(self, selected: BackendMode) -> None:
        self._selected = selected
        self._settled = asyncio.Event()
        self._demotion_reason: Optional[str] = None
        if selected is BackendMode.DEMO:
            self._phase = BackendPhase.DEMO
            self._settled.set()
        else:
            self._phase = BackendPhase.INITIALIZING

    @property
    def selected(self) -> BackendMode:
        return self._selected

    @property
    def phase(self) -> BackendPhase:
        return self._phase

    @property
    def mode(self) -> BackendMode:
        if self._phase is BackendPhase.DEMO:
            return BackendMode.DEMO
        return self._selected

    @property
    def is_settled(self) -> bool:
        return self._settled.is_set()

    @property
    def demotion_reason(self) -> Optional[str]:
        return self._demotion_reason

    def mark_ready(self) -> None:
        """Record a successful connection for the selected backend."""
        if self._phase is not BackendPhase.INITIALIZING:
            raise RuntimeError(
                f"Cannot mark backend ready from phase '{self._phase.value}'."
            )
        self._phase = BackendPhase.READY
        self._settled.set()
        logger.info("Backend %s ready", self._selected.value)

    def demote(self, reason: str) -> bool:
        """Fall back to demo mode. Returns False when already in demo."""
        if self._phase is BackendPhase.DEMO:
            self._settled.set()
            return False
        previous = self._phase
        self._phase = BackendPhase.DEMO
        self._demotion_reason = reason
        self._settled.set()
        logger.warning(
            "Falling back to demo mode (%s was %s): %s",
            self._selected.value,
            previous.value,
            reason,
        )
        return True

    async def wait_settled(self) -> BackendMode:
        """Block until the startup connection attempt has resolved."""
        await self._settled.wait()
        return self.mode
