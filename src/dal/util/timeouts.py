import asyncio
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class QueryTimeoutError(TimeoutError):
    """A backend query exceeded the configured per-query timeout."""

    def __init__(self, provider: str, timeout_seconds: float) -> None:
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{provider} query timed out after {float(timeout_seconds):g}s.")


async def run_with_timeout(
    operation: Awaitable[T],
    timeout_seconds: Optional[float],
    *,
    provider: str = "unknown",
) -> T:
    """Await ``operation``, bounded by ``timeout_seconds`` when it is positive."""
    if not timeout_seconds or timeout_seconds <= 0:
        return await operation
    try:
        return await asyncio.wait_for(operation, timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise QueryTimeoutError(provider=provider, timeout_seconds=timeout_seconds) from exc
