"""Unit tests for the per-query timeout helper."""

import asyncio

import pytest

from dal.util.timeouts import QueryTimeoutError, run_with_timeout


@pytest.mark.asyncio
async def test_run_with_timeout_returns_result():
    """Verify run_with_timeout returns the awaitable result."""
    result = await run_with_timeout(asyncio.sleep(0, result="ok"), 1, provider="mssql")
    assert result == "ok"


@pytest.mark.asyncio
async def test_run_with_timeout_raises_query_timeout():
    """Verify a slow query raises QueryTimeoutError naming the provider."""
    with pytest.raises(QueryTimeoutError) as exc_info:
        await run_with_timeout(asyncio.sleep(0.05), 0.001, provider="oracle")

    assert exc_info.value.provider == "oracle"
    assert exc_info.value.timeout_seconds == 0.001
    assert isinstance(exc_info.value, TimeoutError)
    assert "oracle query timed out" in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize("timeout", [None, 0])
async def test_run_with_timeout_disabled(timeout):
    """A missing or zero timeout awaits without a bound."""
    result = await run_with_timeout(asyncio.sleep(0.01, result=3), timeout, provider="postgresql")
    assert result == 3
