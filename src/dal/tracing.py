import functools
import hashlib
import logging
from typing import Awaitable, Optional

from common.config.env import get_env_str, is_env_set

logger = logging.getLogger(__name__)

_TRUTHY = {"true", "1", "yes", "on"}
_FALSEY = {"false", "0", "no", "off", ""}


@functools.lru_cache(maxsize=None)
def _parse_trace_flag(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value not in _FALSEY:
        logger.warning("Ignoring invalid DAL_TRACE_QUERIES=%r; query tracing is off", raw)
    return False


def trace_enabled() -> bool:
    """Return True when DAL query tracing is enabled or an OTLP exporter is configured.

    An explicit ``DAL_TRACE_QUERIES`` wins; an unrecognized value disables
    tracing rather than failing the query it would have wrapped.
    """
    explicit = get_env_str("DAL_TRACE_QUERIES")
    if explicit is not None:
        return _parse_trace_flag(explicit)
    return is_env_set("OTEL_EXPORTER_OTLP_ENDPOINT")


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_query_operation(
    name: str,
    provider: str,
    sql: Optional[str],
    operation: Awaitable,
    bind_count: Optional[int] = None,
):
    """Wrap a translated backend query in an OTEL span when tracing is on.

    The span carries a hash of the dialect SQL, never the statement itself or
    its bind values. Errors propagate unchanged after the span is marked.
    """
    if not trace_enabled():
        return await operation

    from opentelemetry import trace

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("db.provider", provider)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        if bind_count is not None:
            span.set_attribute("db.bind_count", bind_count)
        try:
            result = await operation
        except Exception:
            span.set_attribute("db.status", "error")
            raise
        span.set_attribute("db.status", "ok")
        if isinstance(result, list):
            span.set_attribute("db.row_count", len(result))
        return result
