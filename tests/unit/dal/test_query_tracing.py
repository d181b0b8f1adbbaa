import hashlib
from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from dal.tracing import trace_enabled, trace_query_operation


def test_trace_disabled_by_default() -> None:
    assert trace_enabled() is False


def test_trace_enabled_defaults_true_when_otel_exporter_configured(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """DAL tracing should default to enabled when OTEL exporter is configured."""
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://otel-collector:4317")

    assert trace_enabled() is True


def test_trace_enabled_respects_explicit_false_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Explicit DAL_TRACE_QUERIES=false should disable tracing despite exporter config."""
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://otel-collector:4317")
    monkeypatch.setenv("DAL_TRACE_QUERIES", "false")

    assert trace_enabled() is False


def _provider():
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider, exporter


@pytest.mark.asyncio
async def test_trace_query_span(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure query tracing emits a span with hashed SQL and no raw statement."""
    monkeypatch.setenv("DAL_TRACE_QUERIES", "true")
    provider, exporter = _provider()

    async def _operation():
        return [{"id": 1}]

    with patch("opentelemetry.trace.get_tracer") as mock_get_tracer:
        mock_get_tracer.side_effect = lambda name: provider.get_tracer(name)
        result = await trace_query_operation(
            "dal.query.execute",
            provider="oracle",
            sql="select 2",
            operation=_operation(),
            bind_count=2,
        )

    assert result == [{"id": 1}]
    spans = exporter.get_finished_spans()
    assert len(spans) == 1
    span = spans[0]
    assert span.name == "dal.query.execute"
    assert span.attributes["db.provider"] == "oracle"
    assert (
        span.attributes["db.statement_hash"]
        == hashlib.sha256("select 2".encode("utf-8")).hexdigest()
    )
    assert span.attributes["db.status"] == "ok"
    assert span.attributes["db.bind_count"] == 2
    assert span.attributes["db.row_count"] == 1
    assert "db.statement" not in span.attributes


@pytest.mark.asyncio
async def test_trace_query_span_marks_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DAL_TRACE_QUERIES", "true")
    provider, exporter = _provider()

    async def _operation():
        raise RuntimeError("boom")

    with patch("opentelemetry.trace.get_tracer") as mock_get_tracer:
        mock_get_tracer.side_effect = lambda name: provider.get_tracer(name)
        with pytest.raises(RuntimeError, match="boom"):
            await trace_query_operation(
                "dal.query.execute", provider="mssql", sql="select 3", operation=_operation()
            )

    span = exporter.get_finished_spans()[0]
    assert span.attributes["db.status"] == "error"


@pytest.mark.asyncio
async def test_trace_disabled_awaits_operation_directly() -> None:
    async def _operation():
        return "rows"

    with patch("opentelemetry.trace.get_tracer") as mock_get_tracer:
        result = await trace_query_operation(
            "dal.query.execute", provider="postgresql", sql="select 1", operation=_operation()
        )

    assert result == "rows"
    mock_get_tracer.assert_not_called()


def test_trace_enabled_treats_invalid_flag_as_off(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """A typo in DAL_TRACE_QUERIES must not break every query."""
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://otel-collector:4317")
    monkeypatch.setenv("DAL_TRACE_QUERIES", "maybe")

    with caplog.at_level("WARNING", logger="dal.tracing"):
        assert trace_enabled() is False
        assert trace_enabled() is False

    assert sum("DAL_TRACE_QUERIES" in record.getMessage() for record in caplog.records) <= 1


@pytest.mark.asyncio
async def test_invalid_flag_still_runs_operation(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DAL_TRACE_QUERIES", "maybe")

    async def _operation():
        return ["row"]

    result = await trace_query_operation(
        "dal.query.execute", provider="mssql", sql="select 1", operation=_operation()
    )
    assert result == ["row"]
