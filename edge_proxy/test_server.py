from types import SimpleNamespace
from unittest.mock import Mock

from opentelemetry.sdk.trace.export import SpanExportResult

from edge_proxy.server import FilteringSpanExporter, parse_otlp_headers


def _span(name, event_type=None):
    attributes = {"asgi.event.type": event_type} if event_type else None
    return SimpleNamespace(name=name, attributes=attributes)


def test_exporter_drops_streamed_body_chunk_spans():
    inner = Mock()
    inner.export.return_value = SpanExportResult.SUCCESS
    exporter = FilteringSpanExporter(inner)

    keep_request = _span("GET /api/{path}")
    keep_start = _span("send start", "http.response.start")
    spans = [
        keep_request,
        _span("receive", "http.request"),
        keep_start,
        _span("send body", "http.response.body"),
        _span("send body", "http.response.body"),
    ]

    assert exporter.export(spans) == SpanExportResult.SUCCESS
    inner.export.assert_called_once_with([keep_request, keep_start])


def test_exporter_skips_inner_export_when_everything_is_filtered():
    inner = Mock()
    exporter = FilteringSpanExporter(inner)

    result = exporter.export([_span("send body", "http.response.body")])

    assert result == SpanExportResult.SUCCESS
    inner.export.assert_not_called()


def test_exporter_custom_event_set_and_delegation():
    inner = Mock()
    inner.export.return_value = SpanExportResult.FAILURE
    exporter = FilteringSpanExporter(inner, dropped_events={"http.response.start"})
    body = _span("send body", "http.response.body")

    assert exporter.export([body, _span("start", "http.response.start")]) == (
        SpanExportResult.FAILURE
    )
    inner.export.assert_called_once_with([body])

    exporter.force_flush(5)
    inner.force_flush.assert_called_once_with(5)
    exporter.shutdown()
    inner.shutdown.assert_called_once()


def test_parse_otlp_headers():
    assert parse_otlp_headers("") is None
    assert parse_otlp_headers("garbage") is None
    assert parse_otlp_headers("authorization=Bearer a=b, x-tenant = t1") == {
        "authorization": "Bearer a=b",
        "x-tenant": "t1",
    }
