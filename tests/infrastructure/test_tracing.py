"""Tests for ProvisionTracer."""

import pytest
from unittest.mock import patch, MagicMock
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from stratus.infrastructure.telemetry import OTELConfig, ProvisionTracer

MODULE = "stratus.infrastructure.telemetry.tracing"


class TestOTELConfig:
    def test_default_empty_endpoint(self):
        assert OTELConfig().endpoint == ""

    def test_localhost_http_allowed(self):
        config = OTELConfig(endpoint="http://localhost:4317")
        assert config.endpoint == "http://localhost:4317"

    def test_remote_https_allowed(self):
        config = OTELConfig(endpoint="https://otel.example.com:4317")
        assert config.endpoint == "https://otel.example.com:4317"

    def test_remote_http_rejected(self):
        with pytest.raises(ValueError, match="insecure=True"):
            OTELConfig(endpoint="http://otel.example.com:4317")

    def test_remote_http_with_insecure(self):
        config = OTELConfig(endpoint="http://otel.example.com:4317", insecure=True)
        assert config.insecure is True


def _recording(tracer: ProvisionTracer) -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    tracer._tracer = provider.get_tracer("test")
    return exporter


class TestProvisionTracer:
    def test_noop_without_endpoint(self):
        tracer = ProvisionTracer()
        assert tracer.exporting is False
        with tracer.phase("preflight", resource_group="static-website-rg"):
            pass
        tracer.record_resource("group", True)
        tracer.shutdown()

    def test_phase_span_attributes(self):
        tracer = ProvisionTracer()
        exporter = _recording(tracer)

        with tracer.phase("configure", host="20.30.40.50"):
            pass

        (span,) = exporter.get_finished_spans()
        assert span.name == "stratus.configure"
        assert span.attributes["host"] == "20.30.40.50"

    def test_phase_error_marks_span_and_propagates(self):
        tracer = ProvisionTracer()
        exporter = _recording(tracer)

        with pytest.raises(RuntimeError):
            with tracer.phase("infrastructure"):
                raise RuntimeError("quota")

        (span,) = exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert span.status.description == "quota"
        assert [event.name for event in span.events] == ["exception"]

    def test_exporters_built_when_endpoint_set(self):
        with patch(f"{MODULE}.OTLPSpanExporter") as span_exporter, \
                patch(f"{MODULE}.OTLPMetricExporter") as metric_exporter, \
                patch(f"{MODULE}.BatchSpanProcessor", return_value=MagicMock()), \
                patch(f"{MODULE}.PeriodicExportingMetricReader", return_value=MagicMock()):
            tracer = ProvisionTracer(OTELConfig(endpoint="http://localhost:4317"))
            assert tracer.exporting is True
            span_exporter.assert_called_once_with(
                endpoint="http://localhost:4317", insecure=False
            )
            metric_exporter.assert_called_once()
            tracer.shutdown()
