"""
OpenTelemetry Tracing for Stratus

Architectural Intent:
- One span per provisioning phase, one counter per ensured resource
- Exports via OTLP only when an endpoint is configured; otherwise the
  OpenTelemetry API's no-op tracer and meter are used

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional
from urllib.parse import urlparse
import logging

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "stratus"
    insecure: bool = False

    def __post_init__(self) -> None:
        if self.endpoint:
            parsed = urlparse(self.endpoint)
            is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")
            if parsed.scheme == "http" and not is_localhost and not self.insecure:
                raise ValueError(
                    f"Non-localhost HTTP endpoint '{self.endpoint}' requires "
                    "insecure=True or use https://. "
                    "Set insecure=True to explicitly allow plaintext export."
                )


class ProvisionTracer:
    """Spans and counters for provisioning runs."""

    def __init__(self, config: Optional[OTELConfig] = None) -> None:
        self.config = config or OTELConfig()
        self._tracer_provider: Optional[TracerProvider] = None
        self._meter_provider: Optional[MeterProvider] = None
        if self.config.endpoint:
            self._setup_exporters()
            tracer = self._tracer_provider.get_tracer(__name__)
            meter = self._meter_provider.get_meter(__name__)
        else:
            logger.debug("OTEL endpoint not configured, telemetry is a no-op")
            tracer = trace.get_tracer(__name__)
            meter = metrics.get_meter(__name__)
        self._tracer = tracer
        self._resources = meter.create_counter(
            "stratus.resources.ensured",
            description="Resources ensured, by kind and outcome",
        )

    @property
    def exporting(self) -> bool:
        return self._tracer_provider is not None

    def _setup_exporters(self) -> None:
        resource = Resource(attributes={SERVICE_NAME: self.config.service_name})
        self._tracer_provider = TracerProvider(resource=resource)
        self._tracer_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(
                    endpoint=self.config.endpoint, insecure=self.config.insecure
                )
            )
        )
        reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(
                endpoint=self.config.endpoint, insecure=self.config.insecure
            )
        )
        self._meter_provider = MeterProvider(
            resource=resource, metric_readers=[reader]
        )

    @contextmanager
    def phase(self, name: str, **attributes: str) -> Iterator[trace.Span]:
        with self._tracer.start_as_current_span(
            f"stratus.{name}",
            attributes=attributes,
            record_exception=True,
            set_status_on_exception=False,
        ) as span:
            try:
                yield span
            except Exception as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

    def record_resource(self, kind: str, created: bool) -> None:
        self._resources.add(
            1, {"kind": kind, "outcome": "created" if created else "skipped"}
        )

    def shutdown(self) -> None:
        if self._tracer_provider is not None:
            self._tracer_provider.shutdown()
        if self._meter_provider is not None:
            self._meter_provider.shutdown()
