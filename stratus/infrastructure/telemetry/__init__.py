"""
Stratus Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry integration for observability of provisioning runs
- Traces per phase and counters per ensured resource
"""

from stratus.infrastructure.telemetry.tracing import (
    OTELConfig,
    ProvisionTracer,
)

__all__ = [
    "OTELConfig",
    "ProvisionTracer",
]
