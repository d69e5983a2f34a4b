"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from stratus.domain.ports.cloud_provider_port import CloudProviderPort
from stratus.domain.ports.remote_executor_port import RemoteExecutorPort
from stratus.domain.ports.key_store_port import KeyStorePort
from stratus.domain.ports.http_probe_port import HttpProbePort
from stratus.domain.ports.event_bus_port import EventBusPort
from stratus.domain.ports.telemetry_port import TelemetryPort

__all__ = [
    "CloudProviderPort",
    "RemoteExecutorPort",
    "KeyStorePort",
    "HttpProbePort",
    "EventBusPort",
    "TelemetryPort",
]
