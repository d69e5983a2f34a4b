"""
Composition Root

Architectural Intent:
- Dependency injection composition root for the Stratus application
- Single place where all adapters and use cases are wired together
- No adapter instantiation should occur outside this module

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Factory function creates and wires all dependencies from one StratusConfig
- Telemetry exports only when the config names an OTLP endpoint
"""

from dataclasses import dataclass
from stratus.infrastructure.adapters.azure_cli_adapter import AzureCliAdapter
from stratus.infrastructure.adapters.fabric_adapter import FabricAdapter
from stratus.infrastructure.adapters.paramiko_key_store import ParamikoKeyStore
from stratus.infrastructure.adapters.urllib_http_probe import UrllibHttpProbe
from stratus.infrastructure.config import StratusConfig
from stratus.infrastructure.event_bus import EventBus
from stratus.infrastructure.telemetry import OTELConfig, ProvisionTracer
from stratus.application.use_cases.provision_environment import ProvisionEnvironment
from stratus.application.use_cases.teardown_environment import TeardownEnvironment
from stratus.application.use_cases.deploy_content import DeployContent
from stratus.application.use_cases.show_status import ShowStatus


@dataclass
class StratusContainer:
    """DI container holding all wired dependencies."""

    config: StratusConfig
    azure_adapter: AzureCliAdapter
    fabric_adapter: FabricAdapter
    key_store: ParamikoKeyStore
    http_probe: UrllibHttpProbe
    event_bus: EventBus
    tracer: ProvisionTracer
    provision: ProvisionEnvironment
    teardown: TeardownEnvironment
    deploy_content: DeployContent
    show_status: ShowStatus


def create_container(config: StratusConfig) -> StratusContainer:
    """Create and wire all dependencies."""
    azure_adapter = AzureCliAdapter()
    fabric_adapter = FabricAdapter(connect_timeout=config.ssh.connect_timeout)
    key_store = ParamikoKeyStore()
    http_probe = UrllibHttpProbe()
    event_bus = EventBus()
    tracer = ProvisionTracer(
        OTELConfig(
            endpoint=config.telemetry.endpoint,
            service_name=config.telemetry.service_name,
            insecure=config.telemetry.insecure,
        )
    )

    provision = ProvisionEnvironment(
        config,
        azure_adapter,
        fabric_adapter,
        key_store,
        http_probe,
        event_bus=event_bus,
        telemetry=tracer,
    )
    teardown = TeardownEnvironment(azure_adapter)
    deploy_content = DeployContent(config, azure_adapter, fabric_adapter, key_store)
    show_status = ShowStatus(config, azure_adapter)

    return StratusContainer(
        config=config,
        azure_adapter=azure_adapter,
        fabric_adapter=fabric_adapter,
        key_store=key_store,
        http_probe=http_probe,
        event_bus=event_bus,
        tracer=tracer,
        provision=provision,
        teardown=teardown,
        deploy_content=deploy_content,
        show_status=show_status,
    )
