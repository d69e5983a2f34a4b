"""
Provision Environment Use Case

Architectural Intent:
- Drives one provisioning run through its five phases:
  1. preflight (CLI present, logged in, subscription, SSH keypair)
  2. network infrastructure (group through network interface)
  3. virtual machine
  4. SSH readiness and remote NGINX configuration
  5. HTTP verification
- Tracks progress on the Deployment aggregate and publishes its events
- Any StratusError aborts the run; the partially built context is returned
  for diagnosis, never rolled back

Severity:
- Readiness timeout is a warning unless require_ready is set
- A non-200 HTTP answer is a warning (the site may still be warming up)
"""

from __future__ import annotations
import asyncio
import contextlib
import logging
import uuid
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from stratus.application.dtos.provisioning_dtos import (
    ProvisionRequest,
    ProvisionResponse,
)
from stratus.application.orchestration.readiness_poller import wait_until_ready
from stratus.application.orchestration.remote_configurator import RemoteConfigurator
from stratus.application.orchestration.resource_creator import (
    DependencyOrderedCreator,
)
from stratus.application.orchestration.resource_plan import (
    build_infrastructure_plan,
    build_instance_plan,
)
from stratus.domain.entities.deployment import Deployment, DeploymentStage
from stratus.domain.entities.deployment_context import DeploymentContext
from stratus.domain.errors import (
    ProviderUnavailable,
    ReadinessTimeout,
    RemoteExecFailure,
    StratusError,
)
from stratus.domain.ports.cloud_provider_port import CloudProviderPort
from stratus.domain.ports.event_bus_port import EventBusPort
from stratus.domain.ports.http_probe_port import HttpProbePort
from stratus.domain.ports.key_store_port import KeyStorePort
from stratus.domain.ports.remote_executor_port import RemoteExecutorPort
from stratus.domain.ports.telemetry_port import TelemetryPort
from stratus.domain.services.web_server import nginx_setup_batch
from stratus.domain.value_objects.identity import Identity
from stratus.domain.value_objects.node import Node
from stratus.domain.value_objects.resource_kind import ResourceKind

if TYPE_CHECKING:
    from stratus.infrastructure.config import StratusConfig

logger = logging.getLogger(__name__)

SSH_PROBE_COMMAND = "true"


def _log_fields(run_id: str, phase: str, **fields: str) -> dict[str, str]:
    """Log record fields identifying the run and phase."""
    return {"run_id": run_id, "phase": phase, **fields}


class ProvisionEnvironment:
    def __init__(
        self,
        config: StratusConfig,
        provider: CloudProviderPort,
        remote_executor: RemoteExecutorPort,
        key_store: KeyStorePort,
        http_probe: HttpProbePort,
        event_bus: Optional[EventBusPort] = None,
        telemetry: Optional[TelemetryPort] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.provider = provider
        self.remote_executor = remote_executor
        self.key_store = key_store
        self.http_probe = http_probe
        self.event_bus = event_bus
        self.telemetry = telemetry
        self.sleep = sleep
        self._published = 0

    def _phase(self, name: str, **attributes: str):
        if self.telemetry is None:
            return contextlib.nullcontext()
        return self.telemetry.phase(
            name, resource_group=self.config.azure.resource_group, **attributes
        )

    async def _publish(self, deployment: Deployment) -> None:
        events = list(deployment.domain_events[self._published:])
        self._published = len(deployment.domain_events)
        if self.event_bus is not None and events:
            await self.event_bus.publish(events)

    async def _advance(self, deployment: Deployment, to: DeploymentStage) -> Deployment:
        deployment = deployment.advance(to)
        await self._publish(deployment)
        return deployment

    async def _preflight(self) -> Identity:
        azure = self.config.azure
        version = await self.provider.check_dependencies()
        logger.info("Azure CLI found (version %s)", version)

        account = await self.provider.ensure_logged_in(allow_login=azure.allow_login)
        logger.info("Logged into Azure as %s", account.get("user", {}).get("name", "?"))
        if azure.subscription_id:
            await self.provider.select_subscription(azure.subscription_id)
            logger.info("Using subscription %s", azure.subscription_id)

        identity, generated = await self.key_store.ensure_keypair(
            self.config.ssh.private_key_path
        )
        if generated:
            logger.info("Generated SSH key pair at %s", identity.private_key_path)
        return identity

    async def _resolve_public_ip(self, context: DeploymentContext) -> str:
        if context.public_ip:
            return context.public_ip
        name = self.config.network.public_ip_name
        attributes = await self.provider.get_resource(
            ResourceKind.PUBLIC_ADDRESS,
            name,
            {"resource_group": self.config.azure.resource_group},
        )
        ip = (attributes or {}).get("ipAddress")
        if not ip:
            raise ProviderUnavailable(f"Public IP '{name}' has no address allocated")
        return ip

    async def _configure(
        self, node: Node, identity: Identity, require_ready: bool, warnings: list[str]
    ) -> None:
        readiness = self.config.readiness

        async def ssh_probe() -> bool:
            return await self.remote_executor.probe(
                node, identity, SSH_PROBE_COMMAND, self.config.ssh.connect_timeout
            )

        result = await wait_until_ready(
            f"SSH on {node.host}",
            ssh_probe,
            interval=readiness.interval_seconds,
            max_attempts=readiness.max_attempts,
            sleep=self.sleep,
        )
        if not result.ready:
            timeout = ReadinessTimeout(
                f"SSH on {node.host}", result.attempts, fatal=require_ready
            )
            if timeout.fatal:
                raise timeout
            logger.warning("%s; attempting configuration anyway", timeout)
            warnings.append(str(timeout))

        web = self.config.web
        batch = nginx_setup_batch(web.web_root, server_name=web.custom_domain or "_")
        configured = await RemoteConfigurator(self.remote_executor).configure(
            node, identity, batch
        )
        if not configured.ok:
            raise RemoteExecFailure(configured)

    async def execute(self, request: Optional[ProvisionRequest] = None) -> ProvisionResponse:
        request = request or ProvisionRequest()
        run_id = uuid.uuid4().hex[:12]
        deployment = Deployment(run_id)
        context = DeploymentContext()
        warnings: list[str] = []
        self._published = 0
        creator = DependencyOrderedCreator(
            self.provider, self.event_bus, self.telemetry, run_id=run_id
        )
        public_ip: Optional[str] = None

        try:
            logger.info("Phase 1: Pre-deployment checks", extra=_log_fields(run_id, "preflight"))
            with self._phase("preflight"):
                identity = await self._preflight()
            deployment = await self._advance(deployment, DeploymentStage.PREFLIGHT_CHECKED)

            logger.info(
                "Phase 2: Creating Azure infrastructure",
                extra=_log_fields(run_id, "infrastructure"),
            )
            with self._phase("infrastructure"):
                context = await creator.ensure_all(
                    build_infrastructure_plan(self.config), context, request.dry_run
                )
            deployment = await self._advance(
                deployment, DeploymentStage.INFRASTRUCTURE_CREATED
            )

            logger.info("Phase 3: Deploying Virtual Machine", extra=_log_fields(run_id, "instance"))
            with self._phase("instance"):
                context = await creator.ensure_all(
                    build_instance_plan(self.config, identity), context, request.dry_run
                )
            deployment = await self._advance(deployment, DeploymentStage.INSTANCE_RUNNING)

            if request.dry_run:
                return ProvisionResponse(
                    success=True,
                    message=(
                        f"Dry run: {len(context.planned)} resource(s) would be created, "
                        f"{len(context.skipped)} already exist"
                    ),
                    deployment=deployment,
                    context=context,
                    public_ip=context.public_ip,
                    warnings=tuple(warnings),
                )

            public_ip = await self._resolve_public_ip(context)
            if not request.configure:
                return ProvisionResponse(
                    success=True,
                    message="Infrastructure ready; remote configuration skipped",
                    deployment=deployment,
                    context=context,
                    public_ip=public_ip,
                    url=f"http://{public_ip}",
                    warnings=tuple(warnings),
                )

            logger.info(
                "Phase 4: Configuring the web server",
                extra=_log_fields(run_id, "configure", host=public_ip),
            )
            node = Node(
                host=public_ip,
                user=self.config.vm.admin_username,
                port=self.config.ssh.port,
            )
            with self._phase("configure", host=public_ip):
                await self._configure(node, identity, request.require_ready, warnings)
            deployment = await self._advance(deployment, DeploymentStage.CONFIGURED)

            logger.info(
                "Phase 5: Testing deployment",
                extra=_log_fields(run_id, "verify", host=public_ip),
            )
            url = f"http://{public_ip}"
            with self._phase("verify", url=url):
                if self.config.web.verify_delay > 0:
                    await self.sleep(self.config.web.verify_delay)
                status = await self.http_probe.status(url, self.config.web.verify_timeout)
            if status == 200:
                logger.info("Website is accessible! HTTP Status: %d", status)
            else:
                message = f"Website returned HTTP Status: {status} (may still be initializing)"
                logger.warning(message)
                warnings.append(message)
            deployment = await self._advance(deployment, DeploymentStage.VERIFIED)
            deployment = await self._advance(deployment, DeploymentStage.DONE)

            return ProvisionResponse(
                success=True,
                message="Deployment completed successfully",
                deployment=deployment,
                context=context,
                public_ip=public_ip,
                url=url,
                http_status=status,
                warnings=tuple(warnings),
            )

        except StratusError as e:
            logger.error(
                "Deployment failed at %s: %s",
                deployment.stage.name,
                e,
                extra=_log_fields(run_id, deployment.stage.name.lower()),
            )
            deployment = deployment.abort(str(e))
            await self._publish(deployment)
            return ProvisionResponse(
                success=False,
                message=str(e),
                deployment=deployment,
                context=context,
                public_ip=public_ip or context.public_ip,
                warnings=tuple(warnings),
            )
