"""
Deploy Content Use Case

Architectural Intent:
- Publishes a local static website tree to the provisioned VM
- Files are staged over SFTP first, then swapped into the web root by a
  CommandBatch so nginx never serves a half-uploaded tree for long
- Reuses the existing SSH identity; never generates a new one (the VM only
  trusts the key it was created with)
"""

from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable

from stratus.application.dtos.provisioning_dtos import (
    DeployContentRequest,
    DeployContentResponse,
)
from stratus.application.orchestration.readiness_poller import wait_until_ready
from stratus.application.orchestration.remote_configurator import RemoteConfigurator
from stratus.domain.errors import (
    PreflightError,
    ProviderUnavailable,
    ReadinessTimeout,
    RemoteExecFailure,
    StratusError,
)
from stratus.domain.ports.cloud_provider_port import CloudProviderPort
from stratus.domain.ports.key_store_port import KeyStorePort
from stratus.domain.ports.remote_executor_port import RemoteExecutorPort
from stratus.domain.services.web_server import publish_content_batch
from stratus.domain.value_objects.node import Node
from stratus.domain.value_objects.resource_kind import ResourceKind

if TYPE_CHECKING:
    from stratus.infrastructure.config import StratusConfig

logger = logging.getLogger(__name__)


class DeployContent:
    def __init__(
        self,
        config: StratusConfig,
        provider: CloudProviderPort,
        remote_executor: RemoteExecutorPort,
        key_store: KeyStorePort,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.provider = provider
        self.remote_executor = remote_executor
        self.key_store = key_store
        self.sleep = sleep

    def _check_local_dir(self, local_dir: Path) -> None:
        if not local_dir.is_dir():
            raise PreflightError(f"Website directory not found: {local_dir}")
        if not any(p.is_file() for p in local_dir.rglob("*")):
            raise PreflightError(f"Website directory is empty: {local_dir}")

    async def execute(self, request: DeployContentRequest) -> DeployContentResponse:
        local_dir = Path(request.local_dir)
        key_path = self.config.ssh.private_key_path
        try:
            self._check_local_dir(local_dir)
            if not key_path.exists():
                raise PreflightError(
                    f"SSH key not found at {key_path}. Run 'stratus provision' first."
                )
            identity, _ = await self.key_store.ensure_keypair(key_path)

            attributes = await self.provider.get_resource(
                ResourceKind.PUBLIC_ADDRESS,
                self.config.network.public_ip_name,
                {"resource_group": self.config.azure.resource_group},
            )
            public_ip = (attributes or {}).get("ipAddress")
            if not public_ip:
                raise ProviderUnavailable(
                    "Could not get public IP. Is the VM deployed?"
                )
            node = Node(
                host=public_ip,
                user=self.config.vm.admin_username,
                port=self.config.ssh.port,
            )

            async def ssh_probe() -> bool:
                return await self.remote_executor.probe(
                    node, identity, "true", self.config.ssh.connect_timeout
                )

            readiness = await wait_until_ready(
                f"SSH on {public_ip}",
                ssh_probe,
                interval=self.config.readiness.interval_seconds,
                max_attempts=self.config.readiness.max_attempts,
                sleep=self.sleep,
            )
            if not readiness.ready:
                raise ReadinessTimeout(
                    f"SSH on {public_ip}", readiness.attempts, fatal=True
                )

            web = self.config.web
            logger.info("Uploading website files from %s", local_dir)
            count = await self.remote_executor.upload_tree(
                node, identity, local_dir, web.staging_dir
            )
            result = await RemoteConfigurator(self.remote_executor).configure(
                node, identity, publish_content_batch(web.staging_dir, web.web_root)
            )
            if not result.ok:
                raise RemoteExecFailure(result)
        except StratusError as e:
            logger.error("Content deployment failed: %s", e)
            return DeployContentResponse(success=False, message=str(e))

        url = f"http://{public_ip}"
        return DeployContentResponse(
            success=True,
            message=f"Website deployed successfully ({count} file(s))",
            files_uploaded=count,
            url=url,
        )
