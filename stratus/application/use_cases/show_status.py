"""
Show Status Use Case

Architectural Intent:
- Read-only summary of a deployment: does the group exist, what is in it,
  where is the website
- Never creates or changes anything
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

from stratus.application.dtos.provisioning_dtos import StatusResponse
from stratus.domain.ports.cloud_provider_port import CloudProviderPort
from stratus.domain.value_objects.resource_kind import ResourceKind

if TYPE_CHECKING:
    from stratus.infrastructure.config import StratusConfig

logger = logging.getLogger(__name__)


class ShowStatus:
    def __init__(self, config: StratusConfig, provider: CloudProviderPort):
        self.config = config
        self.provider = provider

    async def execute(self) -> StatusResponse:
        group = self.config.azure.resource_group
        scope = {"resource_group": group}

        if await self.provider.get_resource(ResourceKind.GROUP, group, {}) is None:
            return StatusResponse(resource_group=group, exists=False)

        resources = await self.provider.list_resources(group)
        address = await self.provider.get_resource(
            ResourceKind.PUBLIC_ADDRESS, self.config.network.public_ip_name, scope
        ) or {}
        vm = await self.provider.get_resource(
            ResourceKind.COMPUTE_INSTANCE, self.config.vm.name, scope
        ) or {}
        logger.debug("Status of %s: %d resource(s)", group, len(resources))
        return StatusResponse(
            resource_group=group,
            exists=True,
            resources=resources,
            public_ip=address.get("ipAddress"),
            fqdn=address.get("fqdn"),
            power_state=vm.get("powerState") or None,
        )
