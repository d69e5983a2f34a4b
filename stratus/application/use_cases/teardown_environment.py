"""
Teardown Environment Use Case

Architectural Intent:
- Removes everything by deleting the top-level resource group
- Absent group is a successful no-op (delete is never called)
- Destructive step guarded by an explicit confirmation token
- Optional bounded wait until the group is gone
"""

import asyncio
import logging
from typing import Awaitable, Callable

from stratus.application.dtos.provisioning_dtos import (
    TeardownRequest,
    TeardownResponse,
)
from stratus.application.orchestration.existence_checker import (
    ResourceExistenceChecker,
)
from stratus.application.orchestration.readiness_poller import wait_until_ready
from stratus.domain.errors import StratusError
from stratus.domain.ports.cloud_provider_port import CloudProviderPort
from stratus.domain.value_objects.resource_kind import ResourceKind

logger = logging.getLogger(__name__)

CONFIRMATION_TOKEN = "DELETE"
DELETE_POLL_INTERVAL = 10


class TeardownEnvironment:
    def __init__(
        self,
        provider: CloudProviderPort,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.checker = ResourceExistenceChecker(provider)
        self.sleep = sleep

    async def execute(
        self,
        request: TeardownRequest,
        confirm: Callable[[list[dict]], Awaitable[str]],
    ) -> TeardownResponse:
        """Delete the resource group once `await confirm(resources)` returns DELETE."""
        group = request.resource_group
        try:
            if not await self.checker.exists(ResourceKind.GROUP, group):
                logger.info("Resource group '%s' does not exist", group)
                return TeardownResponse(
                    success=True,
                    message=f"Resource group '{group}' does not exist. Nothing to clean up.",
                )

            resources = await self.provider.list_resources(group)
            logger.info("%d resource(s) in '%s' will be deleted", len(resources), group)
            if await confirm(resources) != CONFIRMATION_TOKEN:
                logger.info("Teardown of '%s' cancelled", group)
                return TeardownResponse(
                    success=True,
                    message="Cleanup cancelled",
                    cancelled=True,
                    resources=tuple(resources),
                )

            await self.provider.delete_resource_group(group)
            logger.info("Deletion of '%s' initiated", group)

            if not request.wait:
                return TeardownResponse(
                    success=True,
                    message=f"Deletion of '{group}' initiated (running in background)",
                    deleted=True,
                    resources=tuple(resources),
                )

            async def group_gone() -> bool:
                return not await self.checker.exists(ResourceKind.GROUP, group)

            attempts = max(1, request.wait_timeout_seconds // DELETE_POLL_INTERVAL)
            result = await wait_until_ready(
                f"deletion of {group}",
                group_gone,
                interval=DELETE_POLL_INTERVAL,
                max_attempts=attempts,
                sleep=self.sleep,
            )
            if result.ready:
                message = f"Resource group '{group}' deleted"
            else:
                message = f"Deletion of '{group}' still in progress after waiting"
                logger.warning(message)
            return TeardownResponse(
                success=True,
                message=message,
                deleted=True,
                resources=tuple(resources),
            )
        except StratusError as e:
            logger.error("Teardown failed: %s", e)
            return TeardownResponse(success=False, message=str(e))
