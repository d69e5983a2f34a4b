"""
Remote Configurator

Architectural Intent:
- Applies a CommandBatch to the VM through the RemoteExecutorPort
- Operations run in order over one session; the first failing operation
  (or failing postcondition) stops the batch
- No compensation: completed steps stay applied and are reported
"""

import logging

from stratus.domain.entities.command_batch import CommandBatch
from stratus.domain.ports.remote_executor_port import RemoteExecutorPort
from stratus.domain.value_objects.configure_result import ConfigureResult
from stratus.domain.value_objects.identity import Identity
from stratus.domain.value_objects.node import Node

logger = logging.getLogger(__name__)


class RemoteConfigurator:
    def __init__(self, executor: RemoteExecutorPort) -> None:
        self.executor = executor

    async def configure(
        self, node: Node, identity: Identity, batch: CommandBatch
    ) -> ConfigureResult:
        logger.info("Applying '%s' (%d steps) to %s", batch.name, len(batch), node)
        result = await self.executor.run_operations(node, identity, batch.operations)
        if result.ok:
            logger.info("'%s' applied: %s", batch.name, result.detail)
        else:
            logger.error("'%s' failed: %s", batch.name, result.detail)
        return result
