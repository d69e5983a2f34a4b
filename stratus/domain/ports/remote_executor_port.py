"""
Remote Executor Port

Architectural Intent:
- Port interface for executing commands on the provisioned VM
- Defines contract for reachability probes, batch execution and uploads
- Implemented by adapters (Fabric/SSH)
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence
from stratus.domain.entities.command_batch import RemoteOperation
from stratus.domain.value_objects.configure_result import ConfigureResult
from stratus.domain.value_objects.identity import Identity
from stratus.domain.value_objects.node import Node


class RemoteExecutorPort(ABC):
    """
    Port interface for executing commands on remote infrastructure.
    """

    @abstractmethod
    async def probe(
        self, node: Node, identity: Identity, command: str, timeout: int
    ) -> bool:
        """
        Opens a connection and runs a check command.
        Returns True only if the connection succeeded and the command exited 0.
        """
        pass

    @abstractmethod
    async def run_operations(
        self,
        node: Node,
        identity: Identity,
        operations: Sequence[RemoteOperation],
    ) -> ConfigureResult:
        """
        Runs operations in order over one session, stopping at the first failure.
        """
        pass

    @abstractmethod
    async def upload_tree(
        self, node: Node, identity: Identity, local_dir: Path, remote_dir: str
    ) -> int:
        """
        Copies a local directory tree to remote_dir. Returns the file count.
        """
        pass
