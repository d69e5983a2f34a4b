"""
Fabric Adapter

Architectural Intent:
- Infrastructure adapter implementing RemoteExecutorPort via Fabric/SSH
- One Connection per call; a command batch runs over a single session
- Blocking Fabric calls run in the default executor

Security:
- Authenticates only with the configured private key (no agent, no key
  discovery) so the deployment identity is explicit
- SSH connections use connect_timeout
- A command exceeding command_timeout ends the batch as a partial failure
- File contents are transferred over SFTP and installed with `install -m`,
  never interpolated into a shell command
"""

import asyncio
import io
import logging
import posixpath
import shlex
from pathlib import Path
from typing import Sequence

from fabric import Connection
from invoke.exceptions import CommandTimedOut
from paramiko.ssh_exception import SSHException

from stratus.domain.entities.command_batch import OperationKind, RemoteOperation
from stratus.domain.errors import RemoteExecFailure
from stratus.domain.ports.remote_executor_port import RemoteExecutorPort
from stratus.domain.value_objects.configure_result import ConfigureResult
from stratus.domain.value_objects.identity import Identity
from stratus.domain.value_objects.node import Node

logger = logging.getLogger(__name__)


class FabricAdapter(RemoteExecutorPort):
    """Adapter implementing RemoteExecutorPort via Fabric/SSH."""

    def __init__(self, connect_timeout: int = 5, command_timeout: int = 600) -> None:
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout

    def _get_connection(self, node: Node, identity: Identity) -> Connection:
        return Connection(
            host=node.host,
            user=node.user,
            port=node.port,
            connect_timeout=self.connect_timeout,
            connect_kwargs={
                "key_filename": str(identity.private_key_path),
                "allow_agent": False,
                "look_for_keys": False,
            },
        )

    async def probe(
        self, node: Node, identity: Identity, command: str, timeout: int
    ) -> bool:
        def _probe() -> bool:
            with self._get_connection(node, identity) as conn:
                result = conn.run(command, hide=True, warn=True, timeout=timeout)
                return result.ok

        try:
            return await asyncio.get_event_loop().run_in_executor(None, _probe)
        except (SSHException, OSError, EOFError, CommandTimedOut) as e:
            logger.debug("Probe of %s failed: %s", node, e)
            return False

    def _apply(self, conn: Connection, index: int, op: RemoteOperation):
        """Run one operation. Returns (exit code, stderr) on failure, else None."""
        staged = ""
        if op.kind == OperationKind.WRITE_FILE:
            staged = f"/tmp/.stratus-{index}-{posixpath.basename(op.destination)}"
            conn.put(io.StringIO(op.content), remote=staged)

        result = conn.run(
            op.render(staged), hide=True, warn=True, timeout=self.command_timeout
        )
        if staged:
            conn.run(f"rm -f {shlex.quote(staged)}", hide=True, warn=True)
        if result.failed:
            return result.exited, result.stderr or result.stdout

        if op.postcondition:
            check = conn.run(op.postcondition, hide=True, warn=True)
            if check.failed:
                return check.exited, (
                    f"postcondition '{op.postcondition}' failed: "
                    f"{check.stderr or check.stdout}"
                )
        return None

    async def run_operations(
        self,
        node: Node,
        identity: Identity,
        operations: Sequence[RemoteOperation],
    ) -> ConfigureResult:
        def _run() -> ConfigureResult:
            completed: list[str] = []
            current = operations[0].name if operations else "connect"
            try:
                with self._get_connection(node, identity) as conn:
                    for index, op in enumerate(operations):
                        current = op.name
                        logger.info("[%s] %s", node.host, op.name)
                        failure = self._apply(conn, index, op)
                        if failure is not None:
                            exit_code, stderr = failure
                            return ConfigureResult.partial_failure(
                                tuple(completed), op.name, exit_code, stderr
                            )
                        completed.append(op.name)
            except (SSHException, OSError, EOFError, CommandTimedOut) as e:
                logger.error("[%s] %s aborted: %s", node.host, current, e)
                return ConfigureResult.partial_failure(
                    tuple(completed), current, None, str(e)
                )
            return ConfigureResult.success(tuple(completed))

        return await asyncio.get_event_loop().run_in_executor(None, _run)

    async def upload_tree(
        self, node: Node, identity: Identity, local_dir: Path, remote_dir: str
    ) -> int:
        local_dir = Path(local_dir)
        files = sorted(p for p in local_dir.rglob("*") if p.is_file())
        remote_root = remote_dir.rstrip("/")

        def _upload() -> int:
            with self._get_connection(node, identity) as conn:
                q = shlex.quote(remote_root)
                conn.run(f"rm -rf {q} && mkdir -p {q}", hide=True)
                made: set[str] = {remote_root}
                for path in files:
                    relative = path.relative_to(local_dir).as_posix()
                    target = posixpath.join(remote_root, relative)
                    parent = posixpath.dirname(target)
                    if parent not in made:
                        conn.run(f"mkdir -p {shlex.quote(parent)}", hide=True)
                        made.add(parent)
                    logger.debug("Uploading %s -> %s", path, target)
                    conn.put(str(path), remote=target)
            return len(files)

        try:
            count = await asyncio.get_event_loop().run_in_executor(None, _upload)
        except Exception as e:
            raise RemoteExecFailure(
                ConfigureResult.partial_failure((), "upload content", None, str(e))
            ) from e
        logger.info("Uploaded %d file(s) to %s:%s", count, node.host, remote_root)
        return count
