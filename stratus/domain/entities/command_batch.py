"""
Command Batch Entity Module

Architectural Intent:
- Remote configuration is described as data: an ordered batch of operations
  rather than an opaque inline script
- Each operation renders to a single shell command and may carry a
  postcondition command that must succeed once the operation has run
- Frozen dataclasses keep batches immutable once built

Domain Rules:
- Operations run in order; the first failure stops the batch
- Operation names are unique within a batch
- File writes carry their content; the executor stages it on the remote host
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import shlex


class OperationKind(Enum):
    INSTALL_PACKAGES = "install_packages"
    WRITE_FILE = "write_file"
    SET_PERMISSIONS = "set_permissions"
    SERVICE = "service"
    RUN = "run"


@dataclass(frozen=True)
class RemoteOperation:
    """A single idempotent step of a remote configuration batch.

    Attributes:
        name: Human-readable label for this step.
        kind: Which operation family this is.
        command: Shell command for non-file operations.
        destination: Target path for WRITE_FILE operations.
        content: File content for WRITE_FILE operations.
        mode: Octal file mode applied to written files.
        sudo: Whether the command runs with elevated privileges.
        postcondition: Optional check command run after the step.
    """

    name: str
    kind: OperationKind
    command: str = ""
    destination: str = ""
    content: str = ""
    mode: str = "644"
    sudo: bool = True
    postcondition: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Operation name cannot be empty")
        if self.kind == OperationKind.WRITE_FILE:
            if not self.destination:
                raise ValueError(f"{self.name}: write_file needs a destination")
        elif not self.command.strip():
            raise ValueError(f"{self.name}: command cannot be empty")

    def render(self, staged_path: str = "") -> str:
        """Return the shell command that performs this operation.

        WRITE_FILE operations install a file already staged at staged_path.
        """
        if self.kind == OperationKind.WRITE_FILE:
            if not staged_path:
                raise ValueError(f"{self.name}: staged_path required for write_file")
            cmd = (
                f"install -m {shlex.quote(self.mode)} "
                f"{shlex.quote(staged_path)} {shlex.quote(self.destination)}"
            )
        else:
            cmd = self.command
        return f"sudo sh -c {shlex.quote(cmd)}" if self.sudo else cmd


@dataclass(frozen=True)
class CommandBatch:
    name: str
    operations: tuple[RemoteOperation, ...]

    def __post_init__(self) -> None:
        if not self.operations:
            raise ValueError(f"Command batch '{self.name}' has no operations")
        names = [op.name for op in self.operations]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(
                f"Duplicate operation names in '{self.name}': {sorted(duplicates)}"
            )

    def __len__(self) -> int:
        return len(self.operations)


def install_packages(*packages: str) -> RemoteOperation:
    quoted = " ".join(shlex.quote(p) for p in packages)
    return RemoteOperation(
        name=f"install {' '.join(packages)}",
        kind=OperationKind.INSTALL_PACKAGES,
        command=f"DEBIAN_FRONTEND=noninteractive apt-get install -y {quoted}",
    )


def write_file(
    name: str, destination: str, content: str, mode: str = "644"
) -> RemoteOperation:
    return RemoteOperation(
        name=name,
        kind=OperationKind.WRITE_FILE,
        destination=destination,
        content=content,
        mode=mode,
    )


def set_permissions(path: str, owner: str, mode: str = "755") -> RemoteOperation:
    p = shlex.quote(path)
    return RemoteOperation(
        name=f"permissions {path}",
        kind=OperationKind.SET_PERMISSIONS,
        command=f"chown -R {shlex.quote(owner)} {p} && chmod -R {shlex.quote(mode)} {p}",
    )


def service(action: str, unit: str, postcondition: Optional[str] = None) -> RemoteOperation:
    return RemoteOperation(
        name=f"{action} {unit}",
        kind=OperationKind.SERVICE,
        command=f"systemctl {shlex.quote(action)} {shlex.quote(unit)}",
        postcondition=postcondition,
    )


def run(name: str, command: str, sudo: bool = True) -> RemoteOperation:
    return RemoteOperation(name=name, kind=OperationKind.RUN, command=command, sudo=sudo)
