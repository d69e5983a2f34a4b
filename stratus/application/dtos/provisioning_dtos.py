"""
Provisioning DTOs

Architectural Intent:
- Data Transfer Objects for the use case boundaries
- Input validation at the application boundary
- Responses carry the deployment and context so callers can report exactly
  what was created, skipped or left behind after a failure
"""

from dataclasses import dataclass, field
from typing import Optional

from stratus.domain.entities.deployment import Deployment
from stratus.domain.entities.deployment_context import DeploymentContext


@dataclass(frozen=True)
class ProvisionRequest:
    dry_run: bool = False
    require_ready: bool = False
    configure: bool = True


@dataclass(frozen=True)
class ProvisionResponse:
    success: bool
    message: str
    deployment: Deployment
    context: DeploymentContext
    public_ip: Optional[str] = None
    url: Optional[str] = None
    http_status: Optional[int] = None
    warnings: tuple[str, ...] = ()

    @property
    def fqdn(self) -> Optional[str]:
        return self.context.fqdn

    @property
    def created(self) -> list[str]:
        return list(self.context.created)

    @property
    def skipped(self) -> list[str]:
        return list(self.context.skipped)


@dataclass(frozen=True)
class TeardownRequest:
    resource_group: str
    wait: bool = False
    wait_timeout_seconds: int = 1800

    def __post_init__(self) -> None:
        if not self.resource_group:
            raise ValueError("resource_group cannot be empty")
        if self.wait_timeout_seconds < 0:
            raise ValueError("wait_timeout_seconds cannot be negative")


@dataclass(frozen=True)
class TeardownResponse:
    success: bool
    message: str
    deleted: bool = False
    cancelled: bool = False
    resources: tuple[dict, ...] = ()


@dataclass(frozen=True)
class DeployContentRequest:
    local_dir: str

    def __post_init__(self) -> None:
        if not self.local_dir:
            raise ValueError("local_dir cannot be empty")


@dataclass(frozen=True)
class DeployContentResponse:
    success: bool
    message: str
    files_uploaded: int = 0
    url: Optional[str] = None


@dataclass(frozen=True)
class StatusResponse:
    resource_group: str
    exists: bool
    resources: list[dict] = field(default_factory=list)
    public_ip: Optional[str] = None
    fqdn: Optional[str] = None
    power_state: Optional[str] = None

    @property
    def url(self) -> Optional[str]:
        return f"http://{self.public_ip}" if self.public_ip else None
