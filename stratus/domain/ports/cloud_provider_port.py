"""
Cloud Provider Port

Architectural Intent:
- Port interface for the cloud control plane (Azure Resource Manager)
- Abstracts existence lookups, creation, group deletion and preflight checks
- Implemented by the Azure CLI adapter; tests use an in-memory fake

Design Decisions:
- Uses Protocol for structural typing (no inheritance needed)
- get_resource returns None for "not found" and raises ProviderUnavailable
  for every other failure, so absence is never confused with an outage
"""

from typing import Protocol, runtime_checkable, Optional, Any
from collections.abc import Mapping

from stratus.domain.value_objects.resource_kind import ResourceKind


@runtime_checkable
class CloudProviderPort(Protocol):
    """Port for cloud provider infrastructure operations."""

    async def check_dependencies(self) -> str:
        """Verify the provider tooling is installed. Returns its version."""
        ...

    async def ensure_logged_in(self, allow_login: bool = True) -> dict[str, Any]:
        """Return the active account, logging in first when permitted."""
        ...

    async def select_subscription(self, subscription_id: str) -> None:
        """Make the given subscription the active one."""
        ...

    async def get_resource(
        self, kind: ResourceKind, name: str, scope: Mapping[str, str]
    ) -> Optional[dict[str, Any]]:
        """Return the resource attributes, or None when it does not exist."""
        ...

    async def create_resource(
        self,
        kind: ResourceKind,
        name: str,
        scope: Mapping[str, str],
        params: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Create the resource and return the provider's response."""
        ...

    async def delete_resource_group(self, name: str) -> None:
        """Start deleting a resource group and everything in it (no wait)."""
        ...

    async def list_resources(self, group: str) -> list[dict[str, Any]]:
        """List the resources contained in a resource group."""
        ...
