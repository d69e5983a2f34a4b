"""
Deployment Context

Mapping from resource name to the attributes discovered or assigned by the
provider. Built incrementally while resources are ensured, read by later
steps, never rolled back on partial failure.
"""

from __future__ import annotations
from typing import Any, Optional

from stratus.domain.value_objects.resource_kind import ResourceKind


class DeploymentContext:
    def __init__(self) -> None:
        self._attributes: dict[str, dict[str, Any]] = {}
        self._kinds: dict[str, ResourceKind] = {}
        self.created: list[str] = []
        self.skipped: list[str] = []
        self.planned: list[str] = []

    def record(
        self,
        name: str,
        kind: ResourceKind,
        attributes: dict[str, Any],
        created: bool,
    ) -> None:
        self._attributes[name] = dict(attributes)
        self._kinds[name] = kind
        (self.created if created else self.skipped).append(name)

    def plan_creation(self, name: str, kind: ResourceKind) -> None:
        """Mark a resource that a dry run would have created."""
        self._attributes[name] = {}
        self._kinds[name] = kind
        self.planned.append(name)

    def __contains__(self, name: str) -> bool:
        return name in self._attributes

    def get(self, name: str) -> dict[str, Any]:
        return dict(self._attributes.get(name, {}))

    def names(self) -> list[str]:
        return list(self._attributes)

    def names_of(self, kind: ResourceKind) -> list[str]:
        return [n for n, k in self._kinds.items() if k == kind]

    @property
    def public_ip(self) -> Optional[str]:
        for name in self.names_of(ResourceKind.PUBLIC_ADDRESS):
            ip = self._attributes[name].get("ipAddress")
            if ip:
                return ip
        return None

    @property
    def fqdn(self) -> Optional[str]:
        for name in self.names_of(ResourceKind.PUBLIC_ADDRESS):
            fqdn = self._attributes[name].get("fqdn")
            if fqdn:
                return fqdn
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "resources": {
                name: {"kind": self._kinds[name].value, **attrs}
                for name, attrs in self._attributes.items()
            },
            "created": list(self.created),
            "skipped": list(self.skipped),
            "planned": list(self.planned),
        }

    def __repr__(self) -> str:
        return (
            f"DeploymentContext(resources={list(self._attributes)}, "
            f"created={self.created}, skipped={self.skipped})"
        )
