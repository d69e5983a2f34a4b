"""
Resource Existence Checker

Architectural Intent:
- Read-only question "does this named resource exist in this scope?"
- Never mutates provider state
- Absence is a normal answer (False / None); provider outages propagate as
  ProviderUnavailable so they are never mistaken for absence
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from stratus.domain.ports.cloud_provider_port import CloudProviderPort
from stratus.domain.value_objects.resource_kind import ResourceKind

logger = logging.getLogger(__name__)


class ResourceExistenceChecker:
    def __init__(self, provider: CloudProviderPort) -> None:
        self.provider = provider

    async def lookup(
        self,
        kind: ResourceKind,
        name: str,
        scope: Optional[Mapping[str, str]] = None,
    ) -> Optional[dict[str, Any]]:
        """Return the resource's attributes, or None when it does not exist."""
        return await self.provider.get_resource(kind, name, scope or {})

    async def exists(
        self,
        kind: ResourceKind,
        name: str,
        scope: Optional[Mapping[str, str]] = None,
    ) -> bool:
        found = await self.lookup(kind, name, scope) is not None
        logger.debug("%s '%s' exists: %s", kind.label, name, found)
        return found
