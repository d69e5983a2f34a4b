"""
Resource Descriptor Module

Architectural Intent:
- Describes one named external resource and the names it depends on
- A plan is an ordered list of descriptors; order is the creation order
- Plan validation enforces the dependency and priority invariants before any
  provider call is made

Domain Rules:
- Names are unique within a plan
- depends_on may only reference descriptors that appear earlier in the plan
- Security rules attached to one security group must not share a priority
"""

from __future__ import annotations
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from stratus.domain.errors import DependencyMissing
from stratus.domain.value_objects.resource_kind import ResourceKind
from stratus.domain.value_objects.security_rule import (
    SecurityRule,
    validate_unique_priorities,
)


@dataclass(frozen=True)
class ResourceDescriptor:
    """A resource to ensure.

    Attributes:
        kind: What sort of resource this is.
        name: Unique name within the deployment.
        depends_on: Names of descriptors that must be provisioned first.
        scope: Lookup coordinates (resource group, parent network, parent
               security group) needed to find the resource.
        params: Creation parameters passed to the provider.
    """

    kind: ResourceKind
    name: str
    depends_on: tuple[str, ...] = ()
    scope: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError(f"{self.kind.label} name cannot be empty")

    @property
    def rule(self) -> SecurityRule | None:
        rule = self.params.get("rule")
        return rule if isinstance(rule, SecurityRule) else None


def validate_plan(
    plan: Sequence[ResourceDescriptor], known: Iterable[str] = ()
) -> None:
    """Check ordering, uniqueness and rule priorities of a plan.

    Names in known (already provisioned) satisfy depends_on as well.

    Raises:
        ValueError: on a duplicate name or colliding rule priorities.
        DependencyMissing: when depends_on names an unknown or later descriptor.
    """
    provisioned = set(known)
    seen: set[str] = set()
    rules_by_group: dict[str, list[SecurityRule]] = {}

    for descriptor in plan:
        if descriptor.name in seen:
            raise ValueError(f"Duplicate resource name in plan: {descriptor.name}")
        for dep in descriptor.depends_on:
            if dep not in seen and dep not in provisioned:
                raise DependencyMissing(descriptor.name, dep)
        seen.add(descriptor.name)

        rule = descriptor.rule
        if descriptor.kind == ResourceKind.SECURITY_RULE and rule is not None:
            group = descriptor.scope.get("nsg_name", "")
            rules_by_group.setdefault(group, []).append(rule)

    for rules in rules_by_group.values():
        validate_unique_priorities(rules)
