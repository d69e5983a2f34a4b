"""
Dependency-Ordered Creator

Architectural Intent:
- Ensures each resource of a plan exists, creating it only when absent
- Strictly sequential: a resource is only touched once every resource it
  depends on is recorded in the DeploymentContext
- Fail fast: provider failures propagate, nothing is retried or rolled back

Idempotence:
- An existing resource is recorded as skipped and never re-created
- A create call reporting "already exists" (a concurrent run won the race)
  is treated the same way as a skip
"""

from __future__ import annotations
import logging
from collections.abc import Sequence
from typing import Optional

from stratus.application.orchestration.existence_checker import (
    ResourceExistenceChecker,
)
from stratus.domain.entities.deployment_context import DeploymentContext
from stratus.domain.entities.resource_descriptor import (
    ResourceDescriptor,
    validate_plan,
)
from stratus.domain.errors import (
    ConfigurationError,
    DependencyMissing,
    StratusError,
)
from stratus.domain.events.event_base import ResourceEnsuredEvent
from stratus.domain.ports.cloud_provider_port import CloudProviderPort
from stratus.domain.ports.event_bus_port import EventBusPort
from stratus.domain.ports.telemetry_port import TelemetryPort

logger = logging.getLogger(__name__)


class DependencyOrderedCreator:
    def __init__(
        self,
        provider: CloudProviderPort,
        event_bus: Optional[EventBusPort] = None,
        telemetry: Optional[TelemetryPort] = None,
        run_id: str = "",
    ) -> None:
        self.provider = provider
        self.checker = ResourceExistenceChecker(provider)
        self.event_bus = event_bus
        self.telemetry = telemetry
        self.run_id = run_id

    def _log_fields(self, descriptor: ResourceDescriptor) -> dict[str, str]:
        return {
            "run_id": self.run_id,
            "resource_kind": descriptor.kind.value,
            "resource": descriptor.name,
        }

    async def _announce(
        self, descriptor: ResourceDescriptor, created: bool, planned: bool = False
    ) -> None:
        if self.telemetry is not None and not planned:
            self.telemetry.record_resource(descriptor.kind.value, created)
        if self.event_bus is not None:
            await self.event_bus.publish([
                ResourceEnsuredEvent(
                    aggregate_id=self.run_id,
                    name=descriptor.name,
                    kind=descriptor.kind.label,
                    created=created,
                    planned=planned,
                )
            ])

    async def ensure(
        self,
        descriptor: ResourceDescriptor,
        context: DeploymentContext,
        dry_run: bool = False,
    ) -> tuple[DeploymentContext, bool]:
        """Make sure one resource exists.

        Returns the (same, updated) context and whether a create call was made.
        """
        for dep in descriptor.depends_on:
            if dep not in context:
                raise DependencyMissing(descriptor.name, dep)

        kind, name = descriptor.kind, descriptor.name
        fields = self._log_fields(descriptor)

        if dry_run and any(dep in context.planned for dep in descriptor.depends_on):
            # Parent only exists on paper; a lookup cannot find the child.
            logger.info("[dry-run] Would create %s: %s", kind.label, name, extra=fields)
            context.plan_creation(name, kind)
            await self._announce(descriptor, created=False, planned=True)
            return context, False

        attributes = await self.checker.lookup(kind, name, descriptor.scope)
        if attributes is not None:
            logger.info("%s '%s' already exists, skipping", kind.label, name, extra=fields)
            context.record(name, kind, attributes, created=False)
            await self._announce(descriptor, created=False)
            return context, False

        if dry_run:
            logger.info("[dry-run] Would create %s: %s", kind.label, name, extra=fields)
            context.plan_creation(name, kind)
            await self._announce(descriptor, created=False, planned=True)
            return context, False

        try:
            response = await self.provider.create_resource(
                kind, name, descriptor.scope, descriptor.params
            )
        except StratusError as e:
            if e.fatal:
                raise
            logger.info("%s, skipping", e, extra=fields)
            attributes = await self.checker.lookup(kind, name, descriptor.scope)
            context.record(name, kind, attributes or {}, created=False)
            await self._announce(descriptor, created=False)
            return context, False

        attributes = await self.checker.lookup(kind, name, descriptor.scope)
        if attributes is None:
            logger.warning(
                "%s '%s' created but not yet visible; using create response",
                kind.label,
                name,
                extra=fields,
            )
            attributes = response
        logger.info("%s '%s' created", kind.label, name, extra=fields)
        context.record(name, kind, attributes, created=True)
        await self._announce(descriptor, created=True)
        return context, True

    async def ensure_all(
        self,
        plan: Sequence[ResourceDescriptor],
        context: Optional[DeploymentContext] = None,
        dry_run: bool = False,
    ) -> DeploymentContext:
        context = context if context is not None else DeploymentContext()
        try:
            validate_plan(plan, known=context.names())
        except ValueError as e:
            raise ConfigurationError([str(e)]) from e
        for descriptor in plan:
            context, _ = await self.ensure(descriptor, context, dry_run=dry_run)
        return context
