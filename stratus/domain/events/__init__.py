"""
Domain Events Package

Architectural Intent:
- Domain events capture significant occurrences of a provisioning run
- Events are immutable and carry timestamps
- Published via EventBusPort for loose coupling
"""

from stratus.domain.events.event_base import (
    DomainEvent,
    StageReachedEvent,
    DeploymentAbortedEvent,
    ResourceEnsuredEvent,
)

__all__ = [
    "DomainEvent",
    "StageReachedEvent",
    "DeploymentAbortedEvent",
    "ResourceEnsuredEvent",
]
