"""
Domain Events Module

Architectural Intent:
- Base classes for domain events following DDD principles
- Events are immutable and capture significant provisioning occurrences
- Events are collected in the Deployment aggregate and dispatched via the
  event bus as the run progresses
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any


@dataclass(frozen=True)
class DomainEvent:
    occurred_at: str = field(
        default_factory=lambda: datetime.now(UTC).isoformat(), init=False, repr=False
    )
    aggregate_id: str = ""

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at,
            "event_type": self.event_type,
        }


@dataclass(frozen=True)
class StageReachedEvent(DomainEvent):
    stage: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "stage": self.stage}


@dataclass(frozen=True)
class DeploymentAbortedEvent(DomainEvent):
    stage: str = ""
    error_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "stage": self.stage,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class ResourceEnsuredEvent(DomainEvent):
    name: str = ""
    kind: str = ""
    created: bool = False
    planned: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "name": self.name,
            "kind": self.kind,
            "created": self.created,
            "planned": self.planned,
        }
