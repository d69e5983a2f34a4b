"""
Deployment Module

Architectural Intent:
- Deployment aggregate tracks one provisioning run through its stages
- Lifecycle managed through state transitions enforced by domain methods
- All state changes produce new instances to ensure auditability
- Domain events published for cross-context communication (CLI trace,
  telemetry)

Lifecycle:
    INIT -> PREFLIGHT_CHECKED -> INFRASTRUCTURE_CREATED -> INSTANCE_RUNNING
         -> CONFIGURED -> VERIFIED -> DONE
Any non-terminal stage may move to ABORTED. There is no retry across stages.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

from stratus.domain.events.event_base import (
    DomainEvent,
    DeploymentAbortedEvent,
    StageReachedEvent,
)


class DeploymentStage(Enum):
    INIT = 0
    PREFLIGHT_CHECKED = 1
    INFRASTRUCTURE_CREATED = 2
    INSTANCE_RUNNING = 3
    CONFIGURED = 4
    VERIFIED = 5
    DONE = 6
    ABORTED = -1

    @property
    def is_terminal(self) -> bool:
        return self in (DeploymentStage.DONE, DeploymentStage.ABORTED)


_ORDER = [s for s in DeploymentStage if s != DeploymentStage.ABORTED]


class Deployment:
    __slots__ = (
        "_run_id",
        "_stage",
        "_error_message",
        "_failed_stage",
        "_domain_events",
    )

    def __init__(
        self,
        run_id: str,
        stage: DeploymentStage = DeploymentStage.INIT,
        error_message: Optional[str] = None,
        failed_stage: Optional[DeploymentStage] = None,
        domain_events: tuple[DomainEvent, ...] = (),
    ):
        if not run_id:
            raise ValueError("Deployment run_id cannot be empty")
        self._run_id = run_id
        self._stage = stage
        self._error_message = error_message
        self._failed_stage = failed_stage
        self._domain_events = domain_events

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def stage(self) -> DeploymentStage:
        return self._stage

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def failed_stage(self) -> Optional[DeploymentStage]:
        """The last stage reached before the run aborted."""
        return self._failed_stage

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        return self._domain_events

    @property
    def succeeded(self) -> bool:
        return self._stage == DeploymentStage.DONE

    def advance(self, to: DeploymentStage) -> "Deployment":
        if self._stage.is_terminal:
            raise ValueError(f"Deployment is already {self._stage.name}")
        if to == DeploymentStage.ABORTED:
            raise ValueError("Use abort() to stop a deployment")
        expected = _ORDER[_ORDER.index(self._stage) + 1]
        if to != expected:
            raise ValueError(
                f"Cannot move from {self._stage.name} to {to.name}; "
                f"next stage is {expected.name}"
            )
        return Deployment(
            run_id=self._run_id,
            stage=to,
            error_message=self._error_message,
            failed_stage=self._failed_stage,
            domain_events=self._domain_events
            + (StageReachedEvent(aggregate_id=self._run_id, stage=to.name),),
        )

    def abort(self, message: str) -> "Deployment":
        if self._stage.is_terminal:
            raise ValueError(f"Deployment is already {self._stage.name}")
        return Deployment(
            run_id=self._run_id,
            stage=DeploymentStage.ABORTED,
            error_message=message,
            failed_stage=self._stage,
            domain_events=self._domain_events
            + (
                DeploymentAbortedEvent(
                    aggregate_id=self._run_id,
                    stage=self._stage.name,
                    error_message=message,
                ),
            ),
        )

    def __repr__(self) -> str:
        return (
            f"Deployment(run_id={self._run_id}, stage={self._stage}, "
            f"error_message={self._error_message})"
        )
