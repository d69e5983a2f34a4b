"""
Application Orchestration Package

Architectural Intent:
- Contains the provisioning building blocks shared by the use cases
- Existence checks, dependency-ordered creation, readiness polling and
  remote configuration
"""

from stratus.application.orchestration.existence_checker import (
    ResourceExistenceChecker,
)
from stratus.application.orchestration.resource_creator import (
    DependencyOrderedCreator,
)
from stratus.application.orchestration.readiness_poller import (
    ReadinessOutcome,
    ReadinessResult,
    wait_until_ready,
)
from stratus.application.orchestration.remote_configurator import RemoteConfigurator

__all__ = [
    "ResourceExistenceChecker",
    "DependencyOrderedCreator",
    "ReadinessOutcome",
    "ReadinessResult",
    "wait_until_ready",
    "RemoteConfigurator",
]
