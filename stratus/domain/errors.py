"""
Domain Errors

Architectural Intent:
- Single exception hierarchy for every failure a provisioning run can surface
- Fatal errors abort the run; ResourceConflict and ReadinessTimeout are
  reported as warnings unless the caller opts into strictness
- Errors carry enough detail (command, stderr, step) for diagnostics
"""

from __future__ import annotations
from typing import Any, Optional


class StratusError(Exception):
    """Base class for all provisioning errors."""

    fatal = True


class ConfigurationError(StratusError):
    """Configuration failed validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))


class PreflightError(StratusError):
    """A local prerequisite (CLI, login, key material) is missing."""


class ProviderUnavailable(StratusError):
    """The cloud provider could not answer (network, auth, CLI failure).

    Transient: safe to retry the whole run manually.
    """

    def __init__(
        self, message: str, command: Optional[list[str]] = None, stderr: str = ""
    ) -> None:
        self.command = command or []
        self.stderr = stderr
        super().__init__(message)


class ResourceConflict(StratusError):
    """The resource already exists. Treated as a skip, never as a failure."""

    fatal = False

    def __init__(self, kind: Any, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{getattr(kind, 'label', kind)} '{name}' already exists")


class ResourceCreationFailed(StratusError):
    """The provider rejected a create call (quota, invalid parameters, ...)."""

    def __init__(self, kind: Any, name: str, stderr: str = "") -> None:
        self.kind = kind
        self.name = name
        self.stderr = stderr
        super().__init__(
            f"Failed to create {getattr(kind, 'label', kind)} '{name}': {stderr.strip()}"
        )


class DependencyMissing(StratusError):
    """A prerequisite resource was not found when a dependent needed it."""

    def __init__(self, name: str, missing: str) -> None:
        self.name = name
        self.missing = missing
        super().__init__(
            f"Resource '{name}' depends on '{missing}', which has not been provisioned"
        )


class RemoteExecFailure(StratusError):
    """A remote configuration command returned non-zero."""

    def __init__(self, result: Any) -> None:
        self.result = result
        super().__init__(f"Remote configuration failed: {result.detail}")


class ReadinessTimeout(StratusError):
    """The target never became reachable within the polling bound."""

    fatal = False

    def __init__(self, target: str, attempts: int, fatal: bool = False) -> None:
        self.target = target
        self.attempts = attempts
        self.fatal = fatal
        super().__init__(
            f"{target} not ready after {attempts} attempt(s)"
        )
