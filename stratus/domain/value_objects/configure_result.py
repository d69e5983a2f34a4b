"""
Configure Result Value Object

Outcome of running a command batch on a remote host: either every
operation succeeded, or the batch stopped at the first failing operation.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ConfigureStatus(Enum):
    SUCCESS = auto()
    PARTIAL_FAILURE = auto()


@dataclass(frozen=True)
class ConfigureResult:
    status: ConfigureStatus
    completed: tuple[str, ...] = ()
    failed_step: Optional[str] = None
    exit_code: Optional[int] = None
    stderr: str = ""

    @classmethod
    def success(cls, completed: tuple[str, ...]) -> "ConfigureResult":
        return cls(status=ConfigureStatus.SUCCESS, completed=completed)

    @classmethod
    def partial_failure(
        cls,
        completed: tuple[str, ...],
        failed_step: str,
        exit_code: Optional[int],
        stderr: str = "",
    ) -> "ConfigureResult":
        return cls(
            status=ConfigureStatus.PARTIAL_FAILURE,
            completed=completed,
            failed_step=failed_step,
            exit_code=exit_code,
            stderr=stderr,
        )

    @property
    def ok(self) -> bool:
        return self.status == ConfigureStatus.SUCCESS

    @property
    def detail(self) -> str:
        if self.ok:
            return f"{len(self.completed)} step(s) completed"
        return (
            f"step '{self.failed_step}' failed with exit code {self.exit_code} "
            f"after {len(self.completed)} completed step(s): {self.stderr.strip()}"
        )
