"""
Security Rule Value Object

Architectural Intent:
- Immutable description of one network security group rule
- Lower priority number is evaluated first; priorities are unique per group
- Priority bounds follow Azure NSG limits (100-4096)
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace

MIN_PRIORITY = 100
MAX_PRIORITY = 4096

_DIRECTIONS = ("Inbound", "Outbound")
_ACCESS = ("Allow", "Deny")
_PROTOCOLS = ("Tcp", "Udp", "Icmp", "*")


@dataclass(frozen=True)
class SecurityRule:
    name: str
    priority: int
    port: int
    protocol: str = "Tcp"
    direction: str = "Inbound"
    access: str = "Allow"
    source: str = "*"
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Security rule name cannot be empty")
        if not (MIN_PRIORITY <= self.priority <= MAX_PRIORITY):
            raise ValueError(
                f"Priority must be {MIN_PRIORITY}-{MAX_PRIORITY}, got {self.priority}"
            )
        if not (1 <= self.port <= 65535):
            raise ValueError(f"Port must be 1-65535, got {self.port}")
        if self.direction not in _DIRECTIONS:
            raise ValueError(f"Invalid direction: {self.direction!r}")
        if self.access not in _ACCESS:
            raise ValueError(f"Invalid access: {self.access!r}")
        if self.protocol not in _PROTOCOLS:
            raise ValueError(f"Invalid protocol: {self.protocol!r}")

    def restricted_to(self, source: str) -> "SecurityRule":
        return replace(self, source=source)

    def __str__(self) -> str:
        return (
            f"{self.name} ({self.direction} {self.protocol}/{self.port} "
            f"{self.access}, priority {self.priority})"
        )


def validate_unique_priorities(rules: Iterable[SecurityRule]) -> None:
    """Raise ValueError if two rules of one group share a priority."""
    seen: dict[int, str] = {}
    for rule in rules:
        if rule.priority in seen:
            raise ValueError(
                f"Priority {rule.priority} used by both "
                f"'{seen[rule.priority]}' and '{rule.name}'"
            )
        seen[rule.priority] = rule.name


DEFAULT_RULES: tuple[SecurityRule, ...] = (
    SecurityRule(
        name="AllowHTTP",
        priority=100,
        port=80,
        description="Allow HTTP traffic on port 80",
    ),
    SecurityRule(
        name="AllowHTTPS",
        priority=110,
        port=443,
        description="Allow HTTPS traffic on port 443",
    ),
    SecurityRule(
        name="AllowSSH",
        priority=120,
        port=22,
        description="Allow SSH access on port 22",
    ),
)
