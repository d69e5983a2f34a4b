"""
Node Value Object

Architectural Intent:
- Immutable value object representing the provisioned VM as an SSH target
- Validates hostname format (DNS, IPv4, IPv6), port bounds, non-empty user
"""

import re
from dataclasses import dataclass

# RFC 1123 hostname: labels of alnum/hyphens, dot-separated
_HOSTNAME_RE = re.compile(
    r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*$"
)

_IPV4_RE = re.compile(
    r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$"
)

# IPv6 pattern (simplified, accepts ::1, fe80::1, etc.)
_IPV6_RE = re.compile(r"^[0-9a-fA-F:]+$")


def _is_valid_hostname(host: str) -> bool:
    """Validate hostname as DNS name, IPv4, or IPv6."""
    if not host:
        return False

    m = _IPV4_RE.match(host)
    if m:
        return all(0 <= int(g) <= 255 for g in m.groups())

    if _IPV6_RE.match(host) and ":" in host:
        return True

    if _HOSTNAME_RE.match(host) and len(host) <= 253:
        return True

    return False


@dataclass(frozen=True)
class Node:
    """
    Value Object representing the remote machine reached over SSH.
    """
    host: str
    user: str = "azureuser"
    port: int = 22

    def __post_init__(self) -> None:
        if not self.user:
            raise ValueError("Node user cannot be empty")
        if not (1 <= self.port <= 65535):
            raise ValueError(f"Port must be 1-65535, got {self.port}")
        if not _is_valid_hostname(self.host):
            raise ValueError(f"Invalid hostname: {self.host!r}")

    def __str__(self) -> str:
        return f"{self.user}@{self.host}:{self.port}"
