"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to every resource name, size and path
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass, resolved once at startup and passed
  explicitly into each operation
- Nested config sections map to sub-dataclasses
- validate_config reports errors and warnings instead of raising, so the
  CLI can print all problems at once
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import dataclasses
import ipaddress
import json
import logging
import os
import random
import re

from stratus.domain.value_objects.security_rule import (
    DEFAULT_RULES,
    SecurityRule,
    validate_unique_priorities,
)

logger = logging.getLogger(__name__)

_DOMAIN_RE = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))*$"
)


def _default_dns_name() -> str:
    return f"staticwebsite{random.randint(10000, 99999)}"


@dataclass(frozen=True)
class AzureConfig:
    """Subscription, region and tagging."""
    resource_group: str = "static-website-rg"
    location: str = "eastus"
    subscription_id: str = ""
    allow_login: bool = True
    tag_environment: str = "Production"
    tag_project: str = "StaticWebsite"
    tag_owner: str = "DevOps"
    tag_cost_center: str = "Engineering"

    @property
    def tags(self) -> dict[str, str]:
        return {
            "Environment": self.tag_environment,
            "Project": self.tag_project,
            "Owner": self.tag_owner,
            "CostCenter": self.tag_cost_center,
        }


@dataclass(frozen=True)
class NetworkConfig:
    """Virtual network, subnet, security group and public IP names."""
    vnet_name: str = "website-vnet"
    vnet_prefix: str = "10.0.0.0/16"
    subnet_name: str = "website-subnet"
    subnet_prefix: str = "10.0.1.0/24"
    nsg_name: str = "website-nsg"
    public_ip_name: str = "website-public-ip"
    dns_name: str = field(default_factory=_default_dns_name)
    nic_name: str = "website-nic"
    ssh_source: str = "*"


@dataclass(frozen=True)
class VmConfig:
    """Virtual machine configuration."""
    name: str = "website-vm"
    size: str = "Standard_B1s"
    image: str = "Ubuntu2204"
    admin_username: str = "azureuser"


@dataclass(frozen=True)
class SshConfig:
    """SSH identity and connection settings."""
    key_path: str = "~/.ssh/azure_website_key"
    port: int = 22
    connect_timeout: int = 5

    @property
    def private_key_path(self) -> Path:
        return Path(os.path.expanduser(self.key_path))


@dataclass(frozen=True)
class ReadinessConfig:
    """SSH readiness polling."""
    interval_seconds: int = 5
    max_attempts: int = 60


@dataclass(frozen=True)
class WebConfig:
    """Web server and site content."""
    website_dir: str = "./website"
    web_root: str = "/var/www/html"
    staging_dir: str = "/tmp/stratus-site"
    custom_domain: str = ""
    verify_timeout: int = 10
    verify_delay: int = 10


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False
    service_name: str = "stratus"


@dataclass(frozen=True)
class StratusConfig:
    """Root configuration for a static-website deployment."""
    azure: AzureConfig = field(default_factory=AzureConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    vm: VmConfig = field(default_factory=VmConfig)
    ssh: SshConfig = field(default_factory=SshConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    web: WebConfig = field(default_factory=WebConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    security_rules: tuple[SecurityRule, ...] = DEFAULT_RULES
    log_level: str = "WARNING"

    def to_dict(self) -> dict:
        data = dataclasses.asdict(self)
        data["security_rules"] = [dataclasses.asdict(r) for r in self.security_rules]
        return data


def _env_override(data: dict, prefix: str = "STRATUS") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern STRATUS_SECTION_KEY.
    For example: STRATUS_VM_SIZE=Standard_B2s, STRATUS_AZURE_LOCATION=westeurope
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        parts = key[len(prefix) + 1:].lower().split("_", 1)
        if len(parts) == 2 and parts[0] in _SECTIONS:
            section, field_name = parts
            data.setdefault(section, {})
            data[section][field_name] = value
        else:
            data["_".join(parts)] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    # Convert string numbers to int/bool
    for f in dataclasses.fields(cls):
        if f.name in filtered and isinstance(filtered[f.name], str):
            if f.type in ("int", int):
                filtered[f.name] = int(filtered[f.name])
            elif f.type in ("bool", bool):
                filtered[f.name] = filtered[f.name].lower() in ("true", "1", "yes")

    return cls(**filtered)


def _build_rules(data) -> tuple[SecurityRule, ...]:
    if not data:
        return DEFAULT_RULES
    return tuple(_build_sub_config(SecurityRule, r) for r in data)


_SECTIONS = {
    "azure": AzureConfig,
    "network": NetworkConfig,
    "vm": VmConfig,
    "ssh": SshConfig,
    "readiness": ReadinessConfig,
    "web": WebConfig,
    "telemetry": TelemetryConfig,
}


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "STRATUS",
) -> StratusConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (STRATUS_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to stratus.json in CWD.
        env_prefix: Environment variable prefix. Defaults to STRATUS.
    """
    config_path = Path(path) if path else Path("stratus.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    sections = {
        name: _build_sub_config(cls, data.get(name, {}))
        for name, cls in _SECTIONS.items()
    }
    return StratusConfig(
        **sections,
        security_rules=_build_rules(data.get("security_rules")),
        log_level=data.get("log_level", "WARNING"),
    )


def validate_config(config: StratusConfig) -> tuple[list[str], list[str]]:
    """Validate a configuration.

    Returns:
        (errors, warnings). An empty error list means the config is usable.
    """
    errors: list[str] = []
    warnings: list[str] = []

    required = {
        "azure.resource_group": config.azure.resource_group,
        "azure.location": config.azure.location,
        "network.vnet_name": config.network.vnet_name,
        "network.subnet_name": config.network.subnet_name,
        "network.nsg_name": config.network.nsg_name,
        "network.public_ip_name": config.network.public_ip_name,
        "network.nic_name": config.network.nic_name,
        "vm.name": config.vm.name,
        "vm.admin_username": config.vm.admin_username,
        "ssh.key_path": config.ssh.key_path,
    }
    for key, value in required.items():
        if not value:
            errors.append(f"{key} is not set")

    vnet = subnet = None
    try:
        vnet = ipaddress.ip_network(config.network.vnet_prefix, strict=True)
    except ValueError:
        errors.append(
            f"network.vnet_prefix is not in valid CIDR notation: {config.network.vnet_prefix}"
        )
    try:
        subnet = ipaddress.ip_network(config.network.subnet_prefix, strict=True)
    except ValueError:
        errors.append(
            f"network.subnet_prefix is not in valid CIDR notation: {config.network.subnet_prefix}"
        )
    if vnet is not None and subnet is not None and not subnet.subnet_of(vnet):
        errors.append(
            f"Subnet {config.network.subnet_prefix} is not inside {config.network.vnet_prefix}"
        )

    try:
        validate_unique_priorities(config.security_rules)
    except ValueError as e:
        errors.append(f"security_rules: {e}")

    if config.network.ssh_source != "*":
        try:
            ipaddress.ip_network(config.network.ssh_source, strict=False)
        except ValueError:
            errors.append(
                f"network.ssh_source must be '*' or a CIDR: {config.network.ssh_source}"
            )

    domain = config.web.custom_domain
    if domain and not _DOMAIN_RE.match(domain):
        errors.append(f"web.custom_domain is not a valid DNS name: {domain!r}")

    if not config.vm.size.startswith("Standard_"):
        warnings.append("vm.size should start with 'Standard_'")
    if config.readiness.max_attempts < 1:
        errors.append("readiness.max_attempts must be at least 1")
    if config.readiness.interval_seconds < 0:
        errors.append("readiness.interval_seconds cannot be negative")

    return errors, warnings
