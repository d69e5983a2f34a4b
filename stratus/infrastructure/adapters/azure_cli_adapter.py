"""
Azure CLI Adapter

Architectural Intent:
- Implements CloudProviderPort by driving the Azure CLI (`az`)
- Uses subprocess for CLI operations wrapped in async (default executor)
- Every command asks for JSON output and is parsed into plain dicts

Design Decisions:
- `show` failures are classified from stderr: ARM "not found" error codes mean
  the resource is absent (None); anything else (SubscriptionNotFound, auth,
  network, throttling, CLI missing) raises ProviderUnavailable. Free-text
  "not found" messages are never trusted
- `create` failures reporting an existing resource raise ResourceConflict,
  which the creator treats as a skip; other create failures are fatal
- Returned attributes are normalised to a small, kind-specific dict
"""

import asyncio
import json
import logging
import re
import subprocess
from collections.abc import Mapping
from typing import Any, Optional

from stratus.domain.errors import (
    PreflightError,
    ProviderUnavailable,
    ResourceConflict,
    ResourceCreationFailed,
)
from stratus.domain.value_objects.resource_kind import ResourceKind
from stratus.domain.value_objects.security_rule import SecurityRule

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = r"(?:ResourceGroupNotFound|ResourceNotFound|NotFound|ParentResourceNotFound)"
# ARM error codes appear as "(Code) message" and on a "Code: ..." line.
_NOT_FOUND_RE = re.compile(
    rf"\({_NOT_FOUND_CODES}\)|^Code: {_NOT_FOUND_CODES}$", re.MULTILINE
)
_SUBSCRIPTION_MISSING_RE = re.compile(r"\bSubscriptionNotFound\b")
_CONFLICT_RE = re.compile(r"already exists|\(Conflict\)|AlreadyExists", re.IGNORECASE)


def _tags(tags: Mapping[str, str]) -> list[str]:
    if not tags:
        return []
    return ["--tags", *[f"{k}={v}" for k, v in tags.items()]]


def _summarize(kind: ResourceKind, raw: dict[str, Any]) -> dict[str, Any]:
    """Reduce a CLI JSON document to the attributes later steps read."""
    summary = {
        "id": raw.get("id", ""),
        "name": raw.get("name", ""),
        "provisioningState": raw.get("provisioningState")
        or raw.get("properties", {}).get("provisioningState", ""),
    }
    if kind == ResourceKind.GROUP:
        summary["location"] = raw.get("location", "")
    elif kind == ResourceKind.NETWORK:
        summary["addressPrefixes"] = raw.get("addressSpace", {}).get(
            "addressPrefixes", []
        )
    elif kind == ResourceKind.SUBNET:
        summary["addressPrefix"] = raw.get("addressPrefix", "")
    elif kind == ResourceKind.SECURITY_RULE:
        summary["priority"] = raw.get("priority")
        summary["destinationPortRange"] = raw.get("destinationPortRange")
    elif kind == ResourceKind.PUBLIC_ADDRESS:
        summary["ipAddress"] = raw.get("ipAddress")
        summary["fqdn"] = (raw.get("dnsSettings") or {}).get("fqdn")
    elif kind == ResourceKind.COMPUTE_INSTANCE:
        summary["publicIps"] = raw.get("publicIps", "")
        summary["powerState"] = raw.get("powerState", "")
        summary["fqdns"] = raw.get("fqdns", "")
    return summary


class AzureCliAdapter:
    """Azure Resource Manager access through the `az` command line."""

    def __init__(self, executable: str = "az", timeout: int = 1800) -> None:
        self._executable = executable
        self._timeout = timeout

    async def _az(
        self, args: list[str], show_output: bool = False
    ) -> subprocess.CompletedProcess:
        cmd = [self._executable, *args]

        def _run():
            logger.debug("Running: %s", " ".join(cmd))
            return subprocess.run(
                cmd,
                capture_output=not show_output,
                text=True,
                timeout=self._timeout,
            )

        try:
            return await asyncio.get_event_loop().run_in_executor(None, _run)
        except FileNotFoundError as e:
            raise ProviderUnavailable(
                f"'{self._executable}' not found. Install the Azure CLI.", command=cmd
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ProviderUnavailable(
                f"Command timed out after {self._timeout}s: {' '.join(cmd)}",
                command=cmd,
            ) from e

    @staticmethod
    def _json(result: subprocess.CompletedProcess) -> Any:
        out = (result.stdout or "").strip()
        return json.loads(out) if out else {}

    async def check_dependencies(self) -> str:
        try:
            result = await self._az(["version", "-o", "json"])
        except ProviderUnavailable as e:
            raise PreflightError(str(e)) from e
        if result.returncode != 0:
            raise PreflightError(f"Azure CLI is not usable: {result.stderr.strip()}")
        return self._json(result).get("azure-cli", "unknown")

    async def ensure_logged_in(self, allow_login: bool = True) -> dict[str, Any]:
        result = await self._az(["account", "show", "-o", "json"])
        if result.returncode == 0:
            return self._json(result)
        if not allow_login:
            raise PreflightError("Not logged into Azure. Run 'az login' first.")

        logger.warning("Not logged into Azure. Initiating login...")
        login = await self._az(["login"], show_output=True)
        if login.returncode != 0:
            raise PreflightError("Azure login failed")
        result = await self._az(["account", "show", "-o", "json"])
        if result.returncode != 0:
            raise PreflightError(f"Azure login failed: {result.stderr.strip()}")
        return self._json(result)

    async def select_subscription(self, subscription_id: str) -> None:
        cmd = ["account", "set", "--subscription", subscription_id]
        result = await self._az(cmd)
        if result.returncode != 0:
            raise PreflightError(
                f"Cannot select subscription {subscription_id}: {result.stderr.strip()}"
            )

    def _show_args(
        self, kind: ResourceKind, name: str, scope: Mapping[str, str]
    ) -> list[str]:
        rg = scope.get("resource_group", "")
        if kind == ResourceKind.GROUP:
            return ["group", "show", "--name", name]
        if kind == ResourceKind.NETWORK:
            return ["network", "vnet", "show", "-g", rg, "-n", name]
        if kind == ResourceKind.SUBNET:
            return [
                "network", "vnet", "subnet", "show",
                "-g", rg, "--vnet-name", scope["vnet_name"], "-n", name,
            ]
        if kind == ResourceKind.SECURITY_GROUP:
            return ["network", "nsg", "show", "-g", rg, "-n", name]
        if kind == ResourceKind.SECURITY_RULE:
            return [
                "network", "nsg", "rule", "show",
                "-g", rg, "--nsg-name", scope["nsg_name"], "-n", name,
            ]
        if kind == ResourceKind.PUBLIC_ADDRESS:
            return ["network", "public-ip", "show", "-g", rg, "-n", name]
        if kind == ResourceKind.NETWORK_INTERFACE:
            return ["network", "nic", "show", "-g", rg, "-n", name]
        if kind == ResourceKind.COMPUTE_INSTANCE:
            return ["vm", "show", "-g", rg, "-n", name, "--show-details"]
        raise ValueError(f"Unsupported resource kind: {kind}")

    def _create_args(
        self,
        kind: ResourceKind,
        name: str,
        scope: Mapping[str, str],
        params: Mapping[str, Any],
    ) -> list[str]:
        rg = scope.get("resource_group", "")
        location = params.get("location", "")
        tags = _tags(params.get("tags", {}))

        if kind == ResourceKind.GROUP:
            return ["group", "create", "--name", name, "--location", location, *tags]
        if kind == ResourceKind.NETWORK:
            return [
                "network", "vnet", "create", "-g", rg, "--name", name,
                "--location", location,
                "--address-prefix", params["address_prefix"], *tags,
            ]
        if kind == ResourceKind.SUBNET:
            return [
                "network", "vnet", "subnet", "create", "-g", rg,
                "--vnet-name", scope["vnet_name"], "--name", name,
                "--address-prefixes", params["address_prefix"],
            ]
        if kind == ResourceKind.SECURITY_GROUP:
            return [
                "network", "nsg", "create", "-g", rg, "--name", name,
                "--location", location, *tags,
            ]
        if kind == ResourceKind.SECURITY_RULE:
            rule: SecurityRule = params["rule"]
            return [
                "network", "nsg", "rule", "create", "-g", rg,
                "--nsg-name", scope["nsg_name"], "--name", name,
                "--priority", str(rule.priority),
                "--source-address-prefixes", rule.source,
                "--source-port-ranges", "*",
                "--destination-address-prefixes", "*",
                "--destination-port-ranges", str(rule.port),
                "--access", rule.access,
                "--protocol", rule.protocol,
                "--direction", rule.direction,
                "--description", rule.description or rule.name,
            ]
        if kind == ResourceKind.PUBLIC_ADDRESS:
            args = [
                "network", "public-ip", "create", "-g", rg, "--name", name,
                "--location", location,
                "--allocation-method", "Static", "--sku", "Standard",
            ]
            if params.get("dns_name"):
                args += ["--dns-name", params["dns_name"]]
            return args + tags
        if kind == ResourceKind.NETWORK_INTERFACE:
            return [
                "network", "nic", "create", "-g", rg, "--name", name,
                "--location", location,
                "--vnet-name", params["vnet_name"],
                "--subnet", params["subnet_name"],
                "--network-security-group", params["nsg_name"],
                "--public-ip-address", params["public_ip_name"], *tags,
            ]
        if kind == ResourceKind.COMPUTE_INSTANCE:
            return [
                "vm", "create", "-g", rg, "--name", name,
                "--location", location,
                "--nics", params["nic_name"],
                "--size", params["size"],
                "--image", params["image"],
                "--admin-username", params["admin_username"],
                "--ssh-key-values", params["public_key"],
                *tags,
            ]
        raise ValueError(f"Unsupported resource kind: {kind}")

    async def get_resource(
        self, kind: ResourceKind, name: str, scope: Mapping[str, str]
    ) -> Optional[dict[str, Any]]:
        args = self._show_args(kind, name, scope) + ["-o", "json"]
        result = await self._az(args)
        if result.returncode == 0:
            return _summarize(kind, self._json(result))
        stderr = result.stderr or ""
        if _SUBSCRIPTION_MISSING_RE.search(stderr):
            raise ProviderUnavailable(
                f"Subscription not found while looking up {kind.label} '{name}'; "
                "check the selected account",
                command=[self._executable, *args],
                stderr=stderr,
            )
        if _NOT_FOUND_RE.search(stderr):
            logger.debug("%s '%s' not found", kind.label, name)
            return None
        raise ProviderUnavailable(
            f"Could not look up {kind.label} '{name}': {stderr.strip()}",
            command=[self._executable, *args],
            stderr=stderr,
        )

    async def create_resource(
        self,
        kind: ResourceKind,
        name: str,
        scope: Mapping[str, str],
        params: Mapping[str, Any],
    ) -> dict[str, Any]:
        args = self._create_args(kind, name, scope, params) + ["-o", "json"]
        logger.info("Creating %s: %s", kind.label, name)
        result = await self._az(args)
        if result.returncode == 0:
            return self._json(result)
        stderr = result.stderr or ""
        if _CONFLICT_RE.search(stderr):
            raise ResourceConflict(kind, name)
        raise ResourceCreationFailed(kind, name, stderr)

    async def delete_resource_group(self, name: str) -> None:
        logger.info("Deleting resource group: %s", name)
        args = ["group", "delete", "--name", name, "--yes", "--no-wait"]
        result = await self._az(args)
        if result.returncode != 0:
            raise ProviderUnavailable(
                f"Failed to delete resource group {name}: {result.stderr.strip()}",
                command=[self._executable, *args],
                stderr=result.stderr,
            )

    async def list_resources(self, group: str) -> list[dict[str, Any]]:
        args = ["resource", "list", "--resource-group", group, "-o", "json"]
        result = await self._az(args)
        if result.returncode != 0:
            raise ProviderUnavailable(
                f"Failed to list resources in {group}: {result.stderr.strip()}",
                command=[self._executable, *args],
                stderr=result.stderr,
            )
        return [
            {"name": r.get("name", ""), "type": r.get("type", ""),
             "location": r.get("location", "")}
            for r in self._json(result) or []
        ]
