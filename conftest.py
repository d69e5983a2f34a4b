"""Global test configuration.

Provides an in-memory cloud provider and ready-made collaborators so use
cases can be exercised without Azure, SSH or the network.
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from stratus.domain.errors import ResourceConflict
from stratus.domain.value_objects.configure_result import ConfigureResult
from stratus.domain.value_objects.identity import Identity
from stratus.domain.value_objects.resource_kind import ResourceKind
from stratus.infrastructure.config import (
    NetworkConfig,
    ReadinessConfig,
    SshConfig,
    StratusConfig,
    WebConfig,
)

FAKE_IP = "20.30.40.50"


class FakeCloudProvider:
    """In-memory stand-in for the Azure control plane."""

    def __init__(self) -> None:
        self.resources: dict[tuple[ResourceKind, str], dict] = {}
        self.create_calls: list[tuple[ResourceKind, str]] = []
        self.lookup_calls: list[tuple[ResourceKind, str]] = []
        self.deleted_groups: list[str] = []
        self.subscriptions: list[str] = []
        self.create_errors: dict[str, Exception] = {}
        self.lookup_errors: dict[str, Exception] = {}
        self.conflicts: set[str] = set()
        self.delete_lag = 0

    def add(self, kind: ResourceKind, name: str, **attributes) -> None:
        self.resources[(kind, name)] = {"id": f"/{kind.value}/{name}", "name": name, **attributes}

    async def check_dependencies(self) -> str:
        return "2.60.0"

    async def ensure_logged_in(self, allow_login: bool = True) -> dict:
        return {"id": "sub-123", "user": {"name": "dev@example.com"}}

    async def select_subscription(self, subscription_id: str) -> None:
        self.subscriptions.append(subscription_id)

    async def get_resource(self, kind, name, scope):
        self.lookup_calls.append((kind, name))
        if name in self.lookup_errors:
            raise self.lookup_errors[name]
        if kind == ResourceKind.GROUP and name in self.deleted_groups:
            if self.delete_lag > 0:
                self.delete_lag -= 1
            else:
                self.resources.pop((kind, name), None)
        found = self.resources.get((kind, name))
        return dict(found) if found is not None else None

    async def create_resource(self, kind, name, scope, params):
        self.create_calls.append((kind, name))
        if name in self.create_errors:
            raise self.create_errors[name]
        if name in self.conflicts:
            self.add(kind, name, provisioningState="Succeeded")
            raise ResourceConflict(kind, name)
        attributes = {"provisioningState": "Succeeded"}
        if kind == ResourceKind.PUBLIC_ADDRESS:
            attributes["ipAddress"] = FAKE_IP
            attributes["fqdn"] = f"{params.get('dns_name')}.eastus.cloudapp.azure.com"
        self.add(kind, name, **attributes)
        return {"name": name, **attributes}

    async def delete_resource_group(self, name: str) -> None:
        self.deleted_groups.append(name)
        if self.delete_lag == 0:
            for key in [k for k in self.resources]:
                self.resources.pop(key)

    async def list_resources(self, group: str) -> list[dict]:
        return [
            {"name": name, "type": kind.value, "location": "eastus"}
            for (kind, name) in self.resources
            if kind != ResourceKind.GROUP
        ]


@pytest.fixture
def fake_provider():
    return FakeCloudProvider()


@pytest.fixture
def stratus_config(tmp_path: Path) -> StratusConfig:
    return StratusConfig(
        network=NetworkConfig(dns_name="staticwebsite12345"),
        ssh=SshConfig(key_path=str(tmp_path / "azure_website_key")),
        readiness=ReadinessConfig(interval_seconds=5, max_attempts=3),
        web=WebConfig(verify_delay=0),
    )


@pytest.fixture
def identity(tmp_path: Path) -> Identity:
    return Identity(
        private_key_path=tmp_path / "azure_website_key",
        public_key="ssh-rsa AAAAB3NzaC1yc2E stratus",
    )


@pytest.fixture
def key_store(identity):
    store = AsyncMock()
    store.ensure_keypair = AsyncMock(return_value=(identity, False))
    return store


@pytest.fixture
def remote_executor():
    executor = AsyncMock()
    executor.probe = AsyncMock(return_value=True)
    executor.run_operations = AsyncMock(
        side_effect=lambda node, ident, ops: ConfigureResult.success(
            tuple(op.name for op in ops)
        )
    )
    executor.upload_tree = AsyncMock(return_value=3)
    return executor


@pytest.fixture
def http_probe():
    probe = AsyncMock()
    probe.status = AsyncMock(return_value=200)
    return probe


@pytest.fixture
def sleeps():
    """Records requested sleeps instead of sleeping."""
    calls: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        calls.append(seconds)

    fake_sleep.calls = calls
    return fake_sleep
