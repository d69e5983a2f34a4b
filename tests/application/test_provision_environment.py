"""Tests for ProvisionEnvironment use case."""

import dataclasses
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from invoke.exceptions import CommandTimedOut
from invoke.runners import Result
from stratus.application.dtos.provisioning_dtos import ProvisionRequest
from stratus.application.use_cases.provision_environment import ProvisionEnvironment
from stratus.domain.entities.deployment import DeploymentStage
from stratus.domain.errors import ProviderUnavailable
from stratus.domain.events.event_base import (
    DeploymentAbortedEvent,
    DomainEvent,
    StageReachedEvent,
)
from stratus.domain.value_objects.configure_result import ConfigureResult
from stratus.domain.value_objects.resource_kind import ResourceKind
from stratus.infrastructure.adapters.fabric_adapter import FabricAdapter
from stratus.infrastructure.config import AzureConfig
from stratus.infrastructure.event_bus import EventBus


class TestProvisionEnvironment:
    def _make_use_case(
        self, config, provider, remote, key_store, http_probe, sleeps, **kwargs
    ):
        return ProvisionEnvironment(
            config, provider, remote, key_store, http_probe, sleep=sleeps, **kwargs
        )

    @pytest.mark.asyncio
    async def test_successful_provisioning(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        response = await use_case.execute(ProvisionRequest())

        assert response.success
        assert response.deployment.stage == DeploymentStage.DONE
        assert len(response.created) == 10
        assert response.public_ip == "20.30.40.50"
        assert response.url == "http://20.30.40.50"
        assert response.http_status == 200
        assert response.warnings == ()

        node = remote_executor.probe.await_args.args[0]
        assert node.host == "20.30.40.50"
        assert node.user == "azureuser"
        operations = remote_executor.run_operations.await_args.args[2]
        assert operations[-1].name == "restart nginx"
        http_probe.status.assert_awaited_once_with("http://20.30.40.50", 10)

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )
        await use_case.execute()
        fake_provider.create_calls.clear()

        response = await use_case.execute()

        assert response.success
        assert fake_provider.create_calls == []
        assert response.created == []
        assert len(response.skipped) == 10

    @pytest.mark.asyncio
    async def test_events_published_in_stage_order(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        bus = EventBus()
        stages = []

        async def on_stage(event):
            stages.append(event.stage)

        bus.subscribe(StageReachedEvent, on_stage)
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe,
            sleeps, event_bus=bus,
        )

        await use_case.execute()

        assert stages == [
            "PREFLIGHT_CHECKED",
            "INFRASTRUCTURE_CREATED",
            "INSTANCE_RUNNING",
            "CONFIGURED",
            "VERIFIED",
            "DONE",
        ]

    @pytest.mark.asyncio
    async def test_provider_failure_aborts_with_context(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        fake_provider.lookup_errors["website-nsg"] = ProviderUnavailable("throttled")
        bus = EventBus()
        aborted = []

        async def on_abort(event):
            aborted.append(event)

        bus.subscribe(DeploymentAbortedEvent, on_abort)
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe,
            sleeps, event_bus=bus,
        )

        response = await use_case.execute()

        assert not response.success
        assert response.deployment.stage == DeploymentStage.ABORTED
        assert response.deployment.failed_stage == DeploymentStage.PREFLIGHT_CHECKED
        assert response.created == ["static-website-rg", "website-vnet", "website-subnet"]
        assert "throttled" in response.message
        assert len(aborted) == 1
        remote_executor.run_operations.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_readiness_timeout_is_warning_by_default(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        remote_executor.probe = AsyncMock(return_value=False)
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        response = await use_case.execute()

        assert response.success
        assert remote_executor.probe.await_count == 3
        assert sleeps.calls == [5, 5]
        assert any("not ready after 3" in w for w in response.warnings)
        remote_executor.run_operations.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_readiness_timeout_fatal_when_required(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        remote_executor.probe = AsyncMock(return_value=False)
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        response = await use_case.execute(ProvisionRequest(require_ready=True))

        assert not response.success
        assert response.deployment.failed_stage == DeploymentStage.INSTANCE_RUNNING
        remote_executor.run_operations.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remote_failure_aborts(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        remote_executor.run_operations = AsyncMock(
            return_value=ConfigureResult.partial_failure(
                ("refresh package index",), "install nginx", 100, "E: Unable to locate"
            )
        )
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        response = await use_case.execute()

        assert not response.success
        assert "install nginx" in response.message
        assert response.public_ip == "20.30.40.50"
        http_probe.status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hung_remote_step_aborts_with_context(
        self, stratus_config, fake_provider, key_store, http_probe, sleeps
    ):
        conn = MagicMock()
        conn.__enter__.return_value = conn
        ssh_ok = MagicMock(ok=True, failed=False)
        conn.run.side_effect = [
            ssh_ok,
            CommandTimedOut(Result(command="apt-get update -y"), timeout=600),
        ]
        use_case = self._make_use_case(
            stratus_config, fake_provider, FabricAdapter(), key_store, http_probe, sleeps
        )

        with patch(
            "stratus.infrastructure.adapters.fabric_adapter.Connection", return_value=conn
        ):
            response = await use_case.execute()

        assert not response.success
        assert response.deployment.stage == DeploymentStage.ABORTED
        assert response.deployment.failed_stage == DeploymentStage.INSTANCE_RUNNING
        assert len(response.context.created) == 10
        assert response.public_ip == "20.30.40.50"
        http_probe.status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_200_is_a_warning(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        http_probe.status = AsyncMock(return_value=502)
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        response = await use_case.execute()

        assert response.success
        assert response.http_status == 502
        assert any("502" in w for w in response.warnings)

    @pytest.mark.asyncio
    async def test_dry_run_changes_nothing(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        response = await use_case.execute(ProvisionRequest(dry_run=True))

        assert response.success
        assert fake_provider.create_calls == []
        assert len(response.context.planned) == 10
        assert response.message.startswith("Dry run: 10 resource(s) would be created")
        remote_executor.probe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_configure_stops_after_instance(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        response = await use_case.execute(ProvisionRequest(configure=False))

        assert response.success
        assert response.deployment.stage == DeploymentStage.INSTANCE_RUNNING
        assert response.url == "http://20.30.40.50"
        remote_executor.run_operations.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_subscription_selected_when_configured(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        config = dataclasses.replace(
            stratus_config, azure=AzureConfig(subscription_id="sub-999")
        )
        use_case = self._make_use_case(
            config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        await use_case.execute(ProvisionRequest(configure=False))

        assert fake_provider.subscriptions == ["sub-999"]

    @pytest.mark.asyncio
    async def test_phases_traced(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        telemetry = MagicMock()
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe,
            sleeps, telemetry=telemetry,
        )

        await use_case.execute()

        phases = [c.args[0] for c in telemetry.phase.call_args_list]
        assert phases == ["preflight", "infrastructure", "instance", "configure", "verify"]
        assert telemetry.record_resource.call_count == 10

    @pytest.mark.asyncio
    async def test_public_ip_looked_up_when_not_in_context(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        # Existing address recorded without an IP (e.g. allocation lagging).
        fake_provider.add(ResourceKind.PUBLIC_ADDRESS, "website-public-ip")
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
        )

        response = await use_case.execute(ProvisionRequest(configure=False))

        assert not response.success
        assert "no address allocated" in response.message

    @pytest.mark.asyncio
    async def test_all_events_reach_catch_all_subscriber(
        self, stratus_config, fake_provider, remote_executor, key_store, http_probe, sleeps
    ):
        bus = EventBus()
        events = []

        async def collect(event):
            events.append(event)

        bus.subscribe(DomainEvent, collect)
        use_case = self._make_use_case(
            stratus_config, fake_provider, remote_executor, key_store, http_probe,
            sleeps, event_bus=bus,
        )

        await use_case.execute()

        # 10 resources plus 6 stage transitions.
        assert len(events) == 16
