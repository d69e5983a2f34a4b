"""Tests for FabricAdapter."""

import pytest
from pathlib import Path
from unittest.mock import patch, MagicMock
from invoke.exceptions import CommandTimedOut
from invoke.runners import Result
from paramiko.ssh_exception import NoValidConnectionsError, SSHException
from stratus.infrastructure.adapters.fabric_adapter import FabricAdapter
from stratus.domain.entities.command_batch import run, service, write_file
from stratus.domain.errors import RemoteExecFailure
from stratus.domain.value_objects.identity import Identity
from stratus.domain.value_objects.node import Node

CONNECTION = "stratus.infrastructure.adapters.fabric_adapter.Connection"


def _result(failed=False, exited=0, stderr="", stdout=""):
    result = MagicMock()
    result.failed = failed
    result.ok = not failed
    result.exited = exited
    result.stderr = stderr
    result.stdout = stdout
    return result


def _connection(*results):
    conn = MagicMock()
    conn.__enter__.return_value = conn
    if results:
        conn.run.side_effect = list(results)
    else:
        conn.run.return_value = _result()
    return conn


@pytest.fixture
def node():
    return Node(host="20.30.40.50", user="azureuser")


@pytest.fixture
def ssh_identity():
    return Identity(private_key_path=Path("/keys/azure_website_key"), public_key="ssh-rsa AAA")


class TestFabricAdapter:
    def test_get_connection_uses_explicit_key(self, node, ssh_identity):
        adapter = FabricAdapter(connect_timeout=5)
        with patch(CONNECTION) as mock_conn_cls:
            adapter._get_connection(node, ssh_identity)
            mock_conn_cls.assert_called_once_with(
                host="20.30.40.50",
                user="azureuser",
                port=22,
                connect_timeout=5,
                connect_kwargs={
                    "key_filename": "/keys/azure_website_key",
                    "allow_agent": False,
                    "look_for_keys": False,
                },
            )

    @pytest.mark.asyncio
    async def test_probe_success(self, node, ssh_identity):
        conn = _connection()
        with patch(CONNECTION, return_value=conn):
            assert await FabricAdapter().probe(node, ssh_identity, "true", 5) is True
        conn.run.assert_called_once_with("true", hide=True, warn=True, timeout=5)

    @pytest.mark.asyncio
    async def test_probe_connection_refused(self, node, ssh_identity):
        conn = MagicMock()
        conn.__enter__.side_effect = NoValidConnectionsError({("20.30.40.50", 22): OSError()})
        with patch(CONNECTION, return_value=conn):
            assert await FabricAdapter().probe(node, ssh_identity, "true", 5) is False

    @pytest.mark.asyncio
    async def test_run_operations_in_order(self, node, ssh_identity):
        conn = _connection()
        operations = (
            run("refresh package index", "apt-get update -y"),
            write_file("write site config", "/etc/nginx/sites-available/default", "server {}"),
            service("restart", "nginx"),
        )
        with patch(CONNECTION, return_value=conn):
            result = await FabricAdapter().run_operations(node, ssh_identity, operations)

        assert result.ok
        assert result.completed == (
            "refresh package index", "write site config", "restart nginx"
        )
        conn.put.assert_called_once()
        staged = conn.put.call_args.kwargs["remote"]
        assert staged.startswith("/tmp/.stratus-1-")
        commands = [c.args[0] for c in conn.run.call_args_list]
        assert any("install -m 644" in c for c in commands)
        assert any(c.startswith("rm -f") for c in commands)

    @pytest.mark.asyncio
    async def test_first_failure_stops_batch(self, node, ssh_identity):
        conn = _connection(
            _result(),
            _result(failed=True, exited=100, stderr="E: Unable to locate package"),
        )
        operations = (
            run("refresh package index", "apt-get update -y"),
            run("install nginx", "apt-get install -y nginx"),
            service("restart", "nginx"),
        )
        with patch(CONNECTION, return_value=conn):
            result = await FabricAdapter().run_operations(node, ssh_identity, operations)

        assert not result.ok
        assert result.completed == ("refresh package index",)
        assert result.failed_step == "install nginx"
        assert result.exit_code == 100
        assert conn.run.call_count == 2

    @pytest.mark.asyncio
    async def test_postcondition_failure(self, node, ssh_identity):
        conn = _connection(_result(), _result(failed=True, exited=3, stdout="inactive"))
        operations = (service("restart", "nginx", postcondition="systemctl is-active nginx"),)
        with patch(CONNECTION, return_value=conn):
            result = await FabricAdapter().run_operations(node, ssh_identity, operations)
        assert result.failed_step == "restart nginx"
        assert "postcondition" in result.stderr

    @pytest.mark.asyncio
    async def test_ssh_error_reported_as_partial_failure(self, node, ssh_identity):
        conn = _connection()
        conn.run.side_effect = [_result(), SSHException("session dropped")]
        operations = (run("one", "true"), run("two", "true"))
        with patch(CONNECTION, return_value=conn):
            result = await FabricAdapter().run_operations(node, ssh_identity, operations)
        assert result.completed == ("one",)
        assert result.failed_step == "two"
        assert result.exit_code is None
        assert "session dropped" in result.stderr

    @pytest.mark.asyncio
    async def test_hung_command_reported_as_partial_failure(self, node, ssh_identity):
        conn = _connection()
        conn.run.side_effect = [
            _result(),
            CommandTimedOut(Result(command="apt-get update -y"), timeout=600),
        ]
        operations = (
            run("create web root", "mkdir -p /var/www/html"),
            run("refresh package index", "apt-get update -y"),
            run("install nginx", "apt-get install -y nginx"),
        )
        with patch(CONNECTION, return_value=conn):
            result = await FabricAdapter().run_operations(node, ssh_identity, operations)

        assert not result.ok
        assert result.completed == ("create web root",)
        assert result.failed_step == "refresh package index"
        assert result.exit_code is None
        assert "600" in result.stderr
        assert conn.run.call_count == 2

    @pytest.mark.asyncio
    async def test_ssh_check_timeout_is_not_ready(self, node, ssh_identity):
        conn = _connection()
        conn.run.side_effect = CommandTimedOut(Result(command="true"), timeout=5)
        with patch(CONNECTION, return_value=conn):
            assert await FabricAdapter().probe(node, ssh_identity, "true", 5) is False

    @pytest.mark.asyncio
    async def test_upload_tree(self, node, ssh_identity, tmp_path):
        (tmp_path / "css").mkdir()
        (tmp_path / "index.html").write_text("<h1>hi</h1>")
        (tmp_path / "css" / "site.css").write_text("body {}")
        conn = _connection()
        with patch(CONNECTION, return_value=conn):
            count = await FabricAdapter().upload_tree(
                node, ssh_identity, tmp_path, "/tmp/stratus-site/"
            )

        assert count == 2
        targets = sorted(c.kwargs["remote"] for c in conn.put.call_args_list)
        assert targets == ["/tmp/stratus-site/css/site.css", "/tmp/stratus-site/index.html"]
        assert conn.run.call_args_list[0].args[0].startswith("rm -rf /tmp/stratus-site")

    @pytest.mark.asyncio
    async def test_upload_failure_raises(self, node, ssh_identity, tmp_path):
        (tmp_path / "index.html").write_text("x")
        conn = _connection()
        conn.put.side_effect = OSError("disk full")
        with patch(CONNECTION, return_value=conn):
            with pytest.raises(RemoteExecFailure, match="disk full"):
                await FabricAdapter().upload_tree(node, ssh_identity, tmp_path, "/tmp/s")
