"""Tests for command batches and the NGINX batch builders."""

import pytest
from stratus.domain.entities.command_batch import (
    CommandBatch,
    OperationKind,
    RemoteOperation,
    install_packages,
    run,
    service,
    set_permissions,
    write_file,
)
from stratus.domain.services.web_server import (
    NGINX_ACTIVE_CHECK,
    NGINX_SITE_PATH,
    nginx_setup_batch,
    publish_content_batch,
    render_site_config,
)


class TestRemoteOperation:
    def test_render_with_sudo(self):
        op = run("refresh", "apt-get update -y")
        assert op.render() == "sudo sh -c 'apt-get update -y'"

    def test_render_without_sudo(self):
        op = run("whoami", "whoami", sudo=False)
        assert op.render() == "whoami"

    def test_write_file_installs_staged_copy(self):
        op = write_file("site", "/etc/nginx/sites-available/default", "server {}", mode="644")
        rendered = op.render("/tmp/.stratus-0-default")
        assert "install -m 644 /tmp/.stratus-0-default /etc/nginx/sites-available/default" in rendered
        assert rendered.startswith("sudo sh -c ")

    def test_write_file_requires_staged_path(self):
        op = write_file("site", "/etc/x", "content")
        with pytest.raises(ValueError, match="staged_path"):
            op.render()

    def test_write_file_requires_destination(self):
        with pytest.raises(ValueError, match="destination"):
            RemoteOperation(name="w", kind=OperationKind.WRITE_FILE)

    def test_command_required(self):
        with pytest.raises(ValueError, match="command cannot be empty"):
            RemoteOperation(name="r", kind=OperationKind.RUN, command="  ")

    def test_helpers_quote_arguments(self):
        assert install_packages("nginx").command.endswith("apt-get install -y nginx")
        perms = set_permissions("/var/www/my site", "www-data:www-data")
        assert "'/var/www/my site'" in perms.command
        restart = service("restart", "nginx", postcondition=NGINX_ACTIVE_CHECK)
        assert restart.command == "systemctl restart nginx"
        assert restart.postcondition == "systemctl is-active nginx"


class TestCommandBatch:
    def test_empty_batch_rejected(self):
        with pytest.raises(ValueError, match="no operations"):
            CommandBatch("empty", ())

    def test_duplicate_operation_names_rejected(self):
        with pytest.raises(ValueError, match="Duplicate operation names"):
            CommandBatch("dup", (run("a", "true"), run("a", "false")))


class TestWebServerBatches:
    def test_nginx_setup_order(self):
        batch = nginx_setup_batch()
        names = [op.name for op in batch.operations]
        assert names[0] == "refresh package index"
        assert names[1] == "install nginx"
        assert names.index("write site config") < names.index("restart nginx")
        assert names[-1] == "restart nginx"
        assert batch.operations[-1].postcondition == NGINX_ACTIVE_CHECK

    def test_firewall_admits_ssh_before_enabling(self):
        batch = nginx_setup_batch()
        names = [op.name for op in batch.operations]
        commands = {op.name: op.command for op in batch.operations}
        assert names.index("install nginx") < names.index("install ufw")
        assert names.index("allow OpenSSH through firewall") < names.index("enable firewall")
        assert names.index("allow Nginx Full through firewall") < names.index("enable firewall")
        assert commands["allow Nginx Full through firewall"] == "ufw allow 'Nginx Full'"
        assert commands["enable firewall"] == "ufw --force enable"

    def test_nginx_site_config_written_as_file(self):
        batch = nginx_setup_batch(web_root="/srv/site")
        site = next(op for op in batch.operations if op.kind == OperationKind.WRITE_FILE)
        assert site.destination == NGINX_SITE_PATH
        assert "root /srv/site;" in site.content

    def test_placeholder_does_not_overwrite_existing_index(self):
        batch = nginx_setup_batch()
        seed = next(op for op in batch.operations if op.name == "seed placeholder page")
        assert seed.command.startswith("test -s /var/www/html/index.html ||")

    def test_site_config_contents(self):
        config = render_site_config(server_name="www.example.com")
        assert "server_name www.example.com;" in config
        assert 'add_header X-Frame-Options "SAMEORIGIN" always;' in config
        assert "gzip on;" in config
        assert "expires 30d;" in config

    def test_publish_content(self):
        batch = publish_content_batch("/tmp/stratus-site", "/var/www/html")
        names = [op.name for op in batch.operations]
        assert names == [
            "clear web root",
            "move staged files",
            "permissions /var/www/html",
            "restart nginx",
        ]
        assert "cp -a /tmp/stratus-site/. /var/www/html/" in batch.operations[1].command
