"""
Web Server Batches

Architectural Intent:
- Domain service that builds the command batches for the NGINX web server
- nginx_setup_batch installs and configures NGINX on a fresh Ubuntu VM
  behind a ufw host firewall that admits only SSH, HTTP and HTTPS
- publish_content_batch moves an uploaded site tree into the web root

Each operation is idempotent so a batch can be re-run on a configured host.
"""

from __future__ import annotations

import shlex

from stratus.domain.entities.command_batch import (
    CommandBatch,
    install_packages,
    run,
    service,
    set_permissions,
    write_file,
)

DEFAULT_WEB_ROOT = "/var/www/html"
WEB_USER = "www-data:www-data"
NGINX_SITE_PATH = "/etc/nginx/sites-available/default"
NGINX_ACTIVE_CHECK = "systemctl is-active nginx"
FIREWALL_PROFILES = ("OpenSSH", "Nginx Full")

NGINX_SITE_TEMPLATE = """\
server {{
    listen 80 default_server;
    listen [::]:80 default_server;

    root {web_root};
    index index.html index.htm;

    server_name {server_name};

    add_header X-Frame-Options "SAMEORIGIN" always;
    add_header X-Content-Type-Options "nosniff" always;
    add_header X-XSS-Protection "1; mode=block" always;

    location / {{
        try_files $uri $uri/ =404;
    }}

    gzip on;
    gzip_vary on;
    gzip_min_length 1024;
    gzip_types text/plain text/css text/xml text/javascript application/x-javascript application/xml+rss application/json;

    location ~* \\.(jpg|jpeg|png|gif|ico|css|js|svg|woff|woff2|ttf|eot)$ {{
        expires 30d;
        add_header Cache-Control "public, immutable";
    }}
}}
"""

PLACEHOLDER_PAGE = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{title}</title></head>
<body><h1>{title}</h1><p>Replace this page with your site in {web_root}.</p></body>
</html>
"""


def render_site_config(web_root: str = DEFAULT_WEB_ROOT, server_name: str = "_") -> str:
    return NGINX_SITE_TEMPLATE.format(web_root=web_root, server_name=server_name)


def nginx_setup_batch(
    web_root: str = DEFAULT_WEB_ROOT,
    server_name: str = "_",
    title: str = "Deployment Successful",
) -> CommandBatch:
    index = f"{web_root.rstrip('/')}/index.html"
    return CommandBatch(
        name="nginx-setup",
        operations=(
            run("refresh package index", "apt-get update -y"),
            install_packages("nginx"),
            install_packages("ufw"),
            # OpenSSH must be allowed before enabling or the session drops.
            *(
                run(f"allow {profile} through firewall", f"ufw allow {shlex.quote(profile)}")
                for profile in FIREWALL_PROFILES
            ),
            run("enable firewall", "ufw --force enable"),
            write_file(
                "write site config",
                NGINX_SITE_PATH,
                render_site_config(web_root, server_name),
            ),
            run(
                "create web root",
                f"mkdir -p {shlex.quote(web_root)}",
            ),
            # Only seed the placeholder; uploaded content must survive re-runs.
            run(
                "seed placeholder page",
                f"test -s {shlex.quote(index)} || "
                f"printf '%s' {shlex.quote(PLACEHOLDER_PAGE.format(title=title, web_root=web_root))}"
                f" > {shlex.quote(index)}",
            ),
            set_permissions(web_root, WEB_USER),
            run("validate nginx config", "nginx -t"),
            service("enable", "nginx"),
            service("restart", "nginx", postcondition=NGINX_ACTIVE_CHECK),
        ),
    )


def publish_content_batch(
    staging_dir: str, web_root: str = DEFAULT_WEB_ROOT
) -> CommandBatch:
    staging = shlex.quote(staging_dir.rstrip("/"))
    root = shlex.quote(web_root.rstrip("/"))
    return CommandBatch(
        name="publish-content",
        operations=(
            run("clear web root", f"mkdir -p {root} && find {root} -mindepth 1 -delete"),
            run("move staged files", f"cp -a {staging}/. {root}/ && rm -rf {staging}"),
            set_permissions(web_root, WEB_USER),
            service("restart", "nginx", postcondition=NGINX_ACTIVE_CHECK),
        ),
    )
