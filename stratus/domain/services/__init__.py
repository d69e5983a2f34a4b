"""
Domain Services Package

Architectural Intent:
- Contains domain services that build remote configuration batches
"""

from stratus.domain.services.web_server import (
    NGINX_ACTIVE_CHECK,
    nginx_setup_batch,
    publish_content_batch,
    render_site_config,
)

__all__ = [
    "NGINX_ACTIVE_CHECK",
    "nginx_setup_batch",
    "publish_content_batch",
    "render_site_config",
]
