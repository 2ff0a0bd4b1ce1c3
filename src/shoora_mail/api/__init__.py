"""HTTP surface for Shoora Mail."""

from shoora_mail.api.app import app, create_app
from shoora_mail.api.routes import get_mail_service, router

__all__ = [
    "app",
    "create_app",
    "get_mail_service",
    "router",
]
