"""Ops app configuration."""
from django.apps import AppConfig


class OpsConfig(AppConfig):
    """Audit trail and operational endpoints."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.ops'
    verbose_name = 'Operations'
