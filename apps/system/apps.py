"""System app configuration."""

from django.apps import AppConfig


class SystemConfig(AppConfig):
    """Configuration for the system application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.system"
    verbose_name = "System"
