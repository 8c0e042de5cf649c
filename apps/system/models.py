"""Models for the system application."""

from __future__ import annotations

from django.db import models


class SystemSetting(models.Model):
    """
    Global key/value setting shared by every tenant.

    Stores JSON blobs such as the collected tax database and the
    collection job history under well-known keys.
    """

    key = models.CharField(
        max_length=100,
        unique=True,
        help_text="Unique setting key (e.g., 'global_tax_database')",
    )
    value = models.JSONField(
        null=True,
        blank=True,
        help_text="JSON value of the setting",
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="What the setting is used for",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Meta options for SystemSetting model."""

        db_table = "system_settings"
        ordering = ["key"]
        verbose_name = "System Setting"
        verbose_name_plural = "System Settings"

    def __str__(self) -> str:
        """Return string representation."""
        return self.key
