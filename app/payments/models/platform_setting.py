"""
PlatformSetting model for admin-editable key/value configuration.

Values are stored as text and typed by the registry in
payments.services.platform_settings_service.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class PlatformSetting(BaseModel):
    """
    A single platform configuration value.

    Fields:
        key: Registry key (e.g. "settlement_schedule")
        value: Raw text value
        description: What the setting controls
        category: Grouping for the admin UI
        updated_by: Admin who last changed the value
    """

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True, default="")
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=50, blank=True, default="payments")

    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="platform_settings_updated",
    )

    class Meta:
        ordering = ["category", "key"]
        verbose_name = "Platform setting"
        verbose_name_plural = "Platform settings"

    def __str__(self) -> str:
        return f"{self.key}={self.value}"
