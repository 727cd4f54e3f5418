"""Models for the channels application."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.db import models
from django.utils import timezone

from core.config import get_settings
from services.marketplaces.accounts import ChannelAccount
from services.marketplaces.channels import Channel

if TYPE_CHECKING:
    from services.marketplaces.base import SyncResult

HEALTH_CHECK_KEY = "health_check"


class SyncAccount(models.Model):
    """
    A configured connection to one sales channel.

    Credentials and settings are free-form JSON validated per channel when
    an adapter is built. ``marketplace_identifiers`` is written only by
    identifier setup and by successful create/link operations.
    """

    class ConnectionStatus(models.TextChoices):
        """Outcome of the latest connection test."""

        UNKNOWN = "", "Not tested"
        PASSED = "passed", "Passed"
        FAILED = "failed", "Failed"

    name = models.CharField(
        max_length=100,
        help_text="Account name, unique per channel (e.g., 'main')",
    )
    channel = models.CharField(
        max_length=30,
        choices=[(channel.value, channel.display_name) for channel in Channel],
        help_text="Sales channel this account connects to",
    )
    display_name = models.CharField(max_length=150, blank=True, default="")
    is_active = models.BooleanField(
        default=True,
        help_text="Inactive accounts are skipped by syncs and health checks",
    )
    credentials = models.JSONField(
        default=dict,
        blank=True,
        help_text="Channel-specific secrets (API keys, tokens)",
    )
    settings = models.JSONField(
        default=dict,
        blank=True,
        help_text="Channel-specific options (currency, category code, lead time)",
    )
    marketplace_identifiers = models.JSONField(
        default=dict,
        blank=True,
        help_text="Remote identifiers recorded after syncs",
    )
    last_connection_test = models.DateTimeField(null=True, blank=True)
    connection_test_result = models.CharField(
        max_length=10,
        choices=ConnectionStatus.choices,
        blank=True,
        default=ConnectionStatus.UNKNOWN,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Meta options for SyncAccount model."""

        db_table = "sync_accounts"
        ordering = ["channel", "name"]
        verbose_name = "Sync Account"
        verbose_name_plural = "Sync Accounts"
        constraints = [
            models.UniqueConstraint(fields=["channel", "name"], name="unique_channel_account_name"),
        ]

    def __str__(self) -> str:
        """Return string representation."""
        return self.display_name or f"{self.channel}:{self.name}"

    def to_channel_account(self) -> ChannelAccount:
        """Return a snapshot for the sync layer, without health check state."""
        return ChannelAccount(
            id=self.pk,
            name=self.name,
            channel=self.channel,
            credentials=dict(self.credentials or {}),
            settings={
                key: value
                for key, value in (self.settings or {}).items()
                if key != HEALTH_CHECK_KEY
            },
            marketplace_identifiers=dict(self.marketplace_identifiers or {}),
            is_active=self.is_active,
            display_name=self.display_name,
        )

    @property
    def health_check(self) -> dict[str, Any]:
        """Return the stored health check state."""
        return dict((self.settings or {}).get(HEALTH_CHECK_KEY) or {})

    def record_health_check(self, result: SyncResult) -> dict[str, Any]:
        """
        Store a connection test outcome and save the account.

        The latest outcome is kept as ``current``; earlier ones move to a
        ``history`` list bounded by ``SYNC_HEALTH_HISTORY_SIZE``.

        Args:
            result: Result of ``test_connection()``.

        Returns:
            The updated health check state.
        """
        tested_at = timezone.now()
        entry = {
            "success": result.success,
            "message": result.message,
            "errors": list(result.errors),
            "error_code": result.error_code,
            "tested_at": tested_at.isoformat(),
        }

        state = self.health_check
        history = list(state.get("history") or [])
        if state.get("current"):
            history.insert(0, state["current"])
        limit = get_settings().sync.health_history_size
        state = {"current": entry, "history": history[:limit]}

        self.settings = {**(self.settings or {}), HEALTH_CHECK_KEY: state}
        self.last_connection_test = tested_at
        self.connection_test_result = (
            self.ConnectionStatus.PASSED if result.success else self.ConnectionStatus.FAILED
        )
        self.save(
            update_fields=[
                "settings",
                "last_connection_test",
                "connection_test_result",
                "updated_at",
            ]
        )
        return state
