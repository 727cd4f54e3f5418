"""Channels app configuration."""

from django.apps import AppConfig


class ChannelsConfig(AppConfig):
    """Configuration for the channels application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.channels"
    label = "channels"
    verbose_name = "Channels"
