"""API serializers for channels and sync accounts."""

from __future__ import annotations

from rest_framework import serializers

from apps.channels.models import SyncAccount


class SyncAccountSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for SyncAccount.

    Credentials are never serialized.
    """

    channel_name = serializers.CharField(source="get_channel_display", read_only=True)
    health_check = serializers.DictField(read_only=True)

    class Meta:
        """Meta options for SyncAccountSerializer."""

        model = SyncAccount
        fields = [
            "id",
            "name",
            "channel",
            "channel_name",
            "display_name",
            "is_active",
            "marketplace_identifiers",
            "connection_test_result",
            "last_connection_test",
            "health_check",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ChannelSerializer(serializers.Serializer):
    """Serializer for a known channel."""

    code = serializers.CharField()
    name = serializers.CharField()
    family = serializers.CharField()
    is_implemented = serializers.BooleanField()


class SyncResultSerializer(serializers.Serializer):
    """Serializer for a SyncResult rendered with ``to_dict()``."""

    success = serializers.BooleanField()
    message = serializers.CharField(allow_blank=True)
    data = serializers.DictField()
    errors = serializers.ListField(child=serializers.CharField())
    metadata = serializers.DictField()


class IdentifierSetupResultSerializer(serializers.Serializer):
    """Serializer for an identifier setup result."""

    success = serializers.BooleanField()
    marketplace_details = serializers.DictField(required=False)
    summary = serializers.CharField(required=False)
    error = serializers.CharField(required=False)
