"""API views for channels and sync accounts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.serializers import (
    ChannelSerializer,
    IdentifierSetupResultSerializer,
    SyncAccountSerializer,
    SyncResultSerializer,
)
from apps.channels.models import SyncAccount
from apps.channels.store import DjangoAccountStore
from core.logging import get_logger
from core.result import Failure
from services.identifiers import CompositeIdentifierSetup, IdentifierSetupResult
from services.marketplaces.channels import Channel
from services.marketplaces.dispatcher import SyncDispatcher

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from services.marketplaces.base import SyncResult
    from services.marketplaces.staging import StagingAdapter

logger = get_logger(__name__)


class ChannelsView(APIView):
    """
    API endpoint for listing known channels.

    Returns every channel with its family and whether an adapter exists.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        """Return list of known channels."""
        channels = [
            {
                "code": channel.value,
                "name": channel.display_name,
                "family": channel.family.value,
                "is_implemented": channel.is_implemented,
            }
            for channel in Channel
        ]
        serializer = ChannelSerializer(channels, many=True)
        return Response(serializer.data)


class SyncAccountViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for viewing sync accounts.

    Accounts are configured in the admin; this endpoint lists them and
    runs connection tests and identifier setup.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = SyncAccountSerializer

    def get_queryset(self) -> QuerySet[SyncAccount]:
        """Return accounts, optionally filtered by ``?channel=``."""
        queryset = SyncAccount.objects.all()
        channel = self.request.query_params.get("channel")
        if channel:
            queryset = queryset.filter(channel=channel)
        return queryset

    @extend_schema(request=None, responses=SyncResultSerializer)
    @action(detail=True, methods=["post"], url_path="test-connection")
    def test_connection(self, request: Request, pk: str | None = None) -> Response:
        """
        Test the account's connection and record the outcome.

        Returns 200 when the channel answered, 400 when no adapter could be
        built and 502 when the channel call failed.
        """
        account = self.get_object()
        resolved = SyncDispatcher().for_account(account.to_channel_account())
        if isinstance(resolved, Failure):
            account.record_health_check(resolved.error)
            return Response(resolved.error.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        result = async_to_sync(_test_connection)(resolved.value)
        account.record_health_check(result)
        logger.info(
            "Connection test requested",
            account_id=account.pk,
            channel=account.channel,
            success=result.success,
        )
        return Response(
            result.to_dict(),
            status=status.HTTP_200_OK if result.success else status.HTTP_502_BAD_GATEWAY,
        )

    @extend_schema(request=None, responses=IdentifierSetupResultSerializer)
    @action(detail=True, methods=["post"], url_path="setup-identifiers")
    def setup_identifiers(self, request: Request, pk: str | None = None) -> Response:
        """
        Fetch the account's marketplace details and store them.

        Returns 200 on success, 400 when no adapter could be built and 502
        when the channel call failed.
        """
        account = self.get_object()
        dispatcher = SyncDispatcher()
        snapshot = account.to_channel_account()
        resolved = dispatcher.for_account(snapshot)
        if isinstance(resolved, Failure):
            rejected = IdentifierSetupResult.from_sync_result(resolved.error)
            return Response(rejected.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        setup = CompositeIdentifierSetup(dispatcher, DjangoAccountStore())
        result = async_to_sync(setup.execute)(snapshot)
        return Response(
            result.to_dict(),
            status=status.HTTP_200_OK if result.success else status.HTTP_502_BAD_GATEWAY,
        )


async def _test_connection(adapter: StagingAdapter) -> SyncResult:
    try:
        return await adapter.test_connection()
    finally:
        await adapter.close()
