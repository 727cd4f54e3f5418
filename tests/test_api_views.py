"""Tests for API views."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.channels.models import SyncAccount
from services.marketplaces.base import SyncResult
from services.marketplaces.errors import NetworkError
from services.marketplaces.shopify.adapter import ShopifyAdapter

if TYPE_CHECKING:
    from django.contrib.auth.models import User

SHOPIFY_CREDENTIALS = {"store_url": "acme.myshopify.com", "access_token": "shpat_secret"}
SHOP = {"id": "gid://shopify/Shop/42", "name": "Acme", "myshopifyDomain": "acme.myshopify.com"}


@pytest.fixture()
def api_client() -> APIClient:
    """Create an API test client."""
    return APIClient()


@pytest.fixture()
def authenticated_client(api_client: APIClient, user: User) -> APIClient:
    """Create an authenticated API client."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture()
def account(db: None) -> SyncAccount:
    """Create a storefront account."""
    return SyncAccount.objects.create(
        name="main",
        channel="storefront",
        credentials=SHOPIFY_CREDENTIALS,
        marketplace_identifiers={"products": {"1": {"remote_id": "gid://shopify/Product/1"}}},
    )


class TestChannelsView:
    """Tests for ChannelsView."""

    def test_requires_authentication(self, api_client: APIClient, db: None) -> None:
        """Unauthenticated users should get 403."""
        response = api_client.get(reverse("api:channels"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_lists_channels(self, authenticated_client: APIClient) -> None:
        """Every known channel is listed with its family."""
        response = authenticated_client.get(reverse("api:channels"))

        assert response.status_code == status.HTTP_200_OK
        channels = {item["code"]: item for item in response.data}
        assert set(channels) == {
            "shopify",
            "ebay",
            "mirakl",
            "freemans",
            "debenhams",
            "bq",
            "amazon",
        }
        assert channels["bq"] == {
            "code": "bq",
            "name": "B&Q",
            "family": "operator_variant",
            "is_implemented": True,
        }
        assert channels["amazon"]["is_implemented"] is False


@pytest.mark.django_db
class TestSyncAccountViewSet:
    """Tests for SyncAccountViewSet."""

    def test_list_requires_authentication(self, api_client: APIClient) -> None:
        """Unauthenticated users should get 403."""
        response = api_client.get(reverse("api:account-list"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_hides_credentials(
        self, authenticated_client: APIClient, account: SyncAccount
    ) -> None:
        """Accounts are listed without their secrets."""
        response = authenticated_client.get(reverse("api:account-list"))

        assert response.status_code == status.HTTP_200_OK
        results = response.data["results"]
        assert [item["name"] for item in results] == ["main"]
        assert "credentials" not in results[0]
        assert "shpat_secret" not in response.content.decode()

    def test_list_filters_by_channel(
        self, authenticated_client: APIClient, account: SyncAccount
    ) -> None:
        """?channel= narrows the list."""
        SyncAccount.objects.create(name="uk", channel="ebay")

        response = authenticated_client.get(reverse("api:account-list"), {"channel": "ebay"})

        assert [item["name"] for item in response.data["results"]] == ["uk"]

    def test_retrieve(self, authenticated_client: APIClient, account: SyncAccount) -> None:
        """A single account can be read."""
        response = authenticated_client.get(reverse("api:account-detail", args=[account.pk]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["health_check"] == {}

    def test_account_is_read_only(
        self, authenticated_client: APIClient, account: SyncAccount
    ) -> None:
        """Accounts cannot be changed through the API."""
        response = authenticated_client.patch(
            reverse("api:account-detail", args=[account.pk]), {"name": "renamed"}, format="json"
        )

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED


@pytest.mark.django_db
class TestTestConnectionAction:
    """Tests for the test-connection action."""

    def test_success(self, authenticated_client: APIClient, account: SyncAccount) -> None:
        """A reachable store returns 200 and is recorded as passed."""
        connected = AsyncMock(return_value=SyncResult.succeeded("Connected to Shopify store Acme"))
        with patch.object(ShopifyAdapter, "check_connection", connected):
            response = authenticated_client.post(
                reverse("api:account-test-connection", args=[account.pk])
            )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["success"] is True
        account.refresh_from_db()
        assert account.connection_test_result == SyncAccount.ConnectionStatus.PASSED

    def test_remote_failure(self, authenticated_client: APIClient, account: SyncAccount) -> None:
        """A failed channel call returns 502."""
        unreachable = AsyncMock(
            return_value=SyncResult.from_error(NetworkError(channel="shopify"))
        )
        with patch.object(ShopifyAdapter, "check_connection", unreachable):
            response = authenticated_client.post(
                reverse("api:account-test-connection", args=[account.pk])
            )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.data["metadata"]["retryable"] is True
        account.refresh_from_db()
        assert account.connection_test_result == SyncAccount.ConnectionStatus.FAILED

    def test_invalid_configuration(self, authenticated_client: APIClient, db: None) -> None:
        """An account that cannot be dispatched returns 400."""
        broken = SyncAccount.objects.create(name="broken", channel="shopify")

        response = authenticated_client.post(
            reverse("api:account-test-connection", args=[broken.pk])
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["metadata"]["error_code"] == "configuration"
        broken.refresh_from_db()
        assert broken.connection_test_result == SyncAccount.ConnectionStatus.FAILED


@pytest.mark.django_db
class TestSetupIdentifiersAction:
    """Tests for the setup-identifiers action."""

    def test_storefront_scenario(
        self, authenticated_client: APIClient, account: SyncAccount
    ) -> None:
        """Shop details are stored on the account and returned."""
        connected = AsyncMock(return_value=SyncResult.succeeded("Connected", data={"shop": SHOP}))
        with patch.object(ShopifyAdapter, "check_connection", connected):
            response = authenticated_client.post(
                reverse("api:account-setup-identifiers", args=[account.pk])
            )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["success"] is True
        assert response.data["marketplace_details"]["shop_id"] == "42"
        assert response.data["summary"] == "Shopify identifiers retrieved"
        account.refresh_from_db()
        assert account.marketplace_identifiers["shop_id"] == "42"
        assert "products" in account.marketplace_identifiers

    def test_remote_failure_changes_nothing(
        self, authenticated_client: APIClient, account: SyncAccount
    ) -> None:
        """A failed shop query returns 502 and leaves identifiers as they were."""
        before = dict(account.marketplace_identifiers)
        unreachable = AsyncMock(
            return_value=SyncResult.from_error(NetworkError(channel="shopify"))
        )
        with patch.object(ShopifyAdapter, "check_connection", unreachable):
            response = authenticated_client.post(
                reverse("api:account-setup-identifiers", args=[account.pk])
            )

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.data["success"] is False
        assert response.data["error"]
        account.refresh_from_db()
        assert account.marketplace_identifiers == before

    def test_unsupported_channel(self, authenticated_client: APIClient, db: None) -> None:
        """Accounts on unknown channels return 400 without a network call."""
        legacy = SyncAccount.objects.create(name="legacy", channel="etsy")

        with patch("httpx.AsyncClient") as client_class:
            response = authenticated_client.post(
                reverse("api:account-setup-identifiers", args=[legacy.pk])
            )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {"success": False, "error": "Unsupported channel: etsy"}
        client_class.assert_not_called()
