"""Tests for the check_channel_connections management command."""

from __future__ import annotations

from io import StringIO
from unittest.mock import AsyncMock, patch

import pytest
from django.core.management import call_command

from apps.channels.models import SyncAccount
from services.marketplaces.base import SyncResult
from services.marketplaces.errors import AuthenticationError
from services.marketplaces.mirakl.adapter import MiraklAdapter
from services.marketplaces.shopify.adapter import ShopifyAdapter


@pytest.fixture()
def shopify_account(db: None) -> SyncAccount:
    """Create a Shopify account."""
    return SyncAccount.objects.create(
        name="main",
        channel="shopify",
        credentials={"store_url": "acme.myshopify.com", "access_token": "shpat_x"},
    )


@pytest.fixture()
def bq_account(db: None) -> SyncAccount:
    """Create a B&Q account."""
    return SyncAccount.objects.create(name="garden", channel="bq", credentials={"api_key": "k"})


def run_command(*args: str) -> str:
    """Run the command and return its output."""
    out = StringIO()
    call_command("check_channel_connections", *args, stdout=out, no_color=True)
    return out.getvalue()


@pytest.mark.django_db
class TestCheckChannelConnections:
    """Tests for the daily connection check."""

    def test_records_pass_and_fail(
        self, shopify_account: SyncAccount, bq_account: SyncAccount
    ) -> None:
        """Each active account gets its outcome recorded."""
        passed = AsyncMock(return_value=SyncResult.succeeded("Connected to Shopify store Acme"))
        failed = AsyncMock(
            return_value=SyncResult.from_error(AuthenticationError(channel="bq"))
        )
        with (
            patch.object(ShopifyAdapter, "check_connection", passed),
            patch.object(MiraklAdapter, "check_connection", failed),
        ):
            output = run_command()

        shopify_account.refresh_from_db()
        bq_account.refresh_from_db()
        assert shopify_account.connection_test_result == SyncAccount.ConnectionStatus.PASSED
        assert bq_account.connection_test_result == SyncAccount.ConnectionStatus.FAILED
        assert "PASS shopify:main: Connected to Shopify store Acme" in output
        assert "FAIL bq:garden: Authentication failed" in output
        assert "1 passed, 1 failed" in output

    def test_invalid_configuration_is_recorded(self, db: None) -> None:
        """Accounts that cannot be dispatched fail without a network call."""
        account = SyncAccount.objects.create(name="broken", channel="shopify", credentials={})

        output = run_command()

        account.refresh_from_db()
        assert account.connection_test_result == SyncAccount.ConnectionStatus.FAILED
        assert account.health_check["current"]["error_code"] == "configuration"
        assert "FAIL shopify:broken" in output

    def test_not_implemented_channel(self, db: None) -> None:
        """Channels without an adapter are reported as failures."""
        account = SyncAccount.objects.create(name="eu", channel="amazon")

        output = run_command()

        account.refresh_from_db()
        assert account.health_check["current"]["error_code"] == "not_implemented"
        assert "Channel amazon is not implemented yet" in output

    def test_inactive_accounts_are_skipped(self, db: None) -> None:
        """Inactive accounts are not checked."""
        account = SyncAccount.objects.create(name="old", channel="amazon", is_active=False)

        output = run_command()

        account.refresh_from_db()
        assert account.last_connection_test is None
        assert "0 passed, 0 failed" in output

    def test_channel_filter(self, shopify_account: SyncAccount, bq_account: SyncAccount) -> None:
        """--channel limits the run to one channel."""
        passed = AsyncMock(return_value=SyncResult.succeeded("Connected"))
        with patch.object(MiraklAdapter, "check_connection", passed):
            output = run_command("--channel", "bq")

        shopify_account.refresh_from_db()
        assert shopify_account.last_connection_test is None
        assert "1 passed, 0 failed" in output

    def test_account_filter(self, shopify_account: SyncAccount, bq_account: SyncAccount) -> None:
        """--account limits the run to one account name."""
        passed = AsyncMock(return_value=SyncResult.succeeded("Connected"))
        with patch.object(ShopifyAdapter, "check_connection", passed):
            output = run_command("--account", "main")

        assert "PASS shopify:main" in output
        assert "bq:garden" not in output
