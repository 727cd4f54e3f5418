"""Tests for the channels app models."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.db import IntegrityError

from apps.channels.models import HEALTH_CHECK_KEY, SyncAccount
from core.config import Settings, SyncSettings
from services.marketplaces.base import SyncResult
from services.marketplaces.errors import AuthenticationError


@pytest.fixture()
def account(db: None) -> SyncAccount:
    """Create a test account."""
    return SyncAccount.objects.create(
        name="main",
        channel="bq",
        credentials={"api_key": "key"},
        settings={"category_code": "garden"},
        marketplace_identifiers={"shop_id": "2001"},
    )


@pytest.mark.django_db
class TestSyncAccount:
    """Tests for the SyncAccount model."""

    def test_str_without_display_name(self, account: SyncAccount) -> None:
        """Accounts are shown as channel:name by default."""
        assert str(account) == "bq:main"

    def test_str_with_display_name(self, account: SyncAccount) -> None:
        """A display name wins when set."""
        account.display_name = "B&Q garden shop"

        assert str(account) == "B&Q garden shop"

    def test_channel_and_name_are_unique(self, account: SyncAccount) -> None:
        """Two accounts of one channel cannot share a name."""
        with pytest.raises(IntegrityError):
            SyncAccount.objects.create(name="main", channel="bq")

    def test_same_name_on_other_channel(self, account: SyncAccount) -> None:
        """Names only need to be unique within a channel."""
        other = SyncAccount.objects.create(name="main", channel="ebay")

        assert other.pk != account.pk

    def test_to_channel_account(self, account: SyncAccount) -> None:
        """Snapshots carry the stored maps and id."""
        snapshot = account.to_channel_account()

        assert snapshot.id == account.pk
        assert snapshot.key == ("bq", "main")
        assert snapshot.credentials == {"api_key": "key"}
        assert snapshot.settings == {"category_code": "garden"}
        assert snapshot.marketplace_identifiers == {"shop_id": "2001"}

    def test_snapshot_excludes_health_check(self, account: SyncAccount) -> None:
        """Health check state is not passed to adapters as a setting."""
        account.record_health_check(SyncResult.succeeded("Connected"))

        assert HEALTH_CHECK_KEY not in account.to_channel_account().settings

    def test_snapshot_is_a_copy(self, account: SyncAccount) -> None:
        """Changing a snapshot does not change the model."""
        snapshot = account.to_channel_account()
        snapshot.marketplace_identifiers["shop_id"] = "other"

        assert account.marketplace_identifiers == {"shop_id": "2001"}


@pytest.mark.django_db
class TestRecordHealthCheck:
    """Tests for SyncAccount.record_health_check."""

    def test_health_check_empty_by_default(self, account: SyncAccount) -> None:
        """Untested accounts have no health state."""
        assert account.health_check == {}
        assert account.connection_test_result == SyncAccount.ConnectionStatus.UNKNOWN

    def test_records_pass(self, account: SyncAccount) -> None:
        """A passing test is stored as current and saved."""
        state = account.record_health_check(SyncResult.succeeded("Connected to B&Q shop"))

        account.refresh_from_db()
        assert account.connection_test_result == SyncAccount.ConnectionStatus.PASSED
        assert account.last_connection_test is not None
        assert state["current"]["success"] is True
        assert state["current"]["message"] == "Connected to B&Q shop"
        assert state["history"] == []
        assert account.health_check == state

    def test_records_failure(self, account: SyncAccount) -> None:
        """A failing test keeps its error code and messages."""
        result = SyncResult.from_error(AuthenticationError(channel="bq"))

        state = account.record_health_check(result)

        account.refresh_from_db()
        assert account.connection_test_result == SyncAccount.ConnectionStatus.FAILED
        assert state["current"]["error_code"] == "authentication"
        assert state["current"]["errors"] == ["Authentication failed"]

    def test_previous_result_moves_to_history(self, account: SyncAccount) -> None:
        """The newest outcome is current; older ones are kept newest first."""
        account.record_health_check(SyncResult.succeeded("first"))
        account.record_health_check(SyncResult.succeeded("second"))
        state = account.record_health_check(SyncResult.failed("third"))

        assert state["current"]["message"] == "third"
        assert [entry["message"] for entry in state["history"]] == ["second", "first"]

    def test_history_is_bounded(self, account: SyncAccount) -> None:
        """History never grows beyond the configured size."""
        settings = Settings(sync=SyncSettings(health_history_size=2))
        with patch("apps.channels.models.get_settings", return_value=settings):
            for index in range(5):
                state = account.record_health_check(SyncResult.succeeded(f"check {index}"))

        assert state["current"]["message"] == "check 4"
        assert [entry["message"] for entry in state["history"]] == ["check 3", "check 2"]

    def test_other_settings_are_kept(self, account: SyncAccount) -> None:
        """Recording health does not touch channel settings."""
        account.record_health_check(SyncResult.succeeded("ok"))

        account.refresh_from_db()
        assert account.settings["category_code"] == "garden"
