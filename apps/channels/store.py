"""AccountStore backed by the SyncAccount model."""

from __future__ import annotations

from typing import Any

from django.utils import timezone

from apps.channels.models import SyncAccount
from core.logging import get_logger
from services.marketplaces.accounts import ChannelAccount

logger = get_logger(__name__)


class DjangoAccountStore:
    """
    AccountStore using the Django async ORM.

    Identifiers are written with a single UPDATE of the whole JSON map.
    """

    async def get(self, channel: str, name: str) -> ChannelAccount | None:
        """Return the active account for (channel, name), if any."""
        account = await SyncAccount.objects.filter(
            channel=channel, name=name, is_active=True
        ).afirst()
        return account.to_channel_account() if account is not None else None

    async def get_by_id(self, account_id: int) -> ChannelAccount | None:
        """Return the account with the given id, if any."""
        account = await SyncAccount.objects.filter(pk=account_id).afirst()
        return account.to_channel_account() if account is not None else None

    async def list_active(self) -> list[ChannelAccount]:
        """Return all active accounts."""
        return [
            account.to_channel_account()
            async for account in SyncAccount.objects.filter(is_active=True)
        ]

    async def replace_identifiers(
        self,
        account: ChannelAccount,
        identifiers: dict[str, Any],
    ) -> ChannelAccount:
        """
        Replace the account's identifiers and return the updated snapshot.

        Raises:
            LookupError: If the account does not exist.
        """
        updated = await SyncAccount.objects.filter(pk=account.id).aupdate(
            marketplace_identifiers=identifiers,
            updated_at=timezone.now(),
        )
        if not updated:
            msg = f"Account {account} does not exist"
            raise LookupError(msg)
        logger.info("Identifiers replaced", account=str(account), keys=sorted(identifiers))
        return account.with_identifiers(identifiers)
