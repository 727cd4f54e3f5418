"""Routes identifier setup to the implementation of the account's channel."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure
from services.identifiers.base import IdentifierSetup, IdentifierSetupResult
from services.identifiers.ebay import EbayIdentifierSetup
from services.identifiers.mirakl import MiraklIdentifierSetup
from services.identifiers.shopify import ShopifyIdentifierSetup
from services.marketplaces.channels import Channel
from services.marketplaces.dispatcher import resolve_channel

if TYPE_CHECKING:
    from services.marketplaces.accounts import AccountStore, ChannelAccount
    from services.marketplaces.dispatcher import SyncDispatcher

logger = get_logger(__name__)

_SETUPS: dict[Channel, type[IdentifierSetup]] = {
    Channel.SHOPIFY: ShopifyIdentifierSetup,
    Channel.EBAY: EbayIdentifierSetup,
    Channel.MIRAKL: MiraklIdentifierSetup,
    Channel.FREEMANS: MiraklIdentifierSetup,
    Channel.DEBENHAMS: MiraklIdentifierSetup,
    Channel.BQ: MiraklIdentifierSetup,
}


class CompositeIdentifierSetup:
    """
    Identifier setup for any account.

    Unknown and not yet implemented channels return a failed result
    before any adapter is built.
    """

    def __init__(self, dispatcher: SyncDispatcher, store: AccountStore) -> None:
        """
        Initialize the router.

        Args:
            dispatcher: Builds the adapter for the account.
            store: Account store receiving the identifiers.
        """
        self._dispatcher = dispatcher
        self._store = store

    def for_channel(self, channel: Channel) -> IdentifierSetup | None:
        """Return the setup action of a channel, if it has one."""
        setup_class = _SETUPS.get(channel)
        if setup_class is None:
            return None
        return setup_class(self._dispatcher, self._store)

    async def execute(self, account: ChannelAccount) -> IdentifierSetupResult:
        """Fetch and store the marketplace details of the account."""
        resolved = resolve_channel(account.channel)
        if isinstance(resolved, Failure):
            return IdentifierSetupResult.failed(resolved.error.message)

        setup = self.for_channel(resolved.value)
        if setup is None:
            logger.warning("No identifier setup for channel", channel=resolved.value.value)
            return IdentifierSetupResult.failed(
                f"Identifier setup for {resolved.value.display_name} is not implemented yet"
            )
        return await setup.execute(account)
