"""
Routing from (channel name, account) to a configured adapter.

Resolution is pure: it validates the channel and the account configuration
and builds the adapter, but never touches the network.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import ValidationError

from core.logging import get_logger
from core.result import Failure, Result, Success
from services.marketplaces.account_config import (
    AccountConfig,
    describe_validation_error,
    load_account_config,
)
from services.marketplaces.base import SyncResult
from services.marketplaces.channels import Channel
from services.marketplaces.ebay.adapter import EbayAdapter
from services.marketplaces.errors import (
    ConfigurationError,
    InvalidRequestError,
    NotImplementedChannelError,
    UnsupportedChannelError,
)
from services.marketplaces.mirakl.adapter import MiraklAdapter
from services.marketplaces.shopify.adapter import ShopifyAdapter
from services.marketplaces.staging import StagingAdapter

if TYPE_CHECKING:
    from services.marketplaces.accounts import ChannelAccount
    from services.marketplaces.catalog import ProductCatalog

logger = get_logger(__name__)

type AdapterBuilder = Callable[
    [ChannelAccount, AccountConfig, ProductCatalog | None], StagingAdapter
]

_BUILDERS: dict[Channel, AdapterBuilder] = {
    Channel.SHOPIFY: ShopifyAdapter,
    Channel.EBAY: EbayAdapter,
    Channel.MIRAKL: MiraklAdapter,
    Channel.FREEMANS: MiraklAdapter,
    Channel.DEBENHAMS: MiraklAdapter,
    Channel.BQ: MiraklAdapter,
}


def resolve_channel(channel_name: str) -> Result[Channel, SyncResult]:
    """
    Resolve a channel name to an implemented channel.

    Returns:
        Success with the Channel, or Failure with a structured SyncResult
        for unknown or not yet implemented channels.
    """
    try:
        channel = Channel.parse(channel_name)
    except ValueError:
        logger.warning("Unsupported channel requested", channel=channel_name)
        return Failure(SyncResult.from_error(UnsupportedChannelError(channel_name)))

    if channel not in _BUILDERS:
        logger.warning("Channel not implemented", channel=channel.value)
        return Failure(SyncResult.from_error(NotImplementedChannelError(channel.value)))
    return Success(channel)


class SyncDispatcher:
    """
    Selects and builds the adapter for a channel account.

    Example:
        >>> dispatcher = SyncDispatcher(catalog)
        >>> result = dispatcher.for_account(account)
        >>> if result.is_success():
        ...     sync_result = await result.unwrap().create(42).push()
    """

    def __init__(self, catalog: ProductCatalog | None = None) -> None:
        """
        Initialize the dispatcher.

        Args:
            catalog: Catalog handed to every adapter for staging.
        """
        self._catalog = catalog

    @property
    def supported_channels(self) -> list[Channel]:
        """Return the channels with an adapter."""
        return list(_BUILDERS)

    def resolve(
        self,
        channel_name: str,
        account: ChannelAccount,
    ) -> Result[StagingAdapter, SyncResult]:
        """
        Build the adapter for a channel and account.

        Args:
            channel_name: Requested channel or family alias.
            account: Account the adapter is bound to.

        Returns:
            Success with the adapter, or Failure with a SyncResult
            describing why no adapter could be built.
        """
        resolved = resolve_channel(channel_name)
        if isinstance(resolved, Failure):
            return resolved
        channel = resolved.value

        account_channel = resolve_channel(account.channel)
        if isinstance(account_channel, Failure):
            return account_channel
        if account_channel.value is not channel:
            logger.warning(
                "Account belongs to another channel",
                channel=channel.value,
                account=str(account),
            )
            return Failure(
                SyncResult.from_error(
                    InvalidRequestError(
                        channel=channel.value,
                        message=(
                            f"Account {account.name} is configured for "
                            f"{account_channel.value.value}, not {channel.value}"
                        ),
                    )
                )
            )

        try:
            config = load_account_config(channel, account.credentials, account.settings)
        except ValidationError as e:
            problems = describe_validation_error(e)
            logger.warning(
                "Invalid account configuration",
                channel=channel.value,
                account=account.name,
                problems=problems,
            )
            error = ConfigurationError(
                channel=channel.value,
                message=(
                    f"Account {account.name} has an invalid {channel.display_name} configuration"
                ),
                details="; ".join(problems),
            )
            return Failure(SyncResult.from_error(error))

        try:
            adapter = _BUILDERS[channel](account, config, self._catalog)
        except ValueError as e:
            logger.warning(
                "Adapter rejected account configuration",
                channel=channel.value,
                account=account.name,
                error=str(e),
            )
            return Failure(
                SyncResult.from_error(ConfigurationError(channel=channel.value, details=str(e)))
            )
        logger.debug("Adapter resolved", channel=channel.value, account=account.name)
        return Success(adapter)

    def for_account(self, account: ChannelAccount) -> Result[StagingAdapter, SyncResult]:
        """Build the adapter for the account's own channel."""
        return self.resolve(account.channel, account)
