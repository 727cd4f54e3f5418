"""Known channels and the families they belong to."""

from __future__ import annotations

from enum import Enum


class ChannelFamily(str, Enum):
    """Integration style shared by a group of channels."""

    STOREFRONT = "storefront"
    AUCTION = "auction"
    MULTI_OPERATOR = "multi_operator"
    OPERATOR_VARIANT = "operator_variant"
    MARKETPLACE = "marketplace"


class Channel(str, Enum):
    """
    The fixed set of channels an account can be configured for.

    Operator variants (freemans, debenhams, bq) share the multi-operator
    transport and differ only in their defaults.
    """

    SHOPIFY = "shopify"
    EBAY = "ebay"
    MIRAKL = "mirakl"
    FREEMANS = "freemans"
    DEBENHAMS = "debenhams"
    BQ = "bq"
    AMAZON = "amazon"

    @classmethod
    def parse(cls, name: str) -> Channel:
        """
        Resolve a channel name or family alias.

        Args:
            name: Channel value or alias, case-insensitive.

        Returns:
            The matching Channel.

        Raises:
            ValueError: If the name is not a known channel.
        """
        key = (name or "").strip().lower()
        channel = _ALIASES.get(key)
        if channel is not None:
            return channel
        try:
            return cls(key)
        except ValueError:
            msg = f"Unsupported channel: {name}"
            raise ValueError(msg) from None

    @property
    def family(self) -> ChannelFamily:
        """Return the integration family of this channel."""
        return _FAMILIES[self]

    @property
    def display_name(self) -> str:
        """Return the human-readable channel name."""
        return _DISPLAY_NAMES[self]

    @property
    def is_implemented(self) -> bool:
        """Check if an adapter is wired up for this channel."""
        return self is not Channel.AMAZON

    @property
    def is_mirakl(self) -> bool:
        """Check if this channel talks the multi-operator protocol."""
        return self.family in {ChannelFamily.MULTI_OPERATOR, ChannelFamily.OPERATOR_VARIANT}


_ALIASES: dict[str, Channel] = {
    "storefront": Channel.SHOPIFY,
    "auction": Channel.EBAY,
    "multi-operator": Channel.MIRAKL,
    "multi_operator": Channel.MIRAKL,
}

_FAMILIES: dict[Channel, ChannelFamily] = {
    Channel.SHOPIFY: ChannelFamily.STOREFRONT,
    Channel.EBAY: ChannelFamily.AUCTION,
    Channel.MIRAKL: ChannelFamily.MULTI_OPERATOR,
    Channel.FREEMANS: ChannelFamily.OPERATOR_VARIANT,
    Channel.DEBENHAMS: ChannelFamily.OPERATOR_VARIANT,
    Channel.BQ: ChannelFamily.OPERATOR_VARIANT,
    Channel.AMAZON: ChannelFamily.MARKETPLACE,
}

_DISPLAY_NAMES: dict[Channel, str] = {
    Channel.SHOPIFY: "Shopify",
    Channel.EBAY: "eBay",
    Channel.MIRAKL: "Mirakl",
    Channel.FREEMANS: "Freemans",
    Channel.DEBENHAMS: "Debenhams",
    Channel.BQ: "B&Q",
    Channel.AMAZON: "Amazon",
}
