"""Marketplace synchronization package."""

from services.marketplaces.accounts import AccountStore, ChannelAccount, InMemoryAccountStore
from services.marketplaces.base import MarketplaceAdapter, MarketplacePayload, SyncResult
from services.marketplaces.catalog import InMemoryCatalog, Product, ProductCatalog, Variant
from services.marketplaces.channels import Channel, ChannelFamily
from services.marketplaces.dispatcher import SyncDispatcher, resolve_channel
from services.marketplaces.errors import (
    ErrorCode,
    MarketplaceError,
    StagingError,
)
from services.marketplaces.linking import LinkOutcome, coverage_percent, reconcile

__all__ = [
    "AccountStore",
    "Channel",
    "ChannelAccount",
    "ChannelFamily",
    "ErrorCode",
    "InMemoryAccountStore",
    "InMemoryCatalog",
    "LinkOutcome",
    "MarketplaceAdapter",
    "MarketplaceError",
    "MarketplacePayload",
    "Product",
    "ProductCatalog",
    "StagingError",
    "SyncDispatcher",
    "SyncResult",
    "Variant",
    "coverage_percent",
    "reconcile",
    "resolve_channel",
]
