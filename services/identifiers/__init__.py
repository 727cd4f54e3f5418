"""Identifier setup actions package."""

from services.identifiers.base import IdentifierSetup, IdentifierSetupResult
from services.identifiers.composite import CompositeIdentifierSetup
from services.identifiers.ebay import EbayIdentifierSetup
from services.identifiers.mirakl import MiraklIdentifierSetup
from services.identifiers.shopify import ShopifyIdentifierSetup

__all__ = [
    "CompositeIdentifierSetup",
    "EbayIdentifierSetup",
    "IdentifierSetup",
    "IdentifierSetupResult",
    "MiraklIdentifierSetup",
    "ShopifyIdentifierSetup",
]
