"""eBay marketplace adapter package."""

from services.marketplaces.ebay.adapter import EbayAdapter
from services.marketplaces.ebay.client import EbayClient

__all__ = ["EbayAdapter", "EbayClient"]
