"""Shopify storefront channel package."""

from services.marketplaces.shopify.adapter import ShopifyAdapter
from services.marketplaces.shopify.client import ShopifyClient

__all__ = ["ShopifyAdapter", "ShopifyClient"]
