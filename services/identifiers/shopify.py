"""Identifier setup for Shopify stores."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from services.identifiers.base import IdentifierSetup


class ShopifyIdentifierSetup(IdentifierSetup):
    """Stores the shop id, name, domain and currency."""

    def extract_details(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Map the ``shop`` query to marketplace details."""
        shop = data.get("shop") or {}
        shop_gid = shop.get("id")
        shop_id = shop.get("shop_id")
        if shop_id is None and shop_gid:
            # gid://shopify/Shop/42
            shop_id = str(shop_gid).rsplit("/", 1)[-1]
        return {
            "shop_id": str(shop_id) if shop_id is not None else None,
            "shop_gid": shop_gid,
            "shop_name": shop.get("name"),
            "shop_domain": shop.get("myshopifyDomain"),
            "currency": shop.get("currencyCode"),
        }
