"""Identifier setup for Mirakl operators."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from services.identifiers.base import IdentifierSetup


class MiraklIdentifierSetup(IdentifierSetup):
    """Stores the shop id, name, state and currency of the operator shop."""

    def extract_details(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Map the account call (A01) to marketplace details."""
        shop = data.get("account") or {}
        shop_id = shop.get("shop_id")
        return {
            "shop_id": str(shop_id) if shop_id is not None else None,
            "shop_name": shop.get("shop_name"),
            "shop_state": shop.get("shop_state"),
            "currency_iso_code": shop.get("currency_iso_code"),
            "operator": data.get("operator"),
        }
