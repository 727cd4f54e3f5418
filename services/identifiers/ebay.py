"""Identifier setup for eBay sellers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from services.identifiers.base import IdentifierSetup


class EbayIdentifierSetup(IdentifierSetup):
    """Stores the marketplace, environment and selling limits."""

    def extract_details(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Map the privilege call to marketplace details."""
        privilege = data.get("privilege") or {}
        limit = privilege.get("sellingLimit") or {}
        amount = limit.get("amount") or {}
        return {
            "marketplace_id": data.get("marketplace_id"),
            "environment": data.get("environment"),
            "seller_registration_completed": privilege.get("sellerRegistrationCompleted"),
            "selling_limit_amount": amount.get("value"),
            "selling_limit_currency": amount.get("currency"),
            "selling_limit_quantity": limit.get("quantity"),
        }
