"""eBay auction channel adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.logging import get_logger
from core.result import Failure
from services.marketplaces.base import MarketplacePayload, SyncResult
from services.marketplaces.ebay.client import EBAY_MARKETPLACES, EbayClient
from services.marketplaces.errors import ErrorCode
from services.marketplaces.linking import coverage_percent, link_result, reconcile
from services.marketplaces.operations import Create, OperationKind, Pull, Recreate, Update
from services.marketplaces.staging import StagingAdapter

if TYPE_CHECKING:
    from services.marketplaces.account_config import AccountConfig
    from services.marketplaces.accounts import ChannelAccount
    from services.marketplaces.catalog import Product, ProductCatalog

logger = get_logger(__name__)

# bulk_update_price_quantity accepts at most this many requests per call
PRICE_BATCH_SIZE = 25


class EbayAdapter(StagingAdapter):
    """
    Adapter for eBay sellers.

    Every variant SKU becomes an inventory item with its own offer. Create
    writes the item, creates the offer and publishes it; the linkage maps
    each SKU to its offer id.
    """

    supported_filters = frozenset({"sku", "limit", "offset"})

    def __init__(
        self,
        account: ChannelAccount,
        config: AccountConfig,
        catalog: ProductCatalog | None = None,
        client: EbayClient | None = None,
    ) -> None:
        """
        Initialize eBay adapter.

        Args:
            account: Account snapshot.
            config: Validated eBay configuration.
            catalog: Source of local products.
            client: Optional pre-configured client for testing.
        """
        super().__init__(account, config, catalog)
        credentials = config.credentials
        self._client = client or EbayClient(
            client_id=credentials.client_id,
            client_secret=credentials.client_secret.get_secret_value(),
            refresh_token=credentials.refresh_token.get_secret_value(),
            environment=credentials.environment,
            marketplace_id=config.settings.marketplace_id,
            timeout=config.timeout,
        )

    @property
    def marketplace_name(self) -> str:
        """Return the marketplace display name."""
        country = EBAY_MARKETPLACES.get(self.config.settings.marketplace_id, "Unknown")
        return f"eBay {country}"

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    def build_payload(
        self,
        operation: Create | Update | Recreate,
        product: Product,
    ) -> MarketplacePayload:
        """Transform a local product into inventory items and offers."""
        title = product.name
        images = list(product.images)
        fields: tuple[str, ...] = ("title", "images", "pricing")
        if isinstance(operation, Update):
            fields = operation.fields
            title = operation.title or title
            if operation.images is not None:
                images = list(operation.images)

        data: dict[str, Any] = {}
        if isinstance(operation, Create | Recreate) or "title" in fields or "images" in fields:
            data["inventory_items"] = {
                sku: self._inventory_item(product, title, images, quantity)
                for sku, _price, quantity in _variant_rows(product)
            }
        if isinstance(operation, Create | Recreate):
            data["offers"] = [
                self._offer(product, sku, price, quantity)
                for sku, price, quantity in _variant_rows(product)
            ]
        elif "pricing" in fields:
            data["prices"] = [
                {"sku": sku, "price": str(price), "quantity": quantity}
                for sku, price, quantity in _variant_rows(product)
            ]
        return MarketplacePayload(
            data=data,
            metadata={
                "source_product_id": product.id,
                "fields": list(fields),
                "marketplace_id": self.config.settings.marketplace_id,
            },
        )

    def _inventory_item(
        self,
        product: Product,
        title: str,
        images: list[str],
        quantity: int,
    ) -> dict[str, Any]:
        item_product: dict[str, Any] = {
            "title": title[:80],
            "description": product.description,
            "imageUrls": images[:12],
        }
        if product.brand:
            item_product["brand"] = product.brand
            item_product["aspects"] = {"Brand": [product.brand]}
        return {
            "product": item_product,
            "condition": "NEW",
            "availability": {"shipToLocationAvailability": {"quantity": quantity}},
        }

    def _offer(self, product: Product, sku: str, price: Any, quantity: int) -> dict[str, Any]:
        settings = self.config.settings
        offer: dict[str, Any] = {
            "sku": sku,
            "marketplaceId": settings.marketplace_id,
            "format": settings.listing_format,
            "availableQuantity": quantity,
            "listingDescription": product.description or product.name,
            "pricingSummary": {"price": {"value": str(price), "currency": settings.currency}},
        }
        if settings.category_id:
            offer["categoryId"] = settings.category_id
        if settings.merchant_location_key:
            offer["merchantLocationKey"] = settings.merchant_location_key
        policies = {
            "fulfillmentPolicyId": settings.fulfillment_policy_id,
            "paymentPolicyId": settings.payment_policy_id,
            "returnPolicyId": settings.return_policy_id,
        }
        if any(policies.values()):
            offer["listingPolicies"] = {key: value for key, value in policies.items() if value}
        return offer

    async def push_create(self, product: Product, payload: MarketplacePayload) -> SyncResult:
        """Write inventory items, then create and publish one offer per SKU."""
        kind = OperationKind.CREATE
        items = payload.data["inventory_items"]
        offer_ids: dict[str, str] = {}
        listing_ids: dict[str, str] = {}
        problems: list[str] = []

        for offer in payload.data["offers"]:
            sku = offer["sku"]
            written = await self._client.put_inventory_item(sku, dict(items[sku]))
            if isinstance(written, Failure):
                if written.error.is_retryable or written.error.code == ErrorCode.AUTHENTICATION:
                    return self.error_result(written.error, kind, data={"offers": offer_ids})
                problems.append(f"{sku}: {written.error.message}")
                continue

            created = await self._client.create_offer(offer)
            if isinstance(created, Failure):
                problems.append(f"{sku}: {created.error.message}")
                continue
            offer_id = str(created.value["offerId"])
            offer_ids[sku] = offer_id

            published = await self._client.publish_offer(offer_id)
            if isinstance(published, Failure):
                problems.append(
                    f"{sku}: offer {offer_id} not published: {published.error.message}"
                )
                continue
            listing_ids[sku] = str(published.value.get("listingId", ""))

        if not offer_ids:
            return SyncResult.failed(
                f"No eBay offers created for product {product.id}",
                errors=problems or None,
                metadata={"channel": self.channel.value, "operation": kind.value},
            )

        total = len(payload.data["offers"])
        first_offer = next(iter(offer_ids.values()))
        remote_id = next((lid for lid in listing_ids.values() if lid), first_offer)
        result = self.created_result(
            product,
            remote_id,
            offer_ids,
            f"Created {len(offer_ids)}/{total} eBay offer(s), {len(listing_ids)} published",
            extra={
                "listing_ids": listing_ids,
                "coverage_percent": coverage_percent(len(offer_ids), total),
            },
        )
        if not problems:
            return result
        logger.warning("eBay create partially failed", product_id=product.id, problems=problems)
        return SyncResult.succeeded(
            result.message,
            data=result.data,
            metadata={**result.metadata, "warnings": problems},
        )

    async def push_update(
        self,
        operation: Update,
        product: Product,
        payload: MarketplacePayload,
        linkage: dict[str, Any],
    ) -> SyncResult:
        """Rewrite inventory items and/or revise offer prices."""
        kind = OperationKind.UPDATE
        offer_ids: dict[str, str] = dict(linkage.get("variants") or {})
        updated: list[str] = []

        items = payload.data.get("inventory_items") or {}
        for sku, item in items.items():
            if sku not in offer_ids:
                continue
            written = await self._client.put_inventory_item(sku, dict(item))
            if isinstance(written, Failure):
                return self.error_result(written.error, kind, data={"updated": updated})
        if items:
            updated.extend(field for field in operation.fields if field != "pricing")

        prices = payload.data.get("prices") or []
        currency = self.config.settings.currency
        requests = [
            {
                "sku": entry["sku"],
                "shipToLocationAvailability": {"quantity": entry["quantity"]},
                "offers": [
                    {
                        "offerId": offer_ids[entry["sku"]],
                        "availableQuantity": entry["quantity"],
                        "price": {"value": entry["price"], "currency": currency},
                    }
                ],
            }
            for entry in prices
            if entry["sku"] in offer_ids
        ]
        for start in range(0, len(requests), PRICE_BATCH_SIZE):
            batch = requests[start : start + PRICE_BATCH_SIZE]
            revised = await self._client.bulk_update_price_quantity(batch)
            if isinstance(revised, Failure):
                return self.error_result(revised.error, kind, data={"updated": updated})
            rejected = [
                response.get("sku", "?")
                for response in revised.value.get("responses", [])
                if response.get("statusCode", 200) >= 400
            ]
            if rejected:
                return SyncResult.failed(
                    "eBay rejected price updates",
                    errors=[f"Price update rejected for SKU {sku}" for sku in rejected],
                    data={"updated": updated},
                    metadata={"channel": self.channel.value, "operation": kind.value},
                )
        if requests:
            updated.append("pricing")

        return SyncResult.succeeded(
            f"Updated eBay offers for product {product.id}",
            data={"product_id": product.id, "remote_id": linkage["remote_id"], "updated": updated},
            metadata={"channel": self.channel.value, "account": self.account.name},
        )

    async def push_link(self, product: Product) -> SyncResult:
        """Look up existing offers for each SKU."""
        records: list[dict[str, Any]] = []
        for sku in product.variant_skus:
            found = await self._client.get_offers(sku)
            if isinstance(found, Failure):
                # eBay answers 404 when a SKU has no inventory item
                if found.error.code == ErrorCode.NOT_FOUND:
                    continue
                return self.error_result(found.error, OperationKind.LINK)
            records.extend(found.value.get("offers") or [])

        outcome = reconcile(product.variant_skus, records, sku_field="sku", id_field="offerId")
        listing = next(
            (
                record.get("listing", {}).get("listingId")
                for record in records
                if record.get("sku") in outcome.linked and record.get("listing")
            ),
            None,
        )
        return link_result(
            outcome,
            product_id=product.id,
            remote_id=listing,
            identifiers=self.account.marketplace_identifiers,
            channel=self.channel.value,
        )

    async def pull_records(self, operation: Pull) -> SyncResult:
        """Fetch inventory items, either one SKU or a page."""
        filters = operation.filters
        if filters.get("sku"):
            result = await self._client.get_inventory_item(str(filters["sku"]))
            if isinstance(result, Failure):
                return self.error_result(result.error, OperationKind.PULL)
            records = [result.value]
            total = 1
        else:
            result = await self._client.get_inventory_items(
                limit=int(filters.get("limit", 25)),
                offset=int(filters.get("offset", 0)),
            )
            if isinstance(result, Failure):
                return self.error_result(result.error, OperationKind.PULL)
            records = result.value.get("inventoryItems") or []
            total = int(result.value.get("total", len(records)))

        return SyncResult.succeeded(
            f"Fetched {len(records)} eBay inventory item(s)",
            data={"records": records, "count": len(records), "total": total},
            metadata={"channel": self.channel.value, "filters": dict(filters)},
        )

    async def check_connection(self) -> SyncResult:
        """Read the seller's selling privileges."""
        result = await self._client.get_privilege()
        if isinstance(result, Failure):
            return self.error_result(result.error, OperationKind.TEST_CONNECTION)
        return SyncResult.succeeded(
            f"Connected to {self.marketplace_name} ({self._client.environment.lower()})",
            data={
                "privilege": result.value,
                "marketplace_id": self._client.marketplace_id,
                "environment": self._client.environment,
            },
            metadata={"channel": self.channel.value},
        )


def _variant_rows(product: Product) -> list[tuple[str, Any, int]]:
    if not product.variants:
        return [(product.sku, product.lowest_price, 0)]
    return [
        (
            variant.sku,
            variant.price if variant.price is not None else product.lowest_price,
            max(0, variant.quantity),
        )
        for variant in product.variants
    ]
