"""Shopify storefront adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.logging import get_logger
from core.result import Failure
from services.marketplaces.base import MarketplacePayload, SyncResult
from services.marketplaces.linking import coverage_percent, link_result, reconcile
from services.marketplaces.operations import Create, OperationKind, Pull, Recreate, Update
from services.marketplaces.shopify.client import ShopifyClient
from services.marketplaces.staging import StagingAdapter

if TYPE_CHECKING:
    from services.marketplaces.account_config import AccountConfig
    from services.marketplaces.accounts import ChannelAccount
    from services.marketplaces.catalog import Product, ProductCatalog

logger = get_logger(__name__)

OPTION_NAME = "Title"


class ShopifyAdapter(StagingAdapter):
    """
    Adapter for Shopify stores.

    Products are created with ``productCreate`` followed by
    ``productVariantsBulkCreate``; images are attached by URL. Linking
    searches the store by variant SKU.
    """

    supported_filters = frozenset({"query", "status", "limit", "after"})

    def __init__(
        self,
        account: ChannelAccount,
        config: AccountConfig,
        catalog: ProductCatalog | None = None,
        client: ShopifyClient | None = None,
    ) -> None:
        """
        Initialize Shopify adapter.

        Args:
            account: Account snapshot.
            config: Validated Shopify configuration.
            catalog: Source of local products.
            client: Optional pre-configured client for testing.
        """
        super().__init__(account, config, catalog)
        credentials = config.credentials
        self._client = client or ShopifyClient(
            store_url=credentials.store_url,
            access_token=credentials.access_token.get_secret_value(),
            api_version=credentials.api_version,
            timeout=config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    def build_payload(
        self,
        operation: Create | Update | Recreate,
        product: Product,
    ) -> MarketplacePayload:
        """Transform a local product into Shopify mutation inputs."""
        settings = self.config.settings
        if isinstance(operation, Update):
            fields = operation.fields
            product_input: dict[str, Any] = {}
            if "title" in fields:
                product_input["title"] = operation.title or product.name
            if not operation.is_narrowed:
                product_input["descriptionHtml"] = product.description
                product_input["vendor"] = settings.vendor or product.brand
            data: dict[str, Any] = {"product": product_input}
            if "pricing" in fields:
                data["variants"] = [
                    {"sku": sku, "price": str(price)} for sku, price in _variant_prices(product)
                ]
            if "images" in fields:
                images = operation.images if operation.images is not None else product.images
                data["media"] = list(images)
            return MarketplacePayload(
                data=data,
                metadata={"source_product_id": product.id, "fields": list(fields)},
            )

        titles = _option_values(product)
        variants = [
            {
                "optionValues": [{"optionName": OPTION_NAME, "name": titles[sku]}],
                "price": str(price),
                "inventoryItem": {"sku": sku},
            }
            for sku, price in _variant_prices(product)
        ]
        return MarketplacePayload(
            data={
                "product": {
                    "title": product.name,
                    "descriptionHtml": product.description,
                    "vendor": settings.vendor or product.brand,
                    "status": settings.product_status,
                    "productOptions": [
                        {
                            "name": OPTION_NAME,
                            "values": [{"name": name} for name in titles.values()],
                        }
                    ],
                },
                "variants": variants,
                "media": list(product.images),
            },
            metadata={
                "source_product_id": product.id,
                "fields": ["title", "description", "vendor", "variants", "images"],
            },
        )

    async def push_create(self, product: Product, payload: MarketplacePayload) -> SyncResult:
        """
        Create the product, its variants and its media.

        Once productCreate succeeded the product is linked even if its
        variants or media are rejected; those failures become warnings and
        the variant coverage shows what is missing.
        """
        kind = OperationKind.CREATE
        created = await self._client.create_product(dict(payload.data["product"]))
        if isinstance(created, Failure):
            return self.error_result(created.error, kind)
        remote_id = created.value["product"]["id"]

        warnings = []
        variant_ids: dict[str, str] = {}
        variants_result = await self._client.create_variants(
            remote_id, list(payload.data["variants"])
        )
        if isinstance(variants_result, Failure):
            logger.warning(
                "Shopify variant creation failed",
                product_id=product.id,
                remote_id=remote_id,
                error=str(variants_result.error),
            )
            warnings.append(f"Variants not created: {variants_result.error}")
        else:
            variant_ids = {
                variant["sku"]: variant["id"]
                for variant in variants_result.value.get("productVariants") or []
                if variant.get("sku")
            }

        media = list(payload.data.get("media") or [])
        if media:
            media_result = await self._client.create_media(remote_id, media, alt=product.name)
            if isinstance(media_result, Failure):
                logger.warning(
                    "Shopify media upload failed",
                    product_id=product.id,
                    error=str(media_result.error),
                )
                warnings.append(str(media_result.error))

        result = self.created_result(
            product,
            remote_id,
            variant_ids,
            f"Created Shopify product {remote_id} with {len(variant_ids)} variant(s)",
            extra={
                "images": len(media),
                "coverage_percent": coverage_percent(len(variant_ids), len(product.variant_skus)),
            },
        )
        if not warnings:
            return result
        return SyncResult.succeeded(
            result.message,
            data=result.data,
            metadata={**result.metadata, "warnings": warnings},
        )

    async def push_update(
        self,
        operation: Update,
        product: Product,
        payload: MarketplacePayload,
        linkage: dict[str, Any],
    ) -> SyncResult:
        """Send the selected fields to an already linked product."""
        kind = OperationKind.UPDATE
        remote_id = linkage["remote_id"]
        updated: list[str] = []

        product_input = dict(payload.data.get("product") or {})
        if product_input:
            result = await self._client.update_product({"id": remote_id, **product_input})
            if isinstance(result, Failure):
                return self.error_result(result.error, kind)
            updated.extend(sorted(product_input))

        prices = payload.data.get("variants")
        if prices:
            known = linkage.get("variants") or {}
            variants = [
                {"id": known[entry["sku"]], "price": entry["price"]}
                for entry in prices
                if entry["sku"] in known
            ]
            if variants:
                result = await self._client.update_variants(remote_id, variants)
                if isinstance(result, Failure):
                    return self.error_result(result.error, kind, data={"updated": updated})
                updated.append("pricing")

        media = payload.data.get("media")
        if media:
            result = await self._client.create_media(remote_id, list(media), alt=product.name)
            if isinstance(result, Failure):
                return self.error_result(result.error, kind, data={"updated": updated})
            updated.append("images")

        return SyncResult.succeeded(
            f"Updated Shopify product {remote_id}",
            data={"product_id": product.id, "remote_id": remote_id, "updated": updated},
            metadata={"channel": self.channel.value, "account": self.account.name},
        )

    async def push_link(self, product: Product) -> SyncResult:
        """Find store variants carrying the product's SKUs."""
        found = await self._client.find_products_by_sku(product.variant_skus)
        if isinstance(found, Failure):
            return self.error_result(found.error, OperationKind.LINK)

        records = [
            {"sku": variant.get("sku"), "variant_id": variant.get("id"), "product_id": remote["id"]}
            for remote in found.value
            for variant in remote.get("variants", [])
        ]
        outcome = reconcile(product.variant_skus, records, sku_field="sku", id_field="variant_id")
        owners = {record["variant_id"]: record["product_id"] for record in records}
        remote_id = next((owners[vid] for vid in outcome.linked.values() if vid in owners), None)
        return link_result(
            outcome,
            product_id=product.id,
            remote_id=remote_id,
            identifiers=self.account.marketplace_identifiers,
            channel=self.channel.value,
        )

    async def pull_records(self, operation: Pull) -> SyncResult:
        """Fetch one page of store products."""
        filters = operation.filters
        terms = [str(filters["query"])] if filters.get("query") else []
        if filters.get("status"):
            terms.append(f"status:{str(filters['status']).lower()}")
        result = await self._client.list_products(
            query=" ".join(terms) or None,
            first=int(filters.get("limit", 50)),
            after=filters.get("after"),
        )
        if isinstance(result, Failure):
            return self.error_result(result.error, OperationKind.PULL)

        products = result.value["products"]
        return SyncResult.succeeded(
            f"Fetched {len(products)} Shopify product(s)",
            data={
                "records": products,
                "count": len(products),
                "page_info": result.value["page_info"],
            },
            metadata={"channel": self.channel.value, "filters": dict(filters)},
        )

    async def check_connection(self) -> SyncResult:
        """Query the shop identity."""
        result = await self._client.get_shop()
        if isinstance(result, Failure):
            return self.error_result(result.error, OperationKind.TEST_CONNECTION)
        shop = result.value
        return SyncResult.succeeded(
            f"Connected to Shopify store {shop.get('name', self._client.store_url)}",
            data={"shop": shop},
            metadata={"channel": self.channel.value, "api_version": self._client.api_version},
        )


def _variant_prices(product: Product) -> list[tuple[str, Any]]:
    if not product.variants:
        return [(product.sku, product.lowest_price)]
    return [
        (variant.sku, variant.price if variant.price is not None else product.lowest_price)
        for variant in product.variants
    ]


def _option_values(product: Product) -> dict[str, str]:
    """Return a unique option value per SKU; Shopify rejects duplicates."""
    values: dict[str, str] = {}
    seen: set[str] = set()
    for sku, _price in _variant_prices(product):
        variant = next((v for v in product.variants if v.sku == sku), None)
        name = variant.title if variant is not None and variant.title else sku
        if name in seen:
            name = sku
        seen.add(name)
        values[sku] = name
    return values
