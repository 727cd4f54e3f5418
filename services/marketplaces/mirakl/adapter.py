"""
Mirakl multi-operator adapter.

One adapter serves the generic Mirakl channel and every operator variant
(Freemans, Debenhams, B&Q); operators only differ in host and defaults.
"""

from __future__ import annotations

import csv
import io
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Self

from core.config import get_settings
from core.logging import get_logger
from core.result import Failure
from services.marketplaces.account_config import MIRAKL_OPERATORS
from services.marketplaces.base import MarketplacePayload, SyncResult
from services.marketplaces.errors import NotFoundError, StagingError
from services.marketplaces.linking import link_result, reconcile
from services.marketplaces.mirakl.client import MiraklClient
from services.marketplaces.operations import Create, OperationKind, Pull, Recreate, Update
from services.marketplaces.staging import StagingAdapter

if TYPE_CHECKING:
    from services.marketplaces.account_config import AccountConfig, MiraklOperator
    from services.marketplaces.accounts import ChannelAccount
    from services.marketplaces.catalog import Product, ProductCatalog

logger = get_logger(__name__)

CATALOG_CSV_HEADERS = (
    "product-id",
    "product-title",
    "product-description",
    "brand",
    "category-code",
    "product-references",
    "media-url-1",
    "media-url-2",
    "media-url-3",
)

OFFER_CSV_HEADERS = (
    "shop-sku",
    "product-id",
    "product-id-type",
    "description",
    "price",
    "quantity",
    "leadtime-to-ship",
    "logistic-class",
    "state",
)


class MiraklAdapter(StagingAdapter):
    """
    Adapter for Mirakl operators.

    Offers are written with OF24, which creates or updates at the remote.
    After ``use_csv()`` create and title/image updates go through the
    catalog (P41) and offer (OF01) CSV imports instead.
    """

    supported_filters = frozenset({"sku", "offer_state_codes", "updated_since", "max", "offset"})

    def __init__(
        self,
        account: ChannelAccount,
        config: AccountConfig,
        catalog: ProductCatalog | None = None,
        client: MiraklClient | None = None,
    ) -> None:
        """
        Initialize Mirakl adapter.

        Args:
            account: Account snapshot.
            config: Validated Mirakl configuration.
            catalog: Source of local products.
            client: Optional pre-configured client for testing.
        """
        super().__init__(account, config, catalog)
        credentials = config.credentials
        self._use_csv = False
        self._client = client or MiraklClient(
            base_url=credentials.base_url,
            api_key=credentials.api_key.get_secret_value(),
            shop_id=credentials.shop_id,
            channel=config.channel.value,
            timeout=config.timeout,
        )

    @property
    def operator(self) -> MiraklOperator | None:
        """Return the operator defaults, or None for the generic channel."""
        return MIRAKL_OPERATORS.get(self.channel)

    @property
    def uses_csv(self) -> bool:
        """Check if create and content updates go through CSV imports."""
        return self._use_csv

    def use_csv(self, enabled: bool = True) -> Self:
        """Route create and title/image updates through CSV imports."""
        self._use_csv = enabled
        return self

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    # Payload

    def build_payload(
        self,
        operation: Create | Update | Recreate,
        product: Product,
    ) -> MarketplacePayload:
        """Transform a local product into offers and CSV documents."""
        fields: tuple[str, ...] = ("title", "images", "pricing")
        title, images = product.name, list(product.images)
        if isinstance(operation, Update):
            fields = operation.fields
            title = operation.title or title
            if operation.images is not None:
                images = list(operation.images)

        data: dict[str, Any] = {}
        if "pricing" in fields:
            data["offers"] = self._offers(product)
        if isinstance(operation, Create | Recreate) or "title" in fields or "images" in fields:
            row = self._catalog_row(product, title, images)
            data["catalog_csv"] = _to_csv(CATALOG_CSV_HEADERS, [row])
        if isinstance(operation, Create | Recreate):
            data["offers_csv"] = _to_csv(OFFER_CSV_HEADERS, self._offer_rows(product))
        return MarketplacePayload(
            data=data,
            metadata={
                "source_product_id": product.id,
                "fields": list(fields),
                "operator": self.operator.code if self.operator else "mirakl",
            },
        )

    def _offers(self, product: Product) -> list[dict[str, Any]]:
        settings = self.config.settings
        offers = []
        for sku, price, quantity, description in _variant_rows(product):
            offers.append(
                {
                    "shop_sku": sku,
                    "product_id": product.sku,
                    "product_id_type": settings.product_id_type,
                    "price": _money(price),
                    "quantity": quantity,
                    "state_code": str(settings.default_state),
                    "logistic_class": settings.logistic_class,
                    "leadtime_to_ship": settings.leadtime_to_ship,
                    "description": description,
                }
            )
        return offers

    def _catalog_row(self, product: Product, title: str, images: list[str]) -> list[str]:
        media = (images + ["", "", ""])[:3]
        return [
            product.sku,
            title,
            product.description,
            product.brand,
            self.config.settings.category_code,
            product.sku,
            *media,
        ]

    def _offer_rows(self, product: Product) -> list[list[str]]:
        settings = self.config.settings
        return [
            [
                sku,
                product.sku,
                settings.product_id_type,
                description,
                _money(price),
                str(quantity),
                str(settings.leadtime_to_ship),
                settings.logistic_class,
                str(settings.default_state),
            ]
            for sku, price, quantity, description in _variant_rows(product)
        ]

    def generate_csv_preview(self, product_id: int) -> SyncResult:
        """
        Render the catalog and offer CSVs for a product without sending them.

        Raises:
            StagingError: If the adapter has no product catalog.
        """
        if self._catalog is None:
            msg = "No product catalog configured; cannot render CSV preview"
            raise StagingError(msg)
        product = self._catalog.get_product(product_id)
        if product is None:
            return self.error_result(
                NotFoundError(
                    channel=self.channel.value, message=f"Product {product_id} not found"
                ),
                OperationKind.CREATE,
            )

        catalog_rows = [self._catalog_row(product, product.name, list(product.images))]
        offer_rows = self._offer_rows(product)
        return SyncResult.succeeded(
            f"CSV preview for product {product_id}",
            data={
                "catalog": {
                    "headers": list(CATALOG_CSV_HEADERS),
                    "rows": catalog_rows,
                    "content": _to_csv(CATALOG_CSV_HEADERS, catalog_rows),
                },
                "offers": {
                    "headers": list(OFFER_CSV_HEADERS),
                    "rows": offer_rows,
                    "content": _to_csv(OFFER_CSV_HEADERS, offer_rows),
                },
            },
            metadata={"channel": self.channel.value, "account": self.account.name},
        )

    # Execution

    async def push_create(self, product: Product, payload: MarketplacePayload) -> SyncResult:
        """Send offers (OF24) or catalog and offer CSV imports."""
        kind = OperationKind.CREATE
        extra: dict[str, Any] = {}
        if self._use_csv:
            catalog = await self._client.import_products_csv(
                payload.data["catalog_csv"], filename=f"products-{product.id}.csv"
            )
            if isinstance(catalog, Failure):
                return self.error_result(catalog.error, kind)
            offers = await self._client.import_offers_csv(
                payload.data["offers_csv"], filename=f"offers-{product.id}.csv"
            )
            if isinstance(offers, Failure):
                return self.error_result(
                    offers.error, kind, data={"product_import_id": catalog.value.get("import_id")}
                )
            extra["product_import_id"] = catalog.value.get("import_id")
            extra["import_id"] = offers.value.get("import_id")
            extra["transport"] = "csv"
        else:
            offers = await self._client.upsert_offers(list(payload.data["offers"]))
            if isinstance(offers, Failure):
                return self.error_result(offers.error, kind)
            extra["import_id"] = offers.value.get("import_id")
            extra["transport"] = "offers"

        # Offer ids are assigned when Mirakl processes the import; shop SKUs
        # identify the offers until link() records them.
        variants = {sku: sku for sku in product.variant_skus}
        return self.created_result(
            product,
            product.sku,
            variants,
            f"Mirakl accepted import {extra['import_id']} for {len(variants)} offer(s)",
            extra=extra,
        )

    async def push_update(
        self,
        operation: Update,
        product: Product,
        payload: MarketplacePayload,
        linkage: dict[str, Any],
    ) -> SyncResult:
        """Update offer prices (OF24) and/or catalog content (P41)."""
        kind = OperationKind.UPDATE
        updated: list[str] = []
        import_ids: dict[str, Any] = {}
        known = linkage.get("variants") or {}

        offers = [
            offer for offer in payload.data.get("offers") or [] if offer["shop_sku"] in known
        ]
        if offers:
            result = await self._client.upsert_offers(offers)
            if isinstance(result, Failure):
                return self.error_result(result.error, kind)
            updated.append("pricing")
            import_ids["offers"] = result.value.get("import_id")

        catalog_csv = payload.data.get("catalog_csv")
        if catalog_csv:
            result = await self._client.import_products_csv(
                catalog_csv, filename=f"products-{product.id}.csv"
            )
            if isinstance(result, Failure):
                return self.error_result(result.error, kind, data={"updated": updated})
            updated.extend(field for field in operation.fields if field != "pricing")
            import_ids["products"] = result.value.get("import_id")

        return SyncResult.succeeded(
            f"Updated Mirakl offers for product {product.id}",
            data={
                "product_id": product.id,
                "remote_id": linkage["remote_id"],
                "updated": updated,
                "import_ids": import_ids,
            },
            metadata={"channel": self.channel.value, "account": self.account.name},
        )

    async def push_link(self, product: Product) -> SyncResult:
        """Match the product's SKUs against every offer of the shop."""
        found = await self._client.get_all_offers(page_size=get_settings().sync.link_page_size)
        if isinstance(found, Failure):
            return self.error_result(found.error, OperationKind.LINK)

        outcome = reconcile(
            product.variant_skus,
            found.value,
            sku_field="shop_sku",
            id_field="product_id",
            fallback_id_fields=("product_sku",),
        )
        return link_result(
            outcome,
            product_id=product.id,
            remote_id=product.sku if outcome.matched else None,
            identifiers=self.account.marketplace_identifiers,
            channel=self.channel.value,
        )

    async def pull_records(self, operation: Pull) -> SyncResult:
        """Fetch one page of the shop's offers."""
        filters = operation.filters
        result = await self._client.list_offers(
            offset=int(filters.get("offset", 0)),
            max_results=int(filters.get("max", get_settings().sync.link_page_size)),
            sku=filters.get("sku"),
            offer_state_codes=filters.get("offer_state_codes"),
            updated_since=filters.get("updated_since"),
        )
        if isinstance(result, Failure):
            return self.error_result(result.error, OperationKind.PULL)

        offers = result.value.get("offers") or []
        return SyncResult.succeeded(
            f"Fetched {len(offers)} {self.channel.display_name} offer(s)",
            data={
                "records": offers,
                "count": len(offers),
                "total": int(result.value.get("total_count", len(offers))),
            },
            metadata={"channel": self.channel.value, "filters": dict(filters)},
        )

    async def check_connection(self) -> SyncResult:
        """Read the shop account (A01)."""
        result = await self._client.get_account()
        if isinstance(result, Failure):
            return self.error_result(result.error, OperationKind.TEST_CONNECTION)
        shop = result.value
        return SyncResult.succeeded(
            f"Connected to {self.channel.display_name} shop {shop.get('shop_name', '')}".rstrip(),
            data={"account": shop, "operator": self.operator.code if self.operator else "mirakl"},
            metadata={"channel": self.channel.value, "base_url": self._client.base_url},
        )


def _variant_rows(product: Product) -> list[tuple[str, Decimal, int, str]]:
    if not product.variants:
        return [(product.sku, product.lowest_price, product.total_quantity, product.name)]
    return [
        (
            variant.sku,
            variant.price if variant.price is not None else product.lowest_price,
            max(0, variant.quantity),
            product.variant_title(variant),
        )
        for variant in product.variants
    ]


def _money(value: Decimal) -> str:
    return f"{Decimal(value):.2f}"


def _to_csv(headers: tuple[str, ...], rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()
