"""Tests for Shopify adapter."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from core.result import Failure, Success
from services.marketplaces.account_config import load_account_config
from services.marketplaces.accounts import ChannelAccount
from services.marketplaces.catalog import InMemoryCatalog, Product, Variant
from services.marketplaces.channels import Channel
from services.marketplaces.errors import AuthenticationError, ErrorCode, RemoteValidationError
from services.marketplaces.linking import PRODUCTS_KEY, product_linkage
from services.marketplaces.shopify.adapter import ShopifyAdapter
from services.marketplaces.shopify.client import ShopifyClient

CREDENTIALS = {"store_url": "demo.myshopify.com", "access_token": "shpat_test"}


@pytest.fixture()
def product() -> Product:
    """Create a two-variant product."""
    return Product(
        id=1,
        sku="TEE",
        name="Organic Tee",
        description="<p>Soft</p>",
        brand="Acme",
        images=("https://cdn.example.com/tee.jpg",),
        variants=(
            Variant(sku="TEE-S", title="Small", price=Decimal("19.99"), quantity=3),
            Variant(sku="TEE-M", title="Medium", price=Decimal("21.50"), quantity=0),
        ),
    )


@pytest.fixture()
def mock_client() -> AsyncMock:
    """Create a mock Shopify client."""
    client = AsyncMock(spec=ShopifyClient)
    client.store_url = "demo.myshopify.com"
    client.api_version = "2024-07"
    return client


def make_adapter(
    mock_client: AsyncMock,
    product: Product,
    identifiers: dict | None = None,
    settings: dict | None = None,
) -> ShopifyAdapter:
    """Build an adapter over the mock client."""
    account = ChannelAccount(
        name="main",
        channel="shopify",
        credentials=CREDENTIALS,
        settings=settings or {},
        marketplace_identifiers=identifiers or {},
        id=1,
    )
    config = load_account_config(Channel.SHOPIFY, CREDENTIALS, settings or {})
    return ShopifyAdapter(account, config, InMemoryCatalog([product]), client=mock_client)


LINKED = {
    PRODUCTS_KEY: {
        "1": {
            "remote_id": "gid://shopify/Product/9",
            "variants": {"TEE-S": "gid://shopify/ProductVariant/91"},
        }
    }
}


class TestShopifyAdapterInit:
    """Tests for adapter construction."""

    def test_builds_client_from_config(self, product: Product) -> None:
        """Without an injected client one is built from credentials."""
        account = ChannelAccount(name="main", channel="shopify", credentials=CREDENTIALS)
        config = load_account_config(Channel.SHOPIFY, CREDENTIALS, {})

        adapter = ShopifyAdapter(account, config)

        assert adapter._client.store_url == "demo.myshopify.com"
        assert adapter.channel is Channel.SHOPIFY


class TestShopifyBuildPayload:
    """Tests for payload building."""

    def test_create_payload(self, mock_client: AsyncMock, product: Product) -> None:
        """A create payload carries product, variants and media."""
        adapter = make_adapter(mock_client, product, settings={"product_status": "ACTIVE"})

        payload = adapter.create(1).payload

        assert payload is not None
        data = payload.data
        assert data["product"]["title"] == "Organic Tee"
        assert data["product"]["vendor"] == "Acme"
        assert data["product"]["status"] == "ACTIVE"
        assert data["product"]["productOptions"][0]["values"] == [
            {"name": "Small"},
            {"name": "Medium"},
        ]
        assert data["variants"][0] == {
            "optionValues": [{"optionName": "Title", "name": "Small"}],
            "price": "19.99",
            "inventoryItem": {"sku": "TEE-S"},
        }
        assert data["media"] == ["https://cdn.example.com/tee.jpg"]
        assert payload.metadata["source_product_id"] == 1

    def test_duplicate_variant_titles_fall_back_to_sku(self, mock_client: AsyncMock) -> None:
        """Option values must be unique per product."""
        product = Product(
            id=1,
            sku="P",
            name="P",
            variants=(Variant(sku="A", title="Same"), Variant(sku="B", title="Same")),
        )

        payload = make_adapter(mock_client, product).create(1).payload

        assert payload is not None
        names = [v["optionValues"][0]["name"] for v in payload.data["variants"]]
        assert names == ["Same", "B"]

    def test_pricing_only_update(self, mock_client: AsyncMock, product: Product) -> None:
        """A pricing update sends variant prices and no product fields."""
        adapter = make_adapter(mock_client, product, LINKED)

        payload = adapter.update(1).pricing().payload

        assert payload is not None
        assert payload.data["product"] == {}
        assert payload.data["variants"] == [
            {"sku": "TEE-S", "price": "19.99"},
            {"sku": "TEE-M", "price": "21.50"},
        ]
        assert "media" not in payload.data

    def test_title_update(self, mock_client: AsyncMock, product: Product) -> None:
        """A title update sends only the new title."""
        payload = make_adapter(mock_client, product, LINKED).update(1).title("New").payload

        assert payload is not None
        assert payload.data == {"product": {"title": "New"}}


class TestShopifyPushCreate:
    """Tests for create."""

    @pytest.mark.asyncio
    async def test_create_success(self, mock_client: AsyncMock, product: Product) -> None:
        """Create should map SKUs to variant ids and record the linkage."""
        mock_client.create_product.return_value = Success(
            {"product": {"id": "gid://shopify/Product/9"}}
        )
        mock_client.create_variants.return_value = Success(
            {
                "productVariants": [
                    {"id": "gid://shopify/ProductVariant/91", "sku": "TEE-S"},
                    {"id": "gid://shopify/ProductVariant/92", "sku": "TEE-M"},
                ]
            }
        )
        mock_client.create_media.return_value = Success({"media": []})
        adapter = make_adapter(mock_client, product)

        result = await adapter.create(1).push()

        assert result.success is True
        assert result.data["remote_id"] == "gid://shopify/Product/9"
        assert result.data["variants"] == {
            "TEE-S": "gid://shopify/ProductVariant/91",
            "TEE-M": "gid://shopify/ProductVariant/92",
        }
        linkage = product_linkage(result.data["marketplace_identifiers"], 1)
        assert linkage is not None
        assert linkage["remote_id"] == "gid://shopify/Product/9"
        mock_client.create_media.assert_awaited_once_with(
            "gid://shopify/Product/9", ["https://cdn.example.com/tee.jpg"], alt="Organic Tee"
        )

    @pytest.mark.asyncio
    async def test_create_rejected(self, mock_client: AsyncMock, product: Product) -> None:
        """A rejected productCreate fails without creating variants."""
        mock_client.create_product.return_value = Failure(
            RemoteValidationError("shopify", details="title: can't be blank")
        )

        result = await make_adapter(mock_client, product).create(1).push()

        assert result.success is False
        assert result.error_code == "remote_validation"
        mock_client.create_variants.assert_not_called()

    @pytest.mark.asyncio
    async def test_variant_failure_still_links_product(
        self, mock_client: AsyncMock, product: Product
    ) -> None:
        """A product whose variants were rejected stays linked so it is not created twice."""
        mock_client.create_product.return_value = Success(
            {"product": {"id": "gid://shopify/Product/9"}}
        )
        mock_client.create_variants.return_value = Failure(RemoteValidationError("shopify"))
        mock_client.create_media.return_value = Success({"media": []})

        result = await make_adapter(mock_client, product).create(1).push()

        assert result.success is True
        assert result.coverage_percent == 0
        assert result.data["variants"] == {}
        assert result.metadata["warnings"][0].startswith("Variants not created")
        linkage = product_linkage(result.data["marketplace_identifiers"], 1)
        assert linkage is not None
        assert linkage["remote_id"] == "gid://shopify/Product/9"

        retry = await make_adapter(
            mock_client, product, result.data["marketplace_identifiers"]
        ).create(1).push()

        assert retry.success is False
        assert retry.error_code == "already_exists"
        mock_client.create_product.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_media_failure_is_a_warning(
        self, mock_client: AsyncMock, product: Product
    ) -> None:
        """A media failure does not fail the create."""
        mock_client.create_product.return_value = Success(
            {"product": {"id": "gid://shopify/Product/9"}}
        )
        mock_client.create_variants.return_value = Success({"productVariants": []})
        mock_client.create_media.return_value = Failure(RemoteValidationError("shopify"))

        result = await make_adapter(mock_client, product).create(1).push()

        assert result.success is True
        assert len(result.metadata["warnings"]) == 1


class TestShopifyPushUpdate:
    """Tests for update."""

    @pytest.mark.asyncio
    async def test_pricing_update_uses_linked_variants(
        self, mock_client: AsyncMock, product: Product
    ) -> None:
        """Only variants present in the linkage are priced."""
        mock_client.update_variants.return_value = Success({"productVariants": []})

        result = await make_adapter(mock_client, product, LINKED).update(1).pricing().push()

        assert result.success is True
        assert result.data["updated"] == ["pricing"]
        mock_client.update_product.assert_not_called()
        mock_client.update_variants.assert_awaited_once_with(
            "gid://shopify/Product/9",
            [{"id": "gid://shopify/ProductVariant/91", "price": "19.99"}],
        )

    @pytest.mark.asyncio
    async def test_full_update(self, mock_client: AsyncMock, product: Product) -> None:
        """An unnarrowed update sends product fields, prices and media."""
        mock_client.update_product.return_value = Success({"product": {}})
        mock_client.update_variants.return_value = Success({"productVariants": []})
        mock_client.create_media.return_value = Success({"media": []})

        result = await make_adapter(mock_client, product, LINKED).update(1).push()

        assert result.success is True
        assert result.data["updated"] == ["descriptionHtml", "title", "vendor", "pricing", "images"]
        sent = mock_client.update_product.call_args.args[0]
        assert sent["id"] == "gid://shopify/Product/9"

    @pytest.mark.asyncio
    async def test_update_failure(self, mock_client: AsyncMock, product: Product) -> None:
        """A rejected update is returned as a failure."""
        mock_client.update_product.return_value = Failure(AuthenticationError("shopify"))

        result = await make_adapter(mock_client, product, LINKED).update(1).title("x").push()

        assert result.success is False
        assert result.error_code == ErrorCode.AUTHENTICATION.value


class TestShopifyPushLink:
    """Tests for link."""

    @pytest.mark.asyncio
    async def test_link_partial(self, mock_client: AsyncMock, product: Product) -> None:
        """Matching one of two SKUs links with 50% coverage."""
        mock_client.find_products_by_sku.return_value = Success(
            [
                {
                    "id": "gid://shopify/Product/9",
                    "variants": [{"id": "gid://shopify/ProductVariant/91", "sku": "TEE-S"}],
                }
            ]
        )

        result = await make_adapter(mock_client, product).link(1).push()

        assert result.success is True
        assert result.coverage_percent == 50
        assert result.data["remote_id"] == "gid://shopify/Product/9"
        assert result.data["unmatched_skus"] == ["TEE-M"]
        mock_client.find_products_by_sku.assert_awaited_once_with(["TEE-S", "TEE-M"])

    @pytest.mark.asyncio
    async def test_link_no_match(self, mock_client: AsyncMock, product: Product) -> None:
        """No matching variants fails the link."""
        mock_client.find_products_by_sku.return_value = Success([])

        result = await make_adapter(mock_client, product).link(1).push()

        assert result.success is False
        assert result.error_code == "not_found"


class TestShopifyPullAndConnection:
    """Tests for pull and test_connection."""

    @pytest.mark.asyncio
    async def test_pull_builds_query(self, mock_client: AsyncMock, product: Product) -> None:
        """Query and status filters are combined into Shopify search syntax."""
        mock_client.list_products.return_value = Success(
            {"products": [{"id": "1"}], "page_info": {"hasNextPage": False}}
        )

        result = await make_adapter(mock_client, product).pull(
            {"query": "title:tee", "status": "ACTIVE", "limit": 10, "vendor": "x"}
        )

        assert result.success is True
        assert result.data["count"] == 1
        assert result.metadata["ignored_filters"] == ["vendor"]
        mock_client.list_products.assert_awaited_once_with(
            query="title:tee status:active", first=10, after=None
        )

    @pytest.mark.asyncio
    async def test_connection_success(self, mock_client: AsyncMock, product: Product) -> None:
        """A reachable shop reports its name."""
        mock_client.get_shop.return_value = Success(
            {"id": "gid://shopify/Shop/42", "name": "Demo Store"}
        )

        result = await make_adapter(mock_client, product).test_connection()

        assert result.success is True
        assert result.message == "Connected to Shopify store Demo Store"
        assert result.data["shop"]["id"] == "gid://shopify/Shop/42"

    @pytest.mark.asyncio
    async def test_connection_failure(self, mock_client: AsyncMock, product: Product) -> None:
        """Rejected credentials fail the connection test."""
        mock_client.get_shop.return_value = Failure(AuthenticationError("shopify"))

        result = await make_adapter(mock_client, product).test_connection()

        assert result.success is False
        assert result.error_code == "authentication"

    @pytest.mark.asyncio
    async def test_close_closes_client(self, mock_client: AsyncMock, product: Product) -> None:
        """close should close the HTTP client."""
        await make_adapter(mock_client, product).close()

        mock_client.close.assert_awaited_once()
