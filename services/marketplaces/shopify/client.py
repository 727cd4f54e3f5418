"""HTTP client for the Shopify GraphQL Admin API."""

from __future__ import annotations

from typing import Any

from core.logging import get_logger
from core.result import Failure, Result, failure, success
from services.marketplaces.errors import (
    MarketplaceError,
    NotFoundError,
    ParseError,
    RemoteValidationError,
)
from services.marketplaces.transport import DEFAULT_TIMEOUT, ChannelHttpClient

logger = get_logger(__name__)

CHANNEL_CODE = "shopify"

SHOP_QUERY = """
query {
  shop { id name email myshopifyDomain currencyCode }
}
"""

PRODUCT_CREATE = """
mutation productCreate($input: ProductInput!) {
  productCreate(input: $input) {
    product { id handle variants(first: 1) { edges { node { id } } } }
    userErrors { field message }
  }
}
"""

PRODUCT_UPDATE = """
mutation productUpdate($input: ProductInput!) {
  productUpdate(input: $input) {
    product { id title }
    userErrors { field message }
  }
}
"""

VARIANTS_BULK_CREATE = """
mutation productVariantsBulkCreate(
  $productId: ID!
  $variants: [ProductVariantsBulkInput!]!
  $strategy: ProductVariantsBulkCreateStrategy
) {
  productVariantsBulkCreate(productId: $productId, variants: $variants, strategy: $strategy) {
    productVariants { id sku }
    userErrors { field message }
  }
}
"""

VARIANTS_BULK_UPDATE = """
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    productVariants { id price }
    userErrors { field message }
  }
}
"""

PRODUCT_CREATE_MEDIA = """
mutation productCreateMedia($productId: ID!, $media: [CreateMediaInput!]!) {
  productCreateMedia(productId: $productId, media: $media) {
    media { alt mediaContentType status }
    mediaUserErrors { field message }
  }
}
"""

PRODUCTS_QUERY = """
query products($first: Int!, $after: String, $query: String) {
  products(first: $first, after: $after, query: $query) {
    pageInfo { hasNextPage endCursor }
    edges {
      node {
        id title handle status updatedAt
        variants(first: 100) { edges { node { id sku price } } }
      }
    }
  }
}
"""


class ShopifyClient(ChannelHttpClient):
    """
    HTTP client for the Shopify GraphQL Admin API.

    Every call goes to the single GraphQL endpoint. Top-level ``errors`` and
    mutation ``userErrors`` are returned as failures.

    Attributes:
        store_url: Store domain, e.g. ``my-store.myshopify.com``.
        api_version: Admin API version.
    """

    def __init__(
        self,
        store_url: str,
        access_token: str,
        api_version: str = "2024-07",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize Shopify client.

        Args:
            store_url: Store domain.
            access_token: Admin API access token.
            api_version: Admin API version.
            timeout: Request timeout in seconds.

        Raises:
            ValueError: If store_url or access_token is empty.
        """
        if not store_url or not access_token:
            msg = "store_url and access_token are required"
            raise ValueError(msg)

        super().__init__(channel=CHANNEL_CODE, timeout=timeout)
        self.store_url = store_url
        self.api_version = api_version
        self._access_token = access_token

    @property
    def endpoint(self) -> str:
        """Return the GraphQL endpoint of the store."""
        return f"https://{self.store_url}/admin/api/{self.api_version}/graphql.json"

    async def _auth_headers(self) -> Result[dict[str, str], MarketplaceError]:
        return success(
            {
                "X-Shopify-Access-Token": self._access_token,
                "Content-Type": "application/json",
            }
        )

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Run a GraphQL document.

        Args:
            query: GraphQL query or mutation.
            variables: Variables for the document.

        Returns:
            Result containing the ``data`` member or MarketplaceError.
        """
        result = await self._request(
            "POST",
            self.endpoint,
            json={"query": query, "variables": variables or {}},
        )
        if isinstance(result, Failure):
            return result

        body = result.value
        if body.get("errors"):
            messages = [error.get("message", str(error)) for error in body["errors"]]
            logger.error("Shopify GraphQL errors", errors=messages)
            return failure(
                RemoteValidationError(
                    channel=CHANNEL_CODE,
                    message="GraphQL request returned errors",
                    details="; ".join(messages),
                )
            )
        data = body.get("data")
        if not isinstance(data, dict):
            return failure(ParseError(channel=CHANNEL_CODE, message="GraphQL response has no data"))
        return success(data)

    async def _mutate(
        self,
        name: str,
        document: str,
        variables: dict[str, Any],
        errors_key: str = "userErrors",
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Run a mutation and unwrap its payload, failing on user errors."""
        logger.info("Running Shopify mutation", mutation=name, store=self.store_url)
        result = await self.execute(document, variables)
        if isinstance(result, Failure):
            return result

        payload = result.value.get(name)
        if not isinstance(payload, dict):
            return failure(ParseError(channel=CHANNEL_CODE, message=f"{name} returned no payload"))
        user_errors = payload.get(errors_key) or []
        if user_errors:
            messages = [
                f"{'.'.join(error.get('field') or [])}: {error.get('message')}".lstrip(": ")
                for error in user_errors
            ]
            logger.warning("Shopify user errors", mutation=name, errors=messages)
            return failure(
                RemoteValidationError(
                    channel=CHANNEL_CODE,
                    message=f"{name} rejected the input",
                    details="; ".join(messages),
                )
            )
        return success(payload)

    async def get_shop(self) -> Result[dict[str, Any], MarketplaceError]:
        """Return the store identity."""
        result = await self.execute(SHOP_QUERY)
        if isinstance(result, Failure):
            return result
        shop = result.value.get("shop")
        if not shop:
            return failure(NotFoundError(channel=CHANNEL_CODE, message="Shop not returned"))
        return success(shop)

    async def create_product(
        self,
        product_input: dict[str, Any],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Create a product and return its payload."""
        return await self._mutate("productCreate", PRODUCT_CREATE, {"input": product_input})

    async def update_product(
        self,
        product_input: dict[str, Any],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Update product fields; ``product_input`` must carry ``id``."""
        return await self._mutate("productUpdate", PRODUCT_UPDATE, {"input": product_input})

    async def create_variants(
        self,
        product_id: str,
        variants: list[dict[str, Any]],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Create variants, replacing the placeholder variant Shopify adds on create."""
        return await self._mutate(
            "productVariantsBulkCreate",
            VARIANTS_BULK_CREATE,
            {
                "productId": product_id,
                "variants": variants,
                "strategy": "REMOVE_STANDALONE_VARIANT",
            },
        )

    async def update_variants(
        self,
        product_id: str,
        variants: list[dict[str, Any]],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Update existing variants; every entry must carry ``id``."""
        return await self._mutate(
            "productVariantsBulkUpdate",
            VARIANTS_BULK_UPDATE,
            {"productId": product_id, "variants": variants},
        )

    async def create_media(
        self,
        product_id: str,
        image_urls: list[str],
        alt: str = "",
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Attach images to a product by URL."""
        media = [
            {"originalSource": url, "mediaContentType": "IMAGE", "alt": alt}
            for url in image_urls
        ]
        return await self._mutate(
            "productCreateMedia",
            PRODUCT_CREATE_MEDIA,
            {"productId": product_id, "media": media},
            errors_key="mediaUserErrors",
        )

    async def list_products(
        self,
        query: str | None = None,
        first: int = 50,
        after: str | None = None,
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Return one page of products.

        Args:
            query: Shopify search syntax, e.g. ``status:active``.
            first: Page size (max 250).
            after: Cursor from a previous page.

        Returns:
            Result containing ``{"products": [...], "page_info": {...}}``.
        """
        result = await self.execute(
            PRODUCTS_QUERY,
            {"first": max(1, min(first, 250)), "after": after, "query": query},
        )
        if isinstance(result, Failure):
            return result

        connection = result.value.get("products") or {}
        products = [_flatten_product(edge["node"]) for edge in connection.get("edges", [])]
        return success({"products": products, "page_info": connection.get("pageInfo") or {}})

    async def find_products_by_sku(
        self,
        skus: list[str],
    ) -> Result[list[dict[str, Any]], MarketplaceError]:
        """Return products having a variant with any of the given SKUs."""
        if not skus:
            return success([])
        query = " OR ".join(f'sku:"{sku}"' for sku in skus)
        result = await self.list_products(query=query, first=min(len(skus), 250))
        if isinstance(result, Failure):
            return result
        return success(result.value["products"])


def _flatten_product(node: dict[str, Any]) -> dict[str, Any]:
    variants = [edge["node"] for edge in (node.get("variants") or {}).get("edges", [])]
    return {**{k: v for k, v in node.items() if k != "variants"}, "variants": variants}
