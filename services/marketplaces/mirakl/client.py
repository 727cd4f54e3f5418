"""HTTP client for the Mirakl Marketplace Platform seller API."""

from __future__ import annotations

from typing import Any

from core.logging import get_logger
from core.result import Failure, Result, success
from services.marketplaces.errors import MarketplaceError
from services.marketplaces.transport import DEFAULT_TIMEOUT, ChannelHttpClient

logger = get_logger(__name__)

CHANNEL_CODE = "mirakl"

# Mirakl caps list endpoints at 100 records per page
MAX_PAGE_SIZE = 100


class MiraklClient(ChannelHttpClient):
    """
    HTTP client for one Mirakl operator instance.

    Mirakl shop keys are sent as-is in the ``Authorization`` header. The
    same client serves every operator; only ``base_url`` differs.

    Attributes:
        base_url: Operator API host, without trailing slash.
        shop_id: Shop id, required by some operators when a key spans shops.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        shop_id: str | None = None,
        channel: str = CHANNEL_CODE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize Mirakl client.

        Args:
            base_url: Operator API host.
            api_key: Shop API key.
            shop_id: Optional shop id.
            channel: Channel code used in errors (operator code for variants).
            timeout: Request timeout in seconds.

        Raises:
            ValueError: If base_url or api_key is empty.
        """
        if not base_url or not api_key:
            msg = "base_url and api_key are required"
            raise ValueError(msg)

        super().__init__(channel=channel, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.shop_id = shop_id
        self._api_key = api_key

    async def _auth_headers(self) -> Result[dict[str, str], MarketplaceError]:
        return success({"Authorization": self._api_key})

    def _shop_params(self, **params: Any) -> dict[str, Any]:
        if self.shop_id:
            params["shop_id"] = self.shop_id
        return {key: value for key, value in params.items() if value is not None}

    async def get_account(self) -> Result[dict[str, Any], MarketplaceError]:
        """Return the shop account (A01)."""
        return await self._request(
            "GET", f"{self.base_url}/api/account", params=self._shop_params()
        )

    async def list_offers(
        self,
        offset: int = 0,
        max_results: int = MAX_PAGE_SIZE,
        sku: str | None = None,
        offer_state_codes: str | None = None,
        updated_since: str | None = None,
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Return one page of the shop's offers (OF21).

        Args:
            offset: Index of the first offer.
            max_results: Page size (max 100).
            sku: Restrict to one shop SKU.
            offer_state_codes: Comma-separated offer state codes.
            updated_since: ISO 8601 lower bound on the last update.

        Returns:
            Result containing ``{"offers": [...], "total_count": n}``.
        """
        return await self._request(
            "GET",
            f"{self.base_url}/api/offers",
            params=self._shop_params(
                offset=max(0, offset),
                max=max(1, min(max_results, MAX_PAGE_SIZE)),
                sku=sku,
                offer_state_codes=offer_state_codes,
                updated_since=updated_since,
            ),
        )

    async def get_all_offers(
        self,
        page_size: int = MAX_PAGE_SIZE,
    ) -> Result[list[dict[str, Any]], MarketplaceError]:
        """Walk every page of the shop's offers."""
        offers: list[dict[str, Any]] = []
        offset = 0
        while True:
            result = await self.list_offers(offset=offset, max_results=page_size)
            if isinstance(result, Failure):
                return result
            page = result.value.get("offers") or []
            offers.extend(page)
            total = int(result.value.get("total_count", len(offers)))
            offset += len(page)
            if not page or offset >= total:
                break
        logger.debug("Fetched Mirakl offers", channel=self.channel, count=len(offers))
        return success(offers)

    async def upsert_offers(
        self,
        offers: list[dict[str, Any]],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Create or update offers (OF24).

        Mirakl processes the request asynchronously; the body carries the
        ``import_id`` to track it.
        """
        logger.info("Upserting Mirakl offers", channel=self.channel, count=len(offers))
        return await self._request(
            "POST",
            f"{self.base_url}/api/offers",
            params=self._shop_params(),
            json={"offers": [{"update_delete": "update", **offer} for offer in offers]},
        )

    async def import_products_csv(
        self,
        content: str,
        filename: str = "products.csv",
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Upload a catalog CSV (P41)."""
        logger.info("Uploading Mirakl product import", channel=self.channel, filename=filename)
        return await self._request(
            "POST",
            f"{self.base_url}/api/products/imports",
            params=self._shop_params(),
            files={"file": (filename, content.encode(), "text/csv")},
        )

    async def import_offers_csv(
        self,
        content: str,
        filename: str = "offers.csv",
        import_mode: str = "NORMAL",
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Upload an offers CSV (OF01)."""
        logger.info("Uploading Mirakl offer import", channel=self.channel, filename=filename)
        return await self._request(
            "POST",
            f"{self.base_url}/api/offers/imports",
            params=self._shop_params(),
            files={"file": (filename, content.encode(), "text/csv")},
            data={"import_mode": import_mode},
        )
