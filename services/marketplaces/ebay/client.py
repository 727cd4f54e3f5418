"""HTTP client for the eBay Sell APIs."""

from __future__ import annotations

import base64
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from core.logging import get_logger
from core.result import Result, failure, success
from services.marketplaces.errors import (
    AuthenticationError,
    MarketplaceError,
    NetworkError,
    ParseError,
    RequestTimeoutError,
)
from services.marketplaces.transport import DEFAULT_TIMEOUT, ChannelHttpClient

logger = get_logger(__name__)

CHANNEL_CODE = "ebay"

# eBay API hosts per environment
API_URLS: dict[str, str] = {
    "SANDBOX": "https://api.sandbox.ebay.com",
    "PRODUCTION": "https://api.ebay.com",
}

INVENTORY_PATH = "/sell/inventory/v1"

OAUTH_SCOPES = " ".join(
    [
        "https://api.ebay.com/oauth/api_scope",
        "https://api.ebay.com/oauth/api_scope/sell.inventory",
        "https://api.ebay.com/oauth/api_scope/sell.account",
    ]
)

# eBay marketplace IDs
EBAY_MARKETPLACES: dict[str, str] = {
    "EBAY_US": "United States",
    "EBAY_GB": "United Kingdom",
    "EBAY_DE": "Germany",
    "EBAY_AU": "Australia",
    "EBAY_CA": "Canada",
    "EBAY_FR": "France",
    "EBAY_IT": "Italy",
    "EBAY_ES": "Spain",
}

# Content-Language sent with inventory writes, per marketplace
CONTENT_LANGUAGES: dict[str, str] = {
    "EBAY_US": "en-US",
    "EBAY_GB": "en-GB",
    "EBAY_DE": "de-DE",
    "EBAY_AU": "en-AU",
    "EBAY_CA": "en-CA",
    "EBAY_FR": "fr-FR",
    "EBAY_IT": "it-IT",
    "EBAY_ES": "es-ES",
}


class EbayClient(ChannelHttpClient):
    """
    HTTP client for the eBay Sell Inventory and Account APIs.

    Uses the authorization-code refresh token of the seller to mint user
    access tokens, which are cached until shortly before they expire.

    Attributes:
        client_id: eBay application (client) ID.
        environment: SANDBOX or PRODUCTION.
        marketplace_id: eBay marketplace ID (default: EBAY_GB).
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        environment: str = "SANDBOX",
        marketplace_id: str = "EBAY_GB",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize eBay client.

        Args:
            client_id: eBay application ID.
            client_secret: eBay certificate ID (client secret).
            refresh_token: Seller refresh token.
            environment: SANDBOX or PRODUCTION.
            marketplace_id: eBay marketplace ID.
            timeout: Request timeout in seconds.

        Raises:
            ValueError: If credentials are empty or an option is invalid.
        """
        if not client_id or not client_secret or not refresh_token:
            msg = "client_id, client_secret and refresh_token are required"
            raise ValueError(msg)

        if environment not in API_URLS:
            msg = f"Invalid environment: {environment}. Must be one of {list(API_URLS)}"
            raise ValueError(msg)

        if marketplace_id not in EBAY_MARKETPLACES:
            valid_ids = list(EBAY_MARKETPLACES.keys())
            msg = f"Invalid marketplace_id: {marketplace_id}. Must be one of {valid_ids}"
            raise ValueError(msg)

        super().__init__(channel=CHANNEL_CODE, timeout=timeout)
        self.client_id = client_id
        self.environment = environment
        self.marketplace_id = marketplace_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token

        self._access_token: str | None = None
        self._token_expires_at: datetime | None = None

    @property
    def base_url(self) -> str:
        """Return the API host for the configured environment."""
        return API_URLS[self.environment]

    def _is_token_valid(self) -> bool:
        """Check if current access token is valid."""
        if self._access_token is None or self._token_expires_at is None:
            return False
        # Add 60 second buffer before expiry
        return datetime.now(UTC) < (self._token_expires_at - timedelta(seconds=60))

    def _on_unauthorized(self) -> None:
        self._access_token = None
        self._token_expires_at = None

    async def _auth_headers(self) -> Result[dict[str, str], MarketplaceError]:
        token_result = await self._get_access_token()
        return token_result.then(
            lambda token: success(
                {
                    "Authorization": f"Bearer {token}",
                    "X-EBAY-C-MARKETPLACE-ID": self.marketplace_id,
                    "Content-Language": CONTENT_LANGUAGES.get(self.marketplace_id, "en-GB"),
                }
            )
        )

    async def _get_access_token(self) -> Result[str, MarketplaceError]:
        """
        Get or refresh the user access token.

        Returns:
            Result containing access token or MarketplaceError.
        """
        if self._is_token_valid() and self._access_token is not None:
            return success(self._access_token)

        return await self._fetch_new_token()

    async def _fetch_new_token(self) -> Result[str, MarketplaceError]:
        """Exchange the refresh token for a new access token."""
        client = await self._get_client()

        # Encode credentials for Basic auth
        credentials = f"{self.client_id}:{self._client_secret}"
        encoded_credentials = base64.b64encode(credentials.encode()).decode()

        try:
            response = await client.post(
                f"{self.base_url}/identity/v1/oauth2/token",
                headers={
                    "Authorization": f"Basic {encoded_credentials}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self._refresh_token,
                    "scope": OAUTH_SCOPES,
                },
            )
            return self._handle_token_response(response)
        except httpx.TimeoutException:
            logger.error("eBay auth request timeout", environment=self.environment)
            return failure(
                RequestTimeoutError(
                    channel=CHANNEL_CODE,
                    message="Authentication request timeout",
                )
            )
        except httpx.RequestError as e:
            logger.error("eBay auth request error", error=str(e))
            return failure(
                NetworkError(
                    channel=CHANNEL_CODE,
                    message="Authentication request failed",
                    details=str(e),
                )
            )

    def _handle_token_response(self, response: httpx.Response) -> Result[str, MarketplaceError]:
        """Handle the OAuth token response."""
        if response.status_code in {400, 401}:
            logger.error("eBay authentication failed", status_code=response.status_code)
            return failure(
                AuthenticationError(
                    channel=CHANNEL_CODE,
                    message="Invalid client credentials or refresh token",
                    details=response.text[:500],
                )
            )

        if response.status_code >= 400:
            logger.error(
                "eBay token request failed",
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            return failure(
                NetworkError(
                    channel=CHANNEL_CODE,
                    message=f"Token request failed with status {response.status_code}",
                )
            )

        try:
            data = response.json()
            self._access_token = data["access_token"]
            expires_in = data.get("expires_in", 7200)
            self._token_expires_at = datetime.now(UTC) + timedelta(seconds=expires_in)

            logger.info("eBay access token obtained", expires_in=expires_in)
            return success(self._access_token)
        except (KeyError, ValueError) as e:
            logger.error("Failed to parse eBay auth response", error=str(e))
            return failure(
                ParseError(
                    channel=CHANNEL_CODE,
                    message="Failed to parse authentication response",
                    details=str(e),
                )
            )

    async def get_privilege(self) -> Result[dict[str, Any], MarketplaceError]:
        """Return the seller's selling privileges (identity check)."""
        return await self._request("GET", f"{self.base_url}/sell/account/v1/privilege")

    async def put_inventory_item(
        self,
        sku: str,
        item: dict[str, Any],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Create or replace the inventory item of a SKU."""
        logger.info("Writing eBay inventory item", sku=sku, marketplace_id=self.marketplace_id)
        return await self._request(
            "PUT",
            f"{self.base_url}{INVENTORY_PATH}/inventory_item/{sku}",
            json=item,
        )

    async def get_inventory_items(
        self,
        limit: int = 25,
        offset: int = 0,
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Return one page of inventory items."""
        return await self._request(
            "GET",
            f"{self.base_url}{INVENTORY_PATH}/inventory_item",
            params={"limit": max(1, min(limit, 200)), "offset": max(0, offset)},
        )

    async def get_inventory_item(self, sku: str) -> Result[dict[str, Any], MarketplaceError]:
        """Return the inventory item of a SKU."""
        return await self._request("GET", f"{self.base_url}{INVENTORY_PATH}/inventory_item/{sku}")

    async def create_offer(self, offer: dict[str, Any]) -> Result[dict[str, Any], MarketplaceError]:
        """Create an unpublished offer; the body carries ``offerId``."""
        return await self._request("POST", f"{self.base_url}{INVENTORY_PATH}/offer", json=offer)

    async def publish_offer(self, offer_id: str) -> Result[dict[str, Any], MarketplaceError]:
        """Publish an offer; the body carries ``listingId``."""
        return await self._request(
            "POST",
            f"{self.base_url}{INVENTORY_PATH}/offer/{offer_id}/publish",
        )

    async def get_offers(self, sku: str) -> Result[dict[str, Any], MarketplaceError]:
        """Return the offers of a SKU on the configured marketplace."""
        return await self._request(
            "GET",
            f"{self.base_url}{INVENTORY_PATH}/offer",
            params={"sku": sku, "marketplace_id": self.marketplace_id},
        )

    async def bulk_update_price_quantity(
        self,
        requests: list[dict[str, Any]],
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Update price and quantity of offers; eBay accepts at most 25 per call."""
        return await self._request(
            "POST",
            f"{self.base_url}{INVENTORY_PATH}/bulk_update_price_quantity",
            json={"requests": requests},
        )
