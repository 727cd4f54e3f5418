"""
Shared HTTP plumbing for channel clients.

Every client owns a lazily created ``httpx.AsyncClient`` and turns transport
problems into ``Failure(MarketplaceError)`` instead of raising.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.logging import get_logger
from core.result import Result, failure, success
from services.marketplaces.errors import (
    AuthenticationError,
    InvalidRequestError,
    MarketplaceError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitError,
    RequestTimeoutError,
    ServiceUnavailableError,
)

logger = get_logger(__name__)

# Default timeout for API requests
DEFAULT_TIMEOUT = 30.0

# Fallback when a 429 carries no usable Retry-After header
DEFAULT_RETRY_AFTER = 60


class ChannelHttpClient:
    """
    Base class for channel HTTP clients.

    Subclasses supply ``_auth_headers()`` and call ``_request()``.

    Attributes:
        channel: Channel code used in errors and logs.
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, channel: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        """
        Initialize the client.

        Args:
            channel: Channel code used in errors and logs.
            timeout: Per-request timeout in seconds.
        """
        self.channel = channel
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _auth_headers(self) -> Result[dict[str, str], MarketplaceError]:
        """Return the headers that authenticate a request."""
        return success({})

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        files: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Result[dict[str, Any], MarketplaceError]:
        """
        Make an authenticated API request.

        Args:
            method: HTTP method.
            url: Absolute URL.
            params: Query parameters.
            json: JSON body.
            files: Multipart files.
            data: Form fields.
            headers: Extra headers.

        Returns:
            Result containing the decoded body or MarketplaceError.
        """
        auth_result = await self._auth_headers()
        if auth_result.is_failure():
            return auth_result

        request_headers = {"Accept": "application/json", **auth_result.unwrap(), **(headers or {})}
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json,
                files=files,
                data=data,
                headers=request_headers,
            )
            return self._handle_response(response)
        except httpx.TimeoutException:
            logger.error("Channel request timeout", channel=self.channel, method=method, url=url)
            return failure(
                RequestTimeoutError(
                    channel=self.channel,
                    message=f"Request timed out after {self.timeout:g}s",
                )
            )
        except httpx.RequestError as e:
            logger.error("Channel request error", channel=self.channel, method=method, url=url)
            return failure(
                NetworkError(
                    channel=self.channel,
                    message="Request failed",
                    details=str(e),
                )
            )

    def _handle_response(
        self, response: httpx.Response
    ) -> Result[dict[str, Any], MarketplaceError]:
        """Handle API response and convert to Result."""
        status_code = response.status_code

        # Handle rate limiting
        if status_code == 429:
            retry_seconds = _retry_after(response.headers.get("Retry-After"))
            logger.warning(
                "Rate limited by channel",
                channel=self.channel,
                retry_after=retry_seconds,
            )
            return failure(RateLimitError(channel=self.channel, retry_after=retry_seconds))

        if status_code in {401, 403}:
            self._on_unauthorized()
            logger.error(
                "Channel rejected credentials",
                channel=self.channel,
                status_code=status_code,
            )
            return failure(
                AuthenticationError(
                    channel=self.channel,
                    message="Access token expired or invalid",
                    details=response.text[:500],
                )
            )

        if status_code == 404:
            return failure(
                NotFoundError(
                    channel=self.channel,
                    details=response.text[:500],
                )
            )

        if status_code in {400, 409, 422}:
            logger.warning(
                "Channel rejected request",
                channel=self.channel,
                status_code=status_code,
            )
            return failure(
                InvalidRequestError(
                    channel=self.channel,
                    message=f"API returned status {status_code}",
                    details=response.text[:500],
                )
            )

        if status_code in {502, 503, 504}:
            return failure(
                ServiceUnavailableError(
                    channel=self.channel,
                    message=f"API returned status {status_code}",
                )
            )

        if status_code >= 400:
            logger.error("Channel API error", channel=self.channel, status_code=status_code)
            return failure(
                NetworkError(
                    channel=self.channel,
                    message=f"API returned status {status_code}",
                    details=response.text[:500],
                )
            )

        # 201/204 with an empty body still count as success
        if not response.content:
            return success({})

        try:
            body = response.json()
        except ValueError as e:
            logger.error("Failed to parse channel response", channel=self.channel, error=str(e))
            return failure(ParseError(channel=self.channel, details=str(e)))

        if not isinstance(body, dict):
            return success({"items": body})
        return success(body)

    def _on_unauthorized(self) -> None:
        """Hook for clients that cache tokens."""


def _retry_after(value: str | None) -> int:
    if value is None:
        return DEFAULT_RETRY_AFTER
    try:
        return max(0, int(float(value)))
    except ValueError:
        return DEFAULT_RETRY_AFTER
