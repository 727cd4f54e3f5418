"""Tests for marketplace error types."""

from __future__ import annotations

import pytest

from services.marketplaces.errors import (
    AlreadyExistsError,
    AuthenticationError,
    ConfigurationError,
    ErrorCode,
    InvalidRequestError,
    MarketplaceError,
    NetworkError,
    NotFoundError,
    NotImplementedChannelError,
    ParseError,
    RateLimitError,
    RemoteValidationError,
    RequestTimeoutError,
    ServiceUnavailableError,
    StagingError,
    UnsupportedChannelError,
)


class TestErrorCode:
    """Tests for ErrorCode enum."""

    def test_error_codes_exist(self) -> None:
        """ErrorCode should have all expected values."""
        assert ErrorCode.UNKNOWN.value == "unknown"
        assert ErrorCode.RATE_LIMIT.value == "rate_limit"
        assert ErrorCode.AUTHENTICATION.value == "authentication"
        assert ErrorCode.NETWORK.value == "network"
        assert ErrorCode.TIMEOUT.value == "timeout"
        assert ErrorCode.PARSE.value == "parse"
        assert ErrorCode.NOT_FOUND.value == "not_found"
        assert ErrorCode.INVALID_REQUEST.value == "invalid_request"
        assert ErrorCode.SERVICE_UNAVAILABLE.value == "service_unavailable"
        assert ErrorCode.CONFIGURATION.value == "configuration"
        assert ErrorCode.UNSUPPORTED_CHANNEL.value == "unsupported_channel"
        assert ErrorCode.NOT_IMPLEMENTED.value == "not_implemented"

    def test_error_code_is_string(self) -> None:
        """ErrorCode members should compare equal to their string values."""
        assert ErrorCode.NOT_FOUND == "not_found"


class TestMarketplaceError:
    """Tests for MarketplaceError dataclass."""

    def test_create_error(self) -> None:
        """MarketplaceError can be created with required fields."""
        error = MarketplaceError(
            code=ErrorCode.NETWORK,
            message="Connection failed",
            channel="shopify",
        )

        assert error.code == ErrorCode.NETWORK
        assert error.message == "Connection failed"
        assert error.channel == "shopify"
        assert error.details is None
        assert error.retry_after is None

    def test_create_error_with_details(self) -> None:
        """MarketplaceError can include details."""
        error = MarketplaceError(
            code=ErrorCode.RATE_LIMIT,
            message="Too many requests",
            channel="ebay",
            details="Retry after 60 seconds",
            retry_after=60,
        )

        assert error.details == "Retry after 60 seconds"
        assert error.retry_after == 60

    def test_str_includes_channel_and_code(self) -> None:
        """String form should name the channel and the code."""
        error = NotFoundError("mirakl", "Offer not found")

        assert str(error) == "[mirakl] not_found: Offer not found"

    def test_error_is_frozen(self) -> None:
        """MarketplaceError should be immutable."""
        error = NetworkError("ebay")

        with pytest.raises(AttributeError):
            error.message = "changed"  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (RateLimitError("ebay"), True),
            (NetworkError("ebay"), True),
            (RequestTimeoutError("ebay"), True),
            (ServiceUnavailableError("ebay"), True),
            (AuthenticationError("ebay"), False),
            (ParseError("ebay"), False),
            (NotFoundError("ebay"), False),
            (InvalidRequestError("ebay"), False),
            (ConfigurationError("ebay"), False),
        ],
    )
    def test_is_retryable(self, error: MarketplaceError, expected: bool) -> None:
        """Only transient failures should be retryable."""
        assert error.is_retryable is expected


class TestErrorFactories:
    """Tests for error factory functions."""

    def test_rate_limit_error(self) -> None:
        """RateLimitError should carry retry_after."""
        error = RateLimitError("shopify", retry_after=30)

        assert error.code == ErrorCode.RATE_LIMIT
        assert error.message == "Rate limit exceeded"
        assert error.retry_after == 30

    def test_authentication_error(self) -> None:
        """AuthenticationError should use the authentication code."""
        error = AuthenticationError("ebay", details="invalid_client")

        assert error.code == ErrorCode.AUTHENTICATION
        assert error.details == "invalid_client"

    def test_timeout_error(self) -> None:
        """RequestTimeoutError should use the timeout code."""
        assert RequestTimeoutError("mirakl").code == ErrorCode.TIMEOUT

    def test_configuration_error(self) -> None:
        """ConfigurationError should use the configuration code."""
        error = ConfigurationError("shopify", details="shop_domain: Field required")

        assert error.code == ErrorCode.CONFIGURATION
        assert error.message == "Invalid account configuration"

    def test_unsupported_channel_error_message(self) -> None:
        """UnsupportedChannelError should name the channel."""
        error = UnsupportedChannelError("etsy")

        assert error.code == ErrorCode.UNSUPPORTED_CHANNEL
        assert error.message == "Unsupported channel: etsy"

    def test_not_implemented_channel_error_message(self) -> None:
        """NotImplementedChannelError should say the channel is not implemented."""
        error = NotImplementedChannelError("amazon")

        assert error.code == ErrorCode.NOT_IMPLEMENTED
        assert error.message == "Channel amazon is not implemented yet"

    def test_already_exists_error(self) -> None:
        """AlreadyExistsError should use the already_exists code."""
        assert AlreadyExistsError("shopify").code == ErrorCode.ALREADY_EXISTS

    def test_remote_validation_error(self) -> None:
        """RemoteValidationError should keep remote messages as details."""
        error = RemoteValidationError("shopify", details="Title can't be blank")

        assert error.code == ErrorCode.REMOTE_VALIDATION
        assert error.details == "Title can't be blank"


class TestStagingError:
    """Tests for StagingError."""

    def test_is_runtime_error(self) -> None:
        """StagingError should be raised as a RuntimeError."""
        with pytest.raises(RuntimeError, match="nothing staged"):
            raise StagingError("nothing staged")
