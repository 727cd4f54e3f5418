"""Error types for channel integrations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for marketplace errors."""

    UNKNOWN = "unknown"
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    TIMEOUT = "timeout"
    PARSE = "parse"
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"
    SERVICE_UNAVAILABLE = "service_unavailable"
    CONFIGURATION = "configuration"
    UNSUPPORTED_CHANNEL = "unsupported_channel"
    NOT_IMPLEMENTED = "not_implemented"
    ALREADY_EXISTS = "already_exists"
    REMOTE_VALIDATION = "remote_validation"


@dataclass(frozen=True, slots=True)
class MarketplaceError:
    """
    Error produced while talking to (or preparing to talk to) a channel.

    Attributes:
        code: Error code identifying the type of error.
        message: Human-readable error message.
        channel: Channel that produced the error.
        details: Additional error details (optional).
        retry_after: Seconds to wait before retrying (for rate limits).
    """

    code: ErrorCode
    message: str
    channel: str
    details: str | None = None
    retry_after: int | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"[{self.channel}] {self.code.value}: {self.message}"

    @property
    def is_retryable(self) -> bool:
        """Check if this error type is retryable."""
        return self.code in {
            ErrorCode.RATE_LIMIT,
            ErrorCode.NETWORK,
            ErrorCode.TIMEOUT,
            ErrorCode.SERVICE_UNAVAILABLE,
        }


class StagingError(RuntimeError):
    """
    Raised when an adapter is driven in an invalid order.

    ``push()`` with nothing staged, or narrowing an update that was never
    started, is a defect in the calling code and is never returned as a
    result.
    """


def RateLimitError(
    channel: str,
    message: str = "Rate limit exceeded",
    retry_after: int | None = None,
) -> MarketplaceError:
    """Create a rate limit error."""
    return MarketplaceError(
        code=ErrorCode.RATE_LIMIT,
        message=message,
        channel=channel,
        retry_after=retry_after,
    )


def AuthenticationError(
    channel: str,
    message: str = "Authentication failed",
    details: str | None = None,
) -> MarketplaceError:
    """Create an authentication error."""
    return MarketplaceError(
        code=ErrorCode.AUTHENTICATION,
        message=message,
        channel=channel,
        details=details,
    )


def NetworkError(
    channel: str,
    message: str = "Network error",
    details: str | None = None,
) -> MarketplaceError:
    """Create a network error."""
    return MarketplaceError(
        code=ErrorCode.NETWORK,
        message=message,
        channel=channel,
        details=details,
    )


def RequestTimeoutError(
    channel: str,
    message: str = "Request timeout",
    details: str | None = None,
) -> MarketplaceError:
    """Create a timeout error."""
    return MarketplaceError(
        code=ErrorCode.TIMEOUT,
        message=message,
        channel=channel,
        details=details,
    )


def ParseError(
    channel: str,
    message: str = "Failed to parse response",
    details: str | None = None,
) -> MarketplaceError:
    """Create a parse error."""
    return MarketplaceError(
        code=ErrorCode.PARSE,
        message=message,
        channel=channel,
        details=details,
    )


def NotFoundError(
    channel: str,
    message: str = "Resource not found",
    details: str | None = None,
) -> MarketplaceError:
    """Create a not found error."""
    return MarketplaceError(
        code=ErrorCode.NOT_FOUND,
        message=message,
        channel=channel,
        details=details,
    )


def InvalidRequestError(
    channel: str,
    message: str = "Request rejected by the channel",
    details: str | None = None,
) -> MarketplaceError:
    """Create an invalid request error."""
    return MarketplaceError(
        code=ErrorCode.INVALID_REQUEST,
        message=message,
        channel=channel,
        details=details,
    )


def ServiceUnavailableError(
    channel: str,
    message: str = "Service unavailable",
    details: str | None = None,
) -> MarketplaceError:
    """Create a service unavailable error."""
    return MarketplaceError(
        code=ErrorCode.SERVICE_UNAVAILABLE,
        message=message,
        channel=channel,
        details=details,
    )


def ConfigurationError(
    channel: str,
    message: str = "Invalid account configuration",
    details: str | None = None,
) -> MarketplaceError:
    """Create a configuration error."""
    return MarketplaceError(
        code=ErrorCode.CONFIGURATION,
        message=message,
        channel=channel,
        details=details,
    )


def UnsupportedChannelError(channel: str) -> MarketplaceError:
    """Create an error for a channel name outside the known set."""
    return MarketplaceError(
        code=ErrorCode.UNSUPPORTED_CHANNEL,
        message=f"Unsupported channel: {channel}",
        channel=channel,
    )


def NotImplementedChannelError(channel: str) -> MarketplaceError:
    """Create an error for a known channel without an integration."""
    return MarketplaceError(
        code=ErrorCode.NOT_IMPLEMENTED,
        message=f"Channel {channel} is not implemented yet",
        channel=channel,
    )


def AlreadyExistsError(
    channel: str,
    message: str = "Product already exists on the channel",
    details: str | None = None,
) -> MarketplaceError:
    """Create an error for a create against an already linked product."""
    return MarketplaceError(
        code=ErrorCode.ALREADY_EXISTS,
        message=message,
        channel=channel,
        details=details,
    )


def RemoteValidationError(
    channel: str,
    message: str = "Channel rejected the payload",
    details: str | None = None,
) -> MarketplaceError:
    """Create an error for validation messages returned in a 2xx body."""
    return MarketplaceError(
        code=ErrorCode.REMOTE_VALIDATION,
        message=message,
        channel=channel,
        details=details,
    )
