"""Base types and protocols for channel adapters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from services.marketplaces.accounts import ChannelAccount
    from services.marketplaces.channels import Channel
    from services.marketplaces.errors import MarketplaceError


def _freeze(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True, slots=True)
class SyncResult:
    """
    Outcome of one operation against one channel account.

    Build instances with ``SyncResult.succeeded`` or ``SyncResult.failed``.
    A successful result never carries errors; a failed one always carries
    at least one.

    Attributes:
        success: Whether the operation succeeded (partial linkage included).
        message: Human-readable summary.
        data: Operation payload, e.g. remote ids or a SKU mapping.
        errors: Ordered error messages.
        metadata: Diagnostic context.
    """

    success: bool
    message: str = ""
    data: Mapping[str, Any] = field(default_factory=dict)
    errors: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and freeze the result."""
        if self.success and self.errors:
            msg = "a successful result cannot carry errors"
            raise ValueError(msg)
        if not self.success and not self.errors and not self.message:
            msg = "a failed result needs errors or a message"
            raise ValueError(msg)
        object.__setattr__(self, "data", _freeze(self.data))
        object.__setattr__(self, "metadata", _freeze(self.metadata))
        object.__setattr__(self, "errors", tuple(self.errors))

    @classmethod
    def succeeded(
        cls,
        message: str = "",
        data: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Self:
        """Create a successful result."""
        return cls(success=True, message=message, data=data or {}, metadata=metadata or {})

    @classmethod
    def failed(
        cls,
        message: str,
        errors: list[str] | tuple[str, ...] | None = None,
        data: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Self:
        """
        Create a failed result.

        When no errors are given the message doubles as the only error.
        """
        return cls(
            success=False,
            message=message,
            data=data or {},
            errors=tuple(errors) if errors else (message,),
            metadata=metadata or {},
        )

    @classmethod
    def from_error(
        cls,
        error: MarketplaceError,
        message: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Self:
        """
        Convert a MarketplaceError into a failed result.

        Args:
            error: The error to convert.
            message: Optional summary; defaults to the error message.
            data: Optional partial data gathered before the failure.

        Returns:
            Failed SyncResult with the error code in its metadata.
        """
        errors = [error.message]
        if error.details:
            errors.append(error.details)
        metadata: dict[str, Any] = {
            "channel": error.channel,
            "error_code": error.code.value,
            "retryable": error.is_retryable,
        }
        if error.retry_after is not None:
            metadata["retry_after"] = error.retry_after
        return cls.failed(message or error.message, errors=errors, data=data, metadata=metadata)

    @property
    def coverage_percent(self) -> int | None:
        """Return the linkage coverage, if the operation reported one."""
        value = self.data.get("coverage_percent")
        return int(value) if value is not None else None

    @property
    def error_code(self) -> str | None:
        """Return the error code recorded on a failure."""
        return self.metadata.get("error_code")

    def to_dict(self) -> dict[str, Any]:
        """Return a plain, JSON-friendly representation."""
        return {
            "success": self.success,
            "message": self.message,
            "data": _thaw(self.data),
            "errors": list(self.errors),
            "metadata": _thaw(self.metadata),
        }


@dataclass(frozen=True, slots=True)
class MarketplacePayload:
    """
    Channel-specific representation of a local product, ready for transport.

    Attributes:
        data: Channel-defined body.
        metadata: How the body was derived (source product, mapped fields).
    """

    data: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Freeze the payload."""
        object.__setattr__(self, "data", _freeze(self.data))
        object.__setattr__(self, "metadata", _freeze(self.metadata))

    def has_data(self) -> bool:
        """Return True if the payload carries a body."""
        return bool(self.data)


@runtime_checkable
class MarketplaceAdapter(Protocol):
    """
    Protocol every channel integration conforms to.

    Staging methods are synchronous and return the adapter so calls chain;
    only ``push``, ``pull`` and ``test_connection`` perform network I/O.
    """

    @property
    def channel(self) -> Channel:
        """Return the channel this adapter talks to."""
        ...

    @property
    def account(self) -> ChannelAccount:
        """Return the account snapshot the adapter is bound to."""
        ...

    def create(self, product_id: int) -> Self:
        """Stage a full product creation."""
        ...

    def update(self, product_id: int) -> Self:
        """Stage a partial update of an already linked product."""
        ...

    def title(self, title: str) -> Self:
        """Narrow the staged update to a new title."""
        ...

    def images(self, images: list[str]) -> Self:
        """Narrow the staged update to a new image list."""
        ...

    def pricing(self) -> Self:
        """Narrow the staged update to current pricing."""
        ...

    def recreate(self, product_id: int) -> Self:
        """Stage dropping any existing linkage and creating again."""
        ...

    def link(self, product_id: int) -> Self:
        """Stage reconciling local SKUs against remote identifiers."""
        ...

    async def push(self) -> SyncResult:
        """
        Execute the staged operation.

        Raises:
            StagingError: If nothing is staged.
        """
        ...

    async def pull(self, filters: Mapping[str, Any] | None = None) -> SyncResult:
        """Fetch remote records; unsupported filter keys are ignored."""
        ...

    async def test_connection(self) -> SyncResult:
        """Perform a lightweight authenticated call."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        ...
