"""
Staging and execution shared by every channel adapter.

``StagingAdapter`` keeps the staged operation, reads the local product,
enforces linkage rules and converts anything that goes wrong on the wire
into a failed ``SyncResult``. Channel adapters only implement the hooks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self

import httpx

from core.logging import get_logger
from services.marketplaces.base import MarketplacePayload, SyncResult
from services.marketplaces.errors import (
    AlreadyExistsError,
    MarketplaceError,
    NotFoundError,
    StagingError,
)
from services.marketplaces.linking import product_linkage, with_product_linkage
from services.marketplaces.operations import (
    Create,
    Link,
    OperationKind,
    ProductOperation,
    Pull,
    Recreate,
    Update,
)

if TYPE_CHECKING:
    from services.marketplaces.account_config import AccountConfig
    from services.marketplaces.accounts import ChannelAccount
    from services.marketplaces.catalog import Product, ProductCatalog
    from services.marketplaces.channels import Channel

logger = get_logger(__name__)


class StagingAdapter(ABC):
    """
    Base class for channel adapters.

    Staging precedence: ``create``, ``update``, ``recreate`` and ``link``
    replace whatever was staged before (last call wins). ``title``,
    ``images`` and ``pricing`` narrow a staged ``update`` and raise
    StagingError otherwise. ``push`` consumes the staged operation.

    Attributes:
        supported_filters: Filter keys ``pull`` forwards to the channel.
    """

    supported_filters: frozenset[str] = frozenset()

    def __init__(
        self,
        account: ChannelAccount,
        config: AccountConfig,
        catalog: ProductCatalog | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            account: Account snapshot; identifiers are read from it.
            config: Validated account configuration.
            catalog: Source of local products for staging.
        """
        self._account = account
        self._config = config
        self._catalog = catalog
        self._staged: ProductOperation | None = None
        self._product: Product | None = None
        self._payload: MarketplacePayload | None = None

    @property
    def channel(self) -> Channel:
        """Return the channel this adapter talks to."""
        return self._config.channel

    @property
    def account(self) -> ChannelAccount:
        """Return the account snapshot the adapter is bound to."""
        return self._account

    @property
    def config(self) -> AccountConfig:
        """Return the validated account configuration."""
        return self._config

    @property
    def staged(self) -> ProductOperation | None:
        """Return the currently staged operation."""
        return self._staged

    @property
    def payload(self) -> MarketplacePayload | None:
        """Return the payload built for the staged operation."""
        return self._payload

    # Staging

    def create(self, product_id: int) -> Self:
        """Stage a full product creation."""
        return self._stage(Create(product_id))

    def update(self, product_id: int) -> Self:
        """Stage an update; every field is sent unless narrowed."""
        return self._stage(Update(product_id))

    def title(self, title: str) -> Self:
        """Narrow the staged update to a new title."""
        return self._narrow(self._staged_update("title").with_title(title))

    def images(self, images: list[str]) -> Self:
        """Narrow the staged update to a new image list."""
        return self._narrow(self._staged_update("images").with_images(images))

    def pricing(self) -> Self:
        """Narrow the staged update to current pricing."""
        return self._narrow(self._staged_update("pricing").with_pricing())

    def recreate(self, product_id: int) -> Self:
        """Stage dropping the existing linkage and creating again."""
        return self._stage(Recreate(product_id))

    def link(self, product_id: int) -> Self:
        """Stage reconciling local SKUs against remote identifiers."""
        return self._stage(Link(product_id))

    def _stage(self, operation: ProductOperation) -> Self:
        if self._catalog is None:
            msg = "No product catalog configured; cannot stage product operations"
            raise StagingError(msg)
        if self._staged is not None and self._staged != operation:
            logger.warning(
                "Replacing staged operation",
                channel=self.channel.value,
                account=self._account.name,
                previous=self._staged.kind.value,
                current=operation.kind.value,
            )
        self._staged = operation
        self._product = self._catalog.get_product(operation.product_id)
        self._payload = self._rebuild_payload()
        return self

    def _staged_update(self, field_name: str) -> Update:
        if not isinstance(self._staged, Update):
            msg = f"{field_name}() narrows an update; call update(product_id) first"
            raise StagingError(msg)
        return self._staged

    def _narrow(self, operation: Update) -> Self:
        self._staged = operation
        self._payload = self._rebuild_payload()
        return self

    def _rebuild_payload(self) -> MarketplacePayload | None:
        if self._product is None or isinstance(self._staged, Link | None):
            return None
        return self.build_payload(self._staged, self._product)

    # Execution

    async def push(self) -> SyncResult:
        """
        Execute the staged operation and clear it.

        Returns:
            SyncResult describing the outcome; transport problems are
            returned as failures.

        Raises:
            StagingError: If nothing is staged.
        """
        operation = self._staged
        if operation is None:
            msg = "push() called with nothing staged; call create/update/recreate/link first"
            raise StagingError(msg)
        product, payload = self._product, self._payload
        self._staged, self._product, self._payload = None, None, None

        log = logger.bind(
            channel=self.channel.value,
            account=self._account.name,
            operation=operation.kind.value,
            product_id=operation.product_id,
        )
        if product is None:
            log.warning("Product not found in catalog")
            return self.error_result(
                NotFoundError(
                    channel=self.channel.value,
                    message=f"Product {operation.product_id} not found",
                ),
                operation.kind,
            )

        log.info("Pushing staged operation")
        result = await self._guard(operation.kind, self._dispatch(operation, product, payload))

        identifiers = result.data.get("marketplace_identifiers") if result.success else None
        if identifiers is not None:
            self._account = self._account.with_identifiers(dict(identifiers))
        log.info("Staged operation finished", success=result.success, message=result.message)
        return result

    async def _dispatch(
        self,
        operation: ProductOperation,
        product: Product,
        payload: MarketplacePayload | None,
    ) -> SyncResult:
        linkage = product_linkage(self._account.marketplace_identifiers, product.id)

        match operation:
            case Create():
                if linkage is not None:
                    return self.error_result(
                        AlreadyExistsError(
                            channel=self.channel.value,
                            message=(
                                f"Product {product.id} is already linked to "
                                f"{linkage.get('remote_id')}; use update() or recreate()"
                            ),
                        ),
                        operation.kind,
                    )
                return await self.push_create(product, self._require_payload(payload))
            case Recreate():
                return await self.push_create(product, self._require_payload(payload))
            case Update():
                if linkage is None:
                    return self.error_result(
                        NotFoundError(
                            channel=self.channel.value,
                            message=f"Product {product.id} is not linked; use create() or link()",
                        ),
                        operation.kind,
                    )
                return await self.push_update(
                    operation, product, self._require_payload(payload), linkage
                )
            case Link():
                return await self.push_link(product)

    def _require_payload(self, payload: MarketplacePayload | None) -> MarketplacePayload:
        if payload is None or not payload.has_data():
            msg = "Staged operation has no payload to send"
            raise StagingError(msg)
        return payload

    async def pull(self, filters: Mapping[str, Any] | None = None) -> SyncResult:
        """
        Fetch remote records.

        Filter keys this channel does not understand are dropped, logged and
        listed under ``metadata['ignored_filters']``.
        """
        requested = dict(filters or {})
        ignored = sorted(key for key in requested if key not in self.supported_filters)
        if ignored:
            logger.info(
                "Ignoring unsupported pull filters",
                channel=self.channel.value,
                account=self._account.name,
                filters=ignored,
            )
        operation = Pull({k: v for k, v in requested.items() if k in self.supported_filters})
        result = await self._guard(OperationKind.PULL, self.pull_records(operation))
        if not ignored:
            return result
        return SyncResult(
            success=result.success,
            message=result.message,
            data=result.data,
            errors=result.errors,
            metadata={**result.metadata, "ignored_filters": ignored},
        )

    async def test_connection(self) -> SyncResult:
        """Perform a lightweight authenticated call with no product side effects."""
        result = await self._guard(OperationKind.TEST_CONNECTION, self.check_connection())
        logger.info(
            "Connection test finished",
            channel=self.channel.value,
            account=self._account.name,
            success=result.success,
        )
        return result

    async def _guard(self, kind: OperationKind, call: Any) -> SyncResult:
        """Await an operation, converting stray transport exceptions to failures."""
        try:
            return await call
        except (httpx.HTTPError, TimeoutError, KeyError, TypeError, ValueError) as e:
            logger.error(
                "Channel operation raised",
                channel=self.channel.value,
                account=self._account.name,
                operation=kind.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            return SyncResult.failed(
                f"{self.channel.display_name} {kind.value} failed: {type(e).__name__}",
                errors=[str(e) or type(e).__name__],
                metadata={
                    "channel": self.channel.value,
                    "operation": kind.value,
                    "error_code": "unknown",
                    "retryable": isinstance(e, httpx.HTTPError | TimeoutError),
                },
            )

    # Helpers for channel adapters

    def error_result(
        self,
        error: MarketplaceError,
        kind: OperationKind,
        data: Mapping[str, Any] | None = None,
    ) -> SyncResult:
        """Convert a MarketplaceError into a failed result for this operation."""
        result = SyncResult.from_error(error, data=data)
        return SyncResult(
            success=False,
            message=result.message,
            data=result.data,
            errors=result.errors,
            metadata={**result.metadata, "operation": kind.value, "account": self._account.name},
        )

    def created_result(
        self,
        product: Product,
        remote_id: str,
        variants: Mapping[str, str],
        message: str,
        extra: Mapping[str, Any] | None = None,
    ) -> SyncResult:
        """Build the success result of a create/recreate, with the new identifiers map."""
        return SyncResult.succeeded(
            message,
            data={
                "product_id": product.id,
                "remote_id": remote_id,
                "variants": dict(variants),
                **(extra or {}),
                "marketplace_identifiers": with_product_linkage(
                    self._account.marketplace_identifiers, product.id, remote_id, variants
                ),
            },
            metadata={"channel": self.channel.value, "account": self._account.name},
        )

    # Channel hooks

    @abstractmethod
    def build_payload(
        self,
        operation: Create | Update | Recreate,
        product: Product,
    ) -> MarketplacePayload:
        """Transform a local product into this channel's body."""

    @abstractmethod
    async def push_create(self, product: Product, payload: MarketplacePayload) -> SyncResult:
        """Create the product remotely."""

    @abstractmethod
    async def push_update(
        self,
        operation: Update,
        product: Product,
        payload: MarketplacePayload,
        linkage: dict[str, Any],
    ) -> SyncResult:
        """Send the fields selected by the update."""

    @abstractmethod
    async def push_link(self, product: Product) -> SyncResult:
        """Reconcile local SKUs against remote records."""

    @abstractmethod
    async def pull_records(self, operation: Pull) -> SyncResult:
        """Fetch remote records with supported filters only."""

    @abstractmethod
    async def check_connection(self) -> SyncResult:
        """Perform the channel's identity call."""

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources."""
