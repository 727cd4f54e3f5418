"""Shared flow of the per-channel identifier setup actions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self

from core.logging import get_logger
from core.result import Failure

if TYPE_CHECKING:
    from services.marketplaces.accounts import AccountStore, ChannelAccount
    from services.marketplaces.base import SyncResult
    from services.marketplaces.dispatcher import SyncDispatcher

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class IdentifierSetupResult:
    """
    Outcome of fetching and storing a channel account's identifiers.

    Attributes:
        success: Whether the details were fetched and stored.
        marketplace_details: Details written onto the account.
        summary: Human-readable summary on success.
        error: Explanation on failure.
    """

    success: bool
    marketplace_details: Mapping[str, Any] = field(default_factory=dict)
    summary: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        """Freeze the details map."""
        object.__setattr__(
            self, "marketplace_details", MappingProxyType(dict(self.marketplace_details))
        )

    @classmethod
    def failed(cls, error: str) -> Self:
        """Create a failed setup result."""
        return cls(success=False, error=error)

    @classmethod
    def from_sync_result(cls, result: SyncResult) -> Self:
        """Create a failed setup result from a failed SyncResult."""
        reasons = [reason for reason in result.errors if reason and reason != result.message]
        error = result.message
        if reasons:
            error = f"{error}: {'; '.join(reasons)}"
        return cls.failed(error)

    def to_dict(self) -> dict[str, Any]:
        """Return the result, omitting empty optional members."""
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            payload["marketplace_details"] = dict(self.marketplace_details)
        if self.summary is not None:
            payload["summary"] = self.summary
        if self.error is not None:
            payload["error"] = self.error
        return payload


class IdentifierSetup(ABC):
    """
    Fetch account metadata from a channel and store it on the account.

    The remote call is the adapter's ``test_connection()``. The account's
    identifiers are replaced with one full-map write, and only after the
    call succeeded, so a failure leaves the account untouched.
    """

    def __init__(self, dispatcher: SyncDispatcher, store: AccountStore) -> None:
        """
        Initialize the setup action.

        Args:
            dispatcher: Builds the adapter for the account.
            store: Account store receiving the identifiers.
        """
        self._dispatcher = dispatcher
        self._store = store

    async def execute(self, account: ChannelAccount) -> IdentifierSetupResult:
        """
        Fetch and store the account's marketplace details.

        Args:
            account: Account to set up.

        Returns:
            IdentifierSetupResult; never raises for remote failures.
        """
        log = logger.bind(channel=account.channel, account=account.name)

        resolved = self._dispatcher.for_account(account)
        if isinstance(resolved, Failure):
            log.warning("Identifier setup rejected", error=resolved.error.message)
            return IdentifierSetupResult.from_sync_result(resolved.error)
        adapter = resolved.value

        try:
            connection = await adapter.test_connection()
        finally:
            await adapter.close()

        if not connection.success:
            log.warning("Identifier setup failed", error=connection.message)
            return IdentifierSetupResult.from_sync_result(connection)

        details = {
            key: value
            for key, value in self.extract_details(connection.data).items()
            if value is not None
        }

        current = await self._store.get_by_id(account.id) if account.id is not None else None
        if current is None:
            log.warning("Identifier setup target account missing")
            return IdentifierSetupResult.failed(f"Account {account} not found in store")
        await self._store.replace_identifiers(
            current, {**current.marketplace_identifiers, **details}
        )

        log.info("Identifiers stored", keys=sorted(details))
        return IdentifierSetupResult(
            success=True,
            marketplace_details=details,
            summary=f"{adapter.channel.display_name} identifiers retrieved",
        )

    @abstractmethod
    def extract_details(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Map the connection test data to marketplace details."""
