"""Channel accounts and the store that holds them."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Protocol, runtime_checkable

from core.logging import get_logger
from services.marketplaces.channels import Channel

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ChannelAccount:
    """
    Snapshot of one configured connection to one channel.

    ``channel`` keeps the stored value as-is; it is resolved against the
    known set by the dispatcher, so an account with an unknown channel can
    still be loaded and rejected with a structured result.

    Attributes:
        id: Store identifier (None for accounts that were never saved).
        name: Account name, unique per channel.
        channel: Stored channel name.
        credentials: Channel-specific secrets.
        settings: Channel-specific options.
        marketplace_identifiers: Remote identifiers recorded after syncs.
        is_active: Whether the account takes part in syncs and health checks.
        display_name: Optional label for UIs.
    """

    name: str
    channel: str
    credentials: dict[str, Any] = field(default_factory=dict)
    settings: dict[str, Any] = field(default_factory=dict)
    marketplace_identifiers: dict[str, Any] = field(default_factory=dict)
    id: int | None = None
    is_active: bool = True
    display_name: str = ""

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.channel}:{self.name}"

    @property
    def key(self) -> tuple[str, str]:
        """Return the (channel, name) lookup key."""
        return (self.channel, self.name)

    def resolve_channel(self) -> Channel:
        """
        Resolve the stored channel name.

        Raises:
            ValueError: If the channel is not known.
        """
        return Channel.parse(self.channel)

    def with_identifiers(self, identifiers: dict[str, Any]) -> ChannelAccount:
        """Return a copy whose identifiers are replaced by the given map."""
        return replace(self, marketplace_identifiers=copy.deepcopy(identifiers))


@runtime_checkable
class AccountStore(Protocol):
    """
    Persistence for channel accounts.

    Identifiers are only ever written as a whole map; there are no partial
    updates.
    """

    async def get(self, channel: str, name: str) -> ChannelAccount | None:
        """Return the active account for (channel, name), if any."""
        ...

    async def get_by_id(self, account_id: int) -> ChannelAccount | None:
        """Return the account with the given id, if any."""
        ...

    async def list_active(self) -> list[ChannelAccount]:
        """Return all active accounts."""
        ...

    async def replace_identifiers(
        self,
        account: ChannelAccount,
        identifiers: dict[str, Any],
    ) -> ChannelAccount:
        """Replace the account's identifiers and return the updated snapshot."""
        ...


class InMemoryAccountStore:
    """AccountStore kept in a dict, used by scripts and tests."""

    def __init__(self, accounts: list[ChannelAccount] | None = None) -> None:
        """Initialize with optional accounts; missing ids are assigned."""
        self._accounts: dict[int, ChannelAccount] = {}
        self.write_count = 0
        for account in accounts or []:
            self.add(account)

    def add(self, account: ChannelAccount) -> ChannelAccount:
        """Add an account, assigning an id when it has none."""
        account_id = account.id if account.id is not None else len(self._accounts) + 1
        account = replace(account, id=account_id)
        self._accounts[account_id] = account
        return account

    async def get(self, channel: str, name: str) -> ChannelAccount | None:
        """Return the active account for (channel, name), if any."""
        for account in self._accounts.values():
            if account.channel == channel and account.name == name and account.is_active:
                return account
        return None

    async def get_by_id(self, account_id: int) -> ChannelAccount | None:
        """Return the account with the given id, if any."""
        return self._accounts.get(account_id)

    async def list_active(self) -> list[ChannelAccount]:
        """Return all active accounts."""
        return [account for account in self._accounts.values() if account.is_active]

    async def replace_identifiers(
        self,
        account: ChannelAccount,
        identifiers: dict[str, Any],
    ) -> ChannelAccount:
        """Replace the account's identifiers and return the updated snapshot."""
        if account.id is None or account.id not in self._accounts:
            msg = f"Account {account} is not in this store"
            raise LookupError(msg)
        updated = self._accounts[account.id].with_identifiers(identifiers)
        self._accounts[account.id] = updated
        self.write_count += 1
        logger.debug("Identifiers replaced", account=str(account), keys=sorted(identifiers))
        return updated
