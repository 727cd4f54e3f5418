"""Run a connection test against every active channel account."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from apps.channels.models import SyncAccount
from core.logging import get_logger
from core.result import Failure
from services.marketplaces.dispatcher import SyncDispatcher

if TYPE_CHECKING:
    from argparse import ArgumentParser

    from services.marketplaces.base import SyncResult
    from services.marketplaces.staging import StagingAdapter

logger = get_logger(__name__)


class Command(BaseCommand):
    """Record pass/fail connection health on each active account."""

    help = "Test the connection of every active channel account and record the outcome"

    def add_arguments(self, parser: ArgumentParser) -> None:
        """Add command arguments."""
        parser.add_argument("--channel", help="Only check accounts of this channel")
        parser.add_argument("--account", help="Only check the account with this name")

    def handle(self, *args: Any, **options: Any) -> None:
        """Run the checks."""
        accounts = SyncAccount.objects.filter(is_active=True)
        if options.get("channel"):
            accounts = accounts.filter(channel=options["channel"])
        if options.get("account"):
            accounts = accounts.filter(name=options["account"])

        dispatcher = SyncDispatcher()
        passed = failed = 0
        for account in accounts:
            resolved = dispatcher.for_account(account.to_channel_account())
            if isinstance(resolved, Failure):
                result = resolved.error
            else:
                result = async_to_sync(_test_connection)(resolved.value)
            account.record_health_check(result)

            if result.success:
                passed += 1
                self.stdout.write(self.style.SUCCESS(f"PASS {account}: {result.message}"))
            else:
                failed += 1
                self.stdout.write(self.style.ERROR(f"FAIL {account}: {result.message}"))

        logger.info("Channel connection checks finished", passed=passed, failed=failed)
        self.stdout.write(f"{passed} passed, {failed} failed")


async def _test_connection(adapter: StagingAdapter) -> SyncResult:
    try:
        return await adapter.test_connection()
    finally:
        await adapter.close()
