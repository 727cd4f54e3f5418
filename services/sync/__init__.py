"""Bulk synchronization package."""

from services.sync.orchestrator import (
    BulkSyncOrchestrator,
    BulkSyncReport,
    LoggingProgressNotifier,
    ProgressEvent,
    ProgressNotifier,
    ProgressStatus,
    UnitResult,
)

__all__ = [
    "BulkSyncOrchestrator",
    "BulkSyncReport",
    "LoggingProgressNotifier",
    "ProgressEvent",
    "ProgressNotifier",
    "ProgressStatus",
    "UnitResult",
]
