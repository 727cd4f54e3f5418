"""Health check endpoint for monitoring."""

from typing import Any

from django.db import connection
from django.http import JsonResponse

from apps.channels.models import SyncAccount


def health_check(_request: object) -> JsonResponse:
    """
    Health check endpoint.

    The status code follows database connectivity only. Channel accounts
    are summarized from their latest recorded connection test; no channel
    is called from here.

    Args:
        _request: Django HTTP request object (unused but required by Django).

    Returns:
        JsonResponse with health status.
    """
    checks: dict[str, dict[str, Any]] = {"database": _check_database()}
    database_healthy = checks["database"]["status"] == "healthy"
    if database_healthy:
        checks["channels"] = _check_channels()

    health_status = {
        "status": "healthy" if database_healthy else "degraded",
        "checks": checks,
    }

    return JsonResponse(
        health_status,
        status=200 if database_healthy else 503,
    )


def _check_database() -> dict[str, Any]:
    """Check database connectivity."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


def _check_channels() -> dict[str, Any]:
    """Summarize the latest connection test of every active account."""
    accounts = SyncAccount.objects.filter(is_active=True)
    failing = sorted(
        str(account)
        for account in accounts.filter(
            connection_test_result=SyncAccount.ConnectionStatus.FAILED
        )
    )
    untested = accounts.filter(last_connection_test__isnull=True).count()
    return {
        "status": "degraded" if failing else "healthy",
        "active_accounts": accounts.count(),
        "failing_accounts": failing,
        "untested_accounts": untested,
    }
