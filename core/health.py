"""Health check endpoint for monitoring."""

from django.db import connection
from django.http import JsonResponse

from core.config import get_settings
from services.taxes.errors import StorageUnavailable
from services.taxes.store import TaxDataStore


def health_check(_request: object) -> JsonResponse:
    """
    Health check endpoint.

    Reports database connectivity and the state of the tax data store.
    The provider key being absent does not make the service unhealthy,
    it only disables collection.

    Args:
        _request: Django HTTP request object (unused but required by Django).

    Returns:
        JsonResponse with health status.
    """
    checks: dict[str, dict[str, str]] = {
        "database": _check_database(),
        "tax_data": _check_tax_data(),
    }

    # Determine overall status
    all_healthy = all(check.get("status") == "healthy" for check in checks.values())

    health_status = {
        "status": "healthy" if all_healthy else "degraded",
        "checks": checks,
    }

    return JsonResponse(
        health_status,
        status=200 if all_healthy else 503,
    )


def _check_database() -> dict[str, str]:
    """Check database connectivity."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


def _check_tax_data() -> dict[str, str]:
    """Check that the tax snapshot can be read."""
    try:
        last_sync = TaxDataStore().get_last_sync_time()
    except StorageUnavailable as e:
        return {"status": "unhealthy", "error": e.message}

    return {
        "status": "healthy",
        "last_sync": last_sync.isoformat() if last_sync else "never",
        "collection": "enabled" if get_settings().tax.is_configured else "disabled",
    }
