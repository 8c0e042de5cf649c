"""API views for the tax data refresh cache."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from asgiref.sync import async_to_sync
from django.db import connection
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.serializers import (
    CollectionStatusSerializer,
    CountrySummarySerializer,
    CountryTaxRecordSerializer,
    DatabaseStatsSerializer,
    HealthCheckSerializer,
    JobResultSerializer,
    TaxSnapshotSerializer,
    TaxSummarySerializer,
    VATCalculationInputSerializer,
    VATCalculationSerializer,
    VATValidationInputSerializer,
    VATValidationSerializer,
)
from core.config import get_settings
from core.logging import get_logger
from services.taxes import (
    RefreshScheduler,
    TaxDataService,
    TaxDataStore,
    VATCalculator,
    VATValidator,
    get_initializer,
)
from services.taxes.errors import StorageUnavailable

if TYPE_CHECKING:
    from rest_framework.request import Request

    from services.taxes.types import JobResult

logger = get_logger(__name__)


async def _force_collect() -> JobResult:
    """Run one collection now and release the provider connection."""
    scheduler = RefreshScheduler.from_settings(get_settings().tax)
    try:
        return await scheduler.force_collect()
    finally:
        await scheduler.collector.client.close()


class TaxAPIView(APIView):
    """
    Base view for tax data endpoints.

    Turns an unreachable settings store into a 503 instead of a 500.
    """

    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc: Exception) -> Response:
        """Map StorageUnavailable to 503 Service Unavailable."""
        if isinstance(exc, StorageUnavailable):
            logger.error("Tax data storage unavailable", path=self.request.path, error=exc.message)
            return Response(
                {"error": "Tax data storage unavailable"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return super().handle_exception(exc)


class TaxSummaryView(TaxAPIView):
    """Summary of the stored tax database."""

    def get(self, request: Request) -> Response:
        """Return whether the database is initialized and how fresh it is."""
        summary = TaxDataService().get_summary()
        return Response(TaxSummarySerializer(summary).data)


class TaxDatabaseView(TaxAPIView):
    """Full stored tax database."""

    def get(self, request: Request) -> Response:
        """Return the snapshot, or null when nothing was collected."""
        snapshot = TaxDataService().get_snapshot()
        data = TaxSnapshotSerializer(snapshot).data if snapshot else None
        return Response({"database": data})


class TaxCountriesView(TaxAPIView):
    """Countries present in the stored tax database."""

    def get(self, request: Request) -> Response:
        """Return code, name and VAT rate of every collected country."""
        countries = TaxDataService().get_available_countries()
        return Response({"countries": CountrySummarySerializer(countries, many=True).data})


class TaxCountryDetailView(TaxAPIView):
    """Stored VAT data of one country."""

    def get(self, request: Request, country_code: str) -> Response:
        """Return the country's record or 404."""
        record = TaxDataService().get_country_tax_data(country_code)
        if record is None:
            return Response(
                {"error": "Tax data not found for country"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({"data": CountryTaxRecordSerializer(record).data})


class LastSyncView(TaxAPIView):
    """Time of the last collection attempt."""

    def get(self, request: Request) -> Response:
        """Return the last sync time, null if never collected."""
        last_sync = TaxDataStore().get_last_sync_time()
        return Response({"last_sync": last_sync})


class CheckNeededView(TaxAPIView):
    """Whether a collection is currently due."""

    def get(self, request: Request) -> Response:
        """Return the due-gate state."""
        should_collect = get_initializer().get_status().should_collect
        return Response({"should_collect": should_collect})


class VATCalculateView(TaxAPIView):
    """Price with VAT for a country."""

    def post(self, request: Request) -> Response:
        """Return net, VAT and gross amounts, 404 for unknown countries."""
        input_serializer = VATCalculationInputSerializer(data=request.data)
        if not input_serializer.is_valid():
            return Response(input_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = input_serializer.validated_data
        calculation = VATCalculator().calculate_price_with_vat(
            data["country_code"],
            data["amount"],
            data["currency"],
        )
        if calculation is None:
            return Response(
                {"error": "Could not calculate VAT for country"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({"calculation": VATCalculationSerializer(calculation).data})


class VATValidateView(TaxAPIView):
    """Format check of a VAT number."""

    def post(self, request: Request) -> Response:
        """Return whether the VAT number has a valid shape."""
        input_serializer = VATValidationInputSerializer(data=request.data)
        if not input_serializer.is_valid():
            return Response(input_serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = VATValidator().validate_vat_number(input_serializer.validated_data["vat_number"])
        return Response(VATValidationSerializer(result).data)


class TaxCollectView(TaxAPIView):
    """Manual collection trigger (administrators only)."""

    permission_classes = [IsAdminUser]

    def post(self, request: Request) -> Response:
        """Run a collection regardless of the refresh interval."""
        logger.info("Manual tax collection requested", user_id=request.user.pk)
        result = async_to_sync(_force_collect)()
        return Response(
            {
                "message": "Tax collection job triggered",
                "result": JobResultSerializer(result).data,
            }
        )


class JobHistoryView(TaxAPIView):
    """Recent collection job results (administrators only)."""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        """Return job results, newest first."""
        history = TaxDataStore().load_job_history()
        return Response({"job_history": JobResultSerializer(history, many=True).data})


class DatabaseStatsView(TaxAPIView):
    """VAT rate statistics (administrators only)."""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        """Return statistics, 404 when nothing was collected."""
        stats = TaxDataService().get_database_stats()
        if stats is None:
            return Response(
                {"stats": None, "message": "Tax database not initialized"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response({"stats": DatabaseStatsSerializer(stats).data})


class CollectionStatusView(TaxAPIView):
    """Refresh schedule status (administrators only)."""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        """Return enabled flag, last sync, due state and next due date."""
        collection_status = get_initializer().get_status()
        return Response(CollectionStatusSerializer(collection_status).data)


class HealthCheckView(APIView):
    """
    API health check endpoint.

    Returns the health status of the API and its dependencies.
    """

    permission_classes = []  # No auth required for health check

    def get(self, request: Request) -> Response:
        """Return health status."""
        services: dict[str, Any] = {
            "database": _database_ok(),
            "tax_provider_configured": get_settings().tax.is_configured,
        }
        health_data = {
            "status": "healthy" if services["database"] else "degraded",
            "version": "0.1.0",
            "services": services,
        }

        serializer = HealthCheckSerializer(data=health_data)
        serializer.is_valid()
        return Response(serializer.data)


def _database_ok() -> bool:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except Exception as e:
        logger.warning("Database health check failed", error=str(e))
        return False
    return True
