"""URL configuration for the API application."""

from django.urls import path

from apps.api.views import (
    CheckNeededView,
    CollectionStatusView,
    DatabaseStatsView,
    HealthCheckView,
    JobHistoryView,
    LastSyncView,
    TaxCollectView,
    TaxCountriesView,
    TaxCountryDetailView,
    TaxDatabaseView,
    TaxSummaryView,
    VATCalculateView,
    VATValidateView,
)

app_name = "api"

urlpatterns = [
    path("taxes/summary/", TaxSummaryView.as_view(), name="tax-summary"),
    path("taxes/database/", TaxDatabaseView.as_view(), name="tax-database"),
    path("taxes/countries/", TaxCountriesView.as_view(), name="tax-countries"),
    path(
        "taxes/countries/<str:country_code>/",
        TaxCountryDetailView.as_view(),
        name="tax-country-detail",
    ),
    path("taxes/last-sync/", LastSyncView.as_view(), name="tax-last-sync"),
    path("taxes/check-needed/", CheckNeededView.as_view(), name="tax-check-needed"),
    path("taxes/calculate-vat/", VATCalculateView.as_view(), name="tax-calculate-vat"),
    path("taxes/validate-vat/", VATValidateView.as_view(), name="tax-validate-vat"),
    path("taxes/collect/", TaxCollectView.as_view(), name="tax-collect"),
    path("taxes/jobs/", JobHistoryView.as_view(), name="tax-jobs"),
    path("taxes/stats/", DatabaseStatsView.as_view(), name="tax-stats"),
    path("taxes/status/", CollectionStatusView.as_view(), name="tax-status"),
    path("health/", HealthCheckView.as_view(), name="health"),
]
