"""API serializers for tax data endpoints."""

from __future__ import annotations

from rest_framework import serializers


class CountryTaxRecordSerializer(serializers.Serializer):
    """Serializer for one country's stored VAT data."""

    country_code = serializers.CharField()
    country_name = serializers.CharField()
    vat_rate = serializers.DecimalField(max_digits=5, decimal_places=2, coerce_to_string=False)
    currency = serializers.CharField()
    reduced_rates = serializers.ListField(
        child=serializers.DecimalField(max_digits=5, decimal_places=2, coerce_to_string=False)
    )
    zero_rate = serializers.BooleanField()
    notes = serializers.CharField(allow_blank=True)
    last_updated = serializers.DateTimeField(allow_null=True)


class TaxSnapshotSerializer(serializers.Serializer):
    """Serializer for the full stored tax database."""

    collection_date = serializers.DateTimeField()
    last_sync = serializers.DateTimeField()
    status = serializers.CharField(source="status.value")
    countries = CountryTaxRecordSerializer(many=True)
    all_countries = serializers.ListField(child=serializers.CharField())
    error_message = serializers.CharField(allow_null=True)
    version = serializers.IntegerField()


class CountrySummarySerializer(serializers.Serializer):
    """Serializer for the country list."""

    code = serializers.CharField()
    name = serializers.CharField()
    vat_rate = serializers.DecimalField(max_digits=5, decimal_places=2, coerce_to_string=False)


class TaxSummarySerializer(serializers.Serializer):
    """Serializer for the database summary."""

    status = serializers.CharField()
    last_sync = serializers.DateTimeField(allow_null=True)
    total_countries = serializers.IntegerField()
    collection_status = serializers.CharField(allow_null=True)


class DatabaseStatsSerializer(serializers.Serializer):
    """Serializer for VAT rate statistics."""

    total_countries = serializers.IntegerField()
    collection_date = serializers.DateTimeField()
    last_sync = serializers.DateTimeField()
    status = serializers.CharField()
    average_vat_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, coerce_to_string=False, allow_null=True
    )
    min_vat_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, coerce_to_string=False, allow_null=True
    )
    max_vat_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, coerce_to_string=False, allow_null=True
    )


class JobResultSerializer(serializers.Serializer):
    """Serializer for one collection job result."""

    timestamp = serializers.DateTimeField()
    status = serializers.CharField(source="status.value")
    countries_collected = serializers.IntegerField()
    errors = serializers.IntegerField()
    message = serializers.CharField(allow_blank=True)
    execution_time_ms = serializers.IntegerField()


class CollectionStatusSerializer(serializers.Serializer):
    """Serializer for the refresh schedule status."""

    enabled = serializers.BooleanField()
    last_sync = serializers.DateTimeField(allow_null=True)
    should_collect = serializers.BooleanField()
    next_due = serializers.CharField()


class VATCalculationInputSerializer(serializers.Serializer):
    """Serializer for VAT calculation input."""

    country_code = serializers.CharField(
        min_length=2,
        max_length=3,
        help_text="ISO country code whose VAT rate applies",
    )
    amount = serializers.DecimalField(
        max_digits=18,
        decimal_places=4,
        help_text="Net amount before VAT",
    )
    currency = serializers.CharField(
        max_length=3,
        required=False,
        default="USD",
        help_text="Currency of the amount",
    )


class VATCalculationSerializer(serializers.Serializer):
    """Serializer for a VAT calculation result."""

    country_code = serializers.CharField()
    net_amount = serializers.DecimalField(max_digits=18, decimal_places=4, coerce_to_string=False)
    vat_rate = serializers.DecimalField(max_digits=5, decimal_places=2, coerce_to_string=False)
    vat_amount = serializers.DecimalField(max_digits=18, decimal_places=2, coerce_to_string=False)
    gross_amount = serializers.DecimalField(
        max_digits=18, decimal_places=2, coerce_to_string=False
    )
    currency = serializers.CharField()
    calculated_at = serializers.DateTimeField()


class VATValidationInputSerializer(serializers.Serializer):
    """Serializer for VAT number validation input."""

    vat_number = serializers.CharField(
        min_length=1,
        max_length=32,
        help_text="VAT number including its country prefix",
    )


class VATValidationSerializer(serializers.Serializer):
    """Serializer for a VAT number validation result."""

    valid = serializers.BooleanField()
    normalized_number = serializers.CharField(allow_blank=True)
    country_code = serializers.CharField(allow_null=True)


class HealthCheckSerializer(serializers.Serializer):
    """Serializer for health check response."""

    status = serializers.CharField()
    version = serializers.CharField()
    services = serializers.DictField(child=serializers.BooleanField())
