"""Read-side queries over the stored tax database."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from core.logging import get_logger
from services.taxes.store import TaxDataStore
from services.taxes.types import CountryTaxRecord, TaxSnapshot

logger = get_logger(__name__)


class TaxDataService:
    """
    Service answering questions about the current tax snapshot.

    Only ever reads the last saved snapshot; refreshing is the
    scheduler's job.
    """

    def __init__(self, store: TaxDataStore | None = None) -> None:
        """
        Initialize the service.

        Args:
            store: Store holding the snapshot (default: TaxDataStore()).
        """
        self._store = store or TaxDataStore()

    def get_snapshot(self) -> TaxSnapshot | None:
        """Return the full stored snapshot."""
        return self._store.load()

    def get_country_tax_data(self, country_code: str) -> CountryTaxRecord | None:
        """Return one country's record, None if not collected."""
        snapshot = self._store.load()
        return snapshot.find(country_code) if snapshot else None

    def get_available_countries(self) -> list[dict[str, Any]]:
        """
        List collected countries.

        Returns:
            List of dicts with code, name and vat_rate.
        """
        snapshot = self._store.load()
        if snapshot is None:
            return []
        return [
            {"code": r.country_code, "name": r.country_name, "vat_rate": r.vat_rate}
            for r in snapshot.countries
        ]

    def get_summary(self) -> dict[str, Any]:
        """Summarize whether the database is initialized and how fresh it is."""
        snapshot = self._store.load()
        if snapshot is None:
            return {
                "status": "empty",
                "last_sync": None,
                "total_countries": 0,
                "collection_status": None,
            }
        return {
            "status": "initialized",
            "last_sync": snapshot.last_sync,
            "total_countries": len(snapshot.countries),
            "collection_status": snapshot.status.value,
        }

    def get_database_stats(self) -> dict[str, Any] | None:
        """
        Compute VAT rate statistics over the stored snapshot.

        Returns:
            Stats dict, or None when nothing has been collected.
        """
        snapshot = self._store.load()
        if snapshot is None:
            return None

        rates = [r.vat_rate for r in snapshot.countries]
        average = (
            (sum(rates, Decimal("0")) / len(rates)).quantize(Decimal("0.01")) if rates else None
        )
        return {
            "total_countries": len(rates),
            "collection_date": snapshot.collection_date,
            "last_sync": snapshot.last_sync,
            "status": snapshot.status.value,
            "average_vat_rate": average,
            "min_vat_rate": min(rates) if rates else None,
            "max_vat_rate": max(rates) if rates else None,
        }
