"""Builders and fakes shared by the tax data tests."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from services.taxes.types import CountryTaxRecord, TaxSnapshot

if TYPE_CHECKING:
    from collections.abc import Callable

NOW = datetime(2026, 2, 2, 12, 0, tzinfo=UTC)


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore for tests that must not touch the database."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.writes = 0

    def get(self, key: str) -> Any | None:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.writes += 1
        self.data[key] = value

    def update(self, key: str, func: Callable[[Any | None], Any]) -> Any:
        self.writes += 1
        self.data[key] = func(self.data.get(key))
        return self.data[key]


def make_record(code: str = "DE", rate: str = "19.00", **kwargs: Any) -> CountryTaxRecord:
    """Build a CountryTaxRecord with sensible defaults."""
    return CountryTaxRecord(
        country_code=code,
        country_name=kwargs.pop("country_name", f"Country {code}"),
        vat_rate=Decimal(rate),
        currency=kwargs.pop("currency", "EUR"),
        last_updated=kwargs.pop("last_updated", NOW),
        **kwargs,
    )


def make_snapshot(
    records: list[CountryTaxRecord] | None = None,
    requested: list[str] | None = None,
    collected_at: datetime = NOW,
) -> TaxSnapshot:
    """Build a snapshot, requesting exactly the records' countries by default."""
    if records is None:
        records = [make_record("DE", "19.00"), make_record("FR", "20.00")]
    if requested is None:
        requested = [r.country_code for r in records]
    return TaxSnapshot.from_collection(records, requested, collected_at)
