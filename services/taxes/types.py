"""Types for the tax data refresh cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

SNAPSHOT_VERSION = 1


class SnapshotStatus(str, Enum):
    """Outcome of a collection, derived from how many countries were fetched."""

    PENDING = "pending"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class JobStatus(str, Enum):
    """Outcome of a scheduler run."""

    SUCCESS = "success"
    FAILED = "failed"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True, slots=True)
class ProviderRate:
    """
    VAT data for one country as returned by the provider.

    Attributes:
        country_code: ISO country code the rate was requested for.
        country_name: Country name reported by the provider.
        standard_rate: Standard VAT rate as a percentage.
        reduced_rates: Other rates as percentages.
        currency: Local currency code, empty when unknown.
        description: Free-text description of the standard rate.
    """

    country_code: str
    country_name: str
    standard_rate: Decimal
    reduced_rates: tuple[Decimal, ...] = ()
    currency: str = ""
    description: str = ""


@dataclass(frozen=True, slots=True)
class CountryTaxRecord:
    """
    VAT data for one country inside a snapshot.

    Attributes:
        country_code: Upper-case ISO country code, unique within a snapshot.
        country_name: Country name for display.
        vat_rate: Standard VAT rate as a percentage (e.g. 19 for 19%).
        currency: Local currency code.
        reduced_rates: Reduced VAT rates as percentages.
        zero_rate: Whether a zero rate exists for this country.
        notes: Provider description of the standard rate.
        last_updated: When the record was fetched.
    """

    country_code: str
    country_name: str
    vat_rate: Decimal
    currency: str = ""
    reduced_rates: tuple[Decimal, ...] = ()
    zero_rate: bool = False
    notes: str = ""
    last_updated: datetime | None = None

    def __post_init__(self) -> None:
        """Reject negative rates."""
        if self.vat_rate < 0:
            msg = f"VAT rate must be >= 0, got {self.vat_rate} for {self.country_code}"
            raise ValueError(msg)

    @classmethod
    def from_provider(cls, rate: ProviderRate, fetched_at: datetime) -> CountryTaxRecord:
        """Build a record from a provider response."""
        return cls(
            country_code=rate.country_code.upper(),
            country_name=rate.country_name,
            vat_rate=rate.standard_rate,
            currency=rate.currency,
            reduced_rates=rate.reduced_rates,
            zero_rate=Decimal("0") in rate.reduced_rates,
            notes=rate.description,
            last_updated=fetched_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "country_code": self.country_code,
            "country_name": self.country_name,
            "vat_rate": str(self.vat_rate),
            "currency": self.currency,
            "reduced_rates": [str(r) for r in self.reduced_rates],
            "zero_rate": self.zero_rate,
            "notes": self.notes,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CountryTaxRecord:
        """Deserialize from a dict produced by ``to_dict``."""
        return cls(
            country_code=data["country_code"],
            country_name=data.get("country_name", ""),
            vat_rate=Decimal(str(data["vat_rate"])),
            currency=data.get("currency", ""),
            reduced_rates=tuple(Decimal(str(r)) for r in data.get("reduced_rates", [])),
            zero_rate=bool(data.get("zero_rate", False)),
            notes=data.get("notes", ""),
            last_updated=_parse_datetime(data.get("last_updated")),
        )


@dataclass(frozen=True, slots=True)
class TaxSnapshot:
    """
    One complete capture of every country's VAT data.

    A snapshot replaces the previous one wholesale; it is never patched.

    Attributes:
        collection_date: When the data was fetched.
        last_sync: When the collection was last attempted.
        status: Derived from ``countries`` vs ``all_countries``.
        countries: Successfully fetched records.
        all_countries: Every country code that was requested.
        error_message: Set when status is not SUCCESS.
        version: Schema version of the stored blob.
    """

    collection_date: datetime
    last_sync: datetime
    status: SnapshotStatus
    countries: tuple[CountryTaxRecord, ...] = ()
    all_countries: tuple[str, ...] = ()
    error_message: str | None = None
    version: int = SNAPSHOT_VERSION

    def __post_init__(self) -> None:
        """Enforce unique country codes and the subset rule."""
        codes = [c.country_code for c in self.countries]
        if len(codes) != len(set(codes)):
            msg = "Duplicate country codes in snapshot"
            raise ValueError(msg)
        missing = set(codes) - set(self.all_countries)
        if missing:
            msg = f"Countries not in requested list: {sorted(missing)}"
            raise ValueError(msg)

    @staticmethod
    def derive_status(collected: int, requested: int) -> SnapshotStatus:
        """
        Classify a collection by how many countries succeeded.

        Args:
            collected: Number of countries fetched successfully.
            requested: Number of countries requested.

        Returns:
            FAILED when nothing was collected, SUCCESS when everything was,
            PARTIAL otherwise.
        """
        if collected == 0:
            return SnapshotStatus.FAILED
        if collected >= requested:
            return SnapshotStatus.SUCCESS
        return SnapshotStatus.PARTIAL

    @classmethod
    def from_collection(
        cls,
        records: list[CountryTaxRecord],
        requested: list[str],
        collected_at: datetime,
    ) -> TaxSnapshot:
        """Build a snapshot from the records fetched for ``requested``."""
        ordered = tuple(sorted(records, key=lambda r: r.country_code))
        failed_count = len(requested) - len(ordered)
        error_message = None
        if not requested:
            error_message = "No countries requested"
        elif failed_count:
            error_message = f"Failed for {failed_count} countries"
        return cls(
            collection_date=collected_at,
            last_sync=collected_at,
            status=cls.derive_status(len(ordered), len(requested)),
            countries=ordered,
            all_countries=tuple(requested),
            error_message=error_message,
        )

    @property
    def failed_count(self) -> int:
        """Number of requested countries missing from the snapshot."""
        return len(self.all_countries) - len(self.countries)

    def find(self, country_code: str) -> CountryTaxRecord | None:
        """Return the record for a country code, case-insensitively."""
        code = country_code.upper().strip()
        for record in self.countries:
            if record.country_code == code:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "collection_date": self.collection_date.isoformat(),
            "last_sync": self.last_sync.isoformat(),
            "status": self.status.value,
            "data": [record.to_dict() for record in self.countries],
            "all_countries": list(self.all_countries),
            "error_message": self.error_message,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaxSnapshot:
        """Deserialize from a dict produced by ``to_dict``."""
        collection_date = _parse_datetime(data["collection_date"])
        last_sync = _parse_datetime(data.get("last_sync")) or collection_date
        if collection_date is None or last_sync is None:
            msg = "Snapshot has no collection date"
            raise ValueError(msg)
        return cls(
            collection_date=collection_date,
            last_sync=last_sync,
            status=SnapshotStatus(data.get("status", SnapshotStatus.PENDING.value)),
            countries=tuple(CountryTaxRecord.from_dict(d) for d in data.get("data", [])),
            all_countries=tuple(data.get("all_countries", [])),
            error_message=data.get("error_message"),
            version=int(data.get("version", SNAPSHOT_VERSION)),
        )


@dataclass(frozen=True, slots=True)
class JobResult:
    """
    Outcome of one scheduler run.

    Attributes:
        timestamp: When the run finished.
        status: SUCCESS or FAILED.
        countries_collected: Records written by the run (0 for no-op runs).
        errors: Number of countries or steps that failed.
        message: Human-readable summary.
        execution_time_ms: End-to-end duration of the run.
    """

    timestamp: datetime
    status: JobStatus
    countries_collected: int = 0
    errors: int = 0
    message: str = ""
    execution_time_ms: int = 0

    @property
    def is_noop(self) -> bool:
        """Whether the run skipped collection."""
        return self.status == JobStatus.SUCCESS and self.countries_collected == 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "countries_collected": self.countries_collected,
            "errors": self.errors,
            "message": self.message,
            "execution_time_ms": self.execution_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobResult:
        """Deserialize from a dict produced by ``to_dict``."""
        timestamp = _parse_datetime(data.get("timestamp"))
        return cls(
            timestamp=timestamp or utc_now(),
            status=JobStatus(data.get("status", JobStatus.FAILED.value)),
            countries_collected=int(data.get("countries_collected", 0)),
            errors=int(data.get("errors", 0)),
            message=data.get("message", ""),
            execution_time_ms=int(data.get("execution_time_ms", 0)),
        )


@dataclass(frozen=True, slots=True)
class VATCalculation:
    """
    Price broken down into net, VAT and gross amounts.

    Attributes:
        country_code: Country whose rate was applied.
        net_amount: Amount before VAT.
        vat_rate: Rate applied, as a percentage.
        vat_amount: VAT due on the net amount.
        gross_amount: Net amount plus VAT.
        currency: Currency the amounts are expressed in.
        calculated_at: When the calculation was made.
    """

    country_code: str
    net_amount: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    gross_amount: Decimal
    currency: str
    calculated_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class VATValidation:
    """Format check result for a VAT number."""

    valid: bool
    normalized_number: str
    country_code: str | None = None


@dataclass(frozen=True, slots=True)
class CollectionStatus:
    """
    Read-only view of the refresh schedule.

    Attributes:
        enabled: Whether a provider credential is configured.
        last_sync: Last collection attempt, None if never collected.
        should_collect: Whether the due-gate is currently open.
        next_due: Next collection date for display, "Unknown" if never synced.
    """

    enabled: bool
    last_sync: datetime | None
    should_collect: bool
    next_due: str
