"""VAT price calculation and VAT number format validation."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal

from core.logging import get_logger
from services.taxes.store import TaxDataStore
from services.taxes.types import VATCalculation, VATValidation

logger = get_logger(__name__)

CENT = Decimal("0.01")

# Number part (after the two-letter prefix) per country, VIES-style formats
VAT_NUMBER_PATTERNS: dict[str, re.Pattern[str]] = {
    code: re.compile(rf"^(?:{pattern})$")
    for code, pattern in {
        "AT": r"U\d{8}",
        "BE": r"[01]\d{9}",
        "BG": r"\d{9,10}",
        "CY": r"\d{8}[A-Z]",
        "CZ": r"\d{8,10}",
        "DE": r"\d{9}",
        "DK": r"\d{8}",
        "EE": r"\d{9}",
        "GR": r"\d{9}",
        "ES": r"[A-Z0-9]\d{7}[A-Z0-9]",
        "FI": r"\d{8}",
        "FR": r"[A-HJ-NP-Z0-9]{2}\d{9}",
        "HR": r"\d{11}",
        "HU": r"\d{8}",
        "IE": r"\d{7}[A-W][A-I]?|\d[A-Z+*]\d{5}[A-W]",
        "IT": r"\d{11}",
        "LT": r"\d{9}|\d{12}",
        "LU": r"\d{8}",
        "LV": r"\d{11}",
        "MT": r"\d{8}",
        "NL": r"\d{9}B\d{2}",
        "PL": r"\d{10}",
        "PT": r"\d{9}",
        "RO": r"\d{2,10}",
        "SE": r"\d{10}01",
        "SI": r"\d{8}",
        "SK": r"\d{10}",
        "GB": r"\d{9}|\d{12}|GD\d{3}|HA\d{3}",
        "XI": r"\d{9}|\d{12}|GD\d{3}|HA\d{3}",
        "CH": r"E\d{9}(?:MWST|TVA|IVA)?",
        "NO": r"\d{9}(?:MVA)?",
    }.items()
}

# VAT prefixes that differ from the ISO country code
PREFIX_TO_COUNTRY: dict[str, str] = {"EL": "GR"}

_SEPARATORS = re.compile(r"[\s.\-/]")


class VATCalculator:
    """Applies stored VAT rates to amounts. Never triggers a refresh."""

    def __init__(self, store: TaxDataStore | None = None) -> None:
        """
        Initialize the calculator.

        Args:
            store: Store holding the current snapshot (default: TaxDataStore()).
        """
        self._store = store or TaxDataStore()

    def calculate_price_with_vat(
        self,
        country_code: str,
        amount: Decimal | int | float | str,
        currency: str = "USD",
    ) -> VATCalculation | None:
        """
        Add the country's standard VAT to a net amount.

        Args:
            country_code: ISO country code, case-insensitive.
            amount: Net amount.
            currency: Currency of the amount, echoed back.

        Returns:
            The calculation, or None when the country has no stored rate.

        Raises:
            StorageUnavailable: If the snapshot cannot be read.
        """
        snapshot = self._store.load()
        record = snapshot.find(country_code) if snapshot else None
        if record is None:
            logger.info("No tax data for country", country=country_code)
            return None

        net_amount = Decimal(str(amount))
        vat_amount = (net_amount * record.vat_rate / Decimal("100")).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        return VATCalculation(
            country_code=record.country_code,
            net_amount=net_amount,
            vat_rate=record.vat_rate,
            vat_amount=vat_amount,
            gross_amount=(net_amount + vat_amount).quantize(CENT, rounding=ROUND_HALF_UP),
            currency=currency.upper().strip() or "USD",
        )


class VATValidator:
    """Checks the shape of VAT numbers against per-country patterns."""

    @staticmethod
    def normalize(raw: str) -> str:
        """Upper-case and strip spaces, dots, dashes and slashes."""
        return _SEPARATORS.sub("", raw or "").upper()

    def validate_vat_number(self, raw: str) -> VATValidation:
        """
        Validate a VAT number by format only; no external lookup.

        Args:
            raw: VAT number including its country prefix (e.g. "DE 123 456 789").

        Returns:
            VATValidation with the normalized number and, when the prefix
            is known, the ISO country code.
        """
        normalized = self.normalize(raw)
        prefix, number = normalized[:2], normalized[2:]
        country_code = PREFIX_TO_COUNTRY.get(prefix, prefix)
        if prefix == "GR":
            # Greek numbers are issued with the EL prefix only
            country_code = ""

        pattern = VAT_NUMBER_PATTERNS.get(country_code)
        if pattern is None or not number:
            return VATValidation(valid=False, normalized_number=normalized)

        return VATValidation(
            valid=bool(pattern.match(number)),
            normalized_number=normalized,
            country_code=country_code,
        )
