"""Tests for VAT calculation and VAT number validation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from services.taxes.store import TaxDataStore
from services.taxes.vat import VATCalculator, VATValidator
from tests.factories import make_record, make_snapshot


@pytest.fixture()
def calculator(memory_store: TaxDataStore) -> VATCalculator:
    """Create a calculator over a snapshot with German, Hungarian and US rates."""
    memory_store.save(
        make_snapshot(
            records=[
                make_record("DE", "19.00"),
                make_record("HU", "27.00", currency="HUF"),
                make_record("US", "0.00", currency="USD"),
            ]
        )
    )
    return VATCalculator(store=memory_store)


class TestVATCalculator:
    """Tests for VATCalculator.calculate_price_with_vat."""

    def test_germany(self, calculator: VATCalculator) -> None:
        """100 at 19% should give 19 VAT and 119 gross."""
        calculation = calculator.calculate_price_with_vat("DE", Decimal("100"), "EUR")

        assert calculation is not None
        assert calculation.country_code == "DE"
        assert calculation.vat_rate == Decimal("19.00")
        assert calculation.vat_amount == Decimal("19.00")
        assert calculation.gross_amount == Decimal("119.00")
        assert calculation.currency == "EUR"

    def test_lower_case_country_and_currency(self, calculator: VATCalculator) -> None:
        """Country and currency codes should be case-insensitive."""
        calculation = calculator.calculate_price_with_vat("de", 100, "eur")

        assert calculation is not None
        assert calculation.country_code == "DE"
        assert calculation.currency == "EUR"

    def test_rounds_half_up_to_cents(self, calculator: VATCalculator) -> None:
        """VAT should be rounded half-up to two decimals."""
        calculation = calculator.calculate_price_with_vat("HU", "0.50")

        assert calculation is not None
        # 0.50 * 27% = 0.135
        assert calculation.vat_amount == Decimal("0.14")
        assert calculation.gross_amount == Decimal("0.64")

    def test_gross_is_net_plus_vat(self, calculator: VATCalculator) -> None:
        """Gross should always equal net plus VAT."""
        calculation = calculator.calculate_price_with_vat("DE", "12.34")

        assert calculation is not None
        assert calculation.gross_amount == calculation.net_amount + calculation.vat_amount

    def test_zero_rate(self, calculator: VATCalculator) -> None:
        """A zero rate should leave the amount unchanged."""
        calculation = calculator.calculate_price_with_vat("US", Decimal("50"))

        assert calculation is not None
        assert calculation.vat_amount == Decimal("0.00")
        assert calculation.gross_amount == Decimal("50.00")

    def test_default_currency(self, calculator: VATCalculator) -> None:
        """Currency should default to USD."""
        calculation = calculator.calculate_price_with_vat("DE", 10)

        assert calculation is not None
        assert calculation.currency == "USD"

    def test_unknown_country(self, calculator: VATCalculator) -> None:
        """Countries without stored data should return None."""
        assert calculator.calculate_price_with_vat("ZZ", Decimal("100")) is None

    def test_empty_store(self, memory_store: TaxDataStore) -> None:
        """An empty store should return None rather than collecting."""
        calculator = VATCalculator(store=memory_store)

        assert calculator.calculate_price_with_vat("DE", Decimal("100")) is None


class TestVATValidator:
    """Tests for VATValidator."""

    @pytest.fixture()
    def validator(self) -> VATValidator:
        """Create a validator."""
        return VATValidator()

    def test_normalize(self) -> None:
        """normalize should strip separators and upper-case."""
        assert VATValidator.normalize(" de 123.456-789 ") == "DE123456789"
        assert VATValidator.normalize("") == ""

    @pytest.mark.parametrize(
        ("raw", "country"),
        [
            ("DE123456789", "DE"),
            ("de 123 456 789", "DE"),
            ("FR12345678901", "FR"),
            ("ATU12345678", "AT"),
            ("NL123456789B01", "NL"),
            ("EL123456789", "GR"),
            ("GB123456789", "GB"),
            ("CHE123456789MWST", "CH"),
            ("NO123456789MVA", "NO"),
        ],
    )
    def test_valid_numbers(self, validator: VATValidator, raw: str, country: str) -> None:
        """Well-formed numbers should be valid and resolve their country."""
        result = validator.validate_vat_number(raw)

        assert result.valid is True
        assert result.country_code == country

    @pytest.mark.parametrize(
        "raw",
        [
            "DE12345678",
            "DE1234567890",
            "ATX12345678",
            "NL123456789",
            "FR1234",
        ],
    )
    def test_malformed_numbers(self, validator: VATValidator, raw: str) -> None:
        """Numbers with the wrong shape for their country should be invalid."""
        result = validator.validate_vat_number(raw)

        assert result.valid is False
        assert result.country_code is not None

    @pytest.mark.parametrize("raw", ["", "DE", "ZZ123456789", "GR123456789", "123456789"])
    def test_unknown_or_empty(self, validator: VATValidator, raw: str) -> None:
        """Unknown prefixes and empty numbers should be invalid without a country."""
        result = validator.validate_vat_number(raw)

        assert result.valid is False
        assert result.country_code is None

    def test_returns_normalized_number(self, validator: VATValidator) -> None:
        """The normalized number should be echoed back."""
        result = validator.validate_vat_number("el-123/456/789")

        assert result.normalized_number == "EL123456789"
