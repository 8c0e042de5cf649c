"""Countries covered by the tax data collection."""

from __future__ import annotations

SUPPORTED_TAX_COUNTRIES: dict[str, tuple[str, ...]] = {
    "americas": ("US", "CA", "MX", "BR", "AR", "CL", "CO", "PE"),
    "europe": (
        "DE", "FR", "GB", "IT", "ES", "NL", "BE", "AT", "SE",
        "NO", "CH", "IE", "PL", "CZ", "RO", "GR", "PT", "HU",
    ),
    "middleeast_africa": (
        "RU", "UA", "TR", "IL", "SA", "AE", "QA",
        "KW", "BH", "OM", "EG", "NG", "ZA", "KE",
    ),
    "asia_pacific": (
        "IN", "CN", "JP", "KR", "SG", "MY", "TH",
        "VN", "PH", "ID", "BD", "PK", "AU", "NZ",
    ),
}  # fmt: skip

# Local currency per supported country (ISO 4217)
COUNTRY_CURRENCIES: dict[str, str] = {
    "US": "USD", "CA": "CAD", "MX": "MXN", "BR": "BRL", "AR": "ARS", "CL": "CLP",
    "CO": "COP", "PE": "PEN", "DE": "EUR", "FR": "EUR", "GB": "GBP", "IT": "EUR",
    "ES": "EUR", "NL": "EUR", "BE": "EUR", "AT": "EUR", "SE": "SEK", "NO": "NOK",
    "CH": "CHF", "IE": "EUR", "PL": "PLN", "CZ": "CZK", "RO": "RON", "GR": "EUR",
    "PT": "EUR", "HU": "HUF", "RU": "RUB", "UA": "UAH", "TR": "TRY", "IL": "ILS",
    "SA": "SAR", "AE": "AED", "QA": "QAR", "KW": "KWD", "BH": "BHD", "OM": "OMR",
    "EG": "EGP", "NG": "NGN", "ZA": "ZAR", "KE": "KES", "IN": "INR", "CN": "CNY",
    "JP": "JPY", "KR": "KRW", "SG": "SGD", "MY": "MYR", "TH": "THB", "VN": "VND",
    "PH": "PHP", "ID": "IDR", "BD": "BDT", "PK": "PKR", "AU": "AUD", "NZ": "NZD",
}  # fmt: skip


def default_country_list() -> list[str]:
    """Return every supported country code, region by region."""
    return [code for codes in SUPPORTED_TAX_COUNTRIES.values() for code in codes]


def currency_for(country_code: str) -> str:
    """Return the local currency of a country, empty if unknown."""
    return COUNTRY_CURRENCIES.get(country_code.upper(), "")
