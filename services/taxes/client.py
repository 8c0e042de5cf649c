"""HTTP client for the APILayer Tax Data API."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from core.config import PLACEHOLDER_API_KEY, TaxDataSettings
from core.logging import get_logger
from core.result import Result, failure, success
from services.taxes.countries import currency_for
from services.taxes.errors import ErrorCode, ProviderError
from services.taxes.types import ProviderRate

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0
BASE_URL = "https://api.apilayer.com/tax_data"


def _to_percentage(value: Any) -> Decimal:
    """Convert a fractional provider rate (0.19) to a percentage (19.00)."""
    return (Decimal(str(value)) * Decimal("100")).quantize(Decimal("0.01"))


class TaxDataClient:
    """
    HTTP client for the tax data provider.

    Handles all HTTP communication with the provider and maps every
    failure mode to a ProviderError instead of raising.

    Attributes:
        base_url: Provider base URL.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Provider API key; None or empty disables every request.
            base_url: Provider base URL.
            timeout: Request timeout in seconds.
        """
        self._api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: TaxDataSettings) -> TaxDataClient:
        """Create a client from tax data settings."""
        return cls(
            api_key=settings.api_key.get_secret_value(),
            base_url=settings.base_url,
            timeout=settings.request_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        """Check if a usable API key is present."""
        return bool(self._api_key) and self._api_key != PLACEHOLDER_API_KEY

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Accept": "application/json",
                    "apikey": self._api_key,
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _make_request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        country_code: str | None = None,
    ) -> Result[Any, ProviderError]:
        """
        Make a GET request to the provider.

        Args:
            path: API path relative to the base URL.
            params: Query parameters.
            country_code: Country the request is for, used in errors.

        Returns:
            Result containing the decoded JSON body or ProviderError.
        """
        if not self.is_configured:
            return failure(
                ProviderError(
                    code=ErrorCode.NOT_CONFIGURED,
                    message="Tax data API key not configured",
                    country_code=country_code,
                )
            )

        client = await self._get_client()

        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException:
            logger.error("Tax data request timeout", path=path, country=country_code)
            return failure(
                ProviderError(
                    code=ErrorCode.NETWORK,
                    message="Request timeout",
                    country_code=country_code,
                )
            )
        except httpx.RequestError as e:
            logger.error("Tax data request error", path=path, country=country_code, error=str(e))
            return failure(
                ProviderError(
                    code=ErrorCode.NETWORK,
                    message="Request failed",
                    country_code=country_code,
                    details=str(e),
                )
            )

        if response.status_code in (401, 403):
            logger.error(
                "Tax data provider rejected credentials",
                status_code=response.status_code,
                country=country_code,
            )
            return failure(
                ProviderError(
                    code=ErrorCode.AUTHENTICATION,
                    message="Authentication failed",
                    country_code=country_code,
                    details=response.text[:500],
                )
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            retry_seconds = int(retry_after) if retry_after and retry_after.isdigit() else 60
            logger.warning(
                "Rate limited by tax data provider",
                country=country_code,
                retry_after=retry_seconds,
            )
            return failure(
                ProviderError(
                    code=ErrorCode.RATE_LIMIT,
                    message="Rate limit exceeded",
                    country_code=country_code,
                    retry_after=retry_seconds,
                )
            )

        if response.status_code >= 500:
            logger.error(
                "Tax data provider error",
                status_code=response.status_code,
                country=country_code,
                response_text=response.text[:500],
            )
            return failure(
                ProviderError(
                    code=ErrorCode.NETWORK,
                    message=f"API returned status {response.status_code}",
                    country_code=country_code,
                    details=response.text[:500],
                )
            )

        if response.status_code >= 400:
            logger.warning(
                "Tax data request rejected",
                status_code=response.status_code,
                country=country_code,
            )
            code = ErrorCode.NOT_FOUND if response.status_code == 404 else ErrorCode.INVALID_REQUEST
            return failure(
                ProviderError(
                    code=code,
                    message=f"API returned status {response.status_code}",
                    country_code=country_code,
                    details=response.text[:500],
                )
            )

        try:
            return success(response.json())
        except ValueError as e:
            logger.error("Failed to parse tax data response", country=country_code, error=str(e))
            return failure(
                ProviderError(
                    code=ErrorCode.PARSE,
                    message="Failed to parse response",
                    country_code=country_code,
                    details=str(e),
                )
            )

    async def fetch_country_vat(self, country_code: str) -> Result[ProviderRate, ProviderError]:
        """
        Fetch the VAT rates of one country.

        Args:
            country_code: ISO country code.

        Returns:
            Result containing the ProviderRate or ProviderError.
        """
        code = country_code.upper().strip()
        result = await self._make_request("/tax_rates", params={"country": code}, country_code=code)
        if result.is_failure():
            return result

        data = result.unwrap()
        try:
            return success(self._parse_rate(code, data))
        except (KeyError, TypeError, InvalidOperation, AttributeError) as e:
            logger.error("Unexpected tax data payload", country=code, error=str(e))
            return failure(
                ProviderError(
                    code=ErrorCode.PARSE,
                    message="Unexpected response shape",
                    country_code=code,
                    details=str(e),
                )
            )

    def _parse_rate(self, code: str, data: dict[str, Any]) -> ProviderRate:
        """Transform a provider payload into a ProviderRate."""
        standard = data.get("standard_rate") or {}
        raw_rate = standard.get("rate")
        if raw_rate is None:
            msg = "standard_rate.rate missing"
            raise KeyError(msg)
        other_rates = data.get("other_rates") or []
        return ProviderRate(
            country_code=code,
            country_name=data.get("country_name") or code,
            standard_rate=_to_percentage(raw_rate),
            reduced_rates=tuple(_to_percentage(r["rate"]) for r in other_rates),
            currency=data.get("currency") or currency_for(code),
            description=standard.get("description") or "",
        )

    async def fetch_supported_countries(self) -> Result[list[str], ProviderError]:
        """
        Fetch the country codes the provider supports.

        Returns:
            Result containing upper-case country codes or ProviderError.
        """
        result = await self._make_request("/countries")
        if result.is_failure():
            return result

        data = result.unwrap()
        if isinstance(data, dict):
            codes = [str(code).upper() for code in data]
        elif isinstance(data, list):
            codes = [
                str(item.get("country_code", "")).upper() if isinstance(item, dict) else str(item)
                for item in data
            ]
        else:
            codes = []

        codes = [code for code in codes if code]
        if not codes:
            return failure(
                ProviderError(code=ErrorCode.PARSE, message="Provider returned no countries")
            )

        logger.info("Fetched provider country list", count=len(codes))
        return success(codes)
