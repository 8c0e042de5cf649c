"""Collection of VAT data for every supported country."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt

from core.logging import get_logger
from core.result import Failure, Result
from services.taxes.client import TaxDataClient
from services.taxes.countries import default_country_list
from services.taxes.errors import NotConfigured, ProviderError, ProviderUnavailable
from services.taxes.store import TaxDataStore
from services.taxes.types import CountryTaxRecord, ProviderRate, TaxSnapshot, utc_now

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable
    from datetime import datetime

    from tenacity import RetryCallState

    from core.config import TaxDataSettings

logger = get_logger(__name__)


class TaxDataCollector:
    """
    Fetches VAT data for a list of countries and aggregates a snapshot.

    Each country is fetched independently; a country that keeps failing is
    left out of the snapshot instead of aborting the run.
    """

    def __init__(
        self,
        client: TaxDataClient,
        store: TaxDataStore,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        request_delay: float = 0.1,
        max_concurrency: int = 4,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the collector.

        Args:
            client: Provider client.
            store: Store used for single-country lookups.
            max_retries: Extra attempts per country for retryable errors.
            retry_backoff: Seconds multiplied by the attempt number between
                retries, unless the provider sent its own rate-limit wait.
            request_delay: Seconds to pause after each country.
            max_concurrency: Country requests allowed in flight at once.
            clock: Source of the collection timestamp.
            sleep: Coroutine used for back-off and request delays.
        """
        self._client = client
        self._store = store
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self._request_delay = request_delay
        self._max_concurrency = max(1, max_concurrency)
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: TaxDataSettings,
        store: TaxDataStore | None = None,
    ) -> TaxDataCollector:
        """Create a collector wired from tax data settings."""
        return cls(
            client=TaxDataClient.from_settings(settings),
            store=store or TaxDataStore(history_limit=settings.job_history_limit),
            max_retries=settings.max_retries,
            request_delay=settings.request_delay_ms / 1000,
            max_concurrency=settings.max_concurrency,
        )

    @property
    def client(self) -> TaxDataClient:
        """Provider client used by this collector."""
        return self._client

    async def resolve_country_list(self) -> list[str]:
        """
        Get the countries to collect.

        Uses the provider's own list when it can be fetched and falls back
        to the built-in supported countries otherwise.
        """
        if not self._client.is_configured:
            return default_country_list()

        result = await self._client.fetch_supported_countries()
        if result.is_success():
            return result.unwrap()

        logger.warning("Using built-in country list", error=str(result.error))
        return default_country_list()

    async def collect_all(self, country_list: Iterable[str] | None = None) -> TaxSnapshot:
        """
        Fetch every country and build a snapshot.

        Args:
            country_list: Country codes to collect; resolved from the
                provider when omitted.

        Returns:
            Snapshot whose status reflects how many countries succeeded.

        Raises:
            NotConfigured: If no provider credential is configured.
            ProviderUnavailable: If no country could be fetched because the
                provider was unreachable or rejected the credential.
        """
        if not self._client.is_configured:
            raise NotConfigured("Tax data API key not configured")

        if country_list is None:
            country_list = await self.resolve_country_list()
        requested = list(dict.fromkeys(code.upper().strip() for code in country_list if code))

        started = time.monotonic()
        logger.info("Starting tax data collection", countries=len(requested))

        semaphore = asyncio.Semaphore(self._max_concurrency)
        outcomes = await asyncio.gather(
            *(self._fetch_with_retries(code, semaphore) for code in requested)
        )

        collected_at = self._clock()
        records: list[CountryTaxRecord] = []
        errors: list[ProviderError] = []
        for code, outcome in zip(requested, outcomes, strict=True):
            if isinstance(outcome, Failure):
                errors.append(outcome.error)
                logger.warning("Country collection failed", country=code, error=str(outcome.error))
                continue
            try:
                records.append(CountryTaxRecord.from_provider(outcome.value, collected_at))
            except ValueError as e:
                logger.warning("Country data rejected", country=code, error=str(e))

        if requested and not records and errors and all(e.is_network_level for e in errors):
            raise ProviderUnavailable(
                "Tax data provider unreachable",
                details=str(errors[0]),
            )

        snapshot = TaxSnapshot.from_collection(records, requested, collected_at)
        logger.info(
            "Tax data collection finished",
            status=snapshot.status.value,
            collected=len(snapshot.countries),
            failed=snapshot.failed_count,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return snapshot

    async def _fetch_with_retries(
        self,
        code: str,
        semaphore: asyncio.Semaphore,
    ) -> Result[ProviderRate, ProviderError]:
        """Fetch one country, retrying retryable errors with linear back-off."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=self._retry_wait,
            retry=retry_if_result(_is_retryable_failure),
            retry_error_callback=lambda state: state.outcome.result(),
            before_sleep=lambda state: logger.debug(
                "Retrying country",
                country=code,
                attempt=state.attempt_number,
                wait=state.next_action.sleep,
            ),
            sleep=self._sleep,
        )
        async with semaphore:
            result = await retrying(self._client.fetch_country_vat, code)
            if self._request_delay:
                await self._sleep(self._request_delay)
            return result

    def _retry_wait(self, retry_state: RetryCallState) -> float:
        """Seconds before the next attempt; a provider rate-limit wait wins."""
        error = retry_state.outcome.result().error
        if error.retry_after is not None:
            return float(error.retry_after)
        return self._retry_backoff * retry_state.attempt_number

    def get_country_tax_data(self, country_code: str) -> CountryTaxRecord | None:
        """
        Look up one country in the stored snapshot.

        Args:
            country_code: ISO country code, case-insensitive.

        Returns:
            The stored record, or None if the country or the snapshot is missing.
        """
        snapshot = self._store.load()
        if snapshot is None:
            return None
        return snapshot.find(country_code)


def _is_retryable_failure(result: Result[ProviderRate, ProviderError]) -> bool:
    return result.is_failure() and result.error.is_retryable
