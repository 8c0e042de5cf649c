"""Interval-gated refresh of the tax database."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import TYPE_CHECKING

from asgiref.sync import sync_to_async

from core.logging import get_logger, job_context
from services.taxes.collector import TaxDataCollector
from services.taxes.errors import TaxDataError
from services.taxes.store import TaxDataStore
from services.taxes.types import JobResult, JobStatus, SnapshotStatus, TaxSnapshot, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from core.config import TaxDataSettings

logger = get_logger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(days=10)


class RefreshScheduler:
    """
    Runs a collection when the last one is older than the refresh interval.

    Every run, including runs that find nothing to do, ends with one
    JobResult appended to the store's bounded history. Failures are turned
    into FAILED job results; nothing escapes ``maybe_collect`` or
    ``force_collect``.
    """

    def __init__(
        self,
        collector: TaxDataCollector,
        store: TaxDataStore,
        refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL,
        country_list: Iterable[str] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            collector: Collector invoked when a refresh is due.
            store: Store holding the snapshot and job history.
            refresh_interval: Minimum time between two collections.
            country_list: Fixed countries to collect; resolved per run when None.
            clock: Source of "now" for the due-gate and job timestamps.
        """
        self._collector = collector
        self._store = store
        self._refresh_interval = refresh_interval
        self._country_list = list(country_list) if country_list is not None else None
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: TaxDataSettings) -> RefreshScheduler:
        """Create a scheduler and its collaborators from tax data settings."""
        store = TaxDataStore(history_limit=settings.job_history_limit)
        return cls(
            collector=TaxDataCollector.from_settings(settings, store=store),
            store=store,
            refresh_interval=settings.collection_interval,
        )

    @property
    def store(self) -> TaxDataStore:
        """Store used by this scheduler."""
        return self._store

    @property
    def collector(self) -> TaxDataCollector:
        """Collector used by this scheduler."""
        return self._collector

    @property
    def refresh_interval(self) -> timedelta:
        """Minimum time between two collections."""
        return self._refresh_interval

    def due_for(self, last_sync: datetime | None, now: datetime | None = None) -> bool:
        """Check the due-gate against a known last sync time."""
        if last_sync is None:
            return True
        return (now or self._clock()) - last_sync >= self._refresh_interval

    def is_due(self, now: datetime | None = None) -> bool:
        """
        Check whether a collection should run now.

        Raises:
            StorageUnavailable: If the last sync time cannot be read.
        """
        return self.due_for(self._store.get_last_sync_time(), now)

    async def maybe_collect(self) -> JobResult:
        """
        Collect if the refresh interval has elapsed.

        Returns:
            The recorded JobResult; a no-op SUCCESS with zero countries when
            the interval has not elapsed yet.
        """
        started = time.monotonic()
        with job_context("tax_collection"):
            try:
                due = await sync_to_async(self.is_due)()
            except TaxDataError as e:
                logger.error("Could not evaluate collection schedule", error=e.message)
                return await self._record(self._failed(e.message, started))
            except Exception as e:
                logger.exception("Unexpected error evaluating collection schedule")
                return await self._record(self._failed(str(e) or type(e).__name__, started))

            if not due:
                logger.info("Collection not needed yet")
                return await self._record(
                    JobResult(
                        timestamp=self._clock(),
                        status=JobStatus.SUCCESS,
                        message="Collection not needed yet (periodic cycle)",
                        execution_time_ms=self._elapsed_ms(started),
                    )
                )

            logger.info("Collection interval reached")
            return await self._collect(started)

    async def force_collect(self) -> JobResult:
        """Collect now, ignoring the refresh interval."""
        started = time.monotonic()
        with job_context("tax_collection"):
            logger.info("Manual collection triggered")
            return await self._collect(started)

    def get_job_history(self) -> list[JobResult]:
        """Return recorded job results, newest first."""
        return self._store.load_job_history()

    async def _collect(self, started: float) -> JobResult:
        try:
            snapshot = await self._collector.collect_all(self._country_list)
            await sync_to_async(self._store.save)(snapshot)
        except TaxDataError as e:
            logger.error("Tax data collection failed", error=e.message, details=e.details)
            result = self._failed(e.message, started)
        except Exception as e:
            logger.exception("Unexpected error during tax data collection")
            result = self._failed(str(e) or type(e).__name__, started)
        else:
            result = self._from_snapshot(snapshot, started)
        return await self._record(result)

    def _from_snapshot(self, snapshot: TaxSnapshot, started: float) -> JobResult:
        collected = len(snapshot.countries)
        if snapshot.status == SnapshotStatus.FAILED:
            return JobResult(
                timestamp=self._clock(),
                status=JobStatus.FAILED,
                errors=snapshot.failed_count,
                message=snapshot.error_message or "No countries collected",
                execution_time_ms=self._elapsed_ms(started),
            )

        message = f"Successfully collected tax data for {collected} countries"
        if snapshot.status == SnapshotStatus.PARTIAL:
            message = f"Collected tax data for {collected} countries ({snapshot.error_message})"
        return JobResult(
            timestamp=self._clock(),
            status=JobStatus.SUCCESS,
            countries_collected=collected,
            errors=snapshot.failed_count,
            message=message,
            execution_time_ms=self._elapsed_ms(started),
        )

    def _failed(self, message: str, started: float) -> JobResult:
        return JobResult(
            timestamp=self._clock(),
            status=JobStatus.FAILED,
            errors=1,
            message=message,
            execution_time_ms=self._elapsed_ms(started),
        )

    async def _record(self, result: JobResult) -> JobResult:
        try:
            await sync_to_async(self._store.append_job_result)(result)
        except TaxDataError as e:
            logger.error("Could not record job result", error=e.message, status=result.status.value)
        except Exception:
            logger.exception("Unexpected error recording job result", status=result.status.value)
        logger.info(
            "Tax collection job finished",
            status=result.status.value,
            countries_collected=result.countries_collected,
            errors=result.errors,
            duration_ms=result.execution_time_ms,
        )
        return result

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
