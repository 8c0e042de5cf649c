"""Process-wide driver for the periodic tax data refresh."""

from __future__ import annotations

import asyncio
import contextlib
from functools import lru_cache
from typing import TYPE_CHECKING

from core.config import get_settings
from core.logging import get_logger
from services.taxes.scheduler import RefreshScheduler
from services.taxes.types import CollectionStatus

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from core.config import TaxDataSettings

logger = get_logger(__name__)

DEFAULT_CHECK_INTERVAL = 60 * 60  # 1 hour


def format_due_date(last_sync: datetime | None, interval: timedelta) -> str:
    """Format ``last_sync + interval`` as e.g. "February 12, 2026"."""
    if last_sync is None:
        return "Unknown"
    due = last_sync + interval
    return f"{due:%B} {due.day}, {due.year}"


class StartupInitializer:
    """
    Runs the due-gate once at startup, then on a fixed interval.

    One instance is meant to live for the whole process (see
    ``get_initializer``); tests build their own. ``initialize`` is
    idempotent and ``shutdown`` returns the instance to its initial state.
    """

    def __init__(
        self,
        scheduler: RefreshScheduler,
        enabled: bool,
        auto_collect: bool = True,
        check_interval: float = DEFAULT_CHECK_INTERVAL,
    ) -> None:
        """
        Initialize the driver.

        Args:
            scheduler: Scheduler invoked at startup and on every tick.
            enabled: Whether a provider credential is configured.
            auto_collect: Whether to run the due-gate once during initialize.
            check_interval: Seconds between periodic due-gate checks.
        """
        self._scheduler = scheduler
        self._enabled = enabled
        self._auto_collect = auto_collect
        self._check_interval = check_interval
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._warned_disabled = False
        self.initialized = False

    @classmethod
    def from_settings(cls, settings: TaxDataSettings) -> StartupInitializer:
        """Create the driver and its scheduler from tax data settings."""
        return cls(
            scheduler=RefreshScheduler.from_settings(settings),
            enabled=settings.is_configured,
            auto_collect=settings.auto_collect_startup,
            check_interval=settings.check_interval_seconds,
        )

    @property
    def scheduler(self) -> RefreshScheduler:
        """Scheduler driven by this initializer."""
        return self._scheduler

    @property
    def enabled(self) -> bool:
        """Whether collection can run in this process."""
        return self._enabled

    @property
    def timer_armed(self) -> bool:
        """Whether the periodic task is running."""
        return self._task is not None and not self._task.done()

    async def initialize(self) -> None:
        """
        Start collection for this process.

        Does nothing when already initialized. Without a provider
        credential nothing is scheduled and collection stays disabled.
        """
        async with self._lock:
            if self.initialized:
                logger.debug("Tax data collection already initialized")
                return

            if not self._enabled:
                if not self._warned_disabled:
                    logger.warning(
                        "Tax data collection disabled",
                        reason="APILAYER_API_KEY not configured",
                    )
                    self._warned_disabled = True
                return

            if self._auto_collect:
                result = await self._scheduler.maybe_collect()
                logger.info("Startup collection check done", status=result.status.value)

            self._task = asyncio.create_task(self._run_periodic(), name="tax-data-refresh")
            self.initialized = True
            logger.info("Tax data collection initialized", check_interval=self._check_interval)

    async def shutdown(self) -> None:
        """Cancel the periodic task and reset the initialized flag."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("Tax data collection stopped")
        self.initialized = False

    async def run_forever(self) -> None:
        """Initialize, then keep the periodic task running until cancelled."""
        await self.initialize()
        task = self._task
        if task is None:
            return
        try:
            await task
        finally:
            await self.shutdown()

    def get_status(self) -> CollectionStatus:
        """
        Describe the refresh schedule.

        Raises:
            StorageUnavailable: If the last sync time cannot be read.
        """
        last_sync = self._scheduler.store.get_last_sync_time()
        return CollectionStatus(
            enabled=self._enabled,
            last_sync=last_sync,
            should_collect=self._scheduler.due_for(last_sync),
            next_due=format_due_date(last_sync, self._scheduler.refresh_interval),
        )

    async def _run_periodic(self) -> None:
        while True:
            await asyncio.sleep(self._check_interval)
            try:
                result = await self._scheduler.maybe_collect()
            except Exception:
                logger.exception("Periodic tax data check failed")
                continue
            if not result.is_noop:
                logger.info("Periodic collection completed", status=result.status.value)


@lru_cache
def get_initializer() -> StartupInitializer:
    """
    Get the process-wide initializer.

    Configuration is read once, on first use.
    """
    return StartupInitializer.from_settings(get_settings().tax)
