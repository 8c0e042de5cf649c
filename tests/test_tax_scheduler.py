"""Tests for the interval-gated refresh scheduler."""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import SecretStr

from core.config import TaxDataSettings
from services.taxes.collector import TaxDataCollector
from services.taxes.errors import NotConfigured, ProviderUnavailable, StorageUnavailable
from services.taxes.scheduler import DEFAULT_REFRESH_INTERVAL, RefreshScheduler
from services.taxes.store import STORAGE_KEY, TaxDataStore
from services.taxes.types import JobStatus
from tests.factories import NOW, InMemoryKeyValueStore, make_record, make_snapshot


class Clock:
    """Settable clock."""

    def __init__(self) -> None:
        self.now = NOW

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> Clock:
    """Create a clock starting at NOW."""
    return Clock()


@pytest.fixture()
def collector(clock: Clock) -> MagicMock:
    """Create a collector returning a fresh two-country snapshot."""
    collector = MagicMock(spec=TaxDataCollector)
    collector.collect_all = AsyncMock(
        side_effect=lambda _countries: make_snapshot(collected_at=clock())
    )
    return collector


@pytest.fixture()
def scheduler(collector: MagicMock, memory_store: TaxDataStore, clock: Clock) -> RefreshScheduler:
    """Create a scheduler over the in-memory store."""
    return RefreshScheduler(collector, memory_store, clock=clock)


class TestDueGate:
    """Tests for the refresh interval check."""

    def test_due_when_never_synced(self, scheduler: RefreshScheduler) -> None:
        """An empty store should always be due."""
        assert scheduler.is_due() is True

    def test_not_due_within_interval(
        self, scheduler: RefreshScheduler, memory_store: TaxDataStore
    ) -> None:
        """A sync less than ten days ago should not be due."""
        memory_store.save(make_snapshot(collected_at=NOW - timedelta(days=9, hours=23)))

        assert scheduler.is_due() is False

    def test_due_at_interval_boundary(
        self, scheduler: RefreshScheduler, memory_store: TaxDataStore
    ) -> None:
        """Exactly ten days after the last sync should be due."""
        memory_store.save(make_snapshot(collected_at=NOW - DEFAULT_REFRESH_INTERVAL))

        assert scheduler.is_due() is True

    def test_due_for_explicit_now(self, scheduler: RefreshScheduler) -> None:
        """due_for should accept an explicit current time."""
        assert scheduler.due_for(NOW, now=NOW + timedelta(days=10)) is True
        assert scheduler.due_for(NOW, now=NOW + timedelta(days=3)) is False

    def test_from_settings(self) -> None:
        """from_settings should take the interval and history limit from settings."""
        settings = TaxDataSettings(
            api_key=SecretStr("key"),
            collection_interval_days=7,
            job_history_limit=5,
        )

        scheduler = RefreshScheduler.from_settings(settings)

        assert scheduler.refresh_interval == timedelta(days=7)
        assert scheduler.store.history_limit == 5
        assert scheduler.collector.client.is_configured is True


class TestMaybeCollect:
    """Tests for RefreshScheduler.maybe_collect."""

    @pytest.mark.asyncio
    async def test_collects_when_due(
        self, scheduler: RefreshScheduler, collector: MagicMock, memory_store: TaxDataStore
    ) -> None:
        """A due run should collect, store and record a SUCCESS job."""
        result = await scheduler.maybe_collect()

        assert result.status == JobStatus.SUCCESS
        assert result.countries_collected == 2
        assert result.errors == 0
        assert result.message == "Successfully collected tax data for 2 countries"
        collector.collect_all.assert_awaited_once()
        assert memory_store.get_last_sync_time() == NOW
        assert scheduler.get_job_history() == [result]

    @pytest.mark.asyncio
    async def test_second_run_is_noop(
        self, scheduler: RefreshScheduler, collector: MagicMock
    ) -> None:
        """Running twice in a row should collect once and record a no-op."""
        await scheduler.maybe_collect()
        second = await scheduler.maybe_collect()

        assert collector.collect_all.await_count == 1
        assert second.status == JobStatus.SUCCESS
        assert second.countries_collected == 0
        assert second.message == "Collection not needed yet (periodic cycle)"
        assert second.is_noop is True

        history = scheduler.get_job_history()
        assert len(history) == 2
        assert history[0] == second

    @pytest.mark.asyncio
    async def test_collects_again_after_interval(
        self, scheduler: RefreshScheduler, collector: MagicMock, clock: Clock
    ) -> None:
        """Once the interval elapses a new collection should run."""
        await scheduler.maybe_collect()
        clock.now = NOW + timedelta(days=10)

        await scheduler.maybe_collect()

        assert collector.collect_all.await_count == 2
        assert scheduler.store.get_last_sync_time() == NOW + timedelta(days=10)

    @pytest.mark.asyncio
    async def test_partial_snapshot_is_success_with_errors(
        self, scheduler: RefreshScheduler, collector: MagicMock
    ) -> None:
        """A partial snapshot should be a SUCCESS job carrying the failure count."""
        collector.collect_all.side_effect = None
        collector.collect_all.return_value = make_snapshot(
            records=[make_record("DE"), make_record("FR")],
            requested=["DE", "FR", "IT", "ES", "NL"],
        )

        result = await scheduler.maybe_collect()

        assert result.status == JobStatus.SUCCESS
        assert result.countries_collected == 2
        assert result.errors == 3
        assert result.message == "Collected tax data for 2 countries (Failed for 3 countries)"

    @pytest.mark.asyncio
    async def test_failed_snapshot_is_stored_and_failed_job(
        self, scheduler: RefreshScheduler, collector: MagicMock, memory_store: TaxDataStore
    ) -> None:
        """A snapshot with no countries should still be stored, as a FAILED job."""
        collector.collect_all.side_effect = None
        collector.collect_all.return_value = make_snapshot(records=[], requested=["DE"])

        result = await scheduler.maybe_collect()

        assert result.status == JobStatus.FAILED
        assert result.errors == 1
        assert memory_store.get_last_sync_time() == NOW

    @pytest.mark.asyncio
    async def test_provider_unavailable_keeps_previous_snapshot(
        self, scheduler: RefreshScheduler, collector: MagicMock, memory_store: TaxDataStore
    ) -> None:
        """An unreachable provider should record a failure without touching stored data."""
        previous = make_snapshot(collected_at=NOW - timedelta(days=30))
        memory_store.save(previous)
        collector.collect_all.side_effect = ProviderUnavailable("Tax data provider unreachable")

        result = await scheduler.maybe_collect()

        assert result.status == JobStatus.FAILED
        assert result.errors == 1
        assert result.message == "Tax data provider unreachable"
        assert memory_store.load() == previous

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_failed_job(
        self, scheduler: RefreshScheduler, collector: MagicMock
    ) -> None:
        """Unexpected exceptions should not escape the scheduler."""
        collector.collect_all.side_effect = RuntimeError("boom")

        result = await scheduler.maybe_collect()

        assert result.status == JobStatus.FAILED
        assert result.message == "boom"
        assert scheduler.get_job_history()[0] == result

    @pytest.mark.asyncio
    async def test_storage_failure_on_gate(
        self, scheduler: RefreshScheduler, collector: MagicMock
    ) -> None:
        """An unreadable store should give a FAILED job without collecting."""
        with patch.object(
            TaxDataStore, "get_last_sync_time", side_effect=StorageUnavailable("down")
        ):
            result = await scheduler.maybe_collect()

        assert result.status == JobStatus.FAILED
        collector.collect_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_outage_falls_back_to_storage(
        self, collector: MagicMock, clock: Clock
    ) -> None:
        """A cache backend raising ConnectionError should not abort the run."""
        kv = InMemoryKeyValueStore()
        kv.data[STORAGE_KEY] = make_snapshot(collected_at=NOW - timedelta(days=1)).to_dict()
        cache = MagicMock()
        cache.get_or_set.side_effect = ConnectionError("cache down")
        cache.set.side_effect = ConnectionError("cache down")
        store = TaxDataStore(kv=kv, cache=cache)

        result = await RefreshScheduler(collector, store, clock=clock).maybe_collect()

        assert result.status == JobStatus.SUCCESS
        assert result.is_noop
        collector.collect_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_gate_error_becomes_failed_job(
        self, scheduler: RefreshScheduler, collector: MagicMock
    ) -> None:
        """Any error while checking the schedule should give a FAILED job."""
        with patch.object(TaxDataStore, "get_last_sync_time", side_effect=RuntimeError("boom")):
            result = await scheduler.maybe_collect()

        assert result.status == JobStatus.FAILED
        assert result.message == "boom"
        collector.collect_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_write_failure_still_returns_result(
        self, scheduler: RefreshScheduler
    ) -> None:
        """A failed history write should be logged, not raised."""
        with patch.object(
            TaxDataStore, "append_job_result", side_effect=StorageUnavailable("down")
        ):
            result = await scheduler.maybe_collect()

        assert result.status == JobStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_not_configured_is_failed_job(
        self, scheduler: RefreshScheduler, collector: MagicMock
    ) -> None:
        """Collecting without a credential should record a FAILED job."""
        collector.collect_all.side_effect = NotConfigured("Tax data API key not configured")

        result = await scheduler.maybe_collect()

        assert result.status == JobStatus.FAILED
        assert result.message == "Tax data API key not configured"

    @pytest.mark.asyncio
    async def test_history_capped_at_twelve(self, scheduler: RefreshScheduler) -> None:
        """Only the twelve most recent runs should be kept."""
        for _ in range(15):
            await scheduler.maybe_collect()

        history = scheduler.get_job_history()
        assert len(history) == 12
        assert all(job.is_noop for job in history)


class TestForceCollect:
    """Tests for RefreshScheduler.force_collect."""

    @pytest.mark.asyncio
    async def test_collects_even_when_fresh(
        self, scheduler: RefreshScheduler, collector: MagicMock, memory_store: TaxDataStore
    ) -> None:
        """force_collect should ignore the refresh interval."""
        memory_store.save(make_snapshot(collected_at=NOW))

        result = await scheduler.force_collect()

        assert result.status == JobStatus.SUCCESS
        assert result.countries_collected == 2
        collector.collect_all.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_passes_fixed_country_list(
        self, collector: MagicMock, memory_store: TaxDataStore, clock: Clock
    ) -> None:
        """A configured country list should be passed to the collector."""
        scheduler = RefreshScheduler(
            collector, memory_store, country_list=["DE", "FR"], clock=clock
        )

        await scheduler.force_collect()

        collector.collect_all.assert_awaited_once_with(["DE", "FR"])
