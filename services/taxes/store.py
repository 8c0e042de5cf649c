"""Durable storage of the tax snapshot and the collection job history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from django.db import DatabaseError, transaction

from core.logging import get_logger
from services.cache import CacheService, CacheTTL, cache_service
from services.taxes.errors import StorageUnavailable
from services.taxes.types import JobResult, TaxSnapshot

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

logger = get_logger(__name__)

STORAGE_KEY = "global_tax_database"
JOB_HISTORY_KEY = "tax_collection_job_history"
JOB_HISTORY_LIMIT = 12


class KeyValueStore(Protocol):
    """Keyed JSON storage used to persist the tax data."""

    def get(self, key: str) -> Any | None:
        """Return the JSON value stored under key, None if absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Overwrite the value stored under key."""
        ...

    def update(self, key: str, func: Callable[[Any | None], Any]) -> Any:
        """Atomically replace the value under key with func(current)."""
        ...


class SettingsStore:
    """KeyValueStore backed by the SystemSetting model."""

    def get(self, key: str) -> Any | None:
        """
        Read a setting.

        Raises:
            StorageUnavailable: If the database cannot be queried.
        """
        from apps.system.models import SystemSetting

        try:
            setting = SystemSetting.objects.filter(key=key).only("value").first()
        except DatabaseError as e:
            logger.error("Settings read failed", key=key, error=str(e))
            raise StorageUnavailable(f"Could not read setting '{key}'", details=str(e)) from e
        return setting.value if setting else None

    def set(self, key: str, value: Any) -> None:
        """
        Write a setting in a single transaction.

        Raises:
            StorageUnavailable: If the database cannot be written.
        """
        from apps.system.models import SystemSetting

        try:
            with transaction.atomic():
                SystemSetting.objects.update_or_create(key=key, defaults={"value": value})
        except DatabaseError as e:
            logger.error("Settings write failed", key=key, error=str(e))
            raise StorageUnavailable(f"Could not write setting '{key}'", details=str(e)) from e

    def update(self, key: str, func: Callable[[Any | None], Any]) -> Any:
        """
        Read-modify-write a setting under a row lock.

        Raises:
            StorageUnavailable: If the database cannot be read or written.
        """
        from apps.system.models import SystemSetting

        try:
            with transaction.atomic():
                setting, _ = SystemSetting.objects.select_for_update().get_or_create(
                    key=key, defaults={"value": None}
                )
                setting.value = func(setting.value)
                setting.save(update_fields=["value", "updated_at"])
        except DatabaseError as e:
            logger.error("Settings update failed", key=key, error=str(e))
            raise StorageUnavailable(f"Could not update setting '{key}'", details=str(e)) from e
        return setting.value


class TaxDataStore:
    """
    Owner of the persisted TaxSnapshot and JobResult history.

    Snapshots are written whole, in one row write, so a reader sees either
    the previous snapshot or the new one. Reads go through the cache and
    writes refresh it; an unreachable cache falls back to storage.
    """

    def __init__(
        self,
        kv: KeyValueStore | None = None,
        use_cache: bool = True,
        history_limit: int = JOB_HISTORY_LIMIT,
        cache: CacheService | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            kv: Keyed storage backend (default: SettingsStore).
            use_cache: Whether to cache the loaded snapshot.
            history_limit: Maximum number of job results kept.
            cache: Cache service to use (default: global cache_service).
        """
        self._kv = kv if kv is not None else SettingsStore()
        self._use_cache = use_cache
        self._cache = cache or cache_service
        self._history_limit = history_limit
        self._cache_key = CacheService.make_setting_key(STORAGE_KEY)

    @property
    def history_limit(self) -> int:
        """Maximum number of job results kept."""
        return self._history_limit

    def _read_snapshot_blob(self) -> Any | None:
        if not self._use_cache:
            return self._kv.get(STORAGE_KEY)
        try:
            return self._cache.get_or_set(
                self._cache_key,
                lambda: self._kv.get(STORAGE_KEY),
                ttl=CacheTTL.SETTING,
            )
        except StorageUnavailable:
            raise
        except Exception as e:
            logger.warning("Tax database cache unavailable, reading storage", error=str(e))
            return self._kv.get(STORAGE_KEY)

    def load(self) -> TaxSnapshot | None:
        """
        Load the current snapshot.

        Returns:
            The stored snapshot, or None if nothing was ever collected or
            the stored blob cannot be decoded.

        Raises:
            StorageUnavailable: If the settings store is unreachable.
        """
        blob = self._read_snapshot_blob()
        if not blob:
            return None
        try:
            return TaxSnapshot.from_dict(blob)
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.error("Stored tax database is unreadable", error=str(e))
            return None

    def save(self, snapshot: TaxSnapshot) -> None:
        """
        Replace the stored snapshot.

        Raises:
            StorageUnavailable: If the settings store is unreachable.
        """
        blob = snapshot.to_dict()
        self._kv.set(STORAGE_KEY, blob)
        if self._use_cache:
            try:
                self._cache.set(self._cache_key, blob, ttl=CacheTTL.SETTING)
            except Exception as e:
                logger.warning("Tax database cache not refreshed", error=str(e))
        logger.info(
            "Tax database stored",
            records=len(snapshot.countries),
            status=snapshot.status.value,
        )

    def get_last_sync_time(self) -> datetime | None:
        """Return the last collection attempt time, None if never collected."""
        snapshot = self.load()
        return snapshot.last_sync if snapshot else None

    def load_job_history(self) -> list[JobResult]:
        """Return stored job results, newest first."""
        raw = self._kv.get(JOB_HISTORY_KEY) or []
        history: list[JobResult] = []
        for entry in raw:
            try:
                history.append(JobResult.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable job result", error=str(e))
        return history

    def append_job_result(self, result: JobResult) -> list[JobResult]:
        """
        Record a job result, evicting the oldest beyond the history limit.

        Returns:
            The updated history, newest first.

        Raises:
            StorageUnavailable: If the settings store is unreachable.
        """
        limit = self._history_limit

        def prepend(current: Any | None) -> list[Any]:
            return [result.to_dict(), *(current or [])][:limit]

        updated = self._kv.update(JOB_HISTORY_KEY, prepend)
        return [JobResult.from_dict(entry) for entry in updated]
