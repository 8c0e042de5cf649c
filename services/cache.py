"""Cache service for read-through caching of stored settings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.core.cache import cache

if TYPE_CHECKING:
    from collections.abc import Callable


class CacheKeyPrefix:
    """Cache key prefixes for different data types."""

    SETTING = "setting"


class CacheTTL:
    """Default TTL values in seconds for different data types."""

    SETTING = 3600  # 1 hour, writes invalidate explicitly


class CacheService:
    """
    Service for caching values using Django's cache framework.

    Keys are namespaced with a service-wide prefix so that several
    deployments can share one Redis database.

    Example:
        >>> cache_service = CacheService()
        >>> cache_service.set(CacheService.make_setting_key("tax"), blob, ttl=600)
        >>> cached = cache_service.get(CacheService.make_setting_key("tax"))
    """

    def __init__(self, key_prefix: str = "bizops") -> None:
        """
        Initialize the cache service.

        Args:
            key_prefix: Prefix for all cache keys (default: 'bizops').
        """
        self._key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a full cache key with prefix."""
        return f"{self._key_prefix}:{key}"

    def get(self, key: str) -> Any | None:
        """
        Get a value from the cache.

        Args:
            key: The cache key.

        Returns:
            The cached value or None if not found.
        """
        return cache.get(self._make_key(key))

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Set a value in the cache.

        Args:
            key: The cache key.
            value: The value to cache.
            ttl: Time-to-live in seconds (optional).

        Returns:
            True if successful.
        """
        cache.set(self._make_key(key), value, ttl)
        return True

    def delete(self, key: str) -> bool:
        """Delete a value from the cache."""
        cache.delete(self._make_key(key))
        return True

    def get_or_set(
        self,
        key: str,
        default_func: Callable[[], Any],
        ttl: int | None = None,
    ) -> Any:
        """
        Get a value from cache or compute and store it.

        None results are not cached, so a missing setting is looked up
        again on the next call. A computed value is only added when the key
        is still empty, so it never replaces a value written meanwhile by
        set().

        Args:
            key: The cache key.
            default_func: Function to call if key not found.
            ttl: Time-to-live in seconds (optional).

        Returns:
            The cached or computed value.
        """
        full_key = self._make_key(key)
        value = cache.get(full_key)
        if value is None:
            value = default_func()
            if value is not None:
                cache.add(full_key, value, ttl)
        return value

    @staticmethod
    def make_setting_key(setting_key: str) -> str:
        """Generate the cache key for a stored setting."""
        return f"{CacheKeyPrefix.SETTING}:{setting_key}"


# Global cache service instance
cache_service = CacheService()
