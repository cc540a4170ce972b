"""
Cache-aside manager over a key/value store.

The manager validates derived keys and forwards to the store; it never
builds keys itself. It performs no retries and no error translation:
serializer and store failures reach the caller as raised.
"""

import asyncio
import inspect
import logging
from contextlib import aclosing
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from .client import ValkeyClient
from .config import ValkeyConfig
from .errors import InvalidCacheKeyError
from .keys import CacheKey, CacheKeyBuilder, TypeDescriptor
from .serializers import JsonSerializer, Serializer
from .store import TTL, KeyValueStore, ValkeyStore

logger = logging.getLogger(__name__)

Factory = Callable[[], Union[Awaitable[Any], Any]]


class CacheManager:
    """
    Typed cache-aside operations.

    Holds no mutable state after construction, so one instance can be
    shared by any number of concurrent tasks. Concurrent misses on the same
    key each run their factory and each write the result; the store keeps
    the last write.
    """

    def __init__(
        self,
        store: KeyValueStore,
        serializer: Optional[Serializer] = None,
        serializers: Optional[Mapping[TypeDescriptor, Serializer]] = None,
    ):
        """
        Initialize cache manager.

        Args:
            store: Backing key/value store
            serializer: Serializer used when no per-type serializer applies
            serializers: Serializers keyed by item type descriptor
        """
        self.store = store
        self.serializer = serializer or JsonSerializer()
        self._serializers: Dict[TypeDescriptor, Serializer] = dict(serializers or {})

    def _serializer_for(self, cache_key: CacheKey, override: Optional[Serializer]) -> Serializer:
        if override is not None:
            return override
        return self._serializers.get(cache_key.item_type, self.serializer)

    @staticmethod
    def _ensure_valid(cache_key: CacheKey) -> None:
        if not cache_key.is_valid:
            raise InvalidCacheKeyError(details={"key": cache_key.key})

    async def get(self, cache_key: CacheKey, serializer: Optional[Serializer] = None) -> Optional[Any]:
        """
        Get an item from the cache.

        Args:
            cache_key: Derived cache key
            serializer: Optional serializer overriding the configured one

        Returns:
            The cached item, or None if the key is absent

        Raises:
            InvalidCacheKeyError: If the key is invalid
        """
        self._ensure_valid(cache_key)

        data = await self.store.string_get(cache_key.key)
        if data is None:
            logger.debug(f"Cache miss: {cache_key.key}")
            return None

        logger.debug(f"Cache hit: {cache_key.key}")
        return self._serializer_for(cache_key, serializer).decode(data)

    async def get_or_populate(
        self,
        cache_key: CacheKey,
        factory: Factory,
        ttl: TTL,
        serializer: Optional[Serializer] = None,
    ) -> Any:
        """
        Get an item from the cache, computing and caching it on a miss.

        Args:
            cache_key: Derived cache key
            factory: Called once on a miss; may be a coroutine function
            ttl: Expiry for the computed item, seconds or timedelta
            serializer: Optional serializer overriding the configured one

        Returns:
            The cached item, or the item returned by ``factory``

        Raises:
            InvalidCacheKeyError: If the key is invalid
        """
        self._ensure_valid(cache_key)

        item = await self.get(cache_key, serializer)
        if item is not None:
            return item

        item = factory()
        if inspect.isawaitable(item):
            item = await item

        await self.set(cache_key, item, ttl, serializer)
        return item

    async def set(
        self,
        cache_key: CacheKey,
        item: Any,
        ttl: TTL,
        serializer: Optional[Serializer] = None,
    ) -> None:
        """
        Cache an item, overwriting any existing value.

        Raises:
            InvalidCacheKeyError: If the key is invalid
        """
        self._ensure_valid(cache_key)

        data = self._serializer_for(cache_key, serializer).encode(item)
        await self.store.string_set(cache_key.key, data, ttl)
        logger.debug(f"Cached {cache_key.key} (ttl={ttl})")

    async def invalidate(self, cache_key: CacheKey) -> None:
        """
        Remove a single item. Removing an absent key is not an error.

        Raises:
            InvalidCacheKeyError: If the key is invalid
        """
        self._ensure_valid(cache_key)

        await self.store.key_delete(cache_key.key)
        logger.debug(f"Invalidated {cache_key.key}")

    async def invalidate_by_pattern(self, fragment: Optional[str]) -> None:
        """
        Remove every key containing ``fragment``.

        A missing or blank fragment is ignored, since it would match the
        whole keyspace. Each matched key is deleted in its own task while
        the scan continues; all deletes are awaited before returning, also
        when the scan fails part way. Keys the scan never reached are left
        in place.

        Args:
            fragment: Substring to match, case sensitive
        """
        if not CacheKeyBuilder.is_valid_fragment(fragment):
            return

        pattern = f"*{fragment}*"
        deletes: List[asyncio.Task] = []

        try:
            async with aclosing(self.store.scan_keys(pattern)) as keys:
                async for key in keys:
                    deletes.append(asyncio.create_task(self.store.key_delete(key)))
        finally:
            results = await asyncio.gather(*deletes, return_exceptions=True)

        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            logger.warning(
                "Failed to delete %d of %d keys matching %s", len(errors), len(deletes), pattern
            )
            raise errors[0]

        logger.info("Invalidated %d keys matching %s", len(deletes), pattern)

    async def close(self) -> None:
        """Release the store, if it holds resources."""
        close = getattr(self.store, "close", None)
        if close is not None:
            await close()
        logger.info("CacheManager closed")


def create_cache_manager(config: Optional[ValkeyConfig] = None, **kwargs) -> CacheManager:
    """
    Build a CacheManager over a Valkey server.

    The connection is opened lazily by the first cache operation.

    Args:
        config: Optional ValkeyConfig, uses environment config if not provided
        **kwargs: Additional CacheManager arguments

    Returns:
        CacheManager: New cache manager
    """
    store = ValkeyStore(ValkeyClient(config))
    return CacheManager(store, **kwargs)


# Global cache manager instance
_global_cache_manager: Optional[CacheManager] = None


def get_cache_manager(config: Optional[ValkeyConfig] = None, **kwargs) -> CacheManager:
    """
    Get or create global cache manager instance.

    Arguments are only used when the global instance is first created.

    Returns:
        CacheManager: Global cache manager instance
    """
    global _global_cache_manager

    if _global_cache_manager is None:
        _global_cache_manager = create_cache_manager(config, **kwargs)

    return _global_cache_manager


async def close_global_cache_manager() -> None:
    """Close the global cache manager."""
    global _global_cache_manager

    if _global_cache_manager:
        await _global_cache_manager.close()
        _global_cache_manager = None
