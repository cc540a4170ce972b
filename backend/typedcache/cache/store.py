"""
Key/value store capability used by the cache manager, and its Valkey adapter.
"""

import logging
from datetime import timedelta
from typing import AsyncIterator, Optional, Protocol, Union

from .client import ValkeyClient

logger = logging.getLogger(__name__)

TTL = Union[int, timedelta]


class KeyValueStore(Protocol):
    """
    The primitive operations the cache manager needs from a store.

    ``scan_keys`` must stream matches lazily; it is consumed by a single
    reader and closed by the caller when done.
    """

    async def string_get(self, key: str) -> Optional[bytes]:
        ...

    async def string_set(self, key: str, value: bytes, ttl: TTL) -> None:
        ...

    async def key_delete(self, key: str) -> None:
        ...

    def scan_keys(self, pattern: str) -> AsyncIterator[str]:
        ...


class ValkeyStore:
    """KeyValueStore backed by a Valkey server."""

    def __init__(self, client: ValkeyClient, scan_count: Optional[int] = None):
        self.client = client
        self.scan_count = scan_count or client.config.scan_count

    async def string_get(self, key: str) -> Optional[bytes]:
        db = await self.client.connect()
        return await db.get(key)

    async def string_set(self, key: str, value: bytes, ttl: TTL) -> None:
        db = await self.client.connect()
        await db.set(key, value, ex=ttl)

    async def key_delete(self, key: str) -> None:
        db = await self.client.connect()
        await db.delete(key)

    async def scan_keys(self, pattern: str) -> AsyncIterator[str]:
        """Stream keys matching a glob pattern with SCAN, one page at a time."""
        db = await self.client.connect()
        async for key in db.scan_iter(match=pattern, count=self.scan_count):
            yield key.decode("utf-8") if isinstance(key, bytes) else key

    async def close(self) -> None:
        await self.client.disconnect()
