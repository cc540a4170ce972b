"""
Valkey client wrapper with lazy, once-only connection setup.

The connection pool is created on first use and shared by every
operation afterwards. Connecting retries with exponential backoff; once
connected, failures of individual commands are left to the caller.
"""

import asyncio
import logging
from typing import Optional, Any, Dict

from valkey.asyncio import ConnectionPool, Valkey
from valkey.exceptions import ConnectionError, TimeoutError

from .config import ValkeyConfig
from .errors import ValkeyConnectionError

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Async Valkey client with a shared connection pool.

    Features:
    - Connection pooling with configurable pool size
    - Lazy connection on first use, guarded so it happens once
    - Retry with exponential backoff while connecting
    """

    def __init__(self, config: Optional[ValkeyConfig] = None):
        """
        Initialize Valkey client with configuration.

        Args:
            config: ValkeyConfig instance, defaults to environment-based config
        """
        self.config = config or ValkeyConfig.from_env()
        self._client: Optional[Valkey] = None
        self._connection_pool: Optional[ConnectionPool] = None
        self._connect_lock = asyncio.Lock()
        self._connection_attempts = 0
        self._reconnect_delay = 1.0  # Start with 1 second delay
        self._max_reconnect_delay = 30.0  # Max 30 seconds between attempts

        logger.info(f"Initializing Valkey client: {self.config}")

    def _create_pool(self) -> ConnectionPool:
        if self.config.url:
            return ConnectionPool.from_url(self.config.url, **self.config.to_connection_pool_kwargs())
        return ConnectionPool(**self.config.to_connection_pool_kwargs())

    async def connect(self) -> Valkey:
        """
        Return the connected client, establishing the connection on first call.

        Concurrent first callers wait on the same attempt instead of each
        opening a pool.

        Raises:
            ValkeyConnectionError: If connection cannot be established after max attempts
        """
        if self._client is not None:
            return self._client

        async with self._connect_lock:
            if self._client is not None:
                return self._client

            max_attempts = self.config.max_connection_attempts
            self._connection_attempts = 0

            while True:
                self._connection_attempts += 1
                pool = self._create_pool()
                client = Valkey(connection_pool=pool)
                try:
                    logger.info(f"Attempting Valkey connection (attempt {self._connection_attempts})")
                    await client.ping()
                except (ConnectionError, TimeoutError, OSError) as e:
                    await pool.disconnect()
                    logger.warning(
                        f"Valkey connection attempt {self._connection_attempts} failed: {e}"
                    )

                    if self._connection_attempts >= max_attempts:
                        error_msg = (
                            f"Failed to connect to Valkey after {max_attempts} attempts. "
                            f"Last error: {e}"
                        )
                        logger.error(error_msg)
                        raise ValkeyConnectionError(error_msg, {"attempts": max_attempts}) from e

                    delay = min(self._reconnect_delay * (2 ** (self._connection_attempts - 1)),
                                self._max_reconnect_delay)
                    logger.info(f"Retrying connection in {delay:.1f} seconds...")
                    await asyncio.sleep(delay)
                    continue

                self._connection_pool = pool
                self._client = client
                logger.info("Successfully connected to Valkey server")
                return client

    async def disconnect(self) -> None:
        """Gracefully disconnect from Valkey server."""
        client, pool = self._client, self._connection_pool
        self._client = None
        self._connection_pool = None

        if client is not None:
            await client.aclose()
        if pool is not None:
            await pool.disconnect()
            logger.info("Disconnected from Valkey server")

    async def health_check(self) -> bool:
        """
        Ping the server over the existing connection.

        Returns:
            bool: True if connected and the server answers, False otherwise
        """
        if self._client is None:
            logger.debug("Health check failed: not connected")
            return False

        try:
            return bool(await self._client.ping())
        except (ConnectionError, TimeoutError, OSError) as e:
            logger.warning(f"Health check failed: {e}")
            return False

    @property
    def is_connected(self) -> bool:
        """Check if client is currently connected."""
        return self._client is not None

    def get_connection_info(self) -> Dict[str, Any]:
        """
        Get connection information.

        Returns:
            Dict[str, Any]: Connection information
        """
        return {
            "is_connected": self.is_connected,
            "config": str(self.config),
            "connection_attempts": self._connection_attempts,
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()
