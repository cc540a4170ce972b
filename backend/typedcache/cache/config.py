"""
Valkey configuration for the typed cache layer.

This module provides the connection configuration for the backing Valkey
store, with environment variable support, and the standard TTL presets
callers can pass to cache operations.
"""

import os
import logging
from typing import Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class TTLPreset(int, Enum):
    """Standard TTL presets in seconds."""

    SHORT = 60              # 1 minute
    MEDIUM = 900            # 15 minutes
    DEFAULT = 3600          # 1 hour
    LONG = 86400            # 24 hours
    WEEK = 604800           # 1 week


@dataclass
class ValkeyConfig:
    """
    Configuration class for Valkey connections with environment variable support.

    Either ``url`` or the discrete host/port/database settings are used to
    reach the server. Responses are never decoded by the client: cached
    values stay bytes and are handed to the serializers untouched.
    """

    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    database: int = 0
    url: Optional[str] = None
    max_connections: int = 10
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    retry_on_timeout: bool = True
    health_check_interval: int = 30
    scan_count: int = 250
    max_connection_attempts: int = 5

    @classmethod
    def from_env(cls) -> "ValkeyConfig":
        """
        Create ValkeyConfig from environment variables.

        Returns:
            ValkeyConfig: Configuration instance with values from environment
        """
        return cls(
            host=os.getenv("VALKEY_HOST", "localhost"),
            port=int(os.getenv("VALKEY_PORT", "6379")),
            password=os.getenv("VALKEY_PASSWORD") or None,
            database=int(os.getenv("VALKEY_DATABASE", "0")),
            url=os.getenv("VALKEY_URL") or None,
            max_connections=int(os.getenv("VALKEY_MAX_CONNECTIONS", "10")),
            socket_timeout=float(os.getenv("VALKEY_SOCKET_TIMEOUT", "5.0")),
            socket_connect_timeout=float(os.getenv("VALKEY_SOCKET_CONNECT_TIMEOUT", "5.0")),
            retry_on_timeout=os.getenv("VALKEY_RETRY_ON_TIMEOUT", "true").lower() == "true",
            health_check_interval=int(os.getenv("VALKEY_HEALTH_CHECK_INTERVAL", "30")),
            scan_count=int(os.getenv("VALKEY_SCAN_COUNT", "250")),
            max_connection_attempts=int(os.getenv("VALKEY_MAX_CONNECTION_ATTEMPTS", "5")),
        )

    def to_connection_kwargs(self) -> Dict[str, Any]:
        """
        Convert configuration to Valkey connection parameters.

        The host, port, database and password are left out when a URL is
        configured, since the URL carries them.

        Returns:
            Dict[str, Any]: Connection parameters for Valkey client
        """
        kwargs: Dict[str, Any] = {
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "retry_on_timeout": self.retry_on_timeout,
            "health_check_interval": self.health_check_interval,
            "decode_responses": False,
        }

        if not self.url:
            kwargs.update({
                "host": self.host,
                "port": self.port,
                "db": self.database,
            })
            if self.password:
                kwargs["password"] = self.password

        return kwargs

    def to_connection_pool_kwargs(self) -> Dict[str, Any]:
        """
        Convert configuration to Valkey connection pool parameters.

        Returns:
            Dict[str, Any]: Connection pool parameters for Valkey client
        """
        kwargs = self.to_connection_kwargs()
        kwargs["max_connections"] = self.max_connections
        return kwargs

    def __str__(self) -> str:
        """String representation hiding sensitive information."""
        if self.url:
            return f"ValkeyConfig(url=***, max_connections={self.max_connections})"
        password_display = "***" if self.password else "None"
        return (
            f"ValkeyConfig(host={self.host}, port={self.port}, "
            f"db={self.database}, password={password_display}, "
            f"max_connections={self.max_connections})"
        )
