"""
Tests for the Valkey client, store adapter and configuration.

The Valkey connection pool and client are mocked, so no server is needed.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, Mock, patch

from valkey.exceptions import ConnectionError

from typedcache.cache import (
    TTLPreset,
    ValkeyClient,
    ValkeyConfig,
    ValkeyConnectionError,
    ValkeyStore,
)


@pytest.fixture
def valkey_config():
    """Create a test Valkey configuration."""
    return ValkeyConfig(
        host="localhost",
        port=6379,
        database=15,  # Use test database
        password=None,
        max_connections=5,
        socket_timeout=2.0,
        socket_connect_timeout=2.0,
        max_connection_attempts=3,
        scan_count=50,
    )


@pytest.fixture
def mock_valkey():
    """Create a mock async Valkey client."""
    mock_client = Mock()
    mock_client.ping = AsyncMock(return_value=True)
    mock_client.get = AsyncMock(return_value=None)
    mock_client.set = AsyncMock(return_value=True)
    mock_client.delete = AsyncMock(return_value=1)
    mock_client.aclose = AsyncMock()
    return mock_client


@pytest.fixture
def connected_client(valkey_config, mock_valkey):
    """Create a ValkeyClient that is already connected to the mock."""
    client = ValkeyClient(valkey_config)
    client._client = mock_valkey
    return client


class TestValkeyConfig:
    """Test Valkey configuration functionality."""

    def test_config_creation_with_defaults(self):
        config = ValkeyConfig()
        assert config.host == "localhost"
        assert config.port == 6379
        assert config.database == 0
        assert config.url is None
        assert config.max_connections == 10
        assert config.socket_timeout == 5.0
        assert config.scan_count == 250

    def test_config_from_env(self):
        with patch.dict('os.environ', {
            'VALKEY_HOST': 'test-host',
            'VALKEY_PORT': '6380',
            'VALKEY_PASSWORD': 'test-pass',
            'VALKEY_DATABASE': '5',
            'VALKEY_MAX_CONNECTIONS': '20',
            'VALKEY_SCAN_COUNT': '1000',
            'VALKEY_RETRY_ON_TIMEOUT': 'false',
        }):
            config = ValkeyConfig.from_env()
            assert config.host == "test-host"
            assert config.port == 6380
            assert config.password == "test-pass"
            assert config.database == 5
            assert config.max_connections == 20
            assert config.scan_count == 1000
            assert config.retry_on_timeout is False

    def test_config_to_connection_kwargs(self):
        config = ValkeyConfig(
            host="test-host",
            port=6380,
            password="test-pass",
            database=5
        )

        kwargs = config.to_connection_kwargs()
        assert kwargs["host"] == "test-host"
        assert kwargs["port"] == 6380
        assert kwargs["password"] == "test-pass"
        assert kwargs["db"] == 5
        assert kwargs["decode_responses"] is False
        assert "max_connections" not in kwargs  # Only in pool kwargs

    def test_url_config_omits_host_settings(self):
        config = ValkeyConfig(url="valkey://:secret@cache:6379/2", password="ignored")

        kwargs = config.to_connection_kwargs()
        assert "host" not in kwargs
        assert "password" not in kwargs
        assert "secret" not in str(config)

    def test_config_to_connection_pool_kwargs(self):
        config = ValkeyConfig(max_connections=15)
        kwargs = config.to_connection_pool_kwargs()
        assert kwargs["max_connections"] == 15

    def test_config_string_representation(self):
        config = ValkeyConfig(password="secret123")
        config_str = str(config)
        assert "secret123" not in config_str
        assert "***" in config_str

    def test_ttl_presets(self):
        assert TTLPreset.SHORT == 60
        assert TTLPreset.DEFAULT == 3600
        assert TTLPreset.LONG == 86400


class TestValkeyClient:
    """Test connection handling."""

    @pytest.mark.asyncio
    async def test_connect_creates_pool_once(self, valkey_config, mock_valkey):
        with patch("typedcache.cache.client.ConnectionPool") as pool_cls, \
                patch("typedcache.cache.client.Valkey", return_value=mock_valkey) as valkey_cls:
            client = ValkeyClient(valkey_config)

            first = await client.connect()
            second = await client.connect()

        assert first is mock_valkey
        assert second is mock_valkey
        pool_cls.assert_called_once_with(**valkey_config.to_connection_pool_kwargs())
        valkey_cls.assert_called_once()
        mock_valkey.ping.assert_awaited_once()
        assert client.is_connected

    @pytest.mark.asyncio
    async def test_connect_from_url(self, mock_valkey):
        config = ValkeyConfig(url="valkey://cache:6379/0")

        with patch("typedcache.cache.client.ConnectionPool") as pool_cls, \
                patch("typedcache.cache.client.Valkey", return_value=mock_valkey):
            await ValkeyClient(config).connect()

        pool_cls.from_url.assert_called_once_with(
            "valkey://cache:6379/0", **config.to_connection_pool_kwargs()
        )

    @pytest.mark.asyncio
    async def test_connect_retries_then_succeeds(self, valkey_config, mock_valkey):
        mock_valkey.ping = AsyncMock(side_effect=[ConnectionError("refused"), True])

        with patch("typedcache.cache.client.ConnectionPool") as pool_cls, \
                patch("typedcache.cache.client.Valkey", return_value=mock_valkey):
            pool_cls.return_value.disconnect = AsyncMock()
            client = ValkeyClient(valkey_config)
            client._reconnect_delay = 0

            await client.connect()

        assert mock_valkey.ping.await_count == 2
        assert pool_cls.call_count == 2
        pool_cls.return_value.disconnect.assert_awaited_once()
        assert client.is_connected

    @pytest.mark.asyncio
    async def test_connect_gives_up_after_max_attempts(self, valkey_config, mock_valkey):
        mock_valkey.ping = AsyncMock(side_effect=ConnectionError("refused"))

        with patch("typedcache.cache.client.ConnectionPool") as pool_cls, \
                patch("typedcache.cache.client.Valkey", return_value=mock_valkey):
            pool_cls.return_value.disconnect = AsyncMock()
            client = ValkeyClient(valkey_config)
            client._reconnect_delay = 0

            with pytest.raises(ValkeyConnectionError) as exc_info:
                await client.connect()

        assert mock_valkey.ping.await_count == 3
        assert exc_info.value.details == {"attempts": 3}
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_disconnect(self, valkey_config, mock_valkey):
        client = ValkeyClient(valkey_config)
        client._client = mock_valkey
        client._connection_pool = Mock(disconnect=AsyncMock())
        pool = client._connection_pool

        await client.disconnect()

        mock_valkey.aclose.assert_awaited_once()
        pool.disconnect.assert_awaited_once()
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_health_check(self, connected_client, mock_valkey):
        assert await connected_client.health_check() is True

        mock_valkey.ping = AsyncMock(side_effect=ConnectionError("gone"))
        assert await connected_client.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_when_not_connected(self, valkey_config):
        assert await ValkeyClient(valkey_config).health_check() is False

    def test_connection_info(self, valkey_config):
        info = ValkeyClient(valkey_config).get_connection_info()
        assert info["is_connected"] is False
        assert "localhost" in info["config"]


class TestValkeyStore:
    """Test the store adapter against a mocked Valkey client."""

    @pytest.mark.asyncio
    async def test_string_get(self, connected_client, mock_valkey):
        mock_valkey.get = AsyncMock(return_value=b'{"a": 1}')

        result = await ValkeyStore(connected_client).string_get("Flight-1")

        assert result == b'{"a": 1}'
        mock_valkey.get.assert_awaited_once_with("Flight-1")

    @pytest.mark.asyncio
    async def test_string_set_passes_ttl_as_expiry(self, connected_client, mock_valkey):
        ttl = timedelta(minutes=10)

        await ValkeyStore(connected_client).string_set("Flight-1", b"{}", ttl)

        mock_valkey.set.assert_awaited_once_with("Flight-1", b"{}", ex=ttl)

    @pytest.mark.asyncio
    async def test_key_delete(self, connected_client, mock_valkey):
        await ValkeyStore(connected_client).key_delete("Flight-1")

        mock_valkey.delete.assert_awaited_once_with("Flight-1")

    @pytest.mark.asyncio
    async def test_scan_keys_streams_and_decodes(self, connected_client, mock_valkey):
        async def scan_iter(match=None, count=None):
            for key in [b"Flight-1", "Flight-2"]:
                yield key

        mock_valkey.scan_iter = Mock(side_effect=scan_iter)

        store = ValkeyStore(connected_client)
        keys = [key async for key in store.scan_keys("*Flight*")]

        assert keys == ["Flight-1", "Flight-2"]
        mock_valkey.scan_iter.assert_called_once_with(match="*Flight*", count=50)

    def test_scan_count_override(self, connected_client):
        assert ValkeyStore(connected_client, scan_count=10).scan_count == 10

    @pytest.mark.asyncio
    async def test_store_errors_are_not_translated(self, connected_client, mock_valkey):
        mock_valkey.get = AsyncMock(side_effect=ConnectionError("reset"))

        with pytest.raises(ConnectionError):
            await ValkeyStore(connected_client).string_get("Flight-1")

    @pytest.mark.asyncio
    async def test_close_disconnects_client(self, connected_client, mock_valkey):
        await ValkeyStore(connected_client).close()

        mock_valkey.aclose.assert_awaited_once()
        assert not connected_client.is_connected
