"""
Caching layer for typed cache-aside access to Valkey.

This package contains key derivation, the cache manager, the store and
serializer collaborators, and Valkey client configuration.
"""

from .config import ValkeyConfig, TTLPreset
from .errors import (
    CacheError,
    InvalidCacheKeyError,
    CacheSerializationError,
    CacheEncodeError,
    CacheDecodeError,
    ValkeyConnectionError,
)
from .keys import TypeDescriptor, CacheKey, CacheKeyBuilder, type_signature
from .serializers import Serializer, JsonSerializer, PydanticSerializer
from .client import ValkeyClient
from .store import KeyValueStore, ValkeyStore
from .manager import (
    CacheManager,
    create_cache_manager,
    get_cache_manager,
    close_global_cache_manager,
)

__all__ = [
    # Configuration
    "ValkeyConfig",
    "TTLPreset",

    # Errors
    "CacheError",
    "InvalidCacheKeyError",
    "CacheSerializationError",
    "CacheEncodeError",
    "CacheDecodeError",
    "ValkeyConnectionError",

    # Keys
    "TypeDescriptor",
    "CacheKey",
    "CacheKeyBuilder",
    "type_signature",

    # Serialization
    "Serializer",
    "JsonSerializer",
    "PydanticSerializer",

    # Store
    "ValkeyClient",
    "KeyValueStore",
    "ValkeyStore",

    # Manager
    "CacheManager",
    "create_cache_manager",
    "get_cache_manager",
    "close_global_cache_manager",
]
