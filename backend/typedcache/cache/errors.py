"""
Exceptions raised by the typed cache layer.

Store failures coming out of the ``valkey`` package are not wrapped here;
they reach callers unchanged.
"""

from typing import Dict, Any, Optional


class CacheError(Exception):
    """Base exception for the typed cache layer."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidCacheKeyError(CacheError, ValueError):
    """A cache key built from a missing or blank fragment was used."""

    def __init__(self, message: str = "Provided cache key is invalid.", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_CACHE_KEY", message, details)


class CacheSerializationError(CacheError):
    """Base for encode/decode failures."""


class CacheEncodeError(CacheSerializationError):
    """An item could not be encoded for storage."""

    def __init__(self, message: str = "Failed to encode cache item", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_ENCODE_ERROR", message, details)


class CacheDecodeError(CacheSerializationError):
    """Stored bytes could not be decoded into an item."""

    def __init__(self, message: str = "Failed to decode cache item", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_DECODE_ERROR", message, details)


class ValkeyConnectionError(CacheError):
    """The Valkey server could not be reached after all connection attempts."""

    def __init__(self, message: str = "Valkey connection failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALKEY_CONNECTION_ERROR", message, details)
