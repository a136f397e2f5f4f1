"""Exceptions raised by the cache store."""


class CacheError(Exception):
    """Base exception for cache-related errors."""

    pass


class CacheConfigurationError(CacheError):
    """Raised when the cache store cannot be configured."""

    pass


class CacheConnectionError(CacheError):
    """Raised when the backing MongoDB server cannot be reached."""

    pass


class CacheOperationError(CacheError):
    """Raised when the backing store rejects a read or write."""

    pass
