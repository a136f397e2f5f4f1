"""mongocache: MongoDB cache storage backend with expiration and tag-based invalidation."""

__version__ = "0.1.0"

from mongocache.config import CacheConfig
from mongocache.errors import (
    CacheConfigurationError,
    CacheConnectionError,
    CacheError,
    CacheOperationError,
)
from mongocache.metadata import CacheEntry
from mongocache.store import UNSET, CacheStore
from mongocache.tags import CleaningMode

__all__ = [
    "CacheStore",
    "CacheConfig",
    "CacheEntry",
    "CleaningMode",
    "UNSET",
    "CacheError",
    "CacheConfigurationError",
    "CacheConnectionError",
    "CacheOperationError",
    "__version__",
]
