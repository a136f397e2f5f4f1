"""MongoDB cache store with expiration and tag-based invalidation."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from mongocache.config import CacheConfig
from mongocache.errors import (
    CacheConfigurationError,
    CacheConnectionError,
    CacheError,
    CacheOperationError,
)
from mongocache.metadata import CacheEntry, Payload
from mongocache.repository import EntryRepository
from mongocache.tags import TAG_FILTERS, CleaningMode, normalize_tags
from mongocache.vacuum import AutomaticVacuum
from mongocache.validation import (
    NEVER_EXPIRES,
    check_lifetime,
    compute_expire_time,
    current_timestamp,
    expired_filter,
    validity_filter,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CacheStore",
    "CacheError",
    "CacheConfigurationError",
    "CacheConnectionError",
    "CacheOperationError",
    "UNSET",
]


class _Unset:
    """Marker for an omitted lifetime (distinct from None = infinite)."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()

CAPABILITIES = {
    "automatic_cleaning": True,
    "tags": True,
    "expired_read": True,
    "priority": False,
    "infinite_lifetime": True,
    "get_list": True,
}


class CacheStore:
    """Stores raw cache payloads in a MongoDB collection.

    Serialization and cache-key building belong to the caller. The store
    persists, expires and tags entries, and selects entries by tag for bulk
    invalidation.

    Each instance owns its client and collection handle; several stores can
    live in one process.

    Examples:
        >>> store = CacheStore(CacheConfig(database="app_cache"))
        >>> store.save(b"payload", "user_42", tags=["users"], specific_lifetime=60)
        True
        >>> store.load("user_42")
        b'payload'
        >>> store.clean(CleaningMode.MATCHING_TAG, ["users"])
        True
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        client: Optional[MongoClient] = None,
    ):
        """Initialize the cache store.

        Args:
            config: Store configuration (defaults if None)
            client: Pre-built MongoClient; built from ``config.server`` if None

        Raises:
            CacheConfigurationError: If the configuration is invalid
            CacheConnectionError: If the server cannot be reached
        """
        self.config = config or CacheConfig()
        self.config.validate()

        self._owns_client = client is None
        if client is None:
            try:
                client = MongoClient(self.config.server)
            except (PyMongoError, ValueError) as e:
                raise CacheConfigurationError(
                    f"Cannot create MongoDB client for {self.config.server}: {e}"
                ) from e
        self.client = client

        self.repository = EntryRepository(
            self.client[self.config.database], self.config.collection
        )
        self.repository.ensure_indexes()

        self.vacuum = AutomaticVacuum(
            self.config.automatic_vacuum_factor, self.repository.compact
        )

    def __enter__(self) -> "CacheStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the client if this store created it."""
        if self._owns_client:
            self.client.close()

    @property
    def collection(self):
        """The underlying pymongo collection."""
        return self.repository.collection

    # ==================== Read / write ====================

    def load(self, cache_id: str, skip_validity_check: bool = False) -> Optional[Payload]:
        """Load the payload stored for a cache id.

        Args:
            cache_id: Cache id
            skip_validity_check: If True, expired entries are returned too

        Returns:
            The payload exactly as saved, or None if not found (or expired)
        """
        query: Dict[str, Any] = {"id": cache_id}
        if not skip_validity_check:
            query.update(validity_filter(current_timestamp()))

        document = self.repository.find_one(query, {"data": 1})
        if document is None:
            return None
        return document["data"]

    def test(self, cache_id: str) -> Union[int, bool]:
        """Test if a readable entry exists for a cache id.

        Uses the same validity filter as load().

        Returns:
            The entry's last-modified timestamp, or False if unavailable
        """
        query: Dict[str, Any] = {"id": cache_id}
        query.update(validity_filter(current_timestamp()))

        document = self.repository.find_one(query, {"lastModified": 1})
        if document is None:
            return False
        # A zero mtime is still a hit
        return document.get("lastModified") or True

    def save(
        self,
        data: Payload,
        cache_id: str,
        tags: Optional[Iterable[str]] = None,
        specific_lifetime: Any = UNSET,
    ) -> bool:
        """Save a payload under a cache id, replacing any existing entry.

        Args:
            data: Payload (bytes or str); stored and returned as-is
            cache_id: Cache id
            tags: Tags attached to the entry
            specific_lifetime: Lifetime in seconds. Omit to use the configured
                default lifetime; None means infinite. 0 also means infinite.

        Returns:
            True if the write was acknowledged

        Raises:
            ValueError: If the lifetime is negative
            TypeError: If data is not bytes or str, if tags are not strings,
                or if the lifetime is not a whole number of seconds
        """
        if not isinstance(data, (bytes, str)):
            raise TypeError(f"Cache data must be bytes or str, got {type(data).__name__}")

        lifetime = self._get_lifetime(specific_lifetime)
        now = current_timestamp()

        entry = CacheEntry(
            id=cache_id,
            data=data,
            tags=normalize_tags(tags),
            expire_time=compute_expire_time(lifetime, now),
            last_modified=now,
        )

        result = self.repository.upsert(entry.to_document())
        logger.debug(
            f"Saved cache entry {cache_id!r} "
            f"(expire_time={entry.expire_time}, tags={entry.tags})"
        )
        self.vacuum.maybe_run()
        return result

    def _get_lifetime(self, specific_lifetime: Any) -> Optional[int]:
        if specific_lifetime is UNSET:
            return self.config.default_lifetime
        return specific_lifetime

    def remove(self, cache_id: str) -> bool:
        """Remove the entry for a cache id.

        Removing an id that is not stored is a success.

        Returns:
            True if the removal was acknowledged
        """
        result = self.repository.delete(cache_id)
        logger.debug(f"Removed cache entry {cache_id!r}")
        self.vacuum.maybe_run()
        return result

    # ==================== Cleaning ====================

    def clean(
        self,
        mode: Union[CleaningMode, str] = CleaningMode.ALL,
        tags: Optional[Iterable[str]] = None,
    ) -> bool:
        """Clean cache entries.

        Available modes:
            ALL (default): remove every entry (tags unused)
            OLD: remove expired entries (tags unused)
            MATCHING_TAG: remove entries carrying all of the tags
            NOT_MATCHING_TAG: remove entries carrying none of the tags
            MATCHING_ANY_TAG: remove entries carrying at least one of the tags

        Tag modes remove entries one by one through remove().

        Args:
            mode: CleaningMode member or its string value
            tags: Tags for the tag-based modes

        Returns:
            True if every removal succeeded

        Raises:
            ValueError: If mode is unknown
        """
        mode = CleaningMode.from_value(mode)

        if mode is CleaningMode.ALL:
            count = self.repository.delete_many({})
            logger.info(f"Cleaned all cache entries ({count} removed)")
            self.vacuum.maybe_run()
            return True

        if mode is CleaningMode.OLD:
            count = self.repository.delete_many(expired_filter(current_timestamp()))
            logger.info(f"Cleaned expired cache entries ({count} removed)")
            self.vacuum.maybe_run()
            return True

        cache_ids = self._get_ids_for_tags(mode, tags)
        result = True
        for cache_id in cache_ids:
            result = self.remove(cache_id) and result
        logger.info(f"Cleaned {len(cache_ids)} cache entries in mode {mode.value!r}")
        return result

    # ==================== Listing ====================

    def get_ids(self) -> List[str]:
        """Return the ids of all stored entries, expired ones included."""
        return self.repository.find_ids({})

    def get_tags(self) -> List[str]:
        """Return every distinct tag in use."""
        return self.repository.distinct("tags")

    def get_ids_matching_tags(self, tags: Optional[Iterable[str]] = None) -> List[str]:
        """Return ids of entries carrying all of the given tags (logical AND).

        An empty tag list matches nothing.
        """
        return self._get_ids_for_tags(CleaningMode.MATCHING_TAG, tags)

    def get_ids_not_matching_tags(
        self, tags: Optional[Iterable[str]] = None
    ) -> List[str]:
        """Return ids of entries carrying none of the given tags.

        Untagged entries are included. An empty tag list matches every entry.
        """
        return self._get_ids_for_tags(CleaningMode.NOT_MATCHING_TAG, tags)

    def get_ids_matching_any_tags(
        self, tags: Optional[Iterable[str]] = None
    ) -> List[str]:
        """Return ids of entries carrying at least one of the given tags (logical OR).

        An empty tag list matches nothing.
        """
        return self._get_ids_for_tags(CleaningMode.MATCHING_ANY_TAG, tags)

    def _get_ids_for_tags(
        self, mode: CleaningMode, tags: Optional[Iterable[str]]
    ) -> List[str]:
        tags = normalize_tags(tags)
        if not tags and mode is not CleaningMode.NOT_MATCHING_TAG:
            return []
        return self.repository.find_ids(TAG_FILTERS[mode](tags))

    # ==================== Metadata ====================

    def get_entry(self, cache_id: str) -> Optional[CacheEntry]:
        """Return the full stored entry, regardless of validity."""
        document = self.repository.find_one({"id": cache_id})
        if document is None:
            return None
        return CacheEntry.from_document(document)

    def get_metadatas(self, cache_id: str) -> Optional[Dict[str, Any]]:
        """Return metadata for a cache id.

        Returns:
            Dict with ``expire``, ``tags`` and ``mtime`` keys, or None if the
            id is not stored
        """
        document = self.repository.find_one({"id": cache_id}, {"data": 0})
        if document is None:
            return None
        return CacheEntry.from_document(document).get_metadatas()

    def touch(self, cache_id: str, extra_lifetime: int) -> bool:
        """Give an extra lifetime to a stored entry.

        The expiry moves forward by exactly ``extra_lifetime`` seconds and the
        modification time is refreshed. An entry that never expires stays
        infinite; only its modification time changes.

        Args:
            cache_id: Cache id
            extra_lifetime: Seconds to add to the current expiry

        Returns:
            True if the entry exists, False otherwise

        Raises:
            TypeError: If extra_lifetime is not an int
            ValueError: If extra_lifetime is negative
        """
        check_lifetime(extra_lifetime)
        now = current_timestamp()

        # The finite check and the increment happen in one server-side update
        extended = self.repository.update(
            cache_id,
            {"$inc": {"expire_time": extra_lifetime}, "$set": {"lastModified": now}},
            condition={"expire_time": {"$ne": NEVER_EXPIRES}},
        )
        if extended:
            return True
        return self.repository.update(cache_id, {"$set": {"lastModified": now}})

    def get_capabilities(self) -> Dict[str, bool]:
        """Return the fixed capability descriptor of this backend."""
        return dict(CAPABILITIES)

    def get_filling_percentage(self) -> int:
        """Return a constant placeholder; storage filling is not measured."""
        return 1
