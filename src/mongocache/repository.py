"""Entry repository over a MongoDB collection.

This module isolates every driver call made by the cache store. Each method
maps to one collection operation and translates driver errors into the
cache exception hierarchy.
"""

import contextlib
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from mongocache.errors import CacheConnectionError, CacheOperationError

logger = logging.getLogger(__name__)

ID_PROJECTION = {"id": 1, "_id": 0}


@contextlib.contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Re-raise driver errors as cache errors.

    Args:
        action: Short description of the operation, used in messages

    Raises:
        CacheConnectionError: If the server could not be reached
        CacheOperationError: If the server rejected the operation
    """
    try:
        yield
    except ConnectionFailure as e:
        logger.error(f"Cannot reach cache store while trying to {action}: {e}")
        raise CacheConnectionError(f"Cannot {action}: {e}") from e
    except PyMongoError as e:
        logger.error(f"Cache store failed to {action}: {e}")
        raise CacheOperationError(f"Failed to {action}: {e}") from e


class EntryRepository:
    """CRUD operations on the cache collection, one document per cache id.

    Examples:
        >>> client = MongoClient()
        >>> repo = EntryRepository(client["cache"], "cache")
        >>> repo.ensure_indexes()
        >>> repo.upsert({"id": "a", "data": b"x", "tags": [], "expire_time": 0,
        ...              "lastModified": 0})
        True
    """

    def __init__(self, database: Database, collection_name: str):
        self.database = database
        self.collection: Collection = database[collection_name]

    def ensure_indexes(self) -> None:
        """Create the unique index on the cache id."""
        with translate_errors("create cache id index"):
            self.collection.create_index("id", unique=True)

    def find_one(
        self, query: Mapping[str, Any], projection: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        with translate_errors("read cache entry"):
            return self.collection.find_one(query, projection)

    def find_ids(self, query: Mapping[str, Any]) -> List[str]:
        """Return the ids of every document matching ``query``."""
        with translate_errors("list cache ids"):
            return [doc["id"] for doc in self.collection.find(query, ID_PROJECTION)]

    def upsert(self, document: Mapping[str, Any]) -> bool:
        """Replace the document with the same id, or insert it if absent.

        Returns:
            True if the server acknowledged the write
        """
        with translate_errors(f"save cache entry {document['id']!r}"):
            result = self.collection.replace_one(
                {"id": document["id"]}, dict(document), upsert=True
            )
        return result.acknowledged

    def delete(self, cache_id: str) -> bool:
        """Delete the document for ``cache_id``; deleting nothing is a success."""
        with translate_errors(f"remove cache entry {cache_id!r}"):
            result = self.collection.delete_one({"id": cache_id})
        return result.acknowledged

    def delete_many(self, query: Mapping[str, Any]) -> int:
        """Delete all documents matching ``query``.

        Returns:
            Number of deleted documents
        """
        with translate_errors("remove cache entries"):
            result = self.collection.delete_many(query)
        return result.deleted_count

    def update(
        self,
        cache_id: str,
        update: Mapping[str, Any],
        condition: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Apply an update document to the entry for ``cache_id``.

        Args:
            cache_id: Id of the entry to update
            update: MongoDB update document
            condition: Extra query the entry must also match, checked by the
                server in the same operation

        Returns:
            True if an entry matched
        """
        query = {"id": cache_id, **(condition or {})}
        with translate_errors(f"update cache entry {cache_id!r}"):
            result = self.collection.update_one(query, update)
        return result.matched_count > 0

    def distinct(self, key: str) -> List[Any]:
        with translate_errors(f"list distinct {key}"):
            return list(self.collection.distinct(key))

    def compact(self) -> None:
        """Defragment the collection storage."""
        self.database.command("compact", self.collection.name)
        logger.info(f"Compacted cache collection {self.collection.name!r}")
