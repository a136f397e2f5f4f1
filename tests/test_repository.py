"""Tests for EntryRepository driver calls and error translation."""

from unittest.mock import MagicMock

import mongomock
import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from mongocache.errors import CacheConnectionError, CacheError, CacheOperationError
from mongocache.repository import EntryRepository


@pytest.fixture
def repository():
    """Create a repository over an in-memory collection."""
    repo = EntryRepository(mongomock.MongoClient()["cache"], "cache")
    repo.ensure_indexes()
    return repo


@pytest.fixture
def broken_repository():
    """Create a repository whose collection is a mock."""
    database = MagicMock()
    collection = MagicMock()
    collection.name = "cache"
    database.__getitem__.return_value = collection
    return EntryRepository(database, "cache")


def make_document(cache_id, **fields):
    document = {
        "id": cache_id,
        "data": b"data",
        "tags": [],
        "expire_time": 0,
        "lastModified": 0,
    }
    document.update(fields)
    return document


class TestRepositoryOperations:
    """Test CRUD operations."""

    def test_upsert_inserts_then_replaces(self, repository):
        assert repository.upsert(make_document("a", data=b"one")) is True
        assert repository.upsert(make_document("a", data=b"two")) is True

        assert repository.collection.count_documents({}) == 1
        assert repository.find_one({"id": "a"})["data"] == b"two"

    def test_upsert_does_not_merge_fields(self, repository):
        """Test that replacing drops fields absent from the new document."""
        repository.collection.insert_one(make_document("a", extra="stale"))
        repository.upsert(make_document("a"))

        assert "extra" not in repository.find_one({"id": "a"})

    def test_find_ids(self, repository):
        repository.upsert(make_document("a", tags=["x"]))
        repository.upsert(make_document("b"))

        assert sorted(repository.find_ids({})) == ["a", "b"]
        assert repository.find_ids({"tags": {"$in": ["x"]}}) == ["a"]

    def test_delete_is_idempotent(self, repository):
        repository.upsert(make_document("a"))

        assert repository.delete("a") is True
        assert repository.delete("a") is True
        assert repository.find_one({"id": "a"}) is None

    def test_delete_many_returns_count(self, repository):
        for cache_id in ("a", "b", "c"):
            repository.upsert(make_document(cache_id))

        assert repository.delete_many({"id": {"$in": ["a", "b"]}}) == 2
        assert repository.find_ids({}) == ["c"]

    def test_update_reports_match(self, repository):
        repository.upsert(make_document("a", expire_time=100))

        assert repository.update("a", {"$inc": {"expire_time": 5}}) is True
        assert repository.find_one({"id": "a"})["expire_time"] == 105
        assert repository.update("missing", {"$set": {"lastModified": 1}}) is False

    def test_update_with_condition(self, repository):
        """Test that the condition is checked together with the id."""
        repository.upsert(make_document("finite", expire_time=100))
        repository.upsert(make_document("infinite", expire_time=0))
        condition = {"expire_time": {"$ne": 0}}
        increment = {"$inc": {"expire_time": 5}}

        assert repository.update("finite", increment, condition=condition) is True
        assert repository.update("infinite", increment, condition=condition) is False
        assert repository.find_one({"id": "finite"})["expire_time"] == 105
        assert repository.find_one({"id": "infinite"})["expire_time"] == 0

    def test_distinct_flattens_tags(self, repository):
        repository.upsert(make_document("a", tags=["x", "y"]))
        repository.upsert(make_document("b", tags=["y", "z"]))

        assert sorted(repository.distinct("tags")) == ["x", "y", "z"]

    def test_compact_runs_command(self, broken_repository):
        broken_repository.compact()
        broken_repository.database.command.assert_called_once_with("compact", "cache")


class TestErrorTranslation:
    """Test driver errors surface as cache errors."""

    def test_connection_failure(self, broken_repository):
        broken_repository.collection.find_one.side_effect = ServerSelectionTimeoutError(
            "no servers"
        )

        with pytest.raises(CacheConnectionError, match="no servers"):
            broken_repository.find_one({"id": "a"})

    def test_operation_failure(self, broken_repository):
        broken_repository.collection.replace_one.side_effect = OperationFailure(
            "not authorized"
        )

        with pytest.raises(CacheOperationError, match="not authorized") as exc_info:
            broken_repository.upsert(make_document("a"))

        assert isinstance(exc_info.value.__cause__, OperationFailure)

    def test_errors_share_base_class(self, broken_repository):
        broken_repository.collection.delete_one.side_effect = OperationFailure("fail")

        with pytest.raises(CacheError):
            broken_repository.delete("a")

    def test_unacknowledged_write(self, broken_repository):
        broken_repository.collection.delete_one.return_value = MagicMock(
            acknowledged=False
        )
        assert broken_repository.delete("a") is False
