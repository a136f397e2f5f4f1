"""Unit tests for CacheEntry documents."""

from mongocache.metadata import CacheEntry


class TestCacheEntry:
    """Test conversion between entries and MongoDB documents."""

    def test_document_layout(self):
        entry = CacheEntry(
            id="key", data=b"data", tags=["a"], expire_time=1060, last_modified=1000
        )

        assert entry.to_document() == {
            "id": "key",
            "data": b"data",
            "tags": ["a"],
            "expire_time": 1060,
            "lastModified": 1000,
        }

    def test_from_document_round_trip(self):
        document = {
            "_id": "ignored",
            "id": "key",
            "data": b"data",
            "tags": ["a", "b"],
            "expire_time": 0,
            "lastModified": 1000,
        }

        entry = CacheEntry.from_document(document)

        assert entry.id == "key"
        assert entry.tags == ["a", "b"]
        assert entry.to_document() == {k: v for k, v in document.items() if k != "_id"}

    def test_from_partial_document(self):
        """Test that missing fields fall back to defaults."""
        entry = CacheEntry.from_document({"id": "key"})

        assert entry.data == b""
        assert entry.tags == []
        assert entry.expire_time == 0

    def test_metadatas(self):
        entry = CacheEntry(
            id="key", data=b"x", tags=["t"], expire_time=1060, last_modified=1000
        )
        assert entry.get_metadatas() == {"expire": 1060, "tags": ["t"], "mtime": 1000}

    def test_status(self):
        entry = CacheEntry(id="key", data=b"four", expire_time=1060, last_modified=1000)

        status = entry.get_status(now=1100)

        assert status["valid"] is False
        assert status["expired"] is True
        assert status["lifetime_remaining"] == 0
        assert status["size"] == 4

    def test_status_infinite(self):
        entry = CacheEntry(id="key", data=b"")

        status = entry.get_status(now=10**10)

        assert status["valid"] is True
        assert status["expired"] is False
        assert status["lifetime_remaining"] is None

    def test_status_size_counts_bytes_of_text(self):
        """Test that text payloads report their UTF-8 size."""
        entry = CacheEntry(id="key", data="caf\u00e9")

        assert entry.get_status(now=0)["size"] == 5
