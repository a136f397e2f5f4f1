"""Cache entry documents and their metadata.

One MongoDB document is stored per cache id:

    {
        "id": "user_42",
        "data": b"...",
        "tags": ["users", "profile"],
        "expire_time": 1700000000,   # 0 = never expires
        "lastModified": 1699996400,
    }
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union

from mongocache.validation import (
    NEVER_EXPIRES,
    get_lifetime_remaining,
    is_entry_expired,
    is_entry_valid,
)

Payload = Union[bytes, str]


@dataclass
class CacheEntry:
    """A stored cache record.

    Attributes:
        id: Unique cache id
        data: Opaque payload, returned exactly as it was saved
        tags: Tag labels, in insertion order
        expire_time: Expiry unix timestamp, 0 for infinite lifetime
        last_modified: Unix timestamp of the last save or touch
    """

    id: str
    data: Payload
    tags: List[str] = field(default_factory=list)
    expire_time: int = NEVER_EXPIRES
    last_modified: int = 0

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "CacheEntry":
        """Build an entry from a MongoDB document.

        Documents fetched with a projection may lack ``data``; it is left empty.
        """
        return cls(
            id=document["id"],
            data=document.get("data", b""),
            tags=list(document.get("tags") or []),
            expire_time=document.get("expire_time", NEVER_EXPIRES),
            last_modified=document.get("lastModified", 0),
        )

    def to_document(self) -> Dict[str, Any]:
        """Convert to the document layout stored in MongoDB."""
        return {
            "id": self.id,
            "data": self.data,
            "tags": list(self.tags),
            "expire_time": self.expire_time,
            "lastModified": self.last_modified,
        }

    def is_valid(self, now: int) -> bool:
        """Whether the entry is readable without skipping the validity check."""
        return is_entry_valid(self.expire_time, now)

    def get_metadatas(self) -> Dict[str, Any]:
        """Return the metadata dict exposed to cache frontends.

        Returns:
            Dict with ``expire``, ``tags`` and ``mtime`` keys
        """
        return {
            "expire": self.expire_time,
            "tags": list(self.tags),
            "mtime": self.last_modified,
        }

    def get_status(self, now: int) -> Dict[str, Any]:
        """Return a descriptive status dict (used by the CLI).

        Args:
            now: Current unix timestamp
        """
        raw = self.data.encode("utf-8") if isinstance(self.data, str) else self.data
        return {
            "id": self.id,
            "tags": list(self.tags),
            "expire_time": self.expire_time,
            "last_modified": self.last_modified,
            "valid": self.is_valid(now),
            "expired": is_entry_expired(self.expire_time, now),
            "lifetime_remaining": get_lifetime_remaining(self.expire_time, now),
            "size": len(raw),
        }
