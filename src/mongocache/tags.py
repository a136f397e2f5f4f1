"""Tag selection filters and cleaning modes.

Each selector turns a list of tags into a MongoDB query over the ``tags``
array field of cache documents:

- matching: the entry carries every given tag (logical AND)
- not matching: the entry carries none of the given tags
- matching any: the entry carries at least one of the given tags (logical OR)
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union


class CleaningMode(Enum):
    """Modes accepted by CacheStore.clean().

    Values match the mode names used by tag-aware cache frontends, so plain
    strings can be passed as well.

    Examples:
        >>> CleaningMode.from_value("matchingTag")
        <CleaningMode.MATCHING_TAG: 'matchingTag'>
    """

    ALL = "all"
    OLD = "old"
    MATCHING_TAG = "matchingTag"
    NOT_MATCHING_TAG = "notMatchingTag"
    MATCHING_ANY_TAG = "matchingAnyTag"

    @property
    def uses_tags(self) -> bool:
        """Whether this mode selects entries by tag."""
        return self in (
            CleaningMode.MATCHING_TAG,
            CleaningMode.NOT_MATCHING_TAG,
            CleaningMode.MATCHING_ANY_TAG,
        )

    @classmethod
    def from_value(cls, mode: Union["CleaningMode", str]) -> "CleaningMode":
        """Coerce a mode or its string value to a CleaningMode.

        Raises:
            ValueError: If mode is not a known cleaning mode
        """
        if isinstance(mode, cls):
            return mode
        try:
            return cls(mode)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Invalid cleaning mode: {mode!r}. Valid modes: {valid}"
            ) from None


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Return tags as a list, keeping insertion order.

    Raises:
        TypeError: If tags is a bare string or contains non-strings
    """
    if tags is None:
        return []
    if isinstance(tags, (str, bytes)):
        raise TypeError("tags must be an iterable of strings, not a single string")
    tags = list(tags)
    for tag in tags:
        if not isinstance(tag, str):
            raise TypeError(f"Tag must be a string, got {type(tag).__name__}")
    return tags


def matching_tags_filter(tags: List[str]) -> Dict[str, Any]:
    """Select entries whose tags are a superset of ``tags``."""
    return {"tags": {"$all": tags}}


def not_matching_tags_filter(tags: List[str]) -> Dict[str, Any]:
    """Select entries carrying none of ``tags``, untagged entries included."""
    return {"tags": {"$nin": tags}}


def matching_any_tags_filter(tags: List[str]) -> Dict[str, Any]:
    """Select entries carrying at least one of ``tags``."""
    return {"tags": {"$in": tags}}


# Tag-based cleaning modes mapped to the filter that resolves their ids
TAG_FILTERS = {
    CleaningMode.MATCHING_TAG: matching_tags_filter,
    CleaningMode.NOT_MATCHING_TAG: not_matching_tags_filter,
    CleaningMode.MATCHING_ANY_TAG: matching_any_tags_filter,
}
