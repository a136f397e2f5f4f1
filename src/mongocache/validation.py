"""Validity and expiration rules for cache entries.

Expiry instants are unix timestamps in whole seconds. An ``expire_time`` of 0
marks an entry that never expires.
"""

import time
from typing import Any, Dict, Optional

NEVER_EXPIRES = 0


def current_timestamp() -> int:
    """Return the current unix time in whole seconds."""
    return int(time.time())


def compute_expire_time(lifetime: Optional[int], now: int) -> int:
    """Compute the absolute expiry instant for a new entry.

    A lifetime of None or 0 both mean "never expires", so a caller asking for
    a zero-length lifetime gets an infinite entry.

    Args:
        lifetime: Lifetime in seconds, or None for infinite
        now: Current unix timestamp

    Returns:
        Expiry timestamp, or NEVER_EXPIRES

    Raises:
        TypeError: If lifetime is not a whole number of seconds
        ValueError: If lifetime is negative
    """
    if lifetime is None:
        return NEVER_EXPIRES
    check_lifetime(lifetime)
    if lifetime == 0:
        return NEVER_EXPIRES
    return now + lifetime


def check_lifetime(lifetime: int) -> None:
    """Ensure a lifetime is a non-negative whole number of seconds.

    Raises:
        TypeError: If lifetime is not an int
        ValueError: If lifetime is negative
    """
    if isinstance(lifetime, bool) or not isinstance(lifetime, int):
        raise TypeError(
            f"Lifetime must be whole seconds (int), got {type(lifetime).__name__}"
        )
    if lifetime < 0:
        raise ValueError(f"Lifetime must be >= 0 or None, got {lifetime}")


def is_entry_valid(expire_time: int, now: int) -> bool:
    """Check whether an entry with the given expiry is readable at ``now``.

    Args:
        expire_time: Stored expiry timestamp
        now: Current unix timestamp

    Returns:
        True if the entry never expires or has not expired yet
    """
    return expire_time == NEVER_EXPIRES or expire_time >= now


def is_entry_expired(expire_time: int, now: int) -> bool:
    """Check whether clean(OLD) would remove an entry.

    The boundary is strict: an entry expiring exactly at ``now`` is still
    readable and is not expired.
    """
    return NEVER_EXPIRES < expire_time < now


def validity_filter(now: int) -> Dict[str, Any]:
    """Build the query filter selecting readable entries.

    Examples:
        >>> validity_filter(100)
        {'$or': [{'expire_time': 0}, {'expire_time': {'$gte': 100}}]}
    """
    return {
        "$or": [
            {"expire_time": NEVER_EXPIRES},
            {"expire_time": {"$gte": now}},
        ]
    }


def expired_filter(now: int) -> Dict[str, Any]:
    """Build the query filter selecting expired entries.

    Examples:
        >>> expired_filter(100)
        {'expire_time': {'$gt': 0, '$lt': 100}}
    """
    return {"expire_time": {"$gt": NEVER_EXPIRES, "$lt": now}}


def get_lifetime_remaining(expire_time: int, now: int) -> Optional[int]:
    """Get remaining seconds until an entry expires.

    Args:
        expire_time: Stored expiry timestamp
        now: Current unix timestamp

    Returns:
        Seconds remaining (0 once expired), or None if never expires
    """
    if expire_time == NEVER_EXPIRES:
        return None
    return max(0, expire_time - now)
