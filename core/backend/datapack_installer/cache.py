"""
Response Cache

Keyed in-memory TTL cache in front of the Vanilla Tweaks client.
Entries expire lazily: a stale entry is dropped the next time it is read.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float


def packs_cache_key(mc_version: str, pack_type: str) -> str:
    return f"packs:{mc_version}:{pack_type}"


def image_cache_key(image_url: str) -> str:
    return f"image:{url_tag(image_url)}"


def url_tag(url: str) -> str:
    """Content tag for an upstream URL, used for both cache keys and ETags."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()


class ResponseCache:
    """In-memory key/value store with per-entry TTL"""

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Args:
            clock: Time source in seconds (injectable for tests)
        """
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        """
        Look up a cached value

        Args:
            key: Cache key

        Returns:
            Cached value, or None if absent or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            logger.debug(f"Cache expired: {key}")
            return None

        return entry.value

    def put(self, key: str, value: Any, ttl_minutes: float) -> Any:
        """
        Store a value for ttl_minutes

        Args:
            key: Cache key
            value: Value to store (bytes or decoded JSON)
            ttl_minutes: Lifetime in minutes

        Returns:
            The stored value
        """
        expires_at = self._clock() + ttl_minutes * 60
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)
        logger.debug(f"Cached {key} for {ttl_minutes} minute(s)")
        return value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
