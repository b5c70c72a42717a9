"""
Key-Value Store Module

This module implements the in-memory mapping owned by a StoreServer.
"""

from typing import Any, Dict, Optional


class KVStore:
    """
    In-memory key-value store.

    Keys are unique and the last write wins. Entries never expire and
    are only removed by clear().

    The store is owned by a single StoreServer and is only touched from
    that server's event loop, so operations need no locking.
    """

    def __init__(self):
        self._store: Dict[str, str] = {}
        self._sets = 0
        self._gets = 0
        self._hits = 0

    def set(self, key: str, value: str) -> bool:
        """
        Insert or update a key-value pair.

        Returns:
            True, always
        """
        self._store[key] = value
        self._sets += 1
        return True

    def get(self, key: str) -> Optional[str]:
        """
        Retrieve the value for a given key.

        Returns:
            The value if present, None otherwise
        """
        self._gets += 1
        value = self._store.get(key)
        if value is not None:
            self._hits += 1
        return value

    def exists(self, key: str) -> bool:
        """Check if a key is present."""
        return key in self._store

    def size(self) -> int:
        """Get the current number of keys in the store."""
        return len(self._store)

    def clear(self) -> None:
        """Remove all keys from the store."""
        self._store.clear()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - total_keys: Keys currently stored
            - sets: Number of set() calls
            - gets: Number of get() calls
            - hits: get() calls that found a value
            - misses: get() calls that found nothing
        """
        return {
            "total_keys": len(self._store),
            "sets": self._sets,
            "gets": self._gets,
            "hits": self._hits,
            "misses": self._gets - self._hits,
        }
