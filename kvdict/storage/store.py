"""
Multi-Valued Store Module

This module implements the in-memory dictionary behind the server: every
key maps to an ordered, duplicate-free list of values.
"""

import threading
from typing import Any, Dict, Iterable, List, Mapping


class MultiValueStore:
    """
    Thread-safe in-memory mapping of key -> ordered set of values.

    Operations:
    - get: Current values for a key (empty list if absent)
    - put: Append a value unless already present
    - delete: Remove a value, dropping the key once no values remain

    Internal Storage:
        Plain dict of key -> list of values. A key is only ever present
        with a non-empty list.

    Concurrency:
        A single lock guards every operation, including whole-store
        snapshots. Operations on different keys serialize through it too.
        The lock never spans disk or network I/O.
    """

    def __init__(self):
        self._data: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> List[str]:
        """
        Retrieve the values for a key.

        Args:
            key: The key to look up

        Returns:
            A copy of the value list, or an empty list if the key is absent
        """
        with self._lock:
            return list(self._data.get(key, ()))

    def put(self, key: str, value: str) -> List[str]:
        """
        Add a value to a key.

        The value is appended after any existing values. Putting a value
        that is already present leaves the list unchanged.

        Args:
            key: The key to update
            value: The value to add

        Returns:
            The resulting value list for the key
        """
        with self._lock:
            values = self._data.setdefault(key, [])
            if value not in values:
                values.append(value)
            return list(values)

    def delete(self, key: str, value: str) -> List[str]:
        """
        Remove a value from a key.

        Remaining values keep their relative order. When the last value
        goes, the key goes with it. Deleting a missing pair is a no-op.

        Args:
            key: The key to update
            value: The value to remove

        Returns:
            The remaining value list (empty if the key no longer exists)
        """
        with self._lock:
            values = self._data.get(key)
            if values is None:
                return []
            if value in values:
                values.remove(value)
            if not values:
                del self._data[key]
                return []
            return list(values)

    def exists(self, key: str) -> bool:
        """Check whether a key holds at least one value."""
        with self._lock:
            return key in self._data

    def snapshot(self) -> Dict[str, List[str]]:
        """
        Take a consistent point-in-time copy of the whole mapping.

        The copy is made under the lock, so it never observes a
        half-applied operation. Serializing it can happen afterwards
        without holding the lock.
        """
        with self._lock:
            return {key: list(values) for key, values in self._data.items()}

    def load(self, mapping: Mapping[str, Iterable[str]]) -> None:
        """
        Replace the entire contents of the store.

        Duplicate values are collapsed (first occurrence wins) and keys
        without values are dropped.
        """
        data: Dict[str, List[str]] = {}
        for key, values in mapping.items():
            unique = list(dict.fromkeys(values))
            if unique:
                data[key] = unique

        with self._lock:
            self._data = data

    def size(self) -> int:
        """Get the number of keys currently stored."""
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        """Remove all keys from the store."""
        with self._lock:
            self._data.clear()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - total_keys: Number of keys
            - total_values: Number of values across all keys
        """
        with self._lock:
            return {
                "total_keys": len(self._data),
                "total_values": sum(len(values) for values in self._data.values()),
            }
