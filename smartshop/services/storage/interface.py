"""
Abstract Storage Interface

DESIGN DECISION: The record store only needs an opaque key-value blob
store: get, set and delete a text value by key. This allows us to:
1. Keep the records in a local JSON file for the app
2. Use in-memory storage for testing
3. Swap in another backend later without touching the record logic

Atomicity of a single `set` is the backend's job; the record store
never writes partial data.
"""

from abc import ABC, abstractmethod
from typing import Optional


class BlobStoreInterface(ABC):
    """
    Abstract interface for a key-value blob store.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored text, or None if nothing is stored under the key

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Replace the blob stored under a key.

        Args:
            key: Storage key
            value: Full text to store

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove the blob stored under a key. Missing keys are ignored.

        Raises:
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
