"""
Abstract Storage Interface

DESIGN DECISION: The ledger never talks to a storage API directly. It sees
an opaque key-value store with three operations: get, set, remove.
This allows us to:
1. Swap the JSON file for a database or browser-style local storage later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

Values are JSON-compatible Python objects (dict, list, str, numbers, bool,
None). Each backend decides how to encode them.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class KeyValueStore(ABC):
    """
    Abstract interface for key-value persistence.

    Any storage implementation (JSON file, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Read a value.

        Args:
            key: The key to read
            default: Returned when the key is absent

        Returns:
            The stored value, or ``default``

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            SerializationError: If the value is not JSON-compatible
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if the key existed
        """
        pass

    def connect(self) -> None:
        """
        Open the backend now instead of on first access.

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    def set_many(self, items: dict[str, Any]) -> None:
        """
        Write several keys. Backends may override this to write once.
        """
        for key, value in items.items():
            self.set(key, value)

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass


class SerializationError(StorageError):
    """A value could not be encoded or decoded."""
    pass
