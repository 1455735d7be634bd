"""
Storage Services Package

Provides the abstract key-value interface and concrete implementations.
The JSON file backend is the default, but the ledger only ever sees the
interface, so backends are swappable.
"""

from pathlib import Path
from typing import Optional

from budget_manager.config import StorageSettings, get_settings
from budget_manager.services.storage.interface import (
    KeyValueStore,
    SerializationError,
    StorageConnectionError,
    StorageError,
)
from budget_manager.services.storage.json_file import JsonFileStore
from budget_manager.services.storage.memory import InMemoryStore
from budget_manager.services.storage.snapshot import SNAPSHOT_KEYS, LedgerSnapshotStore


def create_store(
    settings: Optional[StorageSettings] = None,
    path: Optional[Path] = None,
) -> KeyValueStore:
    """Build the configured key-value store."""
    settings = settings or get_settings().storage
    if settings.backend == "memory":
        return InMemoryStore()
    return JsonFileStore(
        path or settings.data_path,
        retry_attempts=settings.retry_attempts,
    )


__all__ = [
    # Interfaces
    "KeyValueStore",
    # Exceptions
    "SerializationError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
    "LedgerSnapshotStore",
    "SNAPSHOT_KEYS",
    "create_store",
]
