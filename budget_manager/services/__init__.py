"""Services package."""

from budget_manager.services.auth import (
    AuthenticationError,
    AuthError,
    AuthService,
    DuplicateUserError,
    RegistrationError,
)
from budget_manager.services.export import export_expenses_csv, write_expenses_csv
from budget_manager.services.storage import (
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    LedgerSnapshotStore,
    SerializationError,
    StorageConnectionError,
    StorageError,
    create_store,
)

__all__ = [
    # Auth services
    "AuthenticationError",
    "AuthError",
    "AuthService",
    "DuplicateUserError",
    "RegistrationError",
    # Export services
    "export_expenses_csv",
    "write_expenses_csv",
    # Storage services
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "LedgerSnapshotStore",
    "SerializationError",
    "StorageConnectionError",
    "StorageError",
    "create_store",
]
