"""Services package."""

from household_ledger.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsSnapshotStore,
    InMemorySnapshotStore,
    InMemoryStateBackend,
    JsonFileBackend,
    LocalStateBackend,
    NotFoundError,
    RemoteSnapshotStore,
    StorageError,
)

__all__ = [
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStore",
    "InMemorySnapshotStore",
    "InMemoryStateBackend",
    "JsonFileBackend",
    "LocalStateBackend",
    "NotFoundError",
    "RemoteSnapshotStore",
    "StorageError",
]
