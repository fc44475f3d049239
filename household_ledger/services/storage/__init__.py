"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Local state lives in JSON files; the shared household snapshot lives in
Google Sheets. Both are designed to be swappable.
"""

from household_ledger.services.storage.interface import (
    BASE_BUDGET_KEY,
    BUDGET_CONFIGURATION_KEY,
    CURRENT_USER_KEY,
    DEFAULT_BUDGETS_KEY,
    LOCAL_KEYS,
    TRANSACTIONS_KEY,
    ConnectionError,
    LocalStateBackend,
    NotFoundError,
    RemoteSnapshotStore,
    StorageError,
)
from household_ledger.services.storage.local import JsonFileBackend
from household_ledger.services.storage.memory import (
    InMemorySnapshotStore,
    InMemoryStateBackend,
)
from household_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsSnapshotStore,
)

__all__ = [
    # Interfaces
    "LocalStateBackend",
    "RemoteSnapshotStore",
    # Local keys
    "BASE_BUDGET_KEY",
    "BUDGET_CONFIGURATION_KEY",
    "CURRENT_USER_KEY",
    "DEFAULT_BUDGETS_KEY",
    "LOCAL_KEYS",
    "TRANSACTIONS_KEY",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsSnapshotStore",
    "InMemorySnapshotStore",
    "InMemoryStateBackend",
    "JsonFileBackend",
]
