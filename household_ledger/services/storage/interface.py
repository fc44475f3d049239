"""
Abstract Storage Interfaces

DESIGN DECISION: We define abstract interfaces for both storage layers.
This allows us to:
1. Swap Google Sheets for another remote store later
2. Use in-memory storage for testing
3. Construct the ledger without any global environment

Two very different stores are involved:
- The LOCAL key/value store is the durable source of truth. It is
  synchronous and written after every change.
- The REMOTE snapshot store holds one shared blob per household. It is
  asynchronous and best-effort.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional


# Logical keys of the local key/value store
TRANSACTIONS_KEY = "txns"
BASE_BUDGET_KEY = "monthlyBudget"
BUDGET_CONFIGURATION_KEY = "catBudgetsMap"
DEFAULT_BUDGETS_KEY = "defaultBudgets"
CURRENT_USER_KEY = "currentUser"

LOCAL_KEYS = (
    TRANSACTIONS_KEY,
    BASE_BUDGET_KEY,
    BUDGET_CONFIGURATION_KEY,
    DEFAULT_BUDGETS_KEY,
    CURRENT_USER_KEY,
)


class LocalStateBackend(ABC):
    """
    Abstract interface for the local persisted key/value store.

    Values are UTF-8 JSON text; encoding and decoding is the caller's job.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the raw value stored under a key.

        Returns:
            The stored JSON text, or None if nothing is stored
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store JSON text under a key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass


class RemoteSnapshotStore(ABC):
    """
    Abstract interface for the shared household snapshot store.

    One row/document per household identifier. There is no optimistic
    concurrency check: an upsert unconditionally replaces the row.
    """

    @abstractmethod
    async def fetch(self, household_id: str) -> Optional[Any]:
        """
        Fetch the snapshot blob for a household.

        Args:
            household_id: The household key

        Returns:
            The decoded JSON blob, or None if the household has no row

        Raises:
            StorageError: If the store cannot be reached or read
        """
        pass

    @abstractmethod
    async def upsert(
        self,
        household_id: str,
        data: dict,
        updated_at: datetime,
    ) -> None:
        """
        Insert or replace the snapshot blob for a household.

        Args:
            household_id: The household key
            data: JSON-ready snapshot payload
            updated_at: Timestamp stored next to the blob

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
