"""
In-memory storage implementations.

Used by the test suite and for ephemeral sessions that should not touch
the disk or the network.
"""

import json
from datetime import datetime
from typing import Any, Optional

from household_ledger.services.storage.interface import (
    ConnectionError,
    LocalStateBackend,
    RemoteSnapshotStore,
)


class InMemoryStateBackend(LocalStateBackend):
    """Local key/value store backed by a dict."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.values: dict[str, str] = dict(initial or {})
        self.writes: list[str] = []

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self.writes.append(key)


class InMemorySnapshotStore(RemoteSnapshotStore):
    """
    Remote snapshot store backed by a dict.

    Blobs are round-tripped through JSON text so callers never share
    mutable state with the store, matching a real remote.
    Set `fail_fetch` / `fail_upsert` to simulate an unreachable remote.
    """

    def __init__(self, rows: Optional[dict[str, Any]] = None):
        self._rows: dict[str, str] = {
            key: json.dumps(value) for key, value in (rows or {}).items()
        }
        self.updated_at: dict[str, datetime] = {}
        self.fetch_count = 0
        self.upserts: list[dict] = []
        self.fail_fetch = False
        self.fail_upsert = False

    async def fetch(self, household_id: str) -> Optional[Any]:
        self.fetch_count += 1
        if self.fail_fetch:
            raise ConnectionError("Remote store unreachable")
        raw = self._rows.get(household_id)
        return json.loads(raw) if raw is not None else None

    async def upsert(
        self,
        household_id: str,
        data: dict,
        updated_at: datetime,
    ) -> None:
        if self.fail_upsert:
            raise ConnectionError("Remote store unreachable")
        self._rows[household_id] = json.dumps(data)
        self.updated_at[household_id] = updated_at
        self.upserts.append(json.loads(self._rows[household_id]))

    def row(self, household_id: str) -> Optional[Any]:
        raw = self._rows.get(household_id)
        return json.loads(raw) if raw is not None else None
