"""
Reconciliation Engine

Keeps one shared remote household snapshot in step with local state,
without any user interaction.

State machine (per Reconciler lifetime):

    UNINITIALIZED --start()--> PULLING --(found / not found / failed)--> SYNCED

- PULLING happens at most once. A found snapshot replaces local state
  field by field; malformed fields are ignored.
- In SYNCED every local mutation (re)arms a debounce timer. When it
  fires, the full snapshot is pushed.

CRITICAL: The local store is the durable source of truth. Remote failures
are logged and swallowed, never retried and never shown to the user.

KNOWN LIMITATION: Pushes carry no sequence token. A push still in flight
is not cancelled when a newer one starts, so two pushes can land out of
order and the remote keeps whichever was applied last.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from household_ledger.audit import AuditLogger
from household_ledger.ledger.store import LedgerStore
from household_ledger.services.storage.interface import RemoteSnapshotStore
from household_ledger.validation.snapshot import SnapshotValidator


DEFAULT_DEBOUNCE_SECONDS = 0.5


class SyncState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PULLING = "pulling"
    SYNCED = "synced"


class Reconciler:
    """
    Pulls the household snapshot once, then pushes debounced snapshots.

    All methods must be called from the event loop thread that ran start().
    """

    def __init__(
        self,
        store: LedgerStore,
        remote: RemoteSnapshotStore,
        household_id: Optional[str],
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[SnapshotValidator] = None,
    ):
        self._store = store
        self._remote = remote
        self._household_id = household_id
        self._debounce_seconds = debounce_seconds
        self._audit_logger = audit_logger
        self._validator = validator or SnapshotValidator(audit_logger)

        self._state = SyncState.UNINITIALIZED
        self._pull_attempted = False
        self._dirty = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._inflight: set[asyncio.Task] = set()
        self._sequence = 0

        store.subscribe(self.notify_mutation)

    @property
    def enabled(self) -> bool:
        """Sync only runs when a household is configured."""
        return bool(self._household_id)

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def has_pending_push(self) -> bool:
        return self._timer is not None

    @property
    def push_sequence(self) -> int:
        """Number of pushes started so far."""
        return self._sequence

    async def start(self) -> bool:
        """
        Perform the one-time pull.

        Returns:
            True if remote values replaced any local state
        """
        if not self.enabled or self._pull_attempted:
            return False
        self._pull_attempted = True
        self._loop = asyncio.get_running_loop()
        self._state = SyncState.PULLING

        replaced: list[str] = []
        try:
            try:
                payload = await self._remote.fetch(self._household_id)
            except Exception as e:
                if self._audit_logger:
                    self._audit_logger.log_sync_failed("pull", self._household_id, str(e))
                return False

            if payload is None:
                if self._audit_logger:
                    self._audit_logger.log_pull_not_found(self._household_id)
                return False

            patch = self._validator.parse_remote(payload)
            replaced = self._store.replace(patch, notify=False, source="remote")
            if self._audit_logger:
                self._audit_logger.log_pull_completed(self._household_id, replaced)
            return bool(replaced)
        finally:
            self._enter_synced()

    def _enter_synced(self) -> None:
        self._state = SyncState.SYNCED
        if self._dirty:
            # Mutations made while the pull was pending still need to go out
            self._dirty = False
            self._arm()

    def notify_mutation(self) -> None:
        """Store listener: a syncable local change happened."""
        if not self.enabled:
            return
        if self._state != SyncState.SYNCED:
            self._dirty = True
            return
        self._arm()

    def _arm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(self._debounce_seconds, self._fire)

    def _fire(self) -> None:
        self._timer = None
        task = self._loop.create_task(self._push())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _push(self) -> bool:
        """Upsert the current snapshot. Never raises."""
        self._sequence += 1
        sequence = self._sequence
        snapshot = self._store.snapshot()
        try:
            await self._remote.upsert(
                self._household_id,
                snapshot.to_payload(),
                datetime.now(timezone.utc),
            )
        except Exception as e:
            if self._audit_logger:
                self._audit_logger.log_sync_failed("push", self._household_id, str(e))
            return False

        if self._audit_logger:
            self._audit_logger.log_push_completed(
                self._household_id, sequence, len(snapshot.transactions)
            )
        return True

    async def flush(self) -> None:
        """
        Push now if a push is pending, then wait for in-flight pushes.

        Call before shutting down so the last debounce window is not lost.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            await self._push()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until no push is in flight."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight))
